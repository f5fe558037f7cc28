"""Django REST Framework integration for domain errors."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.application.locks import LockTimeout
from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "invalid_range": status.HTTP_400_BAD_REQUEST,
    "invalid_date_order": status.HTTP_400_BAD_REQUEST,
    "invalid_rate": status.HTTP_400_BAD_REQUEST,
    "dates_in_past": status.HTTP_400_BAD_REQUEST,
    "van_not_found": status.HTTP_404_NOT_FOUND,
    "user_not_found": status.HTTP_404_NOT_FOUND,
    "not_found": status.HTTP_404_NOT_FOUND,
    "unauthorized": status.HTTP_403_FORBIDDEN,
    "van_unavailable": status.HTTP_409_CONFLICT,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "ledger_inconsistency": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def domain_exception_handler(exc, context):  # type: ignore
    """Render domain errors as ``{"error", "message", "details"}`` payloads."""

    if isinstance(exc, DomainError):
        status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
        if status_code >= 500:
            logger.error(f"{exc.code}: {exc.message} {exc.details}")
        return Response(
            {"error": exc.code, "message": exc.message, "details": exc.details},
            status=status_code,
        )

    if isinstance(exc, LockTimeout):
        return Response(
            {"error": "busy", "message": str(exc), "details": {"key": str(exc.key)}},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return exception_handler(exc, context)
