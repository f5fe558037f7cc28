"""API views for the booking domain.

Reads go through the scoped queryset; every write is dispatched as a
command on the booking message bus so the van ledger and the booking
record always change together.
"""

from __future__ import annotations

import logging

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .application.access import BookingAccessPolicy, Requester
from .application.command_handlers import (
    CancelBookingCommand,
    CreateBookingCommand,
    UpdateBookingCommand,
)
from .filters import BookingFilter
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    CancellationSerializer,
)
from .services import get_message_bus

logger = logging.getLogger(__name__)


class BookingViewSet(viewsets.ModelViewSet):
    """Viewset for creating, changing and cancelling bookings."""

    queryset = Booking.objects.select_related("van", "user").all()
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = BookingFilter
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action in ("update", "partial_update"):
            return BookingUpdateSerializer
        return BookingSerializer

    def get_requester(self) -> Requester:
        return Requester.from_user(self.request.user)

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        return qs.filter(**BookingAccessPolicy.scope_filter(self.get_requester()))

    def _render(self, booking_id, status_code=status.HTTP_200_OK) -> Response:
        booking = Booking.objects.select_related("van", "user").get(pk=booking_id)
        data = BookingSerializer(booking, context=self.get_serializer_context()).data
        return Response(data, status=status_code)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = get_message_bus().handle(CreateBookingCommand(
            requester=self.get_requester(),
            van_id=data["van"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            user_id=data.get("user"),
        ))
        return self._render(booking.id, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = get_message_bus().handle(UpdateBookingCommand(
            requester=self.get_requester(),
            booking_id=kwargs["pk"],
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            van_id=data.get("van"),
            user_id=data.get("user"),
        ))
        return self._render(booking.id)

    def partial_update(self, request, *args, **kwargs):  # type: ignore
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        return self._cancel(kwargs["pk"])

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        return self._cancel(pk)

    def _cancel(self, booking_id) -> Response:
        result = get_message_bus().handle(CancelBookingCommand(
            requester=self.get_requester(),
            booking_id=booking_id,
        ))
        if not result.ledger_released:
            logger.warning(f"Booking {booking_id} cancelled without a matching ledger entry")
        payload = CancellationSerializer({
            "id": result.booking.id,
            "status": result.booking.status.value,
            "ledger_released": result.ledger_released,
        }).data
        return Response(payload, status=status.HTTP_200_OK)
