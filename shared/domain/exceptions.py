"""
Domain Errors

Base exception for every failure the rental domain reports to callers.
Each error carries a machine-readable ``code`` and a ``details`` dict with
the ids and ranges a caller needs to decide between retry and abort.
"""

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for all rental domain errors."""

    code = 'domain_error'

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidRange(DomainError, ValueError):
    """Raised when a date range starts after it ends."""

    code = 'invalid_range'

    def __init__(self, start_date, end_date, message: Optional[str] = None):
        super().__init__(
            message or f"Start date ({start_date}) must not be after end date ({end_date})",
            details={'start_date': str(start_date), 'end_date': str(end_date)},
        )
