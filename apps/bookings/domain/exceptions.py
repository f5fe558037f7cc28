"""
Booking Domain Errors

Failures of the reservation engine. Validation errors are raised before
anything is mutated; none of these are retried by the engine itself.
"""

from typing import Optional
from uuid import UUID

from shared.domain.exceptions import DomainError, InvalidRange
from shared.domain.value_objects import DateRange


class InvalidDateOrder(InvalidRange):
    """Raised when a booking request's start date is after its end date."""

    code = 'invalid_date_order'


class InvalidRate(DomainError, ValueError):
    """Raised when a day rate is non-numeric, non-finite or negative."""

    code = 'invalid_rate'

    def __init__(self, value, reason: str = 'must be a finite non-negative number'):
        super().__init__(
            f"Invalid day rate {value!r}: {reason}",
            details={'day_rate': str(value)},
        )


class DatesInPast(DomainError):
    """Raised when a requested range starts before today."""

    code = 'dates_in_past'

    def __init__(self, dates: DateRange, today):
        self.dates = dates
        super().__init__(
            f"Booking dates {dates} must not be in the past (today is {today})",
            details={'dates': str(dates), 'today': str(today)},
        )


class VanNotFound(DomainError):
    code = 'van_not_found'

    def __init__(self, van_id: UUID):
        self.van_id = van_id
        super().__init__(f"Van {van_id} not found", details={'van_id': str(van_id)})


class UserNotFound(DomainError):
    code = 'user_not_found'

    def __init__(self, user_id: UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found", details={'user_id': str(user_id)})


class VanUnavailable(DomainError):
    """
    Raised when the requested range overlaps a committed range

    ``conflicting`` is the first committed range that overlaps, so callers
    can show the user which booking is in the way.
    """

    code = 'van_unavailable'

    def __init__(self, van_id: UUID, requested: DateRange, conflicting: DateRange):
        self.van_id = van_id
        self.requested = requested
        self.conflicting = conflicting
        super().__init__(
            f"Van {van_id} is not available for {requested}: "
            f"overlaps committed range {conflicting}",
            details={
                'van_id': str(van_id),
                'requested': str(requested),
                'conflicting': str(conflicting),
            },
        )


class Unauthorized(DomainError):
    code = 'unauthorized'

    def __init__(self, requester_id, action: str):
        super().__init__(
            f"Requester {requester_id} is not allowed to {action}",
            details={'requester_id': str(requester_id), 'action': action},
        )


class NotFound(DomainError):
    """
    Raised for records the caller may not see as well as missing ones

    Never replaced by ``Unauthorized`` for id lookups: a caller must not be
    able to tell someone else's booking from a nonexistent one.
    """

    code = 'not_found'

    def __init__(self, kind: str, record_id):
        super().__init__(
            f"{kind} {record_id} not found",
            details={'kind': kind, 'id': str(record_id)},
        )


class LedgerInconsistency(DomainError):
    """Raised when a van's ledger and its bookings disagree."""

    code = 'ledger_inconsistency'

    def __init__(self, van_id: UUID, dates: DateRange, reason: str,
                 booking_id: Optional[UUID] = None):
        self.van_id = van_id
        self.dates = dates
        super().__init__(
            f"Ledger of van {van_id} is inconsistent for {dates}: {reason}",
            details={
                'van_id': str(van_id),
                'dates': str(dates),
                'booking_id': str(booking_id) if booking_id else None,
            },
        )


class InvalidTransition(DomainError):
    code = 'invalid_transition'

    def __init__(self, booking_id: UUID, current: str, action: str):
        super().__init__(
            f"Cannot {action} booking {booking_id} in status {current}",
            details={'booking_id': str(booking_id), 'status': current},
        )
