"""
Access-Scoped Queries

Visibility and permission rules for bookings, defined once and used by
the command handlers, the read queries and the HTTP layer alike.

- Privileged requesters see and modify every booking.
- Everyone else sees and modifies only bookings they own.
- Looking up a booking the requester may not see is reported as
  ``NotFound``, exactly like a booking that does not exist.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional
from uuid import UUID
import logging

from apps.bookings.domain.entities import Booking
from apps.bookings.domain.exceptions import NotFound, Unauthorized, VanNotFound
from shared.domain.value_objects import DateRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Requester:
    """Identity of the caller, as verified by the auth provider"""
    id: UUID
    is_privileged: bool = False

    @classmethod
    def from_user(cls, user) -> 'Requester':
        return cls(id=user.pk, is_privileged=bool(getattr(user, 'is_privileged', False)))


class BookingAccessPolicy:
    """Who may see and touch which bookings"""

    @staticmethod
    def can_view(requester: Requester, booking: Booking) -> bool:
        return requester.is_privileged or booking.user_id == requester.id

    @staticmethod
    def can_modify(requester: Requester, booking: Booking) -> bool:
        return requester.is_privileged or booking.user_id == requester.id

    @staticmethod
    def scope_filter(requester: Requester) -> dict:
        """Record filter restricting a booking listing to what is visible"""
        if requester.is_privileged:
            return {}
        return {'user_id': requester.id}


def require_privileged(requester: Requester, action: str):
    if not requester.is_privileged:
        raise Unauthorized(requester.id, action)


def load_visible_booking(uow, requester: Requester, booking_id: UUID) -> Booking:
    """
    Load a booking the requester may modify

    Raises NotFound for missing bookings and for bookings owned by someone
    else, so the two cases are indistinguishable.
    """
    booking = uow.bookings.get(booking_id)
    if booking is None or not BookingAccessPolicy.can_modify(requester, booking):
        if booking is not None:
            logger.info(f"Hiding booking {booking_id} from requester {requester.id}")
        raise NotFound('Booking', booking_id)
    return booking


class BookingQueries:
    """
    Read side of the booking engine

    Every method opens its own unit of work from ``uow_factory``.
    """

    def __init__(self, uow_factory: Callable):
        self.uow_factory = uow_factory

    def get_booking(self, requester: Requester, booking_id: UUID) -> Booking:
        with self.uow_factory() as uow:
            return load_visible_booking(uow, requester, booking_id)

    def list_bookings(
        self,
        requester: Requester,
        van_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
        on_date: Optional[date] = None,
    ) -> List[Booking]:
        """
        Visible bookings, optionally narrowed

        A non-privileged requester asking for another user's bookings gets
        an empty list rather than an error.
        """
        filters = BookingAccessPolicy.scope_filter(requester)
        if user_id is not None:
            if filters.get('user_id', user_id) != user_id:
                return []
            filters['user_id'] = user_id
        if van_id is not None:
            filters['van_id'] = van_id

        with self.uow_factory() as uow:
            bookings = uow.bookings.list(**filters)

        if on_date is not None:
            bookings = [b for b in bookings if b.dates.contains(on_date)]
        return sorted(bookings, key=lambda b: (b.dates.start_date, str(b.id)))

    def van_calendar(self, van_id: UUID) -> List[DateRange]:
        """Committed ranges of a van, without any booking or user ids"""
        with self.uow_factory() as uow:
            van = uow.vans.get(van_id)
            if van is None:
                raise VanNotFound(van_id)
            return list(van.ledger.entries)
