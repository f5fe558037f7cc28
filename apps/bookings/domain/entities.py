"""
Booking Domain Entities

- Van: A rentable vehicle with its day rate and availability ledger
- Booking: A user's reservation of a van for a date range
- BookingStatus: FSM states for the booking lifecycle
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID

from apps.bookings.domain.events import BookingCancelled, BookingCreated, BookingUpdated
from apps.bookings.domain.exceptions import InvalidTransition
from apps.bookings.domain.ledger import AvailabilityLedger
from apps.bookings.domain.pricing import calculate_price, validate_day_rate
from shared.domain.base import Aggregate, Entity
from shared.domain.value_objects import DateRange


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - REQUESTED -> COMMITTED (dates committed to the van's ledger)
    - COMMITTED -> UPDATED (dates, van or owner changed)
    - UPDATED -> UPDATED
    - COMMITTED/UPDATED -> CANCELLED (dates released, record deleted)

    A cancelled booking never comes back.
    """
    REQUESTED = 'requested'
    COMMITTED = 'committed'
    UPDATED = 'updated'
    CANCELLED = 'cancelled'


@dataclass(eq=False)
class Van(Entity):
    """
    A van that can be rented by the day

    Owns its ledger. Only the booking handlers mutate the ledger.
    """
    name: str = ''
    day_rate: Decimal = Decimal('0')
    ledger: AvailabilityLedger = None

    def __post_init__(self):
        self.day_rate = validate_day_rate(self.day_rate, allow_zero=False)
        if self.ledger is None:
            self.ledger = AvailabilityLedger.from_entries(self.id, [])

    def price_for(self, dates: DateRange) -> Decimal:
        return calculate_price(self.day_rate, dates)


@dataclass(eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - ``dates`` is a valid DateRange with a matching entry in the van's ledger
    - ``total_price`` equals the van's day rate times ``dates.days`` as of
      the last create or update
    """

    user_id: UUID = None
    van_id: UUID = None
    dates: DateRange = None
    total_price: Decimal = Decimal('0')
    status: BookingStatus = BookingStatus.REQUESTED

    @classmethod
    def request(cls, user_id: UUID, van: Van, dates: DateRange) -> 'Booking':
        """Create a booking priced from the van's current day rate"""
        return cls(
            user_id=user_id,
            van_id=van.id,
            dates=dates,
            total_price=van.price_for(dates),
        )

    def commit(self):
        """REQUESTED -> COMMITTED, once the ledger holds the dates"""
        if self.status != BookingStatus.REQUESTED:
            raise InvalidTransition(self.id, self.status.value, 'commit')

        self.status = BookingStatus.COMMITTED
        self.add_event(BookingCreated(
            aggregate_id=self.id,
            booking_id=self.id,
            van_id=self.van_id,
            user_id=self.user_id,
            dates=self.dates,
            total_price=self.total_price,
        ))

    def update(self, van: Van, dates: DateRange, user_id: UUID | None = None):
        """
        Apply new dates, van or owner

        The caller has already moved the range in the ledger(s). The price
        is recomputed only when the dates or the van change.
        """
        if not self.is_active:
            raise InvalidTransition(self.id, self.status.value, 'update')

        old_dates, old_van_id = self.dates, self.van_id
        if van.id != old_van_id or dates != old_dates:
            self.total_price = van.price_for(dates)
        self.van_id = van.id
        self.dates = dates
        if user_id is not None:
            self.user_id = user_id
        self.status = BookingStatus.UPDATED
        self.touch()

        self.add_event(BookingUpdated(
            aggregate_id=self.id,
            booking_id=self.id,
            van_id=self.van_id,
            old_van_id=old_van_id,
            user_id=self.user_id,
            dates=self.dates,
            old_dates=old_dates,
            total_price=self.total_price,
        ))

    def cancel(self, cancelled_by: UUID):
        if not self.is_active:
            raise InvalidTransition(self.id, self.status.value, 'cancel')

        self.status = BookingStatus.CANCELLED
        self.touch()
        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            booking_id=self.id,
            van_id=self.van_id,
            user_id=self.user_id,
            dates=self.dates,
            cancelled_by=cancelled_by,
        ))

    @property
    def is_active(self) -> bool:
        """Committed and not cancelled"""
        return self.status in (BookingStatus.COMMITTED, BookingStatus.UPDATED)

    @property
    def days(self) -> int:
        return self.dates.days

    def __str__(self):
        return f"Booking {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, van_id={self.van_id}, user_id={self.user_id}, "
            f"status={self.status.value}, dates={self.dates!r})"
        )
