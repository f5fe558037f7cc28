"""
Booking Domain Events

Events that describe committed changes to bookings and van ledgers.
They are published after the unit of work commits.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange


# ===== Booking Events =====

@dataclass
class BookingCreated(DomainEvent):
    booking_id: UUID = None
    van_id: UUID = None
    user_id: UUID = None
    dates: DateRange = None
    total_price: Decimal = None


@dataclass
class BookingUpdated(DomainEvent):
    """
    Event: A committed booking changed

    ``old_dates``/``old_van_id`` hold the values before the change so the
    audit log can show both sides.
    """
    booking_id: UUID = None
    van_id: UUID = None
    old_van_id: UUID = None
    user_id: UUID = None
    dates: DateRange = None
    old_dates: DateRange = None
    total_price: Decimal = None


@dataclass
class BookingCancelled(DomainEvent):
    booking_id: UUID = None
    van_id: UUID = None
    user_id: UUID = None
    dates: DateRange = None
    cancelled_by: UUID = None


# ===== Ledger Events =====

@dataclass
class LedgerRangeCommitted(DomainEvent):
    van_id: UUID = None
    dates: DateRange = None


@dataclass
class LedgerRangeReleased(DomainEvent):
    van_id: UUID = None
    dates: DateRange = None


@dataclass
class LedgerInconsistencyDetected(DomainEvent):
    """
    Event: A release found no matching ledger entry

    Points at an earlier partial failure. Operators should reconcile the
    van's ledger against its bookings.
    """
    van_id: UUID = None
    booking_id: UUID = None
    dates: DateRange = None


# ===== Van Events =====

@dataclass
class VanDeleted(DomainEvent):
    van_id: UUID = None
    bookings_deleted: int = 0
