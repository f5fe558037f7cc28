"""Booking engine against the Django record store."""

from datetime import date
from decimal import Decimal

import pytest

from apps.bookings.application.access import BookingQueries, Requester
from apps.bookings.application.bootstrap import bootstrap
from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CreateBookingCommand,
    DeleteVanCommand,
    UpdateBookingCommand,
)
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.events import BookingCreated
from apps.bookings.domain.exceptions import VanUnavailable
from apps.bookings.infrastructure.unit_of_work import RentalUnitOfWork
from apps.bookings.models import Booking
from apps.users.models import User
from apps.vans.models import LedgerEntry, Van
from shared.application.locks import KeyedLock
from shared.domain.value_objects import DateRange

TODAY = date(2024, 4, 1)


@pytest.fixture
def bus():
    return bootstrap(RentalUnitOfWork, locks=KeyedLock(timeout=5), clock=lambda: TODAY)


@pytest.fixture
def renter(db):
    return User.objects.create_user(email="renter@example.com", password="RenterPass123")


@pytest.fixture
def requester(renter):
    return Requester.from_user(renter)


@pytest.fixture
def van(db):
    return Van.objects.create(name="Hiace", day_rate=Decimal("130.00"))


def ledger_rows(van):
    return list(LedgerEntry.objects.filter(van=van).values_list("start_date", "end_date"))


@pytest.mark.django_db
def test_create_writes_booking_and_ledger_row(bus, requester, van, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        booking = bus.handle(CreateBookingCommand(
            requester=requester, van_id=van.pk, start_date="2024-05-01", end_date="2024-05-10",
        ))

    row = Booking.objects.get(pk=booking.id)
    assert row.total_price == Decimal("1300.00")
    assert row.status == Booking.Status.COMMITTED
    assert row.days == 10
    assert ledger_rows(van) == [(date(2024, 5, 1), date(2024, 5, 10))]
    assert len(callbacks) == 1


@pytest.mark.django_db
def test_conflict_leaves_database_untouched(bus, requester, van):
    bus.handle(CreateBookingCommand(
        requester=requester, van_id=van.pk, start_date="2024-05-01", end_date="2024-05-10",
    ))

    with pytest.raises(VanUnavailable):
        bus.handle(CreateBookingCommand(
            requester=requester, van_id=van.pk, start_date="2024-05-05", end_date="2024-05-07",
        ))

    assert Booking.objects.count() == 1
    assert LedgerEntry.objects.count() == 1


@pytest.mark.django_db
def test_update_and_cancel_keep_ledger_in_step(bus, requester, van):
    booking = bus.handle(CreateBookingCommand(
        requester=requester, van_id=van.pk, start_date="2024-05-01", end_date="2024-05-10",
    ))

    updated = bus.handle(UpdateBookingCommand(
        requester=requester, booking_id=booking.id, start_date="2024-05-03",
    ))
    assert updated.status is BookingStatus.UPDATED
    assert Booking.objects.get(pk=booking.id).status == Booking.Status.UPDATED
    assert Booking.objects.get(pk=booking.id).total_price == Decimal("1040.00")
    assert ledger_rows(van) == [(date(2024, 5, 3), date(2024, 5, 10))]

    result = bus.handle(CancelBookingCommand(requester=requester, booking_id=booking.id))
    assert result.ledger_released
    assert not Booking.objects.exists()
    assert ledger_rows(van) == []


@pytest.mark.django_db
def test_delete_van_cascades(bus, requester, van):
    bus.handle(CreateBookingCommand(
        requester=requester, van_id=van.pk, start_date="2024-05-01", end_date="2024-05-10",
    ))
    admin = User.objects.create_user(email="admin@example.com", password="AdminPass123", is_admin=True)

    deleted = bus.handle(DeleteVanCommand(requester=Requester.from_user(admin), van_id=van.pk))

    assert deleted == 1
    assert not Van.objects.exists()
    assert not LedgerEntry.objects.exists()
    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_queries_read_from_database(bus, requester, renter, van):
    bus.handle(CreateBookingCommand(
        requester=requester, van_id=van.pk, start_date="2024-05-01", end_date="2024-05-10",
    ))
    queries = BookingQueries(RentalUnitOfWork)

    [booking] = queries.list_bookings(requester)
    assert booking.user_id == renter.pk
    assert queries.van_calendar(van.pk) == [DateRange(date(2024, 5, 1), date(2024, 5, 10))]


@pytest.mark.django_db
def test_events_are_published_after_commit(requester, van, django_capture_on_commit_callbacks):
    bus = bootstrap(RentalUnitOfWork, clock=lambda: TODAY)
    seen = []
    bus.register_event_handler(BookingCreated, seen.append)

    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        bus.handle(CreateBookingCommand(
            requester=requester, van_id=van.pk, start_date="2024-05-01", end_date="2024-05-10",
        ))
    assert seen == []

    for callback in callbacks:
        callback()
    assert [e.van_id for e in seen] == [van.pk]
