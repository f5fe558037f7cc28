from decimal import Decimal
from uuid import uuid4

import pytest

from apps.bookings.application.access import Requester
from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CreateBookingCommand,
    DeleteUserCommand,
    DeleteVanCommand,
    UpdateBookingCommand,
)
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingCreated,
    LedgerInconsistencyDetected,
    LedgerRangeCommitted,
    VanDeleted,
)
from apps.bookings.domain.exceptions import (
    DatesInPast,
    InvalidDateOrder,
    LedgerInconsistency,
    NotFound,
    Unauthorized,
    UserNotFound,
    VanNotFound,
    VanUnavailable,
)
from apps.bookings.tests.fakes import StoreWriteError
from shared.domain.exceptions import InvalidRange
from shared.domain.value_objects import DateRange


def dr(start: str, end: str) -> DateRange:
    return DateRange.parse(start, end)


def create(bus, requester, van_id, start, end, **kwargs):
    return bus.handle(CreateBookingCommand(
        requester=requester, van_id=van_id, start_date=start, end_date=end, **kwargs
    ))


class TestCreateBooking:
    def test_books_and_prices_inclusive_days(self, bus, store, requester, van_id, published):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        assert booking.total_price == Decimal("1300")
        assert booking.status is BookingStatus.COMMITTED
        assert booking.user_id == requester.id
        assert store.ledger(van_id) == [dr("2024-05-01", "2024-05-10")]
        assert store.booking(booking.id).dates == dr("2024-05-01", "2024-05-10")
        assert {type(e) for e in published} == {LedgerRangeCommitted, BookingCreated}

    def test_overlap_names_the_committed_range(self, bus, store, requester, van_id):
        create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        with pytest.raises(VanUnavailable) as excinfo:
            create(bus, requester, van_id, "2024-05-05", "2024-05-07")

        assert excinfo.value.conflicting == dr("2024-05-01", "2024-05-10")
        assert store.ledger(van_id) == [dr("2024-05-01", "2024-05-10")]
        assert len(store.rows("bookings")) == 1

    def test_shared_last_day_conflicts(self, bus, requester, van_id):
        create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        with pytest.raises(VanUnavailable):
            create(bus, requester, van_id, "2024-05-10", "2024-05-12")

    def test_following_day_is_free(self, bus, store, requester, van_id):
        create(bus, requester, van_id, "2024-05-01", "2024-05-10")
        booking = create(bus, requester, van_id, "2024-05-11", "2024-05-15")

        assert booking.total_price == Decimal("650")
        assert store.ledger(van_id) == [dr("2024-05-01", "2024-05-10"), dr("2024-05-11", "2024-05-15")]

    def test_other_vans_are_independent(self, bus, store, requester, van_id):
        other_van = store.add_van(day_rate="90")
        create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        booking = create(bus, requester, other_van, "2024-05-01", "2024-05-10")

        assert booking.total_price == Decimal("900")

    def test_reversed_dates(self, bus, store, requester, van_id):
        with pytest.raises(InvalidDateOrder) as excinfo:
            create(bus, requester, van_id, "2024-05-10", "2024-05-01")

        assert isinstance(excinfo.value, InvalidRange)
        assert store.ledger(van_id) == []

    def test_past_dates(self, bus, requester, van_id):
        with pytest.raises(DatesInPast):
            create(bus, requester, van_id, "2024-03-30", "2024-04-02")

    def test_starting_today_is_allowed(self, bus, requester, van_id):
        booking = create(bus, requester, van_id, "2024-04-01", "2024-04-01")

        assert booking.total_price == Decimal("130")

    def test_unknown_van(self, bus, requester):
        with pytest.raises(VanNotFound):
            create(bus, requester, uuid4(), "2024-05-01", "2024-05-10")

    def test_booking_for_someone_else_needs_privilege(self, bus, store, requester, van_id):
        other_user = store.add_user()

        with pytest.raises(Unauthorized):
            create(bus, requester, van_id, "2024-05-01", "2024-05-10", user_id=other_user)
        assert store.ledger(van_id) == []

    def test_admin_books_on_behalf_of_user(self, bus, admin, user_id, van_id):
        booking = create(bus, admin, van_id, "2024-05-01", "2024-05-10", user_id=user_id)

        assert booking.user_id == user_id

    def test_admin_booking_for_unknown_user(self, bus, store, admin, van_id):
        with pytest.raises(UserNotFound):
            create(bus, admin, van_id, "2024-05-01", "2024-05-10", user_id=uuid4())
        assert store.ledger(van_id) == []


class TestUpdateBooking:
    @pytest.fixture
    def booking(self, bus, requester, van_id):
        return create(bus, requester, van_id, "2024-05-01", "2024-05-10")

    def update(self, bus, requester, booking_id, **changes):
        return bus.handle(UpdateBookingCommand(requester=requester, booking_id=booking_id, **changes))

    def test_changing_dates_moves_ledger_entry_and_reprices(self, bus, store, requester, van_id, booking):
        updated = self.update(bus, requester, booking.id, end_date="2024-05-05")

        assert updated.dates == dr("2024-05-01", "2024-05-05")
        assert updated.total_price == Decimal("650")
        assert updated.status is BookingStatus.UPDATED
        assert store.ledger(van_id) == [dr("2024-05-01", "2024-05-05")]
        assert store.booking(booking.id).total_price == Decimal("650")

    def test_conflicting_update_changes_nothing(self, bus, store, requester, van_id, booking):
        create(bus, requester, van_id, "2024-05-11", "2024-05-15")
        ledger_before = store.ledger(van_id)

        with pytest.raises(VanUnavailable) as excinfo:
            self.update(bus, requester, booking.id, end_date="2024-05-12")

        assert excinfo.value.conflicting == dr("2024-05-11", "2024-05-15")
        assert store.ledger(van_id) == ledger_before
        stored = store.booking(booking.id)
        assert stored.dates == dr("2024-05-01", "2024-05-10")
        assert stored.total_price == Decimal("1300")
        assert stored.status is BookingStatus.COMMITTED

    def test_moving_to_another_van(self, bus, store, requester, van_id, booking):
        other_van = store.add_van(day_rate="100")

        updated = self.update(bus, requester, booking.id, van_id=other_van)

        assert updated.van_id == other_van
        assert updated.total_price == Decimal("1000")
        assert store.ledger(van_id) == []
        assert store.ledger(other_van) == [dr("2024-05-01", "2024-05-10")]

    def test_moving_to_a_busy_van_changes_nothing(self, bus, store, requester, van_id, booking):
        other_van = store.add_van(entries=[dr("2024-05-09", "2024-05-20")])

        with pytest.raises(VanUnavailable):
            self.update(bus, requester, booking.id, van_id=other_van)

        assert store.ledger(van_id) == [dr("2024-05-01", "2024-05-10")]
        assert store.ledger(other_van) == [dr("2024-05-09", "2024-05-20")]
        assert store.booking(booking.id).van_id == van_id

    def test_moving_to_unknown_van(self, bus, requester, booking):
        with pytest.raises(VanNotFound):
            self.update(bus, requester, booking.id, van_id=uuid4())

    def test_reversed_effective_range(self, bus, requester, booking):
        with pytest.raises(InvalidDateOrder):
            self.update(bus, requester, booking.id, start_date="2024-05-11")

    def test_moving_into_the_past(self, bus, requester, booking):
        with pytest.raises(DatesInPast):
            self.update(bus, requester, booking.id, start_date="2024-03-25")

    def test_update_without_changes_is_a_no_op(self, bus, store, requester, booking, published):
        published.clear()

        same = self.update(bus, requester, booking.id, start_date="2024-05-01")

        assert same.status is BookingStatus.COMMITTED
        assert published == []

    def test_other_users_booking_is_not_found(self, bus, store, booking):
        stranger = Requester(id=store.add_user())

        with pytest.raises(NotFound):
            self.update(bus, stranger, booking.id, end_date="2024-05-05")

    def test_reassigning_owner_needs_privilege(self, bus, store, requester, booking):
        with pytest.raises(Unauthorized):
            self.update(bus, requester, booking.id, user_id=store.add_user())

    def test_admin_reassigns_owner(self, bus, store, admin, booking):
        new_owner = store.add_user()

        updated = self.update(bus, admin, booking.id, user_id=new_owner)

        assert updated.user_id == new_owner
        assert updated.total_price == Decimal("1300")
        assert store.booking(booking.id).user_id == new_owner

    def test_admin_reassigns_to_unknown_user(self, bus, admin, booking):
        with pytest.raises(UserNotFound):
            self.update(bus, admin, booking.id, user_id=uuid4())


class TestCancelBooking:
    def cancel(self, bus, requester, booking_id):
        return bus.handle(CancelBookingCommand(requester=requester, booking_id=booking_id))

    def test_cancel_then_rebook_same_range(self, bus, store, requester, van_id, published):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        result = self.cancel(bus, requester, booking.id)

        assert result.ledger_released is True
        assert result.booking.status is BookingStatus.CANCELLED
        assert store.booking(booking.id) is None
        assert store.ledger(van_id) == []
        assert any(isinstance(e, BookingCancelled) for e in published)

        again = create(bus, requester, van_id, "2024-05-01", "2024-05-10")
        assert store.ledger(van_id) == [again.dates]

    def test_cancel_twice_is_not_found(self, bus, requester, van_id):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-10")
        self.cancel(bus, requester, booking.id)

        with pytest.raises(NotFound):
            self.cancel(bus, requester, booking.id)

    def test_stranger_cannot_cancel(self, bus, store, requester, van_id):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        with pytest.raises(NotFound):
            self.cancel(bus, Requester(id=store.add_user()), booking.id)
        assert store.booking(booking.id) is not None

    def test_admin_cancels_any_booking(self, bus, store, requester, admin, van_id):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        self.cancel(bus, admin, booking.id)

        assert store.booking(booking.id) is None

    def test_missing_ledger_entry_is_reported(self, bus, store, requester, van_id, published, caplog):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-10")
        store.tables["ledgers"][van_id] = frozenset()
        published.clear()

        with caplog.at_level("ERROR"):
            result = self.cancel(bus, requester, booking.id)

        assert result.ledger_released is False
        assert store.booking(booking.id) is None
        assert any(isinstance(e, LedgerInconsistencyDetected) for e in published)
        assert "has no entry" in caplog.text


class TestDeleteVan:
    def test_requires_privilege(self, bus, requester, van_id):
        with pytest.raises(Unauthorized):
            bus.handle(DeleteVanCommand(requester=requester, van_id=van_id))

    def test_deletes_bookings_and_ledger(self, bus, store, requester, admin, van_id, published):
        create(bus, requester, van_id, "2024-05-01", "2024-05-10")
        create(bus, requester, van_id, "2024-05-11", "2024-05-15")
        other_van = store.add_van()
        kept = create(bus, requester, other_van, "2024-05-01", "2024-05-10")

        deleted = bus.handle(DeleteVanCommand(requester=admin, van_id=van_id))

        assert deleted == 2
        assert store.read("vans", van_id) is None
        assert store.ledger(van_id) == []
        assert list(store.rows("bookings")) == [kept.id]
        assert isinstance(published[-1], VanDeleted)

    def test_unknown_van(self, bus, admin):
        with pytest.raises(VanNotFound):
            bus.handle(DeleteVanCommand(requester=admin, van_id=uuid4()))


class TestDeleteUser:
    def delete(self, bus, requester, user_id):
        return bus.handle(DeleteUserCommand(requester=requester, user_id=user_id))

    def test_releases_dates_so_another_user_can_rebook(self, bus, store, requester, van_id, published):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-04")
        other_van = store.add_van()
        create(bus, requester, other_van, "2024-06-01", "2024-06-02")

        cancelled = self.delete(bus, requester, requester.id)

        assert cancelled == 2
        assert store.read("users", requester.id) is None
        assert store.rows("bookings") == {}
        assert store.ledger(van_id) == [] and store.ledger(other_van) == []
        assert sum(isinstance(e, BookingCancelled) for e in published) == 2

        someone_else = Requester(id=store.add_user())
        again = create(bus, someone_else, van_id, "2024-05-01", "2024-05-04")
        assert store.ledger(van_id) == [again.dates] == [booking.dates]

    def test_user_without_bookings(self, bus, store, requester):
        assert self.delete(bus, requester, requester.id) == 0
        assert store.read("users", requester.id) is None

    def test_other_users_bookings_are_kept(self, bus, store, requester, admin, van_id):
        other = Requester(id=store.add_user())
        kept = create(bus, other, van_id, "2024-05-10", "2024-05-12")
        create(bus, requester, van_id, "2024-05-01", "2024-05-04")

        assert self.delete(bus, admin, requester.id) == 1

        assert list(store.rows("bookings")) == [kept.id]
        assert store.ledger(van_id) == [kept.dates]

    def test_deleting_someone_else_needs_privilege(self, bus, store, requester, van_id):
        other = store.add_user()
        create(bus, Requester(id=other), van_id, "2024-05-01", "2024-05-04")

        with pytest.raises(Unauthorized):
            self.delete(bus, requester, other)
        assert store.read("users", other) is not None
        assert len(store.ledger(van_id)) == 1

    def test_unknown_user(self, bus, admin):
        with pytest.raises(UserNotFound):
            self.delete(bus, admin, uuid4())

    def test_failed_delete_keeps_everything(self, bus, store, requester, van_id):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-04")
        store.fail_after = {"users": 0}

        with pytest.raises(StoreWriteError):
            self.delete(bus, requester, requester.id)

        assert store.booking(booking.id) is not None
        assert store.ledger(van_id) == [booking.dates]


class TestWriteFailures:
    def test_transactional_store_rolls_back_ledger(self, bus, store, requester, van_id):
        store.fail_after = {"bookings": 0}

        with pytest.raises(StoreWriteError):
            create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        assert store.ledger(van_id) == []
        assert store.rows("bookings") == {}

    def test_non_transactional_store_is_compensated(self, bus, store, requester, van_id):
        store.transactional = False
        store.fail_after = {"bookings": 0}

        with pytest.raises(StoreWriteError):
            create(bus, requester, van_id, "2024-05-01", "2024-05-10")

        assert store.ledger(van_id) == []
        assert store.rows("bookings") == {}

    def test_failed_compensation_is_an_inconsistency(self, bus, store, requester, van_id):
        store.transactional = False
        store.fail_after = {"bookings": 0, "ledgers": 1}

        with pytest.raises(LedgerInconsistency):
            create(bus, requester, van_id, "2024-05-01", "2024-05-10")

    def test_non_transactional_update_is_compensated(self, bus, store, requester, van_id):
        booking = create(bus, requester, van_id, "2024-05-01", "2024-05-10")
        store.transactional = False
        store.fail_after = {"bookings": 0}

        with pytest.raises(StoreWriteError):
            bus.handle(UpdateBookingCommand(
                requester=requester, booking_id=booking.id, end_date="2024-05-05"
            ))

        assert store.ledger(van_id) == [dr("2024-05-01", "2024-05-10")]
        assert store.booking(booking.id).dates == dr("2024-05-01", "2024-05-10")
