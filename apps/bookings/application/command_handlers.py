"""
Booking Command Handlers

The booking lifecycle: every change to a booking goes through one of
these handlers so the booking record and its van's ledger entry are
always written together.

Commands:
- CreateBookingCommand: Reserve a van for a date range
- UpdateBookingCommand: Change a booking's dates, van or owner
- CancelBookingCommand: Release a booking's dates and delete it
- DeleteVanCommand: Delete a van together with its bookings and ledger
- DeleteUserCommand: Cancel every booking of a user, then delete the user

Each handler holds the affected vans' keyed locks and the van row locks
of its unit of work across the whole check-then-commit span.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterator, Optional, Tuple
from uuid import UUID
import logging

from apps.bookings.application.access import Requester, load_visible_booking, require_privileged
from apps.bookings.domain.entities import Booking, Van
from apps.bookings.domain.events import LedgerInconsistencyDetected, VanDeleted
from apps.bookings.domain.exceptions import (
    DatesInPast,
    InvalidDateOrder,
    LedgerInconsistency,
    UserNotFound,
    VanNotFound,
)
from shared.application.locks import KeyedLock, LockTimeout
from shared.domain.value_objects import DateRange, to_date

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Reserve ``van_id`` from ``start_date`` to ``end_date`` (both inclusive)

    ``user_id`` defaults to the requester; booking for someone else needs
    a privileged requester.
    """
    requester: Requester
    van_id: UUID
    start_date: date
    end_date: date
    user_id: Optional[UUID] = None


@dataclass
class UpdateBookingCommand:
    """Fields left as None keep their stored value"""
    requester: Requester
    booking_id: UUID
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    van_id: Optional[UUID] = None
    user_id: Optional[UUID] = None


@dataclass
class CancelBookingCommand:
    requester: Requester
    booking_id: UUID


@dataclass
class DeleteVanCommand:
    requester: Requester
    van_id: UUID


@dataclass
class DeleteUserCommand:
    """A user may delete themselves; anyone else needs a privileged requester"""
    requester: Requester
    user_id: UUID


@dataclass
class CancellationResult:
    """
    Outcome of a cancellation

    ``ledger_released`` is False when the van's ledger had no entry for
    the booking; the booking is still deleted and the inconsistency has
    been logged and published.
    """
    booking: Booking
    ledger_released: bool = True


def requested_range(start, end) -> DateRange:
    """Build the range for a booking request, rejecting reversed dates"""
    start_date, end_date = to_date(start), to_date(end)
    if start_date > end_date:
        raise InvalidDateOrder(start_date, end_date)
    return DateRange(start_date, end_date)


# ===== Command Handlers =====

class _LedgerCommandHandler:
    """Shared plumbing: unit of work factory, keyed locks and clock"""

    max_lock_attempts = 3

    def __init__(self, uow_factory: Callable, locks: KeyedLock,
                 clock: Callable[[], date] = date.today):
        self.uow_factory = uow_factory
        self.locks = locks
        self.clock = clock

    @staticmethod
    def _load_van(uow, van_id: UUID) -> Van:
        van = uow.vans.get(van_id, lock=True)
        if van is None:
            raise VanNotFound(van_id)
        return van

    @staticmethod
    def _ensure_user(uow, user_id: UUID):
        if not uow.users.exists(user_id):
            raise UserNotFound(user_id)

    @contextmanager
    def _booking_scope(self, requester: Requester, booking_id: UUID,
                       extra_van_id: Optional[UUID] = None) -> Iterator[Tuple[object, Booking]]:
        """
        Lock the booking's van (and ``extra_van_id``) and open a unit of work

        The booking is read once to learn its van, then re-read under the
        lock. If a concurrent update moved it to another van in between,
        the locks are dropped and the sequence starts over.
        """
        for _ in range(self.max_lock_attempts):
            with self.uow_factory() as uow:
                van_id = load_visible_booking(uow, requester, booking_id).van_id

            van_ids = {van_id}
            if extra_van_id is not None:
                van_ids.add(extra_van_id)

            with self.locks.hold(*van_ids):
                with self.uow_factory() as uow:
                    booking = load_visible_booking(uow, requester, booking_id)
                    if booking.van_id in van_ids:
                        yield uow, booking
                        return

            logger.info(f"Booking {booking_id} moved to another van while locking, retrying")

        raise LockTimeout(booking_id, self.locks.timeout or 0)

    @staticmethod
    def _release_and_delete(uow, booking: Booking, cancelled_by: UUID) -> bool:
        """
        Release the booking's ledger entry and delete the booking

        The caller holds the van's keyed lock. A missing entry is logged and
        published as an inconsistency; the booking is deleted either way.
        """
        van = uow.vans.get(booking.van_id, lock=True)
        released = van is not None and van.ledger.release(booking.dates)

        if released:
            uow.vans.save_ledger(van.ledger)
            uow.collect_events(van.ledger)
        else:
            logger.error(
                f"Ledger of van {booking.van_id} has no entry {booking.dates} "
                f"for booking {booking.id}; deleting the booking anyway"
            )
            booking.add_event(LedgerInconsistencyDetected(
                aggregate_id=booking.id,
                van_id=booking.van_id,
                booking_id=booking.id,
                dates=booking.dates,
            ))

        booking.cancel(cancelled_by)
        uow.bookings.delete(booking.id)
        uow.collect_events(booking)
        return released

    @staticmethod
    def _write_or_compensate(uow, write: Callable, undo: Callable,
                             van_id: UUID, dates: DateRange, booking_id: UUID):
        """
        Run the booking write that follows a ledger write

        On a transactional store a failure simply rolls everything back.
        Otherwise the ledger change is undone by hand; if that fails too the
        two records are out of step and LedgerInconsistency is raised.
        """
        try:
            write()
        except Exception as exc:
            if uow.transactional:
                raise
            logger.warning(
                f"Booking {booking_id} write failed on a non-transactional store, "
                f"compensating ledger of van {van_id}: {exc}"
            )
            try:
                undo()
            except Exception as undo_exc:
                logger.error(
                    f"Compensation failed for van {van_id}, dates {dates}, "
                    f"booking {booking_id}: {undo_exc}",
                    exc_info=True
                )
                raise LedgerInconsistency(
                    van_id, dates, 'ledger compensation failed', booking_id
                ) from undo_exc
            raise


class CreateBookingHandler(_LedgerCommandHandler):
    """
    Handler for CreateBooking command

    1. Validate the range and reject past dates (before any locking)
    2. Take the van's keyed lock and open a unit of work
    3. Load the van with a row lock, verify the user
    4. Check the ledger and commit the range
    5. Persist the booking
    6. Commit; events are published afterwards
    """

    def handle(self, command: CreateBookingCommand) -> Booking:
        today = self.clock()
        requester = command.requester
        dates = requested_range(command.start_date, command.end_date)
        if dates.is_in_past(today):
            raise DatesInPast(dates, today)

        user_id = command.user_id or requester.id
        if user_id != requester.id:
            require_privileged(requester, 'book on behalf of another user')

        logger.info(f"Creating booking for van {command.van_id}, user {user_id}, dates {dates}")

        with self.locks.hold(command.van_id):
            with self.uow_factory() as uow:
                van = self._load_van(uow, command.van_id)
                self._ensure_user(uow, user_id)

                booking = Booking.request(user_id, van, dates)
                van.ledger.ensure_available(dates)

                van.ledger.commit(dates)
                uow.vans.save_ledger(van.ledger)
                booking.commit()

                def undo():
                    van.ledger.release(dates)
                    uow.vans.save_ledger(van.ledger)

                self._write_or_compensate(
                    uow, lambda: uow.bookings.add(booking), undo,
                    van.id, dates, booking.id,
                )

                uow.collect_events(van.ledger)
                uow.collect_events(booking)

        logger.info(f"Booking {booking.id} created: {dates}, total {booking.total_price}")
        return booking


class UpdateBookingHandler(_LedgerCommandHandler):
    """
    Handler for UpdateBooking command

    Same van, new dates: ``ledger.replace`` moves the entry or fails
    leaving the ledger untouched. New van: the range is checked against
    the new van's ledger first, then released from the old one and
    committed to the new one. The price is recomputed whenever the dates
    or the van change.
    """

    def handle(self, command: UpdateBookingCommand) -> Booking:
        today = self.clock()
        requester = command.requester

        with self._booking_scope(requester, command.booking_id, command.van_id) as (uow, booking):
            dates = requested_range(
                command.start_date or booking.dates.start_date,
                command.end_date or booking.dates.end_date,
            )
            target_van_id = command.van_id or booking.van_id

            new_user_id = None
            if command.user_id is not None and command.user_id != booking.user_id:
                require_privileged(requester, "reassign another user's booking")
                self._ensure_user(uow, command.user_id)
                new_user_id = command.user_id

            dates_changed = dates != booking.dates
            van_changed = target_van_id != booking.van_id
            if not (dates_changed or van_changed or new_user_id):
                logger.debug(f"Update of booking {booking.id} changes nothing")
                return booking

            if dates_changed:
                self._ensure_not_in_past(booking.dates, dates, today)

            old_dates = booking.dates
            van = self._load_van(uow, booking.van_id)
            target = self._load_van(uow, target_van_id) if van_changed else van

            if van_changed:
                target.ledger.ensure_available(dates)
                if not van.ledger.release(old_dates):
                    raise LedgerInconsistency(
                        van.id, old_dates, 'booking range is not committed', booking.id
                    )
                target.ledger.commit(dates)
                uow.vans.save_ledger(van.ledger)
                uow.vans.save_ledger(target.ledger)
            elif dates_changed:
                van.ledger.replace(old_dates, dates)
                uow.vans.save_ledger(van.ledger)

            logger.info(
                f"Updating booking {booking.id}: van {van.id} -> {target.id}, "
                f"dates {old_dates} -> {dates}"
            )
            booking.update(target, dates, user_id=new_user_id)

            def undo():
                if van_changed:
                    target.ledger.release(dates)
                    van.ledger.commit(old_dates)
                    uow.vans.save_ledger(target.ledger)
                    uow.vans.save_ledger(van.ledger)
                elif dates_changed:
                    van.ledger.replace(dates, old_dates)
                    uow.vans.save_ledger(van.ledger)

            self._write_or_compensate(
                uow, lambda: uow.bookings.save(booking), undo,
                target.id, dates, booking.id,
            )

            uow.collect_events(van.ledger)
            if van_changed:
                uow.collect_events(target.ledger)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.id} updated, total {booking.total_price}")
        return booking

    @staticmethod
    def _ensure_not_in_past(old: DateRange, new: DateRange, today: date):
        """
        Moving a booking may not put any new day in the past

        A booking that has already started keeps its start date; only an
        unchanged past start is allowed through.
        """
        if new.end_date < today or (new.start_date != old.start_date and new.start_date < today):
            raise DatesInPast(new, today)


class CancelBookingHandler(_LedgerCommandHandler):
    """
    Handler for CancelBooking command

    The ledger entry is released before the booking record is deleted.
    If the delete fails on a non-transactional store, a retry finds no
    ledger entry, reports the inconsistency and deletes the booking.
    """

    def handle(self, command: CancelBookingCommand) -> CancellationResult:
        requester = command.requester
        logger.info(f"Cancelling booking {command.booking_id} for requester {requester.id}")

        with self._booking_scope(requester, command.booking_id) as (uow, booking):
            released = self._release_and_delete(uow, booking, requester.id)

        logger.info(f"Booking {booking.id} cancelled, dates {booking.dates} released")
        return CancellationResult(booking=booking, ledger_released=released)


class DeleteVanHandler(_LedgerCommandHandler):
    """
    Handler for DeleteVan command

    Bookings, ledger entries and the van go in one unit of work, under
    the van's lock, so no booking can be created against a van that is
    being deleted.
    """

    def handle(self, command: DeleteVanCommand) -> int:
        require_privileged(command.requester, 'delete vans')
        logger.info(f"Deleting van {command.van_id} with its bookings")

        with self.locks.hold(command.van_id):
            with self.uow_factory() as uow:
                van = self._load_van(uow, command.van_id)
                deleted = uow.bookings.delete_for_van(van.id)
                uow.vans.delete(van.id)

                van.ledger.add_event(VanDeleted(
                    aggregate_id=van.id,
                    van_id=van.id,
                    bookings_deleted=deleted,
                ))
                uow.collect_events(van.ledger)

        logger.info(f"Van {command.van_id} deleted with {deleted} bookings")
        return deleted


class DeleteUserHandler(_LedgerCommandHandler):
    """
    Handler for DeleteUser command

    The user's bookings are read once to learn their vans, then re-read
    with every one of those vans locked. Each booking is cancelled the way
    CancelBooking does it, and the user record goes last, all in one unit
    of work. A booking that lands on another van in between starts the
    sequence over.
    """

    def handle(self, command: DeleteUserCommand) -> int:
        requester = command.requester
        user_id = command.user_id
        if user_id != requester.id:
            require_privileged(requester, 'delete another user')

        logger.info(f"Deleting user {user_id} with their bookings")

        for _ in range(self.max_lock_attempts):
            with self.uow_factory() as uow:
                self._ensure_deletable(uow, user_id)
                van_ids = {b.van_id for b in uow.bookings.list(user_id=user_id)}

            with self.locks.hold(*van_ids):
                with self.uow_factory() as uow:
                    self._ensure_deletable(uow, user_id)
                    bookings = uow.bookings.list(user_id=user_id)
                    if {b.van_id for b in bookings} <= van_ids:
                        for booking in bookings:
                            self._release_and_delete(uow, booking, requester.id)
                        uow.users.delete(user_id)
                        cancelled = len(bookings)
                        break

            logger.info(f"User {user_id} booked another van while locking, retrying")
        else:
            raise LockTimeout(user_id, self.locks.timeout or 0)

        logger.info(f"User {user_id} deleted, {cancelled} bookings cancelled")
        return cancelled

    @staticmethod
    def _ensure_deletable(uow, user_id: UUID):
        if not uow.users.exists(user_id, active_only=False):
            raise UserNotFound(user_id)
