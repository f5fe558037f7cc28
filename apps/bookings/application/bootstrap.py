"""
Bootstrap

Wires the booking command handlers into a message bus. The record-store
handle (a unit of work factory), the lock registry and the clock are
passed in explicitly; nothing here reaches for global state.
"""

from datetime import date
from functools import partial
from typing import Callable, Optional
import logging

from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    DeleteUserCommand,
    DeleteUserHandler,
    DeleteVanCommand,
    DeleteVanHandler,
    UpdateBookingCommand,
    UpdateBookingHandler,
)
from apps.bookings.domain import events
from shared.application.locks import KeyedLock
from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

audit_logger = logging.getLogger('apps.bookings.audit')

AUDITED_EVENTS = (
    events.BookingCreated,
    events.BookingUpdated,
    events.BookingCancelled,
    events.VanDeleted,
)


def log_audit_event(event: DomainEvent):
    audit_logger.info(f"{event.__class__.__name__}: {event.to_dict()}")


def log_ledger_inconsistency(event: events.LedgerInconsistencyDetected):
    audit_logger.error(
        f"Ledger inconsistency on van {event.van_id}: booking {event.booking_id} "
        f"had no ledger entry for {event.dates}"
    )


def bootstrap(
    uow_factory: Callable,
    locks: Optional[KeyedLock] = None,
    clock: Callable[[], date] = date.today,
) -> MessageBus:
    """
    Build a message bus with every booking command registered

    ``uow_factory`` must accept a ``publish`` keyword; the bus passes its
    own ``publish_events`` so committed events reach the subscribers.
    """
    bus = MessageBus()
    locks = locks or KeyedLock()
    factory = partial(uow_factory, publish=bus.publish_events)

    handlers = {
        CreateBookingCommand: CreateBookingHandler(factory, locks, clock),
        UpdateBookingCommand: UpdateBookingHandler(factory, locks, clock),
        CancelBookingCommand: CancelBookingHandler(factory, locks, clock),
        DeleteVanCommand: DeleteVanHandler(factory, locks, clock),
        DeleteUserCommand: DeleteUserHandler(factory, locks, clock),
    }
    for command_type, handler in handlers.items():
        bus.register_command_handler(command_type, handler.handle)

    for event_type in AUDITED_EVENTS:
        bus.register_event_handler(event_type, log_audit_event)
    bus.register_event_handler(events.LedgerInconsistencyDetected, log_ledger_inconsistency)

    return bus
