"""
Unit of Work Pattern

A unit of work is the record-store handle the booking handlers receive.
It owns one transaction, exposes the repositories bound to it, and
publishes collected domain events only after the transaction commits.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventPublisher = Callable[[List[DomainEvent]], None]


class AbstractUnitOfWork(ABC):
    """
    Abstract Unit of Work

    ``transactional`` tells handlers whether a failed write is rolled back
    by the store itself. When it is False the handlers compensate by hand.
    """

    transactional = True

    def __init__(self, publish: Optional[EventPublisher] = None):
        self._publish = publish
        self._events: List[DomainEvent] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""

    def collect_events(self, aggregate):
        """Move pending events from an aggregate into this unit of work"""
        new_events = aggregate.events
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(new_events)} events from "
                f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
            )

    def _take_events(self) -> List[DomainEvent]:
        events = self._events.copy()
        self._events.clear()
        return events

    def _publish_events(self, events: List[DomainEvent]):
        if not self._publish or not events:
            return
        logger.debug(f"Publishing {len(events)} domain events after commit")
        self._publish(events)


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Wraps ``transaction.atomic()``. Subclasses attach repositories in
    ``__enter__`` so that every query they run belongs to the transaction.

    Usage:
        with RentalUnitOfWork(publish=bus.publish_events) as uow:
            van = uow.vans.get(van_id, lock=True)
            van.ledger.commit(dates)
            uow.vans.save_ledger(van.ledger)
            uow.collect_events(van.ledger)
        # Transaction committed, events published
    """

    def __init__(self, publish: Optional[EventPublisher] = None):
        super().__init__(publish)
        self._transaction = None

    def __enter__(self):
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            super().__exit__(exc_type, exc_val, exc_tb)
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)
                self._transaction = None

    def commit(self):
        """
        Schedule event publishing for after the database commit

        The atomic block itself commits in ``__exit__``; if it is nested
        inside an outer transaction the events wait for the outermost one.
        """
        events = self._take_events()
        logger.debug(f"Committing transaction with {len(events)} events")
        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()
