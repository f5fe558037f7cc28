"""Wiring of the booking engine into the Django project."""

from __future__ import annotations

from functools import lru_cache

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.locks import KeyedLock
from shared.application.message_bus import MessageBus

from .application.access import BookingQueries
from .application.bootstrap import bootstrap
from .infrastructure.unit_of_work import RentalUnitOfWork


@lru_cache(maxsize=1)
def get_locks() -> KeyedLock:
    """Per-van locks shared by every request in this process."""

    return KeyedLock(timeout=getattr(settings, "RENTAL_LOCK_TIMEOUT", 10))


@lru_cache(maxsize=1)
def get_message_bus() -> MessageBus:
    """The process-wide bus, built on first use."""

    return bootstrap(RentalUnitOfWork, locks=get_locks(), clock=timezone.localdate)


@lru_cache(maxsize=1)
def get_queries() -> BookingQueries:
    return BookingQueries(RentalUnitOfWork)
