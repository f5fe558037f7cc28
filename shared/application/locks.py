"""
Keyed Locks

In-process mutual exclusion scoped to a key (a van id). Held across the
whole check-then-commit span of a booking command so that two requests
against the same van cannot interleave. Database row locks taken by the
unit of work cover requests served by other processes.
"""

from contextlib import contextmanager
from typing import Dict, Hashable, Iterator
import logging
import threading

logger = logging.getLogger(__name__)


class LockTimeout(Exception):
    """Raised when a keyed lock could not be acquired in time."""

    def __init__(self, key: Hashable, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for lock on {key}")


class KeyedLock:
    """
    Registry of per-key locks

    Locks are created on first use and dropped once no caller holds or
    waits for them. Several keys taken together are always acquired in a
    stable order so that two multi-key holders cannot deadlock.
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: Hashable):
        with self._guard:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        ordered = sorted(set(keys), key=str)
        acquired = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                wait = -1 if self.timeout is None else self.timeout
                if not lock.acquire(timeout=wait):
                    self._checkin(key)
                    logger.warning(f"Lock wait on {key} exceeded {self.timeout}s")
                    raise LockTimeout(key, self.timeout)
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)

    def __len__(self) -> int:
        """Number of keys currently held or awaited"""
        with self._guard:
            return len(self._locks)
