"""
Availability Ledger Aggregate

The authoritative set of date ranges committed for one van. Every
booking's range has exactly one matching entry here, and the ledger is
the single place where the no-overlap rule is checked.

The ledger does not lock itself. Callers pair ``is_available`` with
``commit`` (or use ``replace``) while holding the van's lock inside one
unit of work.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID

from apps.bookings.domain.events import LedgerRangeCommitted, LedgerRangeReleased
from apps.bookings.domain.exceptions import LedgerInconsistency, VanUnavailable
from shared.domain.base import Aggregate
from shared.domain.value_objects import DateRange


def _sort_key(dates: DateRange):
    return (dates.start_date, dates.end_date)


@dataclass(eq=False)
class AvailabilityLedger(Aggregate):
    """
    Ledger Aggregate Root

    Key invariants:
    - No two entries overlap
    - No duplicate entries (entries form a set)

    Usage:
        van = uow.vans.get(van_id, lock=True)
        if van.ledger.is_available(dates):
            van.ledger.commit(dates)
            uow.vans.save_ledger(van.ledger)
    """

    van_id: UUID = None
    _entries: Set[DateRange] = field(default_factory=set, repr=False)

    @classmethod
    def from_entries(cls, van_id: UUID, entries: Iterable[DateRange]) -> 'AvailabilityLedger':
        return cls(id=van_id, van_id=van_id, _entries=set(entries))

    @property
    def entries(self) -> Tuple[DateRange, ...]:
        return tuple(sorted(self._entries, key=_sort_key))

    def __contains__(self, dates: DateRange) -> bool:
        return dates in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def conflicts(self, candidate: DateRange,
                  ignore: Optional[DateRange] = None) -> List[DateRange]:
        """Committed ranges overlapping ``candidate``, earliest first"""
        return sorted(
            (entry for entry in self._entries
             if entry != ignore and entry.overlaps_with(candidate)),
            key=_sort_key,
        )

    def is_available(self, candidate: DateRange) -> bool:
        return not self.conflicts(candidate)

    def ensure_available(self, candidate: DateRange,
                         ignore: Optional[DateRange] = None):
        """Raise VanUnavailable naming the first conflicting range"""
        conflicting = self.conflicts(candidate, ignore=ignore)
        if conflicting:
            raise VanUnavailable(self.van_id, candidate, conflicting[0])

    def commit(self, candidate: DateRange):
        """
        Add a range to the ledger

        Does not re-check availability; the caller has just done so under
        the van's lock.
        """
        self._entries.add(candidate)
        self.add_event(LedgerRangeCommitted(
            aggregate_id=self.id,
            van_id=self.van_id,
            dates=candidate,
        ))

    def release(self, dates: DateRange) -> bool:
        """
        Remove the entry equal to ``dates``

        Only an exact match is removed. Returns False, without changing
        anything, when there is none; callers must report that as an
        inconsistency rather than treat it as success.
        """
        if dates not in self._entries:
            return False
        self._entries.remove(dates)
        self.add_event(LedgerRangeReleased(
            aggregate_id=self.id,
            van_id=self.van_id,
            dates=dates,
        ))
        return True

    def replace(self, old: DateRange, new: DateRange):
        """
        Move a committed range to new dates, all or nothing

        The new range is checked against every entry except ``old``. On any
        failure the ledger is left exactly as it was.

        Raises:
            LedgerInconsistency: ``old`` is not in the ledger
            VanUnavailable: ``new`` overlaps another entry
        """
        if old not in self._entries:
            raise LedgerInconsistency(self.van_id, old, 'range to replace is not committed')
        if old == new:
            return
        self.ensure_available(new, ignore=old)
        self.release(old)
        self.commit(new)

    def __str__(self):
        return f"AvailabilityLedger(van={self.van_id}, entries={len(self._entries)})"
