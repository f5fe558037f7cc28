"""
Common Value Objects

- DateRange: A rental period measured in whole calendar days
"""

from dataclasses import dataclass
from datetime import date, datetime

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidRange


def to_date(value) -> date:
    """Coerce a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            raise InvalidRange(value, value, f"Invalid date: {value!r}") from None
    raise TypeError(f"Cannot convert {type(value).__name__} to a date")


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Both ``start_date`` and ``end_date`` are inclusive: a van picked up on
    the 1st and returned on the 10th is billed for 10 days, and a range
    whose start equals its end covers a single day. Every overlap and
    duration calculation in the system goes through this class.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise InvalidRange(self.start_date, self.end_date)

    @classmethod
    def parse(cls, start, end) -> 'DateRange':
        return cls(to_date(start), to_date(end))

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if the two ranges share at least one day

        Examples:
            - 01..10 overlaps with 05..07 -> True
            - 01..10 overlaps with 10..12 -> True (the 10th is shared)
            - 01..10 overlaps with 11..15 -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return (self.start_date <= other.end_date and
                other.start_date <= self.end_date)

    def contains(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date

    def is_in_past(self, today: date) -> bool:
        """True if any day of the range is before ``today``"""
        return self.start_date < today

    @property
    def days(self) -> int:
        """Number of billable days"""
        return (self.end_date - self.start_date).days + 1

    def __len__(self) -> int:
        return self.days

    def __str__(self):
        return f"{self.start_date.isoformat()}..{self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
