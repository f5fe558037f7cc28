"""
Pricing

A booking costs the van's day rate times the number of billable days in
its range. Both ends of the range are billed.
"""

from decimal import Decimal, InvalidOperation

from apps.bookings.domain.exceptions import InvalidRate
from shared.domain.value_objects import DateRange


def validate_day_rate(value, allow_zero: bool = True) -> Decimal:
    """
    Coerce a day rate to Decimal

    Floats go through ``str`` so 130.0 becomes Decimal('130.0') rather
    than its binary expansion. Booleans are rejected even though they are
    ints.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidRate(value, 'must be a number')
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidRate(value, 'must be a number') from None

    if not rate.is_finite():
        raise InvalidRate(value, 'must be finite')
    if rate < 0:
        raise InvalidRate(value, 'must not be negative')
    if not allow_zero and rate == 0:
        raise InvalidRate(value, 'must be positive')
    return rate


def calculate_price(day_rate, dates: DateRange) -> Decimal:
    """Total price for renting at ``day_rate`` over ``dates``"""
    return validate_day_rate(day_rate) * dates.days
