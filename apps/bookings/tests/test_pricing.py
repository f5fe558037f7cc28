from decimal import Decimal

import pytest

from apps.bookings.domain.exceptions import InvalidRate
from apps.bookings.domain.pricing import calculate_price, validate_day_rate
from shared.domain.value_objects import DateRange


def test_ten_days_at_130_costs_1300():
    dates = DateRange.parse("2024-05-01", "2024-05-10")

    assert calculate_price(Decimal("130"), dates) == Decimal("1300")


def test_single_day_costs_one_day_rate():
    dates = DateRange.parse("2024-05-01", "2024-05-01")

    assert calculate_price(Decimal("89.50"), dates) == Decimal("89.50")


def test_float_rates_price_without_binary_noise():
    dates = DateRange.parse("2024-05-01", "2024-05-03")

    assert calculate_price(0.1, dates) == Decimal("0.3")
    assert calculate_price(130.0, dates) == Decimal("390")


def test_zero_rate_is_allowed_for_pricing():
    dates = DateRange.parse("2024-05-01", "2024-05-03")

    assert calculate_price(0, dates) == 0


@pytest.mark.parametrize("rate", ["-1", -0.01, "abc", None, True, float("nan"), float("inf"), "Infinity"])
def test_invalid_rates_are_rejected(rate):
    with pytest.raises(InvalidRate):
        validate_day_rate(rate)


def test_zero_rate_is_rejected_for_vans():
    with pytest.raises(InvalidRate) as excinfo:
        validate_day_rate("0", allow_zero=False)

    assert "positive" in excinfo.value.message


def test_numeric_strings_are_coerced():
    assert validate_day_rate("130.00") == Decimal("130.00")
