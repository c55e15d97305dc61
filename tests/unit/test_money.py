"""Unit tests for cent conversion and date helpers"""

import pytest
from datetime import date
from decimal import Decimal
from planning_gateway.domain.exceptions import ValidationError
from planning_gateway.domain.money import from_cents, round_half_up, to_cents
from planning_gateway.utils.date_utils import add_months, anchored_day, due_dates, first_of_month


@pytest.mark.parametrize(
    "amount,expected",
    [
        (1200, 120000),
        (50.5, 5050),
        ("12.345", 1235),
        (12.345, 1235),
        (Decimal("0.005"), 1),
        (0.1 + 0.2, 30),
        (0, 0),
        (-10.25, -1025),
    ],
)
def test_to_cents(amount, expected):
    assert to_cents(amount) == expected


@pytest.mark.parametrize("amount", ["abc", float("nan"), float("inf")])
def test_to_cents_rejects_non_numbers(amount):
    with pytest.raises(ValidationError):
        to_cents(amount)


def test_from_cents():
    assert from_cents(120000) == 1200.0
    assert from_cents(1235) == 12.35
    assert from_cents(0) == 0.0


def test_round_half_up():
    assert round_half_up(Decimal("0.5")) == 1
    assert round_half_up(Decimal("1.5")) == 2
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("2.49")) == 2


def test_first_of_month():
    assert first_of_month(date(2025, 3, 17)) == date(2025, 3, 1)


def test_add_months_crosses_year():
    assert add_months(date(2025, 11, 1), 3) == date(2026, 2, 1)
    assert add_months(date(2025, 1, 1), -1) == date(2024, 12, 1)


def test_anchored_day_clamps():
    assert anchored_day(2025, 2, 31) == date(2025, 2, 28)
    assert anchored_day(2024, 2, 30) == date(2024, 2, 29)
    assert anchored_day(2025, 4, 15) == date(2025, 4, 15)


def test_due_dates_start_on_or_after():
    dates = due_dates(date(2025, 1, 15), 15)
    assert [next(dates) for _ in range(3)] == [date(2025, 1, 15), date(2025, 2, 15), date(2025, 3, 15)]

    dates = due_dates(date(2025, 1, 16), 15)
    assert next(dates) == date(2025, 2, 15)


def test_due_dates_month_end_anchor():
    dates = due_dates(date(2025, 1, 20), 31)
    assert [next(dates) for _ in range(3)] == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31)]
