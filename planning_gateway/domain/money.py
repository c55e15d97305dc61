"""Conversion between wire amounts (major units) and integer cents"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from planning_gateway.domain.exceptions import ValidationError

CENT = Decimal("0.01")

Amount = Union[int, float, str, Decimal]


def to_cents(amount: Amount) -> int:
    """
    Convert a major-unit amount to integer cents, rounding half-up.

    Floats go through ``str`` first so 0.1 + 0.2 style noise never leaks
    into the cent value.

    Example:
        12.345 → 1235
        1200 → 120000
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {amount!r}") from e

    if not value.is_finite():
        raise ValidationError(f"Invalid amount: {amount!r}")

    return int((value.quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def from_cents(cents: int) -> float:
    """Convert integer cents to a major-unit number for the wire"""
    return float(Decimal(cents) / 100)


def round_half_up(value: Decimal) -> int:
    """Round a cent amount to a whole cent"""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
