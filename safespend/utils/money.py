"""Fixed-point money helpers (2 decimal places, HALF_UP)"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0.00")


def quantize(value, places: Decimal = TWO_PLACES) -> Decimal:
    """Round to a fixed number of decimal places using HALF_UP"""
    return to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """Coerce ints, floats and strings to Decimal without binary float noise"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def divide(numerator: Decimal, denominator: Decimal, places: Decimal = TWO_PLACES) -> Decimal:
    """Divide and round HALF_UP; a zero denominator yields zero"""
    if denominator == 0:
        return quantize(0, places)
    return quantize(numerator / denominator, places)


def total(values: Iterable[Decimal]) -> Decimal:
    """Sum money values and round to 2dp"""
    return quantize(sum(values, Decimal("0")))


def safe_amount(value) -> Optional[Decimal]:
    """
    Return a finite Decimal for `value`, or None when it is missing or malformed.

    Used where bad amounts must be skipped instead of raising.
    """
    if value is None:
        return None
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount
