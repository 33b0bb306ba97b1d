"""Numeric coercion and rounding helpers for monetary values.

Form input arrives as strings that may be empty or half-typed, so every
numeric boundary goes through these helpers instead of raising.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

# Largest accepted input; anything above is treated like malformed input
MAX_NUMBER = Decimal("1e15")

# Working precision for money arithmetic; products of two MAX_NUMBER values
# times a percentage still fit with cents to spare
MONEY_PRECISION = 60


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value).strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def parse_non_negative_number(value: Any) -> Decimal:
    """Coerce arbitrary input to a finite, non-negative Decimal.

    Missing, malformed, non-finite, negative and out-of-range (above
    ``MAX_NUMBER``) values all become 0.
    """
    number = _to_decimal(value)
    if number is None or not number.is_finite() or number < 0 or number > MAX_NUMBER:
        return ZERO
    return number


def parse_int(value: Any, default: int) -> int:
    """Coerce input to a non-negative integer, falling back to ``default``."""
    number = _to_decimal(value)
    if number is None or not number.is_finite() or number < 0 or number > MAX_NUMBER:
        return default
    return int(number)


def round_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places.

    Precision grows with the magnitude so large amounts never trap.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def clamp_percent(value: Any) -> Decimal:
    """Coerce a percentage and clamp it to [0, 100]."""
    return min(HUNDRED, parse_non_negative_number(value))
