# Overview: Decimal helpers for rupee amounts (2 decimal places).

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
# Numeric(12, 2) holds at most ten integer digits
MAX_AMOUNT = Decimal(10) ** 10


def to_money(value, field: str = "amount") -> Decimal:
    """
    Parse client input into a 2-dp Decimal.

    Accepts ints, floats and numeric strings. Booleans, blanks, NaN/Infinity,
    negatives and amounts too large to store are rejected with ValidationError.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValidationError(f"{field} must be a number")
        if amount < 0:
            raise ValidationError(f"{field} must be a non-negative number")
        if amount >= MAX_AMOUNT:
            raise ValidationError(f"{field} is too large")
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")


def quantize(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def as_float(value) -> float:
    if value is None:
        return 0.0
    return float(value)
