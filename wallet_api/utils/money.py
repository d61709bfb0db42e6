"""Exact two-decimal money helpers.

Amounts travel through the service as ``Decimal`` quantized to cents and are
persisted as integer cents, so neither storage nor SQL aggregation ever
touches binary floating point.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# NUMERIC(10, 2): eight integer digits
MAX_ABS_AMOUNT = Decimal("99999999.99")


def to_decimal(value: object) -> Decimal | None:
    """Convert an int, float, Decimal or numeric string to Decimal.

    Floats go through ``str()`` so ``-45.5`` becomes ``Decimal("-45.5")``
    rather than its binary expansion. Returns None for anything that is not a
    number (including bool).
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, (float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation:
            return None
    return None


def quantize(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero."""

    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal | int) -> int:
    return int(quantize(Decimal(amount)) * 100)


def from_cents(cents: int | None) -> Decimal:
    if not cents:
        return ZERO
    return (Decimal(cents) / 100).quantize(CENT)
