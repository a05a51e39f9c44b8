"""
Fixed-point money helpers.

Amounts are stored as integer cents and carried in Python as Decimal
quantized to two places. Floats never reach arithmetic.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")

# Maximum amount: 9,999,999.99
MAX_AMOUNT = Decimal("9999999.99")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    return int(quantize(value) * 100)


def from_cents(cents: int | None) -> Decimal:
    if cents is None:
        return Decimal("0.00")
    return quantize(Decimal(cents) / 100)


def format_cents(cents: int | None) -> str:
    """Wire representation: a two-decimal string such as "400.00"."""
    return str(from_cents(cents))
