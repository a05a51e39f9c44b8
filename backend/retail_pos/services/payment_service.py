# Overview: Payment reconciliation for sales; pure arithmetic, no database access.

"""
Payment Reconciliation

Ties a basket's declared payments, item totals and discount together
before any stock or sale row is touched:

- sum(payments.amount) must match the sale total
- sum(items.quantity * items.price_at_sale) - discount must match the sale total

Both comparisons use an absolute tolerance of 0.01 (a difference of exactly
one cent still passes). Checks run in that order and the first mismatch is
reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..errors import ValidationFailed
from ..money import quantize

TOLERANCE = Decimal("0.01")

CHECK_PAYMENTS = "payments"
CHECK_ITEMS = "items"


@dataclass(frozen=True)
class ReconciliationFailure:
    check: str
    expected: Decimal
    received: Decimal

    @property
    def difference(self) -> Decimal:
        return quantize(self.received - self.expected)

    def to_error(self) -> ValidationFailed:
        if self.check == CHECK_PAYMENTS:
            message = (
                f"Payments total {self.received} does not match sale total {self.expected}"
            )
        else:
            message = (
                f"Sale total {self.received} does not match items minus discount {self.expected}"
            )
        return ValidationFailed(
            message,
            details={
                "check": self.check,
                "expected": str(quantize(self.expected)),
                "received": str(quantize(self.received)),
            },
        )


def sum_payments(payments: Iterable) -> Decimal:
    return quantize(sum((p.amount for p in payments), Decimal("0")))


def sum_items(items: Iterable) -> Decimal:
    return quantize(sum((item.quantity * item.price_at_sale for item in items), Decimal("0")))


def expected_total(items: Iterable, discount: Decimal) -> Decimal:
    return quantize(sum_items(items) - discount)


def _within_tolerance(a: Decimal, b: Decimal) -> bool:
    return abs(a - b) <= TOLERANCE


def reconcile(
    *,
    total: Decimal,
    discount: Decimal,
    items: Iterable,
    payments: Iterable,
) -> ReconciliationFailure | None:
    """
    Validate declared payments and items against total.

    Returns None when both checks pass, otherwise the first failing check
    with the expected and received amounts.
    """
    items = list(items)
    paid = sum_payments(payments)
    if not _within_tolerance(paid, total):
        return ReconciliationFailure(check=CHECK_PAYMENTS, expected=total, received=paid)

    expected = expected_total(items, discount)
    if not _within_tolerance(expected, total):
        return ReconciliationFailure(check=CHECK_ITEMS, expected=expected, received=total)

    return None
