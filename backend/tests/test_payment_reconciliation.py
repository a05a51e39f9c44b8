"""
Payment reconciliation tests.

Pure arithmetic: no database, no app context.
"""

from decimal import Decimal

from retail_pos.errors import ValidationFailed
from retail_pos.services import payment_service
from retail_pos.validation import PaymentInput, SaleItemInput


def _items(*lines):
    return [
        SaleItemInput(variant_id=idx + 1, quantity=qty, price_at_sale=Decimal(price))
        for idx, (qty, price) in enumerate(lines)
    ]


def _payments(*amounts):
    return [PaymentInput(method="cash", amount=Decimal(a)) for a in amounts]


class TestReconcile:

    def test_balanced_sale_passes(self):
        result = payment_service.reconcile(
            total=Decimal("400.00"),
            discount=Decimal("0.00"),
            items=_items((4, "100.00")),
            payments=_payments("400.00"),
        )
        assert result is None

    def test_split_payments_are_summed(self):
        result = payment_service.reconcile(
            total=Decimal("450.00"),
            discount=Decimal("50.00"),
            items=_items((2, "150.00"), (1, "200.00")),
            payments=_payments("300.00", "150.00"),
        )
        assert result is None

    def test_payments_short_of_total(self):
        result = payment_service.reconcile(
            total=Decimal("400.00"),
            discount=Decimal("0.00"),
            items=_items((4, "100.00")),
            payments=_payments("399.00"),
        )
        assert result.check == payment_service.CHECK_PAYMENTS
        assert result.expected == Decimal("400.00")
        assert result.received == Decimal("399.00")
        assert result.difference == Decimal("-1.00")

    def test_items_do_not_match_declared_total(self):
        result = payment_service.reconcile(
            total=Decimal("390.00"),
            discount=Decimal("0.00"),
            items=_items((4, "100.00")),
            payments=_payments("390.00"),
        )
        assert result.check == payment_service.CHECK_ITEMS
        assert result.expected == Decimal("400.00")
        assert result.received == Decimal("390.00")

    def test_payments_checked_before_items(self):
        # Both checks fail; only the first is reported
        result = payment_service.reconcile(
            total=Decimal("390.00"),
            discount=Decimal("0.00"),
            items=_items((4, "100.00")),
            payments=_payments("100.00"),
        )
        assert result.check == payment_service.CHECK_PAYMENTS

    def test_one_cent_difference_is_tolerated(self):
        result = payment_service.reconcile(
            total=Decimal("100.00"),
            discount=Decimal("0.00"),
            items=_items((3, "33.33")),
            payments=_payments("100.00"),
        )
        assert result is None

    def test_two_cent_difference_is_rejected(self):
        result = payment_service.reconcile(
            total=Decimal("100.00"),
            discount=Decimal("0.00"),
            items=_items((3, "33.33")),
            payments=_payments("100.02"),
        )
        assert result is not None
        assert result.check == payment_service.CHECK_PAYMENTS

    def test_discount_is_subtracted_from_items(self):
        result = payment_service.reconcile(
            total=Decimal("90.00"),
            discount=Decimal("10.00"),
            items=_items((1, "100.00")),
            payments=_payments("90.00"),
        )
        assert result is None


def test_expected_total_quantizes():
    assert payment_service.expected_total(_items((3, "0.10")), Decimal("0")) == Decimal("0.30")


def test_failure_converts_to_validation_error():
    failure = payment_service.ReconciliationFailure(
        check=payment_service.CHECK_ITEMS,
        expected=Decimal("400"),
        received=Decimal("390"),
    )
    err = failure.to_error()
    assert isinstance(err, ValidationFailed)
    assert err.status_code == 400
    assert err.details == {"check": "items", "expected": "400.00", "received": "390.00"}
    assert "390" in err.message and "400" in err.message
