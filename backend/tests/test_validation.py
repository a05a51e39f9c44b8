"""
Input parsing tests for sale and product payloads.
"""

from decimal import Decimal

import pytest

from retail_pos.errors import ValidationFailed
from retail_pos.validation import (
    coerce_int,
    coerce_money,
    parse_product_payload,
    parse_sale_request,
)


def _valid_sale(**overrides):
    body = {
        "items": [{"variantId": 1, "quantity": 2, "priceAtSale": 10.5}],
        "payments": [{"method": "Cash", "amount": "21"}],
    }
    body.update(overrides)
    return body


class TestCoerceInt:

    @pytest.mark.parametrize("value,expected", [(3, 3), ("4", 4), (" -2 ", -2)])
    def test_accepts_integers(self, value, expected):
        assert coerce_int(value, "quantity") == expected

    @pytest.mark.parametrize("value", [True, 1.0, "1.5", "1e3", "", None, "abc", [1]])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValidationFailed) as exc_info:
            coerce_int(value, "quantity")
        assert exc_info.value.details == {"check": "schema", "field": "quantity"}

    @pytest.mark.parametrize("value", [2**31, -(2**31), 10**30, str(10**30)])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValidationFailed) as exc_info:
            coerce_int(value, "quantity")
        assert exc_info.value.details == {"check": "schema", "field": "quantity"}

    def test_accepts_range_edges(self):
        assert coerce_int(2**31 - 1, "variantId") == 2**31 - 1
        assert coerce_int(-(2**31 - 1), "quantity") == -(2**31 - 1)

    def test_custom_max_value(self):
        with pytest.raises(ValidationFailed):
            coerce_int(101, "threshold", max_value=100)


class TestCoerceMoney:

    def test_float_noise_does_not_leak(self):
        assert coerce_money(0.1 + 0.2, "amount") == Decimal("0.30")

    def test_half_up_rounding(self):
        assert coerce_money("2.345", "amount") == Decimal("2.35")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "abc", None, True, {}])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValidationFailed):
            coerce_money(value, "amount")

    def test_rejects_above_maximum(self):
        with pytest.raises(ValidationFailed):
            coerce_money("10000000.00", "amount")


class TestParseSaleRequest:

    def test_normalizes_values(self):
        request = parse_sale_request(_valid_sale(discount="0", total=21))
        assert request.items[0].quantity == 2
        assert request.items[0].price_at_sale == Decimal("10.50")
        assert request.payments[0].method == "cash"
        assert request.payments[0].amount == Decimal("21.00")
        assert request.discount == Decimal("0.00")
        assert request.total == Decimal("21.00")

    def test_total_is_optional(self):
        assert parse_sale_request(_valid_sale()).total is None

    def test_requires_object(self):
        with pytest.raises(ValidationFailed):
            parse_sale_request(["not", "an", "object"])

    def test_rejects_legacy_payment_method(self):
        body = _valid_sale()
        del body["payments"]
        body["paymentMethod"] = "cash"
        with pytest.raises(ValidationFailed) as exc_info:
            parse_sale_request(body)
        assert exc_info.value.details["field"] == "paymentMethod"

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"items": [{"variantId": 1, "quantity": -1, "priceAtSale": 1}]}, "items[0].quantity"),
            ({"items": [{"variantId": 1, "quantity": 1, "priceAtSale": -1}]}, "items[0].priceAtSale"),
            ({"items": [{"variantId": 1, "quantity": 1}]}, "items[0].priceAtSale"),
            ({"items": ["x"]}, "items[0]"),
            ({"payments": [{"method": "cash", "amount": 0}]}, "payments[0].amount"),
            ({"payments": [{"method": " ", "amount": 1}]}, "payments[0].method"),
            ({"discount": -5}, "discount"),
            ({"items": [{"variantId": 10**30, "quantity": 1, "priceAtSale": 1}]}, "items[0].variantId"),
            ({"items": [{"variantId": 1, "quantity": 10**30, "priceAtSale": 1}]}, "items[0].quantity"),
        ],
    )
    def test_field_errors(self, overrides, field):
        with pytest.raises(ValidationFailed) as exc_info:
            parse_sale_request(_valid_sale(**overrides))
        assert exc_info.value.details == {"check": "schema", "field": field}


class TestParseProductPayload:

    def test_create_requires_name(self):
        with pytest.raises(ValidationFailed):
            parse_product_payload({"brand": "Nike"}, partial=False)

    def test_patch_tracks_provided_fields(self):
        data = parse_product_payload({"brand": "Nike"}, partial=True)
        assert data.provided == frozenset({"brand"})
        assert data.name is None

    def test_patch_existing_variant_needs_no_size(self):
        data = parse_product_payload({"variants": [{"id": 3, "stock": 7}]}, partial=True)
        assert data.variants[0].id == 3
        assert data.variants[0].size is None
        assert data.variants[0].stock == 7

    def test_variants_must_be_list(self):
        with pytest.raises(ValidationFailed):
            parse_product_payload({"name": "x", "variants": {"size": "M"}}, partial=False)
