"""
Stock ledger tests: availability checks, decrements and manual adjustment.
"""

import pytest

from retail_pos.errors import NotFound
from retail_pos.models import Variant
from retail_pos.services import inventory_service
from retail_pos.time_utils import utcnow


class TestCheckAvailable:

    def test_enough_stock(self, db_session, variant):
        assert inventory_service.check_available(db_session, variant.id, 10) is None

    def test_short_stock_reports_requested_and_available(self, db_session, variant):
        shortage = inventory_service.check_available(db_session, variant.id, 11)
        assert shortage.requested == 11
        assert shortage.available == 10
        assert shortage.sku == variant.sku

    def test_reserved_units_count_against_stock(self, db_session, variant):
        shortage = inventory_service.check_available(db_session, variant.id, 4, reserved=7)
        assert shortage is not None
        assert shortage.available == 3

    def test_unknown_variant_has_zero_available(self, db_session):
        shortage = inventory_service.check_available(db_session, 999999, 1)
        assert shortage.sku is None
        assert shortage.available == 0

    def test_soft_deleted_variant_is_missing(self, db_session, variant):
        variant.deleted_at = utcnow()
        db_session.commit()
        shortage = inventory_service.check_available(db_session, variant.id, 1)
        assert shortage.available == 0


class TestDecrement:

    def test_decrement_reduces_stock(self, db_session, variant):
        inventory_service.decrement(db_session, variant.id, 4)
        assert variant.stock == 6
        db_session.rollback()

    def test_decrement_below_zero_is_a_contract_error(self, db_session, variant):
        with pytest.raises(inventory_service.StockContractError):
            inventory_service.decrement(db_session, variant.id, 11)
        db_session.rollback()
        assert db_session.get(Variant, variant.id).stock == 10


class TestAdjustStock:

    def test_positive_delta(self, db_session, variant):
        result = inventory_service.adjust_stock(db_session, variant.id, 5)
        assert result == {
            "variantId": variant.id,
            "sku": variant.sku,
            "previousStock": 10,
            "stock": 15,
        }
        assert db_session.get(Variant, variant.id).stock == 15

    def test_negative_delta_to_zero(self, db_session, variant):
        result = inventory_service.adjust_stock(db_session, variant.id, -10)
        assert result["stock"] == 0

    def test_cannot_go_negative(self, db_session, variant):
        with pytest.raises(inventory_service.StockAdjustmentError) as exc_info:
            inventory_service.adjust_stock(db_session, variant.id, -11)
        assert exc_info.value.status_code == 400
        assert exc_info.value.details["stock"] == 10
        assert db_session.get(Variant, variant.id).stock == 10

    def test_unknown_variant(self, db_session):
        with pytest.raises(NotFound):
            inventory_service.adjust_stock(db_session, 999999, 1)

    def test_version_bumps_on_write(self, db_session, variant):
        before = variant.version_id
        inventory_service.adjust_stock(db_session, variant.id, 1)
        assert db_session.get(Variant, variant.id).version_id == before + 1


class TestLowStock:

    def test_lists_at_or_below_threshold_lowest_first(self, db_session, make_product):
        product = make_product(variants=(
            ("S", "Azul", 5, 1000),
            ("M", "Azul", 6, 1000),
            ("L", "Azul", 0, 1000),
        ))
        low = inventory_service.list_low_stock(db_session, 5)
        assert [v.stock for v in low] == [0, 5]
        assert all(v.product_id == product.id for v in low)

    def test_excludes_deleted_products(self, db_session, make_product):
        product = make_product(variants=(("S", "Azul", 1, 1000),))
        product.deleted_at = utcnow()
        db_session.commit()
        assert inventory_service.list_low_stock(db_session, 5) == []
