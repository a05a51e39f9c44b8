# Overview: Stock ledger rules for variant quantities; shared by sales and manual adjustment.

"""
Stock invariants (authoritative)

- Variant.stock is a non-negative integer at every committed state
  (also enforced by ck_variants_stock_non_negative).
- Every read that feeds a stock decision is taken inside the transaction
  that applies the write, with the variant row locked for update.
- Variant.version_id turns a concurrent overwrite into StaleDataError,
  which callers retry through run_with_retry().
- Soft-deleted variants are treated as missing.
"""

from __future__ import annotations

from flask import current_app

from ..errors import InsufficientStock, NotFound, ValidationFailed
from ..models import Product, Variant
from .concurrency import begin_write, lock_for_update, run_with_retry


class StockContractError(RuntimeError):
    """A decrement was attempted without a passing availability check."""


class StockAdjustmentError(ValidationFailed):
    """Manual adjustment would take stock below zero."""


def get_variant_for_update(session, variant_id: int) -> Variant | None:
    query = session.query(Variant).filter(
        Variant.id == variant_id,
        Variant.deleted_at.is_(None),
    )
    return lock_for_update(query).first()


def check_available(
    session,
    variant_id: int,
    quantity: int,
    *,
    reserved: int = 0,
) -> InsufficientStock | None:
    """
    Return None when the variant can cover `quantity` more units, else the shortfall.

    `reserved` counts units already claimed earlier in the same basket, so a
    variant listed twice is checked against its running stock.
    """
    variant = get_variant_for_update(session, variant_id)
    if variant is None:
        return InsufficientStock(variant_id=variant_id, sku=None, requested=quantity, available=0)

    available = variant.stock - reserved
    if available < quantity:
        return InsufficientStock(
            variant_id=variant_id,
            sku=variant.sku,
            requested=quantity,
            available=max(available, 0),
        )
    return None


def decrement(session, variant_id: int, quantity: int) -> Variant:
    """Apply a sale decrement. Only valid after check_available() passed in this transaction."""
    variant = session.get(Variant, variant_id)
    if variant is None:
        raise StockContractError(f"variant {variant_id} was not checked before decrement")
    if variant.stock - quantity < 0:
        raise StockContractError(
            f"decrement of {quantity} would make stock negative for {variant.sku}"
        )
    variant.stock = variant.stock - quantity
    return variant


def adjust_stock(
    session,
    variant_id: int,
    delta: int,
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
) -> dict:
    """
    Manual stock correction by a signed delta, in its own atomic scope.

    Returns previous and resulting stock for audit display.
    """
    def _op():
        begin_write(session)
        variant = get_variant_for_update(session, variant_id)
        if variant is None:
            session.rollback()
            raise NotFound("Variant not found", details={"variantId": variant_id})

        previous = variant.stock
        if previous + delta < 0:
            session.rollback()
            raise StockAdjustmentError(
                "Adjustment would make stock negative",
                details={
                    "variantId": variant_id,
                    "sku": variant.sku,
                    "stock": previous,
                    "delta": delta,
                },
            )

        sku = variant.sku
        variant.stock = previous + delta
        session.commit()
        current_app.logger.info("Stock adjusted for %s: %s -> %s", sku, previous, previous + delta)
        return {
            "variantId": variant_id,
            "sku": sku,
            "previousStock": previous,
            "stock": previous + delta,
        }

    return run_with_retry(_op, session=session, attempts=attempts, backoff_base=backoff_base)


def list_low_stock(session, threshold: int) -> list[Variant]:
    """Active variants of active products at or below threshold, lowest first."""
    return (
        session.query(Variant)
        .join(Product, Product.id == Variant.product_id)
        .filter(
            Variant.stock <= threshold,
            Variant.deleted_at.is_(None),
            Product.deleted_at.is_(None),
        )
        .order_by(Variant.stock.asc(), Variant.id.asc())
        .all()
    )
