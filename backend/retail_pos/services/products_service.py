# backend/retail_pos/services/products_service.py
"""
Products Service

Products own variants (size/color). Deleting a product is a soft delete:
deleted_at is stamped and the row stays queryable so it can be restored.
Stock set through these endpoints is the initial count or a direct
correction; incremental corrections go through inventory_service.adjust_stock.
"""
from __future__ import annotations

import random

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFound
from ..models import Product, Variant
from ..money import to_cents
from ..time_utils import utcnow
from ..validation import ProductInput, VariantInput


def generate_sku(product_name: str, size: str, color: str) -> str:
    """
    Build a SKU such as "REM-L-ROJ-4821": first three letters of the name,
    the size, first three letters of the color and a random 4-digit suffix.
    """
    clean_name = product_name[:3].upper()
    clean_size = size.upper()
    clean_color = color[:3].upper()
    suffix = random.randint(1000, 9999)
    return f"{clean_name}-{clean_size}-{clean_color}-{suffix}"


def _ensure_sku_free(session, sku: str, exclude_variant_id: int | None = None) -> None:
    query = session.query(Variant.id).filter(Variant.sku == sku)
    if exclude_variant_id is not None:
        query = query.filter(Variant.id != exclude_variant_id)
    if query.first() is not None:
        raise ConflictError(f"SKU already exists: {sku}", details={"sku": sku})


def _apply_variant(variant: Variant, data: VariantInput, product_name: str) -> None:
    if data.size is not None:
        variant.size = data.size
    if data.color is not None:
        variant.color = data.color
    if data.cost_price is not None:
        variant.cost_price_cents = to_cents(data.cost_price)
    if data.sell_price is not None:
        variant.sell_price_cents = to_cents(data.sell_price)
    if data.stock is not None:
        variant.stock = data.stock
    variant.sku = data.sku or variant.sku or generate_sku(product_name, variant.size, variant.color)


def _new_variant(session, product: Product, data: VariantInput) -> Variant:
    variant = Variant(product_id=product.id, cost_price_cents=0, sell_price_cents=0, stock=0)
    _apply_variant(variant, data, product.name)
    _ensure_sku_free(session, variant.sku)
    session.add(variant)
    return variant


def _commit(session) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError("Duplicate value violates a unique constraint") from exc


def create_product(session, data: ProductInput) -> Product:
    product = Product(
        name=data.name,
        description=data.description,
        brand=data.brand,
        category=data.category,
    )
    session.add(product)
    session.flush()

    for variant_data in data.variants:
        try:
            _new_variant(session, product, variant_data)
        except ConflictError:
            session.rollback()
            raise

    _commit(session)
    return product


def list_products(
    session,
    *,
    search: str | None = None,
    category: str | None = None,
    brand: str | None = None,
    include_deleted: bool = False,
) -> list[Product]:
    """
    Case-insensitive search over product name, brand and variant SKU.

    Products without a matching variant still show up when the name or
    brand matches (outer join).
    """
    query = session.query(Product).outerjoin(Variant, Variant.product_id == Product.id)

    if not include_deleted:
        query = query.filter(Product.deleted_at.is_(None))

    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(Product.name).like(pattern),
            func.lower(Product.brand).like(pattern),
            func.lower(Variant.sku).like(pattern),
        ))

    if category:
        query = query.filter(Product.category == category)
    if brand:
        query = query.filter(Product.brand == brand)

    return query.distinct().order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(session, product_id: int, *, include_deleted: bool = False) -> Product:
    product = session.get(Product, product_id)
    if product is None or (product.is_deleted and not include_deleted):
        raise NotFound("Product not found", details={"productId": product_id})
    return product


def update_product(session, product_id: int, data: ProductInput) -> Product:
    """
    Update product fields and upsert variants.

    Variants carrying an id are updated (they must belong to this product);
    variants without one are created. Soft-deleted products can be edited.
    """
    product = get_product(session, product_id, include_deleted=True)

    for field in data.provided:
        setattr(product, field, getattr(data, field))

    try:
        for variant_data in data.variants:
            if variant_data.id is None:
                _new_variant(session, product, variant_data)
                continue

            variant = session.get(Variant, variant_data.id)
            if variant is None or variant.product_id != product.id:
                raise NotFound("Variant not found", details={"variantId": variant_data.id})
            if variant_data.sku:
                _ensure_sku_free(session, variant_data.sku, exclude_variant_id=variant.id)
            _apply_variant(variant, variant_data, product.name)
    except (ConflictError, NotFound):
        session.rollback()
        raise

    _commit(session)
    return product


def delete_product(session, product_id: int) -> Product:
    product = get_product(session, product_id)
    product.deleted_at = utcnow()
    session.commit()
    return product


def restore_product(session, product_id: int) -> Product:
    product = get_product(session, product_id, include_deleted=True)
    product.deleted_at = None
    session.commit()
    return product
