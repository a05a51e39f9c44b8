from __future__ import annotations

from ..extensions import db
from retail_pos.money import format_cents
from retail_pos.time_utils import to_utc_z


class Product(db.Model):
    """
    Catalog entry (e.g. a "Vintage" t-shirt). Owns zero or more variants.

    Soft delete: deleted_at is set instead of removing the row, so a
    restore can bring the product back with its variants and history.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_category_brand", "category", "brand"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    brand = db.Column(db.String(128), nullable=True)
    category = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    variants = db.relationship(
        "Variant",
        back_populates="product",
        lazy=True,
        order_by="Variant.id",
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self, include_variants: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "brand": self.brand,
            "category": self.category,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "deletedAt": to_utc_z(self.deleted_at) if self.deleted_at else None,
        }
        if include_variants:
            data["variants"] = [v.to_dict() for v in self.variants if not v.is_deleted]
        return data


class Variant(db.Model):
    """
    Sellable configuration of a product (size + color). Carries stock and price.

    Stock is a mutable counter guarded two ways: rows are locked for update
    inside the writing transaction, and version_id makes a concurrent write
    fail with StaleDataError instead of silently overwriting.
    """
    __tablename__ = "variants"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_variants_stock_non_negative"),
        db.Index("ix_variants_product", "product_id"),
        db.Index("ix_variants_stock", "stock"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    size = db.Column(db.String(32), nullable=False)
    color = db.Column(db.String(64), nullable=False)

    # Authoritative storage in cents
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    sell_price_cents = db.Column(db.Integer, nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    sku = db.Column(db.String(64), nullable=False, unique=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    product = db.relationship("Product", back_populates="variants")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "productId": self.product_id,
            "size": self.size,
            "color": self.color,
            "costPrice": format_cents(self.cost_price_cents),
            "sellPrice": format_cents(self.sell_price_cents),
            "stock": self.stock,
            "sku": self.sku,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "deletedAt": to_utc_z(self.deleted_at) if self.deleted_at else None,
        }
        if include_product:
            data["product"] = self.product.to_dict(include_variants=False) if self.product else None
        return data
