from __future__ import annotations

from ..extensions import db
from retail_pos.money import format_cents
from retail_pos.time_utils import to_utc_z


class Sale(db.Model):
    """
    Committed sale header.

    Written exactly once by the sale engine together with its items and
    payments; never edited afterwards. total is the final amount charged,
    already net of discount.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("discount_cents >= 0", name="ck_sales_discount_non_negative"),
        db.Index("ix_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    total_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship("SaleItem", back_populates="sale", lazy=True, order_by="SaleItem.id")
    payments = db.relationship("SalePayment", back_populates="sale", lazy=True, order_by="SalePayment.id")

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "total": format_cents(self.total_cents),
            "discount": format_cents(self.discount_cents),
            "createdAt": to_utc_z(self.created_at),
        }
        if include_lines:
            data["items"] = [item.to_dict() for item in self.items]
            data["payments"] = [payment.to_dict() for payment in self.payments]
        return data


class SaleItem(db.Model):
    """Line of a committed sale. price_at_sale is frozen at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    variant_id = db.Column(db.Integer, db.ForeignKey("variants.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    variant = db.relationship("Variant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "variantId": self.variant_id,
            "quantity": self.quantity,
            "priceAtSale": format_cents(self.price_at_sale_cents),
            "variant": self.variant.to_dict(include_product=True) if self.variant else None,
        }


class SalePayment(db.Model):
    """
    One tender applied to a sale.

    method is an open label ("cash", "card", "transfer", ...); a sale may be
    split across several methods. Amounts across a sale add up to its total.
    """
    __tablename__ = "sale_payments"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_sale_payments_amount_positive"),
        db.Index("ix_sale_payments_method", "method"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    method = db.Column(db.String(32), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "method": self.method,
            "amount": format_cents(self.amount_cents),
        }
