from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ValidationFailed
from .money import MAX_AMOUNT, quantize


@dataclass(frozen=True)
class SaleItemInput:
    variant_id: int
    quantity: int
    price_at_sale: Decimal


@dataclass(frozen=True)
class PaymentInput:
    method: str
    amount: Decimal


@dataclass(frozen=True)
class SaleRequest:
    """
    Validated body of POST /api/sales.

    total is optional: when omitted the engine derives it from items and
    discount; when present it is only ever checked, never trusted.
    """
    items: tuple[SaleItemInput, ...]
    payments: tuple[PaymentInput, ...]
    discount: Decimal = Decimal("0.00")
    total: Decimal | None = None


@dataclass(frozen=True)
class VariantInput:
    id: int | None
    size: str
    color: str
    cost_price: Decimal | None
    sell_price: Decimal | None
    stock: int | None
    sku: str | None


@dataclass(frozen=True)
class ProductInput:
    name: str | None
    description: str | None
    brand: str | None
    category: str | None
    variants: tuple[VariantInput, ...]
    provided: frozenset[str]


def _fail(message: str, field: str) -> ValidationFailed:
    return ValidationFailed(message, details={"check": "schema", "field": field})


# Upper bound of a 32-bit signed INTEGER column (SQLite and Postgres both hold it)
MAX_INT = 2**31 - 1


def _parse_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise _fail(f"{field} must be an integer", field)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise _fail(f"{field} must be an integer", field)
        if 'e' in stripped.lower():
            raise _fail(f"{field} must be a plain integer (scientific notation not allowed)", field)
        if '.' in stripped:
            raise _fail(f"{field} must be an integer (no decimals)", field)
        try:
            return int(stripped)
        except ValueError:
            raise _fail(f"{field} must be an integer", field)
    if isinstance(value, float):
        raise _fail(f"{field} must be an integer, not a decimal", field)
    raise _fail(f"{field} must be an integer", field)


def coerce_int(value: Any, field: str, *, max_value: int = MAX_INT) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals and scientific notation.

    Magnitudes above max_value are rejected so they never reach the database.
    """
    number = _parse_int(value, field)
    if abs(number) > max_value:
        raise _fail(f"{field} cannot exceed {max_value} in magnitude", field)
    return number


def coerce_money(value: Any, field: str) -> Decimal:
    """
    Parse a JSON number or numeric string into a Decimal quantized to cents.

    Goes through str() so binary float noise from the transport does not
    leak into the stored value.
    """
    if isinstance(value, bool) or value is None:
        raise _fail(f"{field} must be a number", field)
    if not isinstance(value, (int, float, str, Decimal)):
        raise _fail(f"{field} must be a number", field)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise _fail(f"{field} must be a number", field)
    if not amount.is_finite():
        raise _fail(f"{field} must be a finite number", field)
    amount = quantize(amount)
    if abs(amount) > MAX_AMOUNT:
        raise _fail(f"{field} cannot exceed {MAX_AMOUNT}", field)
    return amount


def coerce_text(value: Any, field: str, *, max_length: int | None = None, required: bool = False) -> str | None:
    if value is None:
        if required:
            raise _fail(f"{field} is required", field)
        return None
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise _fail(f"{field} must be a string", field)
    text = str(value).strip()
    if required and not text:
        raise _fail(f"{field} cannot be blank", field)
    if max_length and len(text) > max_length:
        raise _fail(f"{field} exceeds max length {max_length}", field)
    return text


def _require_list(payload: dict, key: str) -> list:
    value = payload.get(key)
    if not isinstance(value, list) or not value:
        raise _fail(f"{key} must be a non-empty list", key)
    for idx, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise _fail(f"{key}[{idx}] must be an object", f"{key}[{idx}]")
    return value


def parse_sale_request(payload: Any) -> SaleRequest:
    """
    Validate and normalize a sale body.

    Only the multi-payment shape is accepted; a legacy body carrying a single
    paymentMethod string and no payments list is rejected as malformed.
    """
    if not isinstance(payload, dict):
        raise _fail("Invalid JSON payload", "body")

    if "payments" not in payload and "paymentMethod" in payload:
        raise _fail("paymentMethod is no longer supported; send a payments list", "paymentMethod")

    items = []
    for idx, raw in enumerate(_require_list(payload, "items")):
        prefix = f"items[{idx}]"
        for key in ("variantId", "quantity", "priceAtSale"):
            if key not in raw:
                raise _fail(f"{prefix}.{key} is required", f"{prefix}.{key}")
        quantity = coerce_int(raw["quantity"], f"{prefix}.quantity")
        if quantity <= 0:
            raise _fail(f"{prefix}.quantity must be > 0", f"{prefix}.quantity")
        price = coerce_money(raw["priceAtSale"], f"{prefix}.priceAtSale")
        if price < 0:
            raise _fail(f"{prefix}.priceAtSale must be >= 0", f"{prefix}.priceAtSale")
        items.append(SaleItemInput(
            variant_id=coerce_int(raw["variantId"], f"{prefix}.variantId"),
            quantity=quantity,
            price_at_sale=price,
        ))

    payments = []
    for idx, raw in enumerate(_require_list(payload, "payments")):
        prefix = f"payments[{idx}]"
        method = coerce_text(raw.get("method"), f"{prefix}.method", max_length=32, required=True)
        if "amount" not in raw:
            raise _fail(f"{prefix}.amount is required", f"{prefix}.amount")
        amount = coerce_money(raw["amount"], f"{prefix}.amount")
        if amount <= 0:
            raise _fail(f"{prefix}.amount must be > 0", f"{prefix}.amount")
        payments.append(PaymentInput(method=method.lower(), amount=amount))

    discount = Decimal("0.00")
    if payload.get("discount") is not None:
        discount = coerce_money(payload["discount"], "discount")
        if discount < 0:
            raise _fail("discount must be >= 0", "discount")

    total = None
    if payload.get("total") is not None:
        total = coerce_money(payload["total"], "total")

    return SaleRequest(items=tuple(items), payments=tuple(payments), discount=discount, total=total)


PRODUCT_TEXT_FIELDS = {"name": 255, "description": None, "brand": 128, "category": 128}


def _parse_variant(raw: dict, prefix: str, *, partial: bool) -> VariantInput:
    variant_id = coerce_int(raw["id"], f"{prefix}.id") if raw.get("id") is not None else None
    required = not partial or variant_id is None

    cost_price = None
    if raw.get("costPrice") is not None:
        cost_price = coerce_money(raw["costPrice"], f"{prefix}.costPrice")
        if cost_price < 0:
            raise _fail(f"{prefix}.costPrice must be >= 0", f"{prefix}.costPrice")

    sell_price = None
    if raw.get("sellPrice") is not None:
        sell_price = coerce_money(raw["sellPrice"], f"{prefix}.sellPrice")
        if sell_price < 0:
            raise _fail(f"{prefix}.sellPrice must be >= 0", f"{prefix}.sellPrice")

    stock = None
    if raw.get("stock") is not None:
        stock = coerce_int(raw["stock"], f"{prefix}.stock")
        if stock < 0:
            raise _fail(f"{prefix}.stock must be >= 0", f"{prefix}.stock")

    return VariantInput(
        id=variant_id,
        size=coerce_text(raw.get("size"), f"{prefix}.size", max_length=32, required=required),
        color=coerce_text(raw.get("color"), f"{prefix}.color", max_length=64, required=required),
        cost_price=cost_price,
        sell_price=sell_price,
        stock=stock,
        sku=coerce_text(raw.get("sku"), f"{prefix}.sku", max_length=64) or None,
    )


def parse_product_payload(payload: Any, *, partial: bool) -> ProductInput:
    """
    partial=False: create semantics (name required)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise _fail("Invalid JSON payload", "body")

    if not partial and not payload.get("name"):
        raise _fail("Missing required fields: name", "name")

    fields = {}
    for key, max_length in PRODUCT_TEXT_FIELDS.items():
        if key in payload:
            fields[key] = coerce_text(
                payload[key], key, max_length=max_length, required=(key == "name")
            )

    raw_variants = payload.get("variants") or []
    if not isinstance(raw_variants, list):
        raise _fail("variants must be a list", "variants")

    variants = []
    for idx, raw in enumerate(raw_variants):
        if not isinstance(raw, dict):
            raise _fail(f"variants[{idx}] must be an object", f"variants[{idx}]")
        variants.append(_parse_variant(raw, f"variants[{idx}]", partial=partial))

    return ProductInput(
        name=fields.get("name"),
        description=fields.get("description"),
        brand=fields.get("brand"),
        category=fields.get("category"),
        variants=tuple(variants),
        provided=frozenset(fields),
    )
