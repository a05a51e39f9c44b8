# Overview: Flask API routes for the product catalog and manual stock correction.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..errors import PosError, error_response
from ..extensions import db
from ..services import inventory_service, products_service
from ..validation import coerce_int, parse_product_payload


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.post("")
@require_auth
def create_product_route():
    """Create a product, optionally with variants (SKU generated when blank)."""
    try:
        data = parse_product_payload(request.get_json(silent=True), partial=False)
        product = products_service.create_product(db.session, data)
    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Product created", "productId": product.id}), 201


@products_bp.get("")
@require_auth
def list_products_route():
    """
    Query params:
    - search: matches product name, brand or variant SKU (case-insensitive)
    - category, brand: exact filters
    """
    products = products_service.list_products(
        db.session,
        search=request.args.get("search"),
        category=request.args.get("category"),
        brand=request.args.get("brand"),
    )
    return jsonify([product.to_dict() for product in products]), 200


@products_bp.patch("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    try:
        data = parse_product_payload(request.get_json(silent=True), partial=True)
        product = products_service.update_product(db.session, product_id, data)
    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Product updated", "product": product.to_dict()}), 200


@products_bp.patch("/variants/<int:variant_id>/stock")
@require_auth
def update_stock_route(variant_id: int):
    """Apply a signed stock delta: {"quantity": 10} adds ten units, -3 removes three."""
    payload = request.get_json(silent=True) or {}
    try:
        if "quantity" not in payload:
            return jsonify({"error": "quantity is required"}), 400
        delta = coerce_int(payload["quantity"], "quantity")
        result = inventory_service.adjust_stock(
            db.session,
            variant_id,
            delta,
            attempts=current_app.config["SALE_RETRY_ATTEMPTS"],
            backoff_base=current_app.config["SALE_RETRY_BACKOFF"],
        )
    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Stock updated", **result}), 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(db.session, product_id)
    except PosError as e:
        return error_response(e)
    return jsonify({"message": "Product deleted"}), 200


@products_bp.patch("/<int:product_id>/restore")
@require_auth
def restore_product_route(product_id: int):
    try:
        products_service.restore_product(db.session, product_id)
    except PosError as e:
        return error_response(e)
    return jsonify({"message": "Product restored"}), 200
