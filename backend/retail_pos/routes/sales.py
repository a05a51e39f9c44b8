# Overview: Flask API routes for sales; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..errors import PosError, error_response
from ..extensions import db
from ..services import reporting_service, sales_service
from ..validation import coerce_int, parse_sale_request


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Record a sale.

    Body: {discount?, total?, items: [{variantId, quantity, priceAtSale}],
           payments: [{method, amount}]}
    """
    try:
        sale_request = parse_sale_request(request.get_json(silent=True))
    except PosError as e:
        return error_response(e)

    try:
        outcome = sales_service.record_sale(
            sale_request,
            session=db.session,
            attempts=current_app.config["SALE_RETRY_ATTEMPTS"],
            backoff_base=current_app.config["SALE_RETRY_BACKOFF"],
        )
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500

    if not outcome.ok:
        return error_response(outcome.error)
    return jsonify(outcome.to_dict()), 201


@sales_bp.get("")
@require_auth
def list_sales_route():
    raw_limit = request.args.get("limit")
    try:
        limit = coerce_int(raw_limit, "limit") if raw_limit is not None else None
        sales = reporting_service.list_sales(db.session, limit=limit)
        return jsonify([sale.to_dict() for sale in sales]), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load sales history")
        return jsonify({"error": "Failed to load sales history"}), 500


@sales_bp.get("/report")
@require_auth
def sales_report_route():
    try:
        report = reporting_service.sales_report(
            db.session,
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(report), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build sales report")
        return jsonify({"error": "Failed to build sales report"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(db.session, sale_id)
    except PosError as e:
        return error_response(e)
    return jsonify(sale.to_dict()), 200
