from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..errors import PosError, error_response
from ..extensions import db
from ..services import inventory_service
from ..validation import coerce_int


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/low-stock")
@require_auth
def low_stock_route():
    raw_threshold = request.args.get("threshold")
    try:
        if raw_threshold is None:
            threshold = current_app.config["LOW_STOCK_THRESHOLD"]
        else:
            threshold = coerce_int(raw_threshold, "threshold")
    except PosError as e:
        return error_response(e)

    variants = inventory_service.list_low_stock(db.session, threshold)
    return jsonify({
        "threshold": threshold,
        "count": len(variants),
        "items": [v.to_dict(include_product=True) for v in variants],
    }), 200
