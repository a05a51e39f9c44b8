from flask import Blueprint, current_app, jsonify

from ..decorators import require_auth
from ..extensions import db
from ..services import reporting_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def stats_route():
    try:
        stats = reporting_service.dashboard_stats(db.session, currency=current_app.config["CURRENCY"])
    except Exception:
        current_app.logger.exception("Failed to build dashboard stats")
        return jsonify({"error": "Failed to build dashboard stats"}), 500
    return jsonify(stats), 200
