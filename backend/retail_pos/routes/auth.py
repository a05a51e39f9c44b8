# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import PosError, error_response
from ..extensions import db
from ..services import auth_service, session_service
from ..services.auth_service import AuthenticationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    data = request.get_json(silent=True) or {}
    try:
        auth_service.create_user(
            db.session,
            username=data.get("username"),
            password=data.get("password"),
            role=data.get("role") or "admin",
        )
    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "User created"}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not all([username, password]):
        return jsonify({"error": "username and password required"}), 400

    try:
        user = auth_service.authenticate(db.session, username, password)
        _, token = session_service.create_session(
            db.session, user.id, ttl_hours=current_app.config["SESSION_TTL_HOURS"]
        )
    except PosError as e:
        return error_response(e)
    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Login successful", "token": token, "user": user.to_dict()}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(db.session, g.token)
    return jsonify({"message": "Logged out"}), 200
