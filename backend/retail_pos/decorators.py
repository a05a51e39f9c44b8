# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user and g.token for the wrapped route. Returns 401 when
    the header is missing and 403 when the token is invalid, expired or
    revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Access denied. No token provided."}), 401

        user = session_service.validate_session(db.session, token)
        if not user:
            return jsonify({"error": "Invalid or expired token"}), 403

        g.current_user = user
        g.token = token
        return f(*args, **kwargs)

    return decorated_function
