# Overview: Service-layer operations for auth; password hashing and user management.

"""
Authentication Service

Uses bcrypt for password hashing. The sale core never calls into this
module; it only runs behind the /api/auth routes and @require_auth.
"""

import bcrypt
from ..errors import ConflictError, NotFound, ValidationFailed
from ..models import User
from ..time_utils import utcnow

VALID_ROLES = ("admin", "employee")
MIN_PASSWORD_LENGTH = 8


class AuthenticationError(Exception):
    """Raised when a password does not match."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            details={"check": "schema", "field": "password"},
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(session, username: str, password: str, role: str = "admin") -> User:
    """
    Create a user with a bcrypt password hash.

    Raises ValidationFailed for a blank username, weak password or unknown
    role, ConflictError if the username is taken.
    """
    username = (username or "").strip()
    if not username:
        raise ValidationFailed("username is required", details={"check": "schema", "field": "username"})
    if role not in VALID_ROLES:
        raise ValidationFailed(
            f"role must be one of {', '.join(VALID_ROLES)}",
            details={"check": "schema", "field": "role"},
        )

    existing = session.query(User).filter_by(username=username).first()
    if existing:
        raise ConflictError("Username already exists", details={"username": username})

    user = User(username=username, password_hash=hash_password(password), role=role)
    session.add(user)
    session.commit()
    return user


def authenticate(session, username: str, password: str) -> User:
    """
    Check credentials and stamp last_login_at.

    Raises NotFound for an unknown or inactive user and AuthenticationError
    for a wrong password.
    """
    user = session.query(User).filter(
        User.username == username,
        User.is_active.is_(True),
    ).first()
    if not user:
        raise NotFound("User not found", details={"username": username})

    if not verify_password(password, user.password_hash):
        raise AuthenticationError("Incorrect password")

    user.last_login_at = utcnow()
    session.commit()
    return user
