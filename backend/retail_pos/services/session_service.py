# Overview: Service-layer operations for session tokens.

"""
Session Token Management Service

Tokens are random, returned to the client once in plaintext, and stored
only as a SHA-256 hash. A token is valid until it expires or is revoked.
"""

import hashlib
import secrets
from datetime import timedelta

from ..models import SessionToken, User
from ..time_utils import utcnow


def generate_token() -> str:
    """Return 64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(session, user_id: int, ttl_hours: int = 24) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    record = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + timedelta(hours=ttl_hours),
        is_revoked=False,
    )
    session.add(record)
    session.commit()

    return record, plaintext_token


def validate_session(session, token: str) -> User | None:
    """
    Return the user behind a token, or None if the token is unknown,
    expired, revoked, or belongs to a deactivated user.
    """
    now = utcnow()
    record = session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not record or record.expires_at < now:
        return None

    user = record.user
    if not user or not user.is_active:
        record.is_revoked = True
        record.revoked_at = now
        record.revoked_reason = "User account deactivated"
        session.commit()
        return None

    record.last_used_at = now
    session.commit()
    return user


def revoke_session(session, token: str, reason: str = "User logout") -> bool:
    """Revoke session token. Returns False if not found."""
    record = session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not record:
        return False

    record.is_revoked = True
    record.revoked_at = utcnow()
    record.revoked_reason = reason
    session.commit()
    return True
