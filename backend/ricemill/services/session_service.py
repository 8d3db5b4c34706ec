# Overview: Service-layer operations for bearer sessions.

"""
Session Token Management

Tokens are random, handed to the client once, and stored only as a SHA-256
hash. Each session has an absolute lifetime and an idle timeout, both read
from app config (SESSION_ABSOLUTE_HOURS / SESSION_IDLE_HOURS).
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_HOURS", 8))


def generate_token() -> str:
    """64-character hex token (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 of the token for storage.

    WHY SHA-256 not bcrypt: tokens are already high-entropy.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token). Commits."""
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    user.last_login_at = now
    db.session.add(session)
    db.session.commit()
    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> User | None:
    """
    Resolve a bearer token to its active user, or None.

    Expired, idle, revoked and deactivated-user sessions all return None;
    idle and deactivated ones are revoked on the way out. A valid call
    refreshes last_used_at.
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if session is None:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if user is None or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()
    return user


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns True if an active session was revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if session is None:
        return False
    _revoke(session, reason)
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    now = utcnow()
    sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason
    db.session.commit()
    return len(sessions)
