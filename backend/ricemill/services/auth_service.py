# Overview: Service-layer operations for accounts; password hashing and credential checks.

"""
Authentication Service

Admins sign up with email + password. Dealers never sign up: an admin
registers the dealer, and the dealer sets a password once using its dealer
id, then logs in with dealer id + password.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, at least one letter and one digit
- Session tokens are handled by session_service
"""

from __future__ import annotations

import logging
import re

import bcrypt
from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import AuthenticationError, Conflict, ValidationError
from ..models import User
from ..models.auth import ROLE_ADMIN, ROLE_DEALER
from .dealer_service import require_active_dealer

log = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")
    if not re.search(r"[A-Za-z]", password):
        raise ValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise ValidationError("Password must contain at least one digit")


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    return 12


def hash_password(password: str) -> str:
    validate_password_strength(password)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=_rounds()))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# =============================================================================
# ADMINS
# =============================================================================

def create_admin(*, name: str, email: str, password: str) -> User:
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name:
        raise ValidationError("name is required")
    if not EMAIL_RE.match(email):
        raise ValidationError("A valid email is required")

    user = User(name=name, email=email, password_hash=hash_password(password), role=ROLE_ADMIN)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Email already registered", email=email)
    log.info("Created admin user %s (%s)", user.id, email)
    return user


def authenticate_admin(email: str, password: str) -> User:
    email = (email or "").strip().lower()
    user = db.session.query(User).filter_by(email=email, role=ROLE_ADMIN).first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        log.warning("Failed admin login for %s", email)
        raise AuthenticationError("Invalid email or password")
    return user


# =============================================================================
# DEALERS
# =============================================================================

def _dealer_email(dealer_id: str) -> str:
    return f"{dealer_id.lower()}@dealers.local"


def setup_dealer_password(dealer_id: str, password: str) -> User:
    """
    First-time password setup for an active dealer.

    Raises:
        NotFound: unknown dealer id
        DealerInactive: dealer disabled
        Conflict: a password was already set for this dealer
    """
    dealer = require_active_dealer((dealer_id or "").strip().upper())
    existing = db.session.query(User).filter_by(dealer_code=dealer.dealer_id).first()
    if existing is not None:
        raise Conflict("Password already set for this dealer", dealer_id=dealer.dealer_id)

    user = User(
        name=dealer.dealer_name,
        email=_dealer_email(dealer.dealer_id),
        password_hash=hash_password(password),
        role=ROLE_DEALER,
        dealer_code=dealer.dealer_id,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Password already set for this dealer", dealer_id=dealer.dealer_id)
    log.info("Dealer %s completed password setup", dealer.dealer_id)
    return user


def authenticate_dealer(dealer_id: str, password: str) -> User:
    dealer = require_active_dealer((dealer_id or "").strip().upper())
    user = db.session.query(User).filter_by(dealer_code=dealer.dealer_id, role=ROLE_DEALER).first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        log.warning("Failed dealer login for %s", dealer.dealer_id)
        raise AuthenticationError("Invalid dealer id or password")
    return user
