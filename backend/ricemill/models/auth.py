from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

ROLE_ADMIN = "admin"
ROLE_DEALER = "dealer"
VALID_ROLES = (ROLE_ADMIN, ROLE_DEALER)


class User(db.Model):
    """
    Login account for an admin (mill staff) or a dealer.

    Dealer users are bound to exactly one Dealer through dealer_code; the
    dealer's own record stays owned by the admin side and is never deleted.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'dealer')", name="ck_users_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default=ROLE_ADMIN, index=True)

    # Human-readable dealer id (DLR0001) for dealer logins; one login per dealer
    dealer_code = db.Column(db.String(16), db.ForeignKey("dealers.dealer_id"), nullable=True, unique=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    dealer = db.relationship("Dealer", foreign_keys=[dealer_code])

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_dealer(self) -> bool:
        return self.role == ROLE_DEALER

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "dealer_id": self.dealer_code,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }

    def to_ref(self) -> dict:
        """Short form used when a user is expanded inside another record."""
        return {"id": self.id, "name": self.name, "email": self.email}


class SessionToken(db.Model):
    """
    Opaque bearer session.

    Only the SHA-256 hash of the token is stored; the plaintext is handed to
    the client once at login.
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
