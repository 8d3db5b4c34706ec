from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

DEALER_ACTIVE = "active"
DEALER_INACTIVE = "inactive"
DEALER_STATUSES = (DEALER_ACTIVE, DEALER_INACTIVE)


class Dealer(db.Model):
    """
    Wholesale buyer account.

    Orders and invoices reference dealer_id; dealers are disabled by a status
    flip, never hard-deleted, so those references stay valid.
    """
    __tablename__ = "dealers"
    __table_args__ = (
        db.CheckConstraint("status IN ('active', 'inactive')", name="ck_dealers_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable sequential id (DLR0001)
    dealer_id = db.Column(db.String(16), nullable=False, unique=True, index=True)

    dealer_name = db.Column(db.String(128), nullable=False)
    business_name = db.Column(db.String(128), nullable=False)
    contact_number = db.Column(db.String(32), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    gst_number = db.Column(db.String(32), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=DEALER_ACTIVE, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def is_active(self) -> bool:
        return self.status == DEALER_ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "dealer_id": self.dealer_id,
            "dealer_name": self.dealer_name,
            "business_name": self.business_name,
            "contact_number": self.contact_number,
            "location": self.location,
            "gst_number": self.gst_number,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
