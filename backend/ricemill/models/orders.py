from __future__ import annotations

from decimal import Decimal

from sqlalchemy import event
from sqlalchemy.orm import column_property
from sqlalchemy.orm.attributes import get_history

from ..extensions import db
from ..errors import InvalidState
from ..time_utils import to_utc_z
from ..units import as_number

ORDER_PENDING = "pending"
ORDER_APPROVED = "approved"
ORDER_REJECTED = "rejected"
ORDER_DISPATCHED = "dispatched"
ORDER_DELIVERED = "delivered"
ORDER_STATUSES = (ORDER_PENDING, ORDER_APPROVED, ORDER_REJECTED, ORDER_DISPATCHED, ORDER_DELIVERED)

# Orders that count as purchases for dealer analytics
FULFILLED_STATUSES = (ORDER_APPROVED, ORDER_DISPATCHED, ORDER_DELIVERED)


class DealerOrder(db.Model):
    """
    A dealer's request for quantity_bags of one bag_size of a (rice_type, brand).

    INVARIANTS:
    - total_quantity_kg = bag_weight_kg(bag_size) * quantity_bags, fixed at creation.
    - Stock is deducted exactly once, at pending -> approved.
    - approved_by/approved_at are only written on that transition.
    """
    __tablename__ = "dealer_orders"
    __table_args__ = (
        db.CheckConstraint("quantity_bags >= 1", name="ck_dealer_orders_qty_pos"),
        db.CheckConstraint("total_quantity_kg >= 0", name="ck_dealer_orders_kg_nonneg"),
        db.CheckConstraint("bag_size IN ('5kg', '10kg', '25kg', '75kg')", name="ck_dealer_orders_bag_size"),
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'dispatched', 'delivered')",
            name="ck_dealer_orders_status",
        ),
        db.Index("ix_dealer_orders_dealer_created", "dealer_code", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    dealer_pk = db.Column(db.Integer, db.ForeignKey("dealers.id"), nullable=False, index=True)
    dealer_code = db.Column(db.String(16), nullable=False)

    rice_type = db.Column(db.String(64), nullable=False)
    brand = db.Column(db.String(128), nullable=False)
    # Frozen at creation; active_history loads the old value on assignment so
    # the before_update listener can compare
    bag_size = column_property(db.Column(db.String(8), nullable=False), active_history=True)
    quantity_bags = column_property(db.Column(db.Integer, nullable=False), active_history=True)
    total_quantity_kg = column_property(db.Column(db.Numeric(14, 3), nullable=False), active_history=True)

    # Filled in when the order is invoiced
    rate_per_kg = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))

    status = db.Column(db.String(16), nullable=False, default=ORDER_PENDING, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    dealer = db.relationship("Dealer", backref=db.backref("orders", lazy=True))
    approved_by = db.relationship("User", foreign_keys=[approved_by_user_id])
    created_by = db.relationship("User", foreign_keys=[created_by_user_id])
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, *, expand: bool = False) -> dict:
        data = {
            "id": self.id,
            "dealer_id": self.dealer_code,
            "rice_type": self.rice_type,
            "brand": self.brand,
            "bag_size": self.bag_size,
            "quantity_bags": self.quantity_bags,
            "total_quantity_kg": as_number(self.total_quantity_kg),
            "rate_per_kg": as_number(self.rate_per_kg),
            "total_amount": as_number(self.total_amount),
            "status": self.status,
            "created_by_user_id": self.created_by_user_id,
            "approved_by_user_id": self.approved_by_user_id,
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if expand:
            data["dealer"] = self.dealer.to_dict() if self.dealer else None
            data["approved_by"] = self.approved_by.to_ref() if self.approved_by else None
        return data


@event.listens_for(DealerOrder, "before_update")
def _freeze_order_quantities(mapper, connection, target):
    for attr in ("total_quantity_kg", "quantity_bags", "bag_size"):
        hist = get_history(target, attr)
        if hist.deleted and hist.added and hist.deleted[0] != hist.added[0]:
            raise InvalidState(f"{attr} is immutable once an order is created", order_id=target.id)
