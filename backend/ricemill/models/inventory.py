from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z
from ..units import BAG_SIZES, as_number

RICE_IN_PRODUCTION = "in_production"
RICE_READY = "ready"
RICE_SOLD = "sold"
RICE_STATUSES = (RICE_IN_PRODUCTION, RICE_READY, RICE_SOLD)

# Statuses a SKU may be fulfilled from
FULFILLABLE_STATUSES = (RICE_READY, RICE_IN_PRODUCTION)

# Fixed-key bag counts: one column per recognised size
BAG_COLUMNS = {
    "5kg": "bags_5kg",
    "10kg": "bags_10kg",
    "25kg": "bags_25kg",
    "75kg": "bags_75kg",
}


class Godown(db.Model):
    """
    Warehouse with a fill level.

    INVARIANT: 0 <= current_stock <= capacity after every committed intake.
    The only writer of current_stock is godown_service.receive_paddy().
    """
    __tablename__ = "godowns"
    __table_args__ = (
        db.CheckConstraint("capacity >= 0", name="ck_godowns_capacity_nonneg"),
        db.CheckConstraint("current_stock >= 0", name="ck_godowns_stock_nonneg"),
        db.CheckConstraint("stock_type IN ('paddy', 'rice', 'mixed')", name="ck_godowns_stock_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    location = db.Column(db.String(255), nullable=False)

    capacity = db.Column(db.Numeric(14, 3), nullable=False)
    current_stock = db.Column(db.Numeric(14, 3), nullable=False, default=Decimal("0"))
    stock_type = db.Column(db.String(16), nullable=False, default="mixed")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def capacity_percent(self) -> float:
        if not self.capacity:
            return 0.0
        return round(float(Decimal(self.current_stock) / Decimal(self.capacity) * 100), 2)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "capacity": as_number(self.capacity),
            "current_stock": as_number(self.current_stock),
            "capacity_percent": self.capacity_percent,
            "stock_type": self.stock_type,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_ref(self) -> dict:
        return {"id": self.id, "name": self.name, "location": self.location}


class PaddyIntake(db.Model):
    """Paddy inward record; written in the same transaction as the godown increment."""
    __tablename__ = "paddy_intakes"
    __table_args__ = (
        db.CheckConstraint("weight > 0", name="ck_paddy_weight_pos"),
        db.CheckConstraint("quantity >= 0", name="ck_paddy_quantity_nonneg"),
        db.CheckConstraint("moisture_percent >= 0 AND moisture_percent <= 100", name="ck_paddy_moisture_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    paddy_type = db.Column(db.String(32), nullable=False, index=True)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    weight = db.Column(db.Numeric(14, 3), nullable=False)
    quality_grade = db.Column(db.String(4), nullable=False)
    moisture_percent = db.Column(db.Numeric(5, 2), nullable=False)

    seller_name = db.Column(db.String(128), nullable=False)
    seller_contact = db.Column(db.String(32), nullable=False)
    vehicle_number = db.Column(db.String(32), nullable=False)
    location = db.Column(db.String(255), nullable=False)

    godown_id = db.Column(db.Integer, db.ForeignKey("godowns.id"), nullable=False, index=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    added_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    godown = db.relationship("Godown", backref=db.backref("paddy_intakes", lazy=True))
    added_by = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "paddy_type": self.paddy_type,
            "quantity": as_number(self.quantity),
            "weight": as_number(self.weight),
            "quality_grade": self.quality_grade,
            "moisture_percent": as_number(self.moisture_percent),
            "seller_name": self.seller_name,
            "seller_contact": self.seller_contact,
            "vehicle_number": self.vehicle_number,
            "location": self.location,
            "godown_id": self.godown_id,
            "godown": self.godown.to_ref() if self.godown else None,
            "date": to_utc_z(self.date),
            "added_by": self.added_by.to_ref() if self.added_by else None,
            "created_at": to_utc_z(self.created_at),
        }


class RiceStock(db.Model):
    """
    One SKU: a (rice_type, rice_name) pair held in a godown.

    quantity_kg (bulk) and the per-size bag counts are tracked independently;
    fulfilment checks and deducts both. Neither may go below zero.
    """
    __tablename__ = "rice_stock"
    __table_args__ = (
        db.CheckConstraint("quantity_kg >= 0", name="ck_rice_quantity_nonneg"),
        db.CheckConstraint("bags_5kg >= 0", name="ck_rice_bags_5kg_nonneg"),
        db.CheckConstraint("bags_10kg >= 0", name="ck_rice_bags_10kg_nonneg"),
        db.CheckConstraint("bags_25kg >= 0", name="ck_rice_bags_25kg_nonneg"),
        db.CheckConstraint("bags_75kg >= 0", name="ck_rice_bags_75kg_nonneg"),
        db.CheckConstraint("status IN ('in_production', 'ready', 'sold')", name="ck_rice_status"),
        db.Index("ix_rice_stock_type_name", "rice_type", "rice_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    rice_name = db.Column(db.String(128), nullable=False)
    rice_type = db.Column(db.String(32), nullable=False)

    quantity_kg = db.Column(db.Numeric(14, 3), nullable=False, default=Decimal("0"))
    bags_5kg = db.Column(db.Integer, nullable=False, default=0)
    bags_10kg = db.Column(db.Integer, nullable=False, default=0)
    bags_25kg = db.Column(db.Integer, nullable=False, default=0)
    bags_75kg = db.Column(db.Integer, nullable=False, default=0)

    godown_id = db.Column(db.Integer, db.ForeignKey("godowns.id"), nullable=False, index=True)
    production_date = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=RICE_READY, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    godown = db.relationship("Godown", backref=db.backref("rice_stock", lazy=True))

    def bags_for(self, bag_size: str) -> int:
        """Bag count for a size; an unset column reads as 0."""
        return getattr(self, BAG_COLUMNS[bag_size]) or 0

    @property
    def bags_stock(self) -> dict[str, int]:
        return {size: self.bags_for(size) for size in BAG_SIZES}

    @property
    def total_bags(self) -> int:
        return sum(self.bags_stock.values())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rice_name": self.rice_name,
            "rice_type": self.rice_type,
            "quantity_kg": as_number(self.quantity_kg),
            "bags_stock": self.bags_stock,
            "godown_id": self.godown_id,
            "godown": self.godown.to_ref() if self.godown else None,
            "production_date": to_utc_z(self.production_date),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
