# Overview: Service-layer operations for godowns and paddy intake; guards the capacity invariant.

"""
Godown Capacity Tracker

INVARIANT: 0 <= current_stock <= capacity after every commit.

receive_paddy() checks capacity in Decimal against the row it read and
writes the new level through the version_id guard. Two intakes that read
the same level cannot both commit: the second flush matches zero rows,
rolls back, and is re-checked against the level the first one left.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import CapacityExceeded, Conflict, NotFound, ValidationError
from ..models import Godown, PaddyIntake, RiceStock
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry

log = logging.getLogger(__name__)


def get_godown(godown_id: int, *, lock: bool = False) -> Godown:
    query = db.session.query(Godown).filter_by(id=godown_id)
    if lock:
        query = lock_for_update(query).populate_existing()
    godown = query.first()
    if godown is None:
        raise NotFound(f"Godown {godown_id} not found", godown_id=godown_id)
    return godown


def receive_paddy(godown_id: int, weight: Decimal) -> Godown:
    """
    Add ``weight`` to a godown's fill level if it fits.

    Runs inside the caller's transaction and does NOT commit. The new fill
    level is computed in Decimal from the row read under lock and written
    as a value; the flush is guarded by version_id, so a concurrent intake
    that committed first makes this one fail with StaleDataError and the
    caller's run_with_retry re-checks against the fresh level.

    Raises:
        ValidationError: weight <= 0
        NotFound: unknown godown
        CapacityExceeded: current_stock + weight > capacity (nothing written)
    """
    weight = Decimal(weight)
    if weight <= 0:
        raise ValidationError("weight must be greater than 0")

    godown = get_godown(godown_id, lock=True)
    current = Decimal(godown.current_stock or 0)
    capacity = Decimal(godown.capacity)
    new_stock = current + weight
    if new_stock > capacity:
        log.warning(
            "Godown %s capacity exceeded: %s + %s > %s",
            godown.id, current, weight, capacity,
        )
        raise CapacityExceeded(
            "Godown capacity exceeded",
            godown_id=godown.id,
            capacity=float(capacity),
            current_stock=float(current),
            requested=float(weight),
        )

    godown.current_stock = new_stock
    db.session.flush()
    return godown


# =============================================================================
# PADDY INTAKE
# =============================================================================

def record_paddy_intake(patch: dict, *, user_id: int) -> PaddyIntake:
    """
    Record a paddy inward: capacity check + increment, then the intake row,
    committed together.
    """
    def _op():
        godown = receive_paddy(patch["godown_id"], patch["weight"])
        intake = PaddyIntake(
            paddy_type=patch["paddy_type"],
            quantity=patch["quantity"],
            weight=patch["weight"],
            quality_grade=patch["quality_grade"],
            moisture_percent=patch["moisture_percent"],
            seller_name=patch["seller_name"],
            seller_contact=patch["seller_contact"],
            vehicle_number=patch["vehicle_number"],
            location=patch["location"],
            godown_id=godown.id,
            date=patch.get("date") or utcnow(),
            added_by_user_id=user_id,
        )
        db.session.add(intake)
        db.session.commit()
        log.info(
            "Paddy intake %s: %s kg of %s into godown %s (now %s / %s)",
            intake.id, intake.weight, intake.paddy_type, godown.id, godown.current_stock, godown.capacity,
        )
        return intake

    return run_with_retry(_op)


def list_paddy_intakes() -> list[PaddyIntake]:
    return (
        db.session.query(PaddyIntake)
        .order_by(PaddyIntake.date.desc(), PaddyIntake.id.desc())
        .all()
    )


def paddy_stock_summary() -> dict:
    rows = db.session.query(
        PaddyIntake.paddy_type,
        func.coalesce(func.sum(PaddyIntake.quantity), 0),
        func.coalesce(func.sum(PaddyIntake.weight), 0),
    ).group_by(PaddyIntake.paddy_type).order_by(PaddyIntake.paddy_type).all()

    by_type = [
        {"paddy_type": t, "total_quantity": float(q), "total_weight": float(w)}
        for t, q, w in rows
    ]
    return {"by_type": by_type, "total": sum(r["total_weight"] for r in by_type)}


# =============================================================================
# GODOWN MAINTENANCE
# =============================================================================

def create_godown(patch: dict) -> Godown:
    def _op():
        godown = Godown(
            name=patch["name"],
            location=patch["location"],
            capacity=patch["capacity"],
            current_stock=patch.get("current_stock") or Decimal("0"),
            stock_type=patch.get("stock_type") or "mixed",
            is_active=patch["is_active"] if patch.get("is_active") is not None else True,
        )
        if Decimal(godown.current_stock) > Decimal(godown.capacity):
            raise CapacityExceeded("current_stock cannot exceed capacity")
        db.session.add(godown)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("Godown name already exists", name=patch["name"])
        log.info("Created godown %s (%s, capacity %s)", godown.id, godown.name, godown.capacity)
        return godown

    return run_with_retry(_op)


def update_godown(godown_id: int, patch: dict) -> Godown:
    """
    Update descriptive fields and capacity.

    current_stock is not writable here; receive_paddy() owns it. Capacity
    may not drop below what is already stored.
    """
    def _op():
        godown = get_godown(godown_id, lock=True)
        new_capacity = patch.get("capacity")
        if new_capacity is not None and Decimal(new_capacity) < Decimal(godown.current_stock):
            raise CapacityExceeded(
                "capacity cannot be set below current stock",
                godown_id=godown.id,
                current_stock=float(godown.current_stock),
            )
        for key, value in patch.items():
            if key == "current_stock":
                continue
            setattr(godown, key, value)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("Godown name already exists", name=patch.get("name"))
        return godown

    return run_with_retry(_op)


def list_godowns() -> list[Godown]:
    return db.session.query(Godown).order_by(Godown.name).all()


def godown_details(godown_id: int) -> dict:
    godown = get_godown(godown_id)
    paddy = (
        db.session.query(PaddyIntake)
        .filter_by(godown_id=godown.id)
        .order_by(PaddyIntake.date.desc())
        .all()
    )
    rice = (
        db.session.query(RiceStock)
        .filter_by(godown_id=godown.id)
        .order_by(RiceStock.created_at.desc())
        .all()
    )
    return {
        "godown": godown.to_dict(),
        "paddy_stock": [p.to_dict() for p in paddy],
        "rice_stock": [r.to_dict() for r in rice],
    }
