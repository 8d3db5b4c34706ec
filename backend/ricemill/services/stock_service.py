# Overview: Service-layer operations for the rice stock ledger; the only path that decrements SKU counts.

"""
Rice Stock Ledger

INVARIANTS:
- quantity_kg and every bag-size count are >= 0 at all times.
- quantity_kg and bag counts are independent; fulfilment checks and deducts
  both, in one guarded UPDATE, or neither.
- The availability check is restated in the UPDATE's WHERE clause, so two
  transactions that both passed the Python-side check against the same
  snapshot cannot both deduct: the second one matches zero rows.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, update

from ..extensions import db
from ..errors import InsufficientStock, NotFound, ValidationError
from ..models import Godown, RiceStock
from ..models.inventory import BAG_COLUMNS, FULFILLABLE_STATUSES, RICE_READY
from ..time_utils import utcnow
from ..units import BAG_SIZES, bag_weight_kg
from .concurrency import lock_for_update, run_with_retry

log = logging.getLogger(__name__)


def _validate_request(bag_size: str, quantity_bags) -> None:
    if bag_size not in BAG_COLUMNS:
        raise ValidationError(f"Invalid bag size '{bag_size}'. Must be one of: {', '.join(BAG_SIZES)}")
    if isinstance(quantity_bags, bool) or not isinstance(quantity_bags, int) or quantity_bags < 1:
        raise ValidationError("quantity_bags must be an integer >= 1")


def find_fulfillable_sku(rice_type: str, brand: str, *, lock: bool = False) -> RiceStock | None:
    """Oldest SKU matching (rice_type, rice_name) that is ready or in production."""
    query = db.session.query(RiceStock).filter(
        RiceStock.rice_type == rice_type,
        RiceStock.rice_name == brand,
        RiceStock.status.in_(FULFILLABLE_STATUSES),
    ).order_by(RiceStock.id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def reserve_and_deduct(*, rice_type: str, brand: str, bag_size: str, quantity_bags: int) -> RiceStock:
    """
    Check availability and deduct bags + bulk kg from the matching SKU.

    Runs inside the caller's transaction and does NOT commit; the caller
    commits its dependent write (order approval) in the same unit.

    Raises:
        ValidationError: bad bag size or quantity
        NotFound: no ready/in-production SKU for (rice_type, brand)
        InsufficientStock: not enough bags of the size, or not enough kg
    """
    _validate_request(bag_size, quantity_bags)
    needed_kg = Decimal(bag_weight_kg(bag_size) * quantity_bags)

    sku = find_fulfillable_sku(rice_type, brand, lock=True)
    if sku is None:
        raise NotFound(
            f"No matching rice stock found for {rice_type} / {brand}",
            rice_type=rice_type, brand=brand,
        )

    available_bags = sku.bags_for(bag_size)
    available_kg = Decimal(sku.quantity_kg or 0)
    if available_bags < quantity_bags or available_kg < needed_kg:
        log.warning(
            "Insufficient stock on SKU %s: need %d x %s (%s kg), have %d bags / %s kg",
            sku.id, quantity_bags, bag_size, needed_kg, available_bags, available_kg,
        )
        raise InsufficientStock(
            "Insufficient stock to approve this order",
            sku_id=sku.id,
            bag_size=bag_size,
            requested_bags=quantity_bags,
            available_bags=available_bags,
            requested_kg=float(needed_kg),
            available_kg=float(available_kg),
        )

    bag_col = getattr(RiceStock, BAG_COLUMNS[bag_size])
    result = db.session.execute(
        update(RiceStock)
        .where(
            RiceStock.id == sku.id,
            bag_col >= quantity_bags,
            RiceStock.quantity_kg >= needed_kg,
        )
        .values({
            BAG_COLUMNS[bag_size]: bag_col - quantity_bags,
            "quantity_kg": RiceStock.quantity_kg - needed_kg,
        })
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Another transaction deducted between our read and our write
        log.warning("Stock on SKU %s changed concurrently; deduction refused", sku.id)
        raise InsufficientStock(
            "Insufficient stock to approve this order",
            sku_id=sku.id, bag_size=bag_size, requested_bags=quantity_bags,
        )

    db.session.refresh(sku)
    log.info(
        "Deducted %d x %s (%s kg) from SKU %s; now %d bags / %s kg",
        quantity_bags, bag_size, needed_kg, sku.id, sku.bags_for(bag_size), sku.quantity_kg,
    )
    return sku


# =============================================================================
# SKU MAINTENANCE (admin data entry)
# =============================================================================

def _ensure_godown(godown_id: int) -> Godown:
    godown = db.session.get(Godown, godown_id)
    if godown is None:
        raise NotFound(f"Godown {godown_id} not found", godown_id=godown_id)
    return godown


def _apply_bag_counts(sku: RiceStock, bags_stock: dict | None) -> None:
    if not bags_stock:
        return
    if not isinstance(bags_stock, dict):
        raise ValidationError("bags_stock must be an object keyed by bag size")
    for size, count in bags_stock.items():
        if size not in BAG_COLUMNS:
            raise ValidationError(f"Invalid bag size '{size}'. Must be one of: {', '.join(BAG_SIZES)}")
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValidationError(f"bags_stock[{size}] must be an integer >= 0")
        setattr(sku, BAG_COLUMNS[size], count)


def add_stock(patch: dict, bags_stock: dict | None = None) -> RiceStock:
    """Create a SKU from a validated patch (see routes/rice.py policy)."""
    def _op():
        _ensure_godown(patch["godown_id"])
        sku = RiceStock(
            rice_name=patch["rice_name"],
            rice_type=patch["rice_type"],
            quantity_kg=patch["quantity_kg"],
            godown_id=patch["godown_id"],
            production_date=patch.get("production_date") or utcnow(),
            status=patch.get("status") or RICE_READY,
        )
        for size in BAG_SIZES:
            setattr(sku, BAG_COLUMNS[size], 0)
        _apply_bag_counts(sku, bags_stock)
        db.session.add(sku)
        db.session.commit()
        log.info("Added SKU %s (%s / %s, %s kg)", sku.id, sku.rice_type, sku.rice_name, sku.quantity_kg)
        return sku

    return run_with_retry(_op)


def update_stock(stock_id: int, patch: dict, bags_stock: dict | None = None) -> RiceStock:
    def _op():
        sku = lock_for_update(db.session.query(RiceStock).filter_by(id=stock_id)).first()
        if sku is None:
            raise NotFound(f"Rice stock {stock_id} not found", stock_id=stock_id)
        if "godown_id" in patch:
            _ensure_godown(patch["godown_id"])
        for key, value in patch.items():
            setattr(sku, key, value)
        _apply_bag_counts(sku, bags_stock)
        db.session.commit()
        return sku

    return run_with_retry(_op)


def get_stock(stock_id: int) -> RiceStock:
    sku = db.session.get(RiceStock, stock_id)
    if sku is None:
        raise NotFound(f"Rice stock {stock_id} not found", stock_id=stock_id)
    return sku


def list_stock(*, status: str | None = None, godown_id: int | None = None) -> list[RiceStock]:
    query = db.session.query(RiceStock)
    if status:
        query = query.filter(RiceStock.status == status)
    if godown_id:
        query = query.filter(RiceStock.godown_id == godown_id)
    return query.order_by(RiceStock.created_at.desc(), RiceStock.id.desc()).all()


def stock_summary() -> dict:
    """Per-type kg and bag totals plus per-size bag totals across all SKUs."""
    bag_cols = [getattr(RiceStock, BAG_COLUMNS[size]) for size in BAG_SIZES]
    rows = db.session.query(
        RiceStock.rice_type,
        func.coalesce(func.sum(RiceStock.quantity_kg), 0),
        *[func.coalesce(func.sum(col), 0) for col in bag_cols],
    ).group_by(RiceStock.rice_type).order_by(RiceStock.rice_type).all()

    by_type = []
    bags_total = {size: 0 for size in BAG_SIZES}
    for row in rows:
        rice_type, total_kg, *bag_sums = row
        bag_sums = [int(b) for b in bag_sums]
        for size, count in zip(BAG_SIZES, bag_sums):
            bags_total[size] += count
        by_type.append({
            "rice_type": rice_type,
            "total_quantity_kg": float(total_kg),
            "total_bags": sum(bag_sums),
        })

    return {"by_type": by_type, "bags_stock": bags_total}
