# Overview: Service-layer operations for dealer orders; owns the order lifecycle state machine.

"""
Dealer Order State Machine

STATE MACHINE:
    (dealer) place    : -         -> pending
    (admin)  approve  : pending   -> approved    [stock deducted in the same transaction]
    (admin)  status   : pending   -> rejected
    (admin)  status   : approved  -> dispatched
    (admin)  status   : dispatched-> delivered

RULES:
1. approve is the only transition that touches stock, and the only way into
   approved. If the stock ledger refuses, the order stays pending and the
   ledger's error reaches the caller unchanged.
2. rejected and delivered are terminal.
3. total_quantity_kg is computed once at placement and never rewritten.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..errors import InvalidState, NotFound, ValidationError
from ..models import DealerOrder
from ..models.orders import (
    FULFILLED_STATUSES,
    ORDER_APPROVED,
    ORDER_DELIVERED,
    ORDER_DISPATCHED,
    ORDER_PENDING,
    ORDER_REJECTED,
    ORDER_STATUSES,
)
from ..time_utils import utcnow, to_utc_z
from ..units import BAG_SIZES, bag_weight_kg
from .concurrency import lock_for_update, run_with_retry
from .dealer_service import require_active_dealer
from .stock_service import reserve_and_deduct

log = logging.getLogger(__name__)

# Pure status writes; approve is handled separately
STATUS_TRANSITIONS = {
    (ORDER_PENDING, ORDER_REJECTED),
    (ORDER_APPROVED, ORDER_DISPATCHED),
    (ORDER_DISPATCHED, ORDER_DELIVERED),
}


def validate_status(status: str) -> None:
    if status not in ORDER_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(ORDER_STATUSES)}"
        )


def can_transition(from_status: str, to_status: str) -> bool:
    """True if set-status may move an order between these states."""
    validate_status(from_status)
    validate_status(to_status)
    return (from_status, to_status) in STATUS_TRANSITIONS


# =============================================================================
# PLACEMENT
# =============================================================================

def place_order(
    *,
    dealer_id: str,
    rice_type: str,
    brand: str,
    bag_size: str,
    quantity_bags: int,
    user_id: int | None = None,
) -> DealerOrder:
    """
    Create a pending order for an active dealer.

    Raises:
        ValidationError: empty rice_type/brand, bad bag size, quantity < 1
        NotFound: unknown dealer
        DealerInactive: dealer disabled
    """
    rice_type = (rice_type or "").strip()
    brand = (brand or "").strip()
    if not rice_type:
        raise ValidationError("Rice type is required")
    if not brand:
        raise ValidationError("Brand is required")
    if bag_size not in BAG_SIZES:
        raise ValidationError(f"Invalid bag size. Must be one of: {', '.join(BAG_SIZES)}")
    if isinstance(quantity_bags, bool) or not isinstance(quantity_bags, int) or quantity_bags < 1:
        raise ValidationError("Quantity must be at least 1")

    def _op():
        dealer = require_active_dealer(dealer_id)
        order = DealerOrder(
            dealer_pk=dealer.id,
            dealer_code=dealer.dealer_id,
            rice_type=rice_type,
            brand=brand,
            bag_size=bag_size,
            quantity_bags=quantity_bags,
            total_quantity_kg=Decimal(bag_weight_kg(bag_size) * quantity_bags),
            rate_per_kg=Decimal("0"),
            total_amount=Decimal("0"),
            status=ORDER_PENDING,
            created_by_user_id=user_id,
        )
        db.session.add(order)
        db.session.commit()
        log.info(
            "Order %s placed by %s: %d x %s %s / %s",
            order.id, dealer.dealer_id, quantity_bags, bag_size, rice_type, brand,
        )
        return order

    return run_with_retry(_op)


# =============================================================================
# TRANSITIONS
# =============================================================================

def _load_for_update(order_id: int) -> DealerOrder:
    order = lock_for_update(db.session.query(DealerOrder).filter_by(id=order_id)).first()
    if order is None:
        raise NotFound(f"Order {order_id} not found", order_id=order_id)
    return order


def approve_order(order_id: int, *, approved_by_user_id: int) -> DealerOrder:
    """
    pending -> approved, deducting stock in the same transaction.

    A second approve of the same order fails with InvalidState and deducts
    nothing. If two approvals race, the loser's order UPDATE hits a stale
    version_id, its whole unit (including the deduction) rolls back, and the
    retry sees the order already approved.
    """
    def _op():
        order = _load_for_update(order_id)
        if order.status != ORDER_PENDING:
            raise InvalidState(
                "Only pending orders can be approved",
                order_id=order.id, status=order.status,
            )

        reserve_and_deduct(
            rice_type=order.rice_type,
            brand=order.brand,
            bag_size=order.bag_size,
            quantity_bags=order.quantity_bags,
        )

        order.status = ORDER_APPROVED
        order.approved_by_user_id = approved_by_user_id
        order.approved_at = utcnow()
        db.session.commit()
        log.info("Order %s approved by user %s", order.id, approved_by_user_id)
        return order

    return run_with_retry(_op)


def set_order_status(order_id: int, status: str, *, user_id: int | None = None) -> DealerOrder:
    """
    Pure status write along the allowed edges. Never touches stock.

    Raises:
        ValidationError: unknown status value
        NotFound: unknown order
        InvalidState: edge not allowed (including anything -> approved)
    """
    validate_status(status)

    def _op():
        order = _load_for_update(order_id)
        if status == ORDER_APPROVED:
            raise InvalidState(
                "Orders can only be approved through the approve action",
                order_id=order.id, status=order.status,
            )
        if not can_transition(order.status, status):
            raise InvalidState(
                f"Cannot move order from {order.status} to {status}",
                order_id=order.id, status=order.status,
            )
        previous = order.status
        order.status = status
        db.session.commit()
        log.info("Order %s status %s -> %s (user %s)", order.id, previous, status, user_id)
        return order

    return run_with_retry(_op)


def reject_order(order_id: int, *, user_id: int | None = None) -> DealerOrder:
    return set_order_status(order_id, ORDER_REJECTED, user_id=user_id)


def dispatch_order(order_id: int, *, user_id: int | None = None) -> DealerOrder:
    return set_order_status(order_id, ORDER_DISPATCHED, user_id=user_id)


def deliver_order(order_id: int, *, user_id: int | None = None) -> DealerOrder:
    return set_order_status(order_id, ORDER_DELIVERED, user_id=user_id)


# =============================================================================
# READ ACCESSORS
# =============================================================================

def get_order(order_id: int) -> DealerOrder:
    order = db.session.get(DealerOrder, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found", order_id=order_id)
    return order


def list_orders(
    *,
    dealer_id: str | None = None,
    statuses: tuple[str, ...] | list[str] | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[DealerOrder]:
    """Orders newest first, optionally by dealer, status set and inclusive date range."""
    query = db.session.query(DealerOrder)
    if dealer_id:
        query = query.filter(DealerOrder.dealer_code == dealer_id)
    if statuses:
        for s in statuses:
            validate_status(s)
        query = query.filter(DealerOrder.status.in_(statuses))
    if start is not None:
        query = query.filter(DealerOrder.created_at >= start)
    if end is not None:
        query = query.filter(DealerOrder.created_at <= end)
    return query.order_by(DealerOrder.created_at.desc(), DealerOrder.id.desc()).all()


def dealer_analytics(dealer_id: str) -> dict:
    """Totals over the dealer's approved, dispatched and delivered orders."""
    orders = list_orders(dealer_id=dealer_id, statuses=FULFILLED_STATUSES)

    total_quantity = sum((Decimal(o.total_quantity_kg or 0) for o in orders), Decimal("0"))
    total_revenue = sum((Decimal(o.total_amount or 0) for o in orders), Decimal("0"))

    kg_by_type: dict[str, Decimal] = defaultdict(Decimal)
    for o in orders:
        kg_by_type[o.rice_type] += Decimal(o.total_quantity_kg or 0)
    most_purchased = max(kg_by_type.items(), key=lambda kv: kv[1])[0] if kg_by_type else None

    return {
        "total_quantity": float(total_quantity),
        "total_revenue": float(total_revenue),
        "most_purchased_rice_type": most_purchased,
        "last_order_date": to_utc_z(orders[0].created_at) if orders else None,
        "order_count": len(orders),
    }
