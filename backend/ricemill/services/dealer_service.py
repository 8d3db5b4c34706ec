# Overview: Service-layer operations for the dealer registry.

from __future__ import annotations

import logging

from ..extensions import db
from ..errors import DealerInactive, NotFound
from ..models import Dealer, DealerOrder, Invoice
from ..models.dealers import DEALER_ACTIVE, DEALER_INACTIVE
from .concurrency import lock_for_update, run_with_retry
from .sequence_service import DEALER_SEQUENCE, next_identifier

log = logging.getLogger(__name__)

OVERVIEW_LIMIT = 50


def create_dealer(patch: dict) -> Dealer:
    """Register a dealer under the next DLR#### id."""
    def _op():
        dealer_id = next_identifier(DEALER_SEQUENCE)
        dealer = Dealer(
            dealer_id=dealer_id,
            dealer_name=patch["dealer_name"],
            business_name=patch["business_name"],
            contact_number=patch["contact_number"],
            location=patch["location"],
            gst_number=patch.get("gst_number"),
            status=patch.get("status") or DEALER_ACTIVE,
        )
        db.session.add(dealer)
        db.session.commit()
        log.info("Created dealer %s (%s)", dealer.dealer_id, dealer.business_name)
        return dealer

    return run_with_retry(_op)


def get_dealer(pk: int, *, lock: bool = False) -> Dealer:
    query = db.session.query(Dealer).filter_by(id=pk)
    if lock:
        query = lock_for_update(query)
    dealer = query.first()
    if dealer is None:
        raise NotFound(f"Dealer {pk} not found", dealer_pk=pk)
    return dealer


def get_dealer_by_code(dealer_id: str) -> Dealer:
    dealer = db.session.query(Dealer).filter_by(dealer_id=dealer_id).first()
    if dealer is None:
        raise NotFound(f"Dealer {dealer_id} not found", dealer_id=dealer_id)
    return dealer


def require_active_dealer(dealer_id: str) -> Dealer:
    dealer = get_dealer_by_code(dealer_id)
    if not dealer.is_active:
        raise DealerInactive(f"Dealer {dealer_id} is inactive", dealer_id=dealer_id)
    return dealer


def update_dealer(pk: int, patch: dict) -> Dealer:
    def _op():
        dealer = get_dealer(pk, lock=True)
        for key, value in patch.items():
            setattr(dealer, key, value)
        db.session.commit()
        return dealer

    return run_with_retry(_op)


def disable_dealer(pk: int) -> Dealer:
    """Soft delete: flip status to inactive. Orders and invoices keep their references."""
    def _op():
        dealer = get_dealer(pk, lock=True)
        dealer.status = DEALER_INACTIVE
        db.session.commit()
        log.info("Disabled dealer %s", dealer.dealer_id)
        return dealer

    return run_with_retry(_op)


def list_dealers(*, status: str | None = None) -> list[Dealer]:
    query = db.session.query(Dealer)
    if status:
        query = query.filter(Dealer.status == status)
    return query.order_by(Dealer.created_at.desc(), Dealer.id.desc()).all()


def dealer_overview(pk: int) -> dict:
    """Dealer plus its most recent orders and invoices."""
    dealer = get_dealer(pk)
    orders = (
        db.session.query(DealerOrder)
        .filter_by(dealer_pk=dealer.id)
        .order_by(DealerOrder.created_at.desc(), DealerOrder.id.desc())
        .limit(OVERVIEW_LIMIT)
        .all()
    )
    invoices = (
        db.session.query(Invoice)
        .filter_by(dealer_pk=dealer.id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .limit(OVERVIEW_LIMIT)
        .all()
    )
    return {
        "dealer": dealer.to_dict(),
        "orders": [o.to_dict() for o in orders],
        "invoices": [i.to_dict() for i in invoices],
    }
