# Overview: Service-layer operations for direct (cash-counter) sales.

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..errors import NotFound
from ..models import Sale
from ..models.billing import SALE_PENDING
from ..units import MONEY_QUANT
from .concurrency import lock_for_update, run_with_retry

log = logging.getLogger(__name__)

RECENT_SALES_LIMIT = 10


def _line_total(quantity, rate) -> Decimal:
    return (Decimal(quantity) * Decimal(rate)).quantize(MONEY_QUANT)


def create_sale(patch: dict, *, user_id: int) -> Sale:
    """total_amount = quantity * rate; payment fields start at pending."""
    def _op():
        sale = Sale(
            customer_name=patch["customer_name"],
            customer_contact=patch["customer_contact"],
            customer_address=patch.get("customer_address"),
            rice_type=patch["rice_type"],
            quantity=patch["quantity"],
            rate=patch["rate"],
            total_amount=_line_total(patch["quantity"], patch["rate"]),
            vehicle_number=patch.get("vehicle_number"),
            driver_name=patch.get("driver_name"),
            destination=patch.get("destination"),
            dispatch_date=patch.get("dispatch_date"),
            status=patch.get("status") or SALE_PENDING,
            paid_amount=Decimal("0"),
            sold_by_user_id=user_id,
        )
        db.session.add(sale)
        db.session.commit()
        log.info("Sale %s to %s: %s kg %s = %s", sale.id, sale.customer_name, sale.quantity, sale.rice_type, sale.total_amount)
        return sale

    return run_with_retry(_op)


def get_sale(sale_id: int, *, lock: bool = False) -> Sale:
    query = db.session.query(Sale).filter_by(id=sale_id)
    if lock:
        query = lock_for_update(query)
    sale = query.first()
    if sale is None:
        raise NotFound(f"Sale {sale_id} not found", sale_id=sale_id)
    return sale


def update_sale(sale_id: int, patch: dict) -> Sale:
    """
    Update sale details. paid_amount is owned by the payment ledger and is
    never written here; balance and payment status follow the new total.
    """
    def _op():
        sale = get_sale(sale_id, lock=True)
        for key, value in patch.items():
            if key in ("paid_amount", "balance_amount", "payment_status", "total_amount"):
                continue
            setattr(sale, key, value)
        if "quantity" in patch or "rate" in patch:
            sale.total_amount = _line_total(sale.quantity, sale.rate)
        db.session.commit()
        return sale

    return run_with_retry(_op)


def list_sales(*, status: str | None = None, payment_status: str | None = None) -> list[Sale]:
    query = db.session.query(Sale)
    if status:
        query = query.filter(Sale.status == status)
    if payment_status:
        query = query.filter(Sale.payment_status == payment_status)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def recent_sales(limit: int = RECENT_SALES_LIMIT) -> list[Sale]:
    return (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )
