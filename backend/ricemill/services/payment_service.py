# Overview: Service-layer operations for payments; applies settlements to sales and invoices.

"""
Invoice & Payment Reconciliation

DESIGN PRINCIPLES:
- A payment targets exactly one Sale or one Invoice
- The Payment row and the target's paid_amount update commit together
- Payment status is always derived, never set by callers
- Payments are immutable once recorded
- No over-payment cap: any amount >= 0 is accepted
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import case, func

from ..extensions import db
from ..errors import NotFound, ValidationError
from ..models import Invoice, Payment, Sale
from ..models.billing import (
    PAYMENT_PAID,
    PAYMENT_PARTIAL,
    PAYMENT_PENDING,
    invoice_payment_status,
)
from ..time_utils import to_utc_z, utcnow
from ..units import PAYMENT_METHODS, as_number
from .concurrency import lock_for_update, run_with_retry

log = logging.getLogger(__name__)

DEFAULT_METHOD = "cash"


def _apply_to_sale(sale_id: int, amount: Decimal) -> Sale:
    sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
    if sale is None:
        raise NotFound(f"Sale {sale_id} not found", sale_id=sale_id)
    sale.paid_amount = Decimal(sale.paid_amount or 0) + amount
    # Also enforced by the before_update listener; set here so the caller sees it pre-flush
    sale.recompute_payment_fields()
    return sale


def _apply_to_invoice(invoice_id: int, amount: Decimal) -> Invoice:
    invoice = lock_for_update(db.session.query(Invoice).filter_by(id=invoice_id)).first()
    if invoice is None:
        raise NotFound(f"Invoice {invoice_id} not found", invoice_id=invoice_id)
    invoice.paid_amount = Decimal(invoice.paid_amount or 0) + amount
    invoice.payment_status = invoice_payment_status(
        invoice.payment_status, Decimal(invoice.amount), invoice.paid_amount
    )
    return invoice


def record_payment(
    *,
    amount: Decimal,
    customer_name: str,
    user_id: int,
    sale_id: int | None = None,
    invoice_id: int | None = None,
    payment_method: str | None = None,
    reference_number: str | None = None,
    notes: str | None = None,
    payment_date=None,
) -> Payment:
    """
    Record one settlement against a sale XOR an invoice.

    Raises:
        ValidationError: neither or both targets, negative amount, bad method
        NotFound: target does not exist
    """
    if (sale_id is None) == (invoice_id is None):
        raise ValidationError("Exactly one of sale_id or invoice_id is required")
    amount = Decimal(amount)
    if amount < 0:
        raise ValidationError("amount must be at least 0")
    if not customer_name or not customer_name.strip():
        raise ValidationError("customer_name is required")
    method = payment_method or DEFAULT_METHOD
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    def _op():
        dealer_code = None
        if sale_id is not None:
            target = _apply_to_sale(sale_id, amount)
        else:
            target = _apply_to_invoice(invoice_id, amount)
            dealer_code = target.dealer_code

        payment = Payment(
            sale_id=sale_id,
            invoice_id=invoice_id,
            dealer_code=dealer_code,
            customer_name=customer_name.strip(),
            amount=amount,
            payment_date=payment_date or utcnow(),
            payment_method=method,
            reference_number=reference_number,
            notes=notes,
            received_by_user_id=user_id,
        )
        db.session.add(payment)
        db.session.commit()
        log.info(
            "Payment %s of %s applied to %s %s (paid %s, status %s)",
            payment.id, amount,
            "sale" if sale_id is not None else "invoice",
            target.id, target.paid_amount, target.payment_status,
        )
        return payment

    return run_with_retry(_op)


def list_payments(*, sale_id: int | None = None, invoice_id: int | None = None) -> list[Payment]:
    query = db.session.query(Payment)
    if sale_id is not None:
        query = query.filter(Payment.sale_id == sale_id)
    if invoice_id is not None:
        query = query.filter(Payment.invoice_id == invoice_id)
    return query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


def payment_summary() -> dict:
    """Receivable / received / pending totals and status counts over direct sales."""
    row = db.session.query(
        func.coalesce(func.sum(Sale.total_amount), 0),
        func.coalesce(func.sum(Sale.paid_amount), 0),
        func.coalesce(func.sum(Sale.balance_amount), 0),
        func.coalesce(func.sum(case((Sale.payment_status == PAYMENT_PAID, 1), else_=0)), 0),
        func.coalesce(func.sum(case((Sale.payment_status == PAYMENT_PARTIAL, 1), else_=0)), 0),
        func.coalesce(func.sum(case((Sale.payment_status == PAYMENT_PENDING, 1), else_=0)), 0),
    ).one()
    receivable, received, pending, paid_count, partial_count, pending_count = row
    return {
        "total_receivable": float(receivable),
        "total_received": float(received),
        "total_pending": float(pending),
        "paid_count": int(paid_count),
        "partial_count": int(partial_count),
        "pending_count": int(pending_count),
    }


def customer_ledger() -> list[dict]:
    """One row per sale, grouped by customer and newest first within each."""
    sales = (
        db.session.query(Sale)
        .order_by(Sale.customer_name, Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    return [
        {
            "sale_id": s.id,
            "customer_name": s.customer_name,
            "customer_contact": s.customer_contact,
            "rice_type": s.rice_type,
            "total_amount": as_number(s.total_amount),
            "paid_amount": as_number(s.paid_amount),
            "balance_amount": as_number(s.balance_amount),
            "payment_status": s.payment_status,
            "date": to_utc_z(s.created_at),
        }
        for s in sales
    ]
