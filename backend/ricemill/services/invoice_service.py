# Overview: Service-layer operations for dealer invoices.

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import Conflict, NotFound, ValidationError
from ..models import DealerOrder, Invoice
from ..models.billing import PAYMENT_PENDING
from ..units import MONEY_QUANT
from .concurrency import run_with_retry
from .dealer_service import get_dealer_by_code
from .sequence_service import INVOICE_SEQUENCE, next_identifier

log = logging.getLogger(__name__)


def create_invoice(
    *,
    dealer_id: str,
    order_id: int,
    amount: Decimal,
    notes: str | None = None,
) -> Invoice:
    """
    Raise an invoice for a dealer order.

    The order is priced at invoice time: its total_amount becomes the invoice
    amount and rate_per_kg is derived from its frozen total_quantity_kg. An
    order carries at most one invoice, so its price is written once. The
    order's status is not checked.

    Raises:
        ValidationError: negative amount
        NotFound: unknown dealer or order
        Conflict: order already invoiced, or invoice number collision
    """
    amount = Decimal(amount)
    if amount < 0:
        raise ValidationError("amount must be at least 0")

    def _op():
        invoice_number = next_identifier(INVOICE_SEQUENCE)

        dealer = get_dealer_by_code(dealer_id)
        order = db.session.get(DealerOrder, order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found", order_id=order_id)

        existing = db.session.query(Invoice.invoice_number).filter_by(order_id=order.id).scalar()
        if existing is not None:
            raise Conflict(
                f"Order {order.id} is already invoiced as {existing}",
                order_id=order.id, invoice_number=existing,
            )

        kg = Decimal(order.total_quantity_kg or 0)
        order.total_amount = amount
        if kg > 0:
            order.rate_per_kg = (amount / kg).quantize(MONEY_QUANT)

        invoice = Invoice(
            dealer_pk=dealer.id,
            dealer_code=dealer.dealer_id,
            order_id=order.id,
            invoice_number=invoice_number,
            amount=amount,
            paid_amount=Decimal("0"),
            payment_status=PAYMENT_PENDING,
            notes=notes,
        )
        db.session.add(invoice)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("Invoice already exists for this order or number", order_id=order_id, invoice_number=invoice_number)
        log.info(
            "Invoice %s raised for %s order %s: %s",
            invoice.invoice_number, dealer.dealer_id, order.id, amount,
        )
        return invoice

    return run_with_retry(_op)


def get_invoice(invoice_id: int) -> Invoice:
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFound(f"Invoice {invoice_id} not found", invoice_id=invoice_id)
    return invoice


def list_invoices(*, payment_status: str | None = None) -> list[Invoice]:
    query = db.session.query(Invoice)
    if payment_status:
        query = query.filter(Invoice.payment_status == payment_status)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def list_dealer_invoices(dealer_id: str) -> list[Invoice]:
    return (
        db.session.query(Invoice)
        .filter(Invoice.dealer_code == dealer_id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .all()
    )
