from __future__ import annotations

from decimal import Decimal

from sqlalchemy import event

from ..extensions import db
from ..errors import InvalidState
from ..time_utils import to_utc_z
from ..units import as_number

PAYMENT_PENDING = "pending"
PAYMENT_PARTIAL = "partial"
PAYMENT_PAID = "paid"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_PARTIAL, PAYMENT_PAID)

SALE_PENDING = "pending"
SALE_DISPATCHED = "dispatched"
SALE_DELIVERED = "delivered"
SALE_STATUSES = (SALE_PENDING, SALE_DISPATCHED, SALE_DELIVERED)


def sale_payment_status(total_amount: Decimal, paid_amount: Decimal) -> str:
    """
    Three-way rule for direct sales.

    paid == 0 -> pending; 0 < paid < total -> partial; paid >= total -> paid.
    """
    if paid_amount == 0:
        return PAYMENT_PENDING
    if paid_amount < total_amount:
        return PAYMENT_PARTIAL
    return PAYMENT_PAID


def invoice_payment_status(current: str, amount: Decimal, paid_amount: Decimal) -> str:
    """
    Dealer invoice rule: paid >= amount -> paid; paid > 0 -> partial;
    otherwise the current status is kept (never resets backward).
    """
    if paid_amount >= amount:
        return PAYMENT_PAID
    if paid_amount > 0:
        return PAYMENT_PARTIAL
    return current


class Sale(db.Model):
    """
    Direct (cash-counter) rice sale.

    INVARIANT: balance_amount and payment_status are derived from
    total_amount/paid_amount on every insert and update (see listener below).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_sales_quantity_nonneg"),
        db.CheckConstraint("rate >= 0", name="ck_sales_rate_nonneg"),
        db.CheckConstraint("paid_amount >= 0", name="ck_sales_paid_nonneg"),
        db.Index("ix_sales_customer_created", "customer_name", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(128), nullable=False)
    customer_contact = db.Column(db.String(32), nullable=False)
    customer_address = db.Column(db.String(255), nullable=True)

    rice_type = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    rate = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Dispatch tracking
    vehicle_number = db.Column(db.String(32), nullable=True)
    driver_name = db.Column(db.String(128), nullable=True)
    destination = db.Column(db.String(255), nullable=True)
    dispatch_date = db.Column(db.DateTime(timezone=True), nullable=True)
    status = db.Column(db.String(16), nullable=False, default=SALE_PENDING, index=True)

    # Derived payment fields
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    balance_amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_PENDING, index=True)

    sold_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    sold_by = db.relationship("User")
    __mapper_args__ = {"version_id_col": version_id}

    def recompute_payment_fields(self) -> None:
        total = Decimal(self.total_amount or 0)
        paid = Decimal(self.paid_amount or 0)
        self.balance_amount = total - paid
        self.payment_status = sale_payment_status(total, paid)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_contact": self.customer_contact,
            "customer_address": self.customer_address,
            "rice_type": self.rice_type,
            "quantity": as_number(self.quantity),
            "rate": as_number(self.rate),
            "total_amount": as_number(self.total_amount),
            "vehicle_number": self.vehicle_number,
            "driver_name": self.driver_name,
            "destination": self.destination,
            "dispatch_date": to_utc_z(self.dispatch_date) if self.dispatch_date else None,
            "status": self.status,
            "paid_amount": as_number(self.paid_amount),
            "balance_amount": as_number(self.balance_amount),
            "payment_status": self.payment_status,
            "sold_by": self.sold_by.to_ref() if self.sold_by else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


@event.listens_for(Sale, "before_insert")
@event.listens_for(Sale, "before_update")
def _derive_sale_payment_fields(mapper, connection, target):
    target.recompute_payment_fields()


class Invoice(db.Model):
    """
    Bill raised against one dealer order.

    invoice_number (INV-0001) comes from the INVOICE identifier sequence and
    never changes after creation.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="ck_invoices_amount_nonneg"),
        db.CheckConstraint("paid_amount >= 0", name="ck_invoices_paid_nonneg"),
        db.Index("ix_invoices_dealer_created", "dealer_code", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    dealer_pk = db.Column(db.Integer, db.ForeignKey("dealers.id"), nullable=False, index=True)
    dealer_code = db.Column(db.String(16), nullable=False)
    # One invoice per order
    order_id = db.Column(db.Integer, db.ForeignKey("dealer_orders.id"), nullable=False, unique=True, index=True)

    invoice_number = db.Column(db.String(32), nullable=False, unique=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_PENDING, index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    dealer = db.relationship("Dealer", backref=db.backref("invoices", lazy=True))
    order = db.relationship("DealerOrder", backref=db.backref("invoices", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def balance_amount(self) -> Decimal:
        return Decimal(self.amount) - Decimal(self.paid_amount or 0)

    def to_dict(self, *, expand: bool = False) -> dict:
        data = {
            "id": self.id,
            "dealer_id": self.dealer_code,
            "order_id": self.order_id,
            "invoice_number": self.invoice_number,
            "amount": as_number(self.amount),
            "paid_amount": as_number(self.paid_amount),
            "balance_amount": as_number(self.balance_amount),
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if expand:
            data["dealer"] = self.dealer.to_dict() if self.dealer else None
            data["order"] = self.order.to_dict() if self.order else None
        return data


class Payment(db.Model):
    """
    Immutable settlement event against exactly one sale or one invoice.

    Written in the same transaction as the target's paid_amount update.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="ck_payments_amount_nonneg"),
        db.CheckConstraint(
            "(sale_id IS NOT NULL AND invoice_id IS NULL) OR (sale_id IS NULL AND invoice_id IS NOT NULL)",
            name="ck_payments_single_target",
        ),
        db.CheckConstraint(
            "payment_method IN ('cash', 'cheque', 'bank_transfer', 'upi', 'other')",
            name="ck_payments_method",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True, index=True)
    dealer_code = db.Column(db.String(16), nullable=True, index=True)

    customer_name = db.Column(db.String(128), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    reference_number = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    received_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("payments", lazy=True))
    invoice = db.relationship("Invoice", backref=db.backref("payments", lazy=True))
    received_by = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "invoice_id": self.invoice_id,
            "dealer_id": self.dealer_code,
            "customer_name": self.customer_name,
            "amount": as_number(self.amount),
            "payment_date": to_utc_z(self.payment_date),
            "payment_method": self.payment_method,
            "reference_number": self.reference_number,
            "notes": self.notes,
            "sale": self.sale.to_dict() if self.sale else None,
            "received_by": self.received_by.to_ref() if self.received_by else None,
            "created_at": to_utc_z(self.created_at),
        }


@event.listens_for(Payment, "before_update")
def _payments_are_append_only(mapper, connection, target):
    raise InvalidState("Payments are immutable once recorded", payment_id=target.id)


class IdentifierSequence(db.Model):
    """
    Atomic counters for human-readable identifiers (DLR0001, INV-0001).

    Replaces count-then-format numbering, which hands out duplicates under
    concurrent creation.
    """
    __tablename__ = "identifier_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
