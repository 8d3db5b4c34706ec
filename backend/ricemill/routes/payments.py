# Overview: Flask API routes for payments operations; parses input and returns JSON responses.

# backend/ricemill/routes/payments.py
"""
Payment API Routes

DESIGN:
- One payment settles exactly one sale or one invoice
- The target's paid amount and payment status update atomically with it
- Summary and customer ledger are read-only rollups over direct sales
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import RiceMillError, ValidationError
from ..models.auth import ROLE_ADMIN
from ..services import payment_service
from ..time_utils import parse_iso_datetime
from ..validation import optional_text, require_amount, require_text

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _optional_id(data: dict, key: str) -> int | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    return value


@payments_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_payments_route():
    payments = payment_service.list_payments(
        sale_id=request.args.get("sale_id", type=int),
        invoice_id=request.args.get("invoice_id", type=int),
    )
    return jsonify({"payments": [p.to_dict() for p in payments]}), 200


@payments_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def record_payment_route():
    """
    Record a payment.

    Request body:
    {
        "sale_id": 3,              (exactly one of sale_id / invoice_id)
        "invoice_id": null,
        "amount": 2000,
        "customer_name": "Ravi Traders",
        "payment_method": "cash",  (cash, cheque, bank_transfer, upi, other)
        "reference_number": "optional",
        "notes": "optional",
        "payment_date": "optional ISO-8601"
    }

    Returns:
        201: Payment recorded
        400: Neither or both targets, bad amount or method
        404: Target not found
    """
    try:
        data = request.get_json(silent=True) or {}

        raw_date = data.get("payment_date")
        try:
            payment_date = parse_iso_datetime(raw_date) if isinstance(raw_date, str) else None
        except ValueError:
            raise ValidationError("payment_date must be an ISO-8601 datetime")

        payment = payment_service.record_payment(
            sale_id=_optional_id(data, "sale_id"),
            invoice_id=_optional_id(data, "invoice_id"),
            amount=require_amount(data),
            customer_name=require_text(data, "customer_name"),
            payment_method=optional_text(data, "payment_method"),
            reference_number=optional_text(data, "reference_number"),
            notes=optional_text(data, "notes"),
            payment_date=payment_date,
            user_id=g.current_user.id,
        )
        body = {"payment": payment.to_dict()}
        if payment.invoice is not None:
            body["invoice"] = payment.invoice.to_dict()
        return jsonify(body), 201
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/summary")
@require_auth
@require_role(ROLE_ADMIN)
def payment_summary_route():
    return jsonify(payment_service.payment_summary()), 200


@payments_bp.get("/ledger")
@require_auth
@require_role(ROLE_ADMIN)
def customer_ledger_route():
    return jsonify({"ledger": payment_service.customer_ledger()}), 200
