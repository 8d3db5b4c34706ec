# Overview: Flask API routes for dealer invoices.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import RiceMillError, ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_DEALER
from ..services import invoice_service
from ..validation import optional_text, require_amount, require_text

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_invoices_route():
    invoices = invoice_service.list_invoices(payment_status=request.args.get("payment_status"))
    return jsonify({"invoices": [i.to_dict(expand=True) for i in invoices]}), 200


@invoices_bp.get("/dealer")
@require_auth
@require_role(ROLE_DEALER)
def my_invoices_route():
    invoices = invoice_service.list_dealer_invoices(g.current_user.dealer_code)
    return jsonify({"invoices": [i.to_dict() for i in invoices]}), 200


@invoices_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_invoice_route():
    """
    Request body:
    {
        "dealer_id": "DLR0001",
        "order_id": 12,
        "amount": 5000,
        "notes": "optional"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        order_id = data.get("order_id")
        if isinstance(order_id, bool) or not isinstance(order_id, int):
            raise ValidationError("order_id must be an integer")

        invoice = invoice_service.create_invoice(
            dealer_id=require_text(data, "dealer_id"),
            order_id=order_id,
            amount=require_amount(data),
            notes=optional_text(data, "notes"),
        )
        return jsonify({"invoice": invoice.to_dict(expand=True)}), 201
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(invoice_id)
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status

    user = g.current_user
    if user.is_dealer and invoice.dealer_code != user.dealer_code:
        return jsonify({"error": f"Invoice {invoice_id} not found"}), 404
    return jsonify({"invoice": invoice.to_dict(expand=user.is_admin)}), 200
