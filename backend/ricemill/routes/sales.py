# Overview: Flask API routes for direct sales; admin only.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import RiceMillError, ValidationError
from ..models import Sale
from ..models.auth import ROLE_ADMIN
from ..models.billing import SALE_STATUSES
from ..services import sales_service
from ..validation import ModelValidationPolicy, validate_payload

SALE_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_name", "customer_contact", "customer_address",
        "rice_type", "quantity", "rate",
        "vehicle_number", "driver_name", "destination", "dispatch_date", "status",
    },
    required_on_create={"customer_name", "customer_contact", "rice_type", "quantity", "rate"},
    choices={"status": SALE_STATUSES},
    minimums={"quantity": 0, "rate": 0},
)

MAX_RECENT = 100

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_sales_route():
    sales = sales_service.list_sales(
        status=request.args.get("status"),
        payment_status=request.args.get("payment_status"),
    )
    return jsonify({"sales": [s.to_dict() for s in sales]}), 200


@sales_bp.get("/recent")
@require_auth
@require_role(ROLE_ADMIN)
def recent_sales_route():
    limit = request.args.get("limit", default=sales_service.RECENT_SALES_LIMIT, type=int)
    limit = max(1, min(limit, MAX_RECENT))
    return jsonify({"sales": [s.to_dict() for s in sales_service.recent_sales(limit)]}), 200


@sales_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_sale_route():
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
        sale = sales_service.create_sale(patch, user_id=g.current_user.id)
        return jsonify({"sale": sale.to_dict()}), 201
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_sale_route(sale_id: int):
    try:
        return jsonify({"sale": sales_service.get_sale(sale_id).to_dict()}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status


@sales_bp.put("/<int:sale_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_sale_route(sale_id: int):
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=True)
        if not patch:
            raise ValidationError("No updatable fields provided")
        sale = sales_service.update_sale(sale_id, patch)
        return jsonify({"sale": sale.to_dict()}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error"}), 500
