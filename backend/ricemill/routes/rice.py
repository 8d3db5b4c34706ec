# Overview: Flask API routes for rice stock (SKU) maintenance; admin only.

"""
Rice stock routes.

Bag counts arrive as a "bags_stock" object keyed by bag size
({"5kg": 0, "10kg": 0, "25kg": 10, "75kg": 0}); every other field goes
through RICE_STOCK_POLICY. Fulfilment deductions never come through here.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import RiceMillError, ValidationError
from ..models import RiceStock
from ..models.auth import ROLE_ADMIN
from ..models.inventory import RICE_STATUSES
from ..services import stock_service
from ..units import RICE_TYPES
from ..validation import ModelValidationPolicy, validate_payload

RICE_STOCK_POLICY = ModelValidationPolicy(
    writable_fields={"rice_name", "rice_type", "quantity_kg", "godown_id", "production_date", "status"},
    required_on_create={"rice_name", "rice_type", "quantity_kg", "godown_id"},
    choices={"rice_type": RICE_TYPES, "status": RICE_STATUSES},
    minimums={"quantity_kg": 0},
)

rice_bp = Blueprint("rice", __name__, url_prefix="/api/rice")


@rice_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_stock_route():
    stock = stock_service.list_stock(
        status=request.args.get("status"),
        godown_id=request.args.get("godown_id", type=int),
    )
    return jsonify({"rice_stock": [s.to_dict() for s in stock]}), 200


@rice_bp.get("/summary")
@require_auth
@require_role(ROLE_ADMIN)
def stock_summary_route():
    return jsonify(stock_service.stock_summary()), 200


@rice_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def add_stock_route():
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=RiceStock, payload=payload, policy=RICE_STOCK_POLICY, partial=False)
        sku = stock_service.add_stock(patch, bags_stock=payload.get("bags_stock"))
        return jsonify({"rice_stock": sku.to_dict()}), 201
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add rice stock")
        return jsonify({"error": "Internal server error"}), 500


@rice_bp.get("/<int:stock_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_stock_route(stock_id: int):
    try:
        return jsonify({"rice_stock": stock_service.get_stock(stock_id).to_dict()}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status


@rice_bp.put("/<int:stock_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_stock_route(stock_id: int):
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=RiceStock, payload=payload, policy=RICE_STOCK_POLICY, partial=True)
        bags_stock = payload.get("bags_stock")
        if not patch and not bags_stock:
            raise ValidationError("No updatable fields provided")
        sku = stock_service.update_stock(stock_id, patch, bags_stock=bags_stock)
        return jsonify({"rice_stock": sku.to_dict()}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update rice stock")
        return jsonify({"error": "Internal server error"}), 500
