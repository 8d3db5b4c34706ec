# Overview: Flask API routes for godowns; admin only.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import RiceMillError, ValidationError
from ..models import Godown
from ..models.auth import ROLE_ADMIN
from ..services import godown_service
from ..units import STOCK_TYPES
from ..validation import ModelValidationPolicy, validate_payload

GODOWN_POLICY = ModelValidationPolicy(
    writable_fields={"name", "location", "capacity", "current_stock", "stock_type", "is_active"},
    required_on_create={"name", "location", "capacity"},
    choices={"stock_type": STOCK_TYPES},
    minimums={"capacity": 0, "current_stock": 0},
)

godowns_bp = Blueprint("godowns", __name__, url_prefix="/api/godowns")


@godowns_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_godowns_route():
    return jsonify({"godowns": [gd.to_dict() for gd in godown_service.list_godowns()]}), 200


@godowns_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_godown_route():
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=Godown, payload=payload, policy=GODOWN_POLICY, partial=False)
        godown = godown_service.create_godown(patch)
        return jsonify({"godown": godown.to_dict()}), 201
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create godown")
        return jsonify({"error": "Internal server error"}), 500


@godowns_bp.get("/<int:godown_id>")
@require_auth
@require_role(ROLE_ADMIN)
def godown_details_route(godown_id: int):
    try:
        return jsonify(godown_service.godown_details(godown_id)), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status


@godowns_bp.put("/<int:godown_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_godown_route(godown_id: int):
    """current_stock is ignored here; it only moves through paddy intake."""
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=Godown, payload=payload, policy=GODOWN_POLICY, partial=True)
        patch.pop("current_stock", None)
        if not patch:
            raise ValidationError("No updatable fields provided")
        godown = godown_service.update_godown(godown_id, patch)
        return jsonify({"godown": godown.to_dict()}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update godown")
        return jsonify({"error": "Internal server error"}), 500
