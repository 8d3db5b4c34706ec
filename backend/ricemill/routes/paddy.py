# Overview: Flask API routes for paddy intake; admin only.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import RiceMillError
from ..models import PaddyIntake
from ..models.auth import ROLE_ADMIN
from ..services import godown_service
from ..units import QUALITY_GRADES, RICE_TYPES
from ..validation import ModelValidationPolicy, validate_payload

PADDY_POLICY = ModelValidationPolicy(
    writable_fields={
        "paddy_type", "quantity", "weight", "quality_grade", "moisture_percent",
        "seller_name", "seller_contact", "vehicle_number", "location", "godown_id", "date",
    },
    required_on_create={
        "paddy_type", "quantity", "weight", "quality_grade", "moisture_percent",
        "seller_name", "seller_contact", "vehicle_number", "location", "godown_id",
    },
    choices={"paddy_type": RICE_TYPES, "quality_grade": QUALITY_GRADES},
    minimums={"quantity": 0, "moisture_percent": 0},
    maximums={"moisture_percent": 100},
    positive={"weight"},
)

paddy_bp = Blueprint("paddy", __name__, url_prefix="/api/paddy")


@paddy_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_intakes_route():
    return jsonify({"paddy": [p.to_dict() for p in godown_service.list_paddy_intakes()]}), 200


@paddy_bp.get("/summary")
@require_auth
@require_role(ROLE_ADMIN)
def paddy_summary_route():
    return jsonify(godown_service.paddy_stock_summary()), 200


@paddy_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def record_intake_route():
    """
    Record a paddy inward.

    Returns:
        201: Intake recorded, godown stock increased
        400: Invalid input
        404: Godown not found
        409: Godown capacity exceeded (nothing written)
    """
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=PaddyIntake, payload=payload, policy=PADDY_POLICY, partial=False)
        intake = godown_service.record_paddy_intake(patch, user_id=g.current_user.id)
        return jsonify({"paddy": intake.to_dict(), "godown": intake.godown.to_dict()}), 201
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record paddy intake")
        return jsonify({"error": "Internal server error"}), 500
