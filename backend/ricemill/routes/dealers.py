# Overview: Flask API routes for the dealer registry; admin only.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import RiceMillError, ValidationError
from ..models import Dealer
from ..models.auth import ROLE_ADMIN
from ..models.dealers import DEALER_STATUSES
from ..services import dealer_service
from ..validation import ModelValidationPolicy, validate_payload

DEALER_POLICY = ModelValidationPolicy(
    writable_fields={"dealer_name", "business_name", "contact_number", "location", "gst_number", "status"},
    required_on_create={"dealer_name", "business_name", "contact_number", "location"},
    choices={"status": DEALER_STATUSES},
)

dealers_bp = Blueprint("dealers", __name__, url_prefix="/api/dealers")


@dealers_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_dealers_route():
    """Query params: status (active | inactive, optional)"""
    status = request.args.get("status")
    if status and status not in DEALER_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(DEALER_STATUSES)}"}), 400
    dealers = dealer_service.list_dealers(status=status)
    return jsonify({"dealers": [d.to_dict() for d in dealers]}), 200


@dealers_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_dealer_route():
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=Dealer, payload=payload, policy=DEALER_POLICY, partial=False)
        dealer = dealer_service.create_dealer(patch)
        return jsonify({"dealer": dealer.to_dict()}), 201
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create dealer")
        return jsonify({"error": "Internal server error"}), 500


@dealers_bp.get("/<int:dealer_pk>")
@require_auth
@require_role(ROLE_ADMIN)
def dealer_overview_route(dealer_pk: int):
    """Dealer with its 50 most recent orders and invoices."""
    try:
        return jsonify(dealer_service.dealer_overview(dealer_pk)), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status


@dealers_bp.put("/<int:dealer_pk>")
@require_auth
@require_role(ROLE_ADMIN)
def update_dealer_route(dealer_pk: int):
    try:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=Dealer, payload=payload, policy=DEALER_POLICY, partial=True)
        if not patch:
            raise ValidationError("No updatable fields provided")
        dealer = dealer_service.update_dealer(dealer_pk, patch)
        return jsonify({"dealer": dealer.to_dict()}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update dealer")
        return jsonify({"error": "Internal server error"}), 500


@dealers_bp.delete("/<int:dealer_pk>")
@require_auth
@require_role(ROLE_ADMIN)
def disable_dealer_route(dealer_pk: int):
    """Soft delete: the dealer is marked inactive and kept for history."""
    try:
        dealer = dealer_service.disable_dealer(dealer_pk)
        return jsonify({"dealer": dealer.to_dict(), "message": "Dealer disabled"}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to disable dealer")
        return jsonify({"error": "Internal server error"}), 500
