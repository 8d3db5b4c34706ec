# Overview: Flask API routes for dealer orders; parses input and returns JSON responses.

# backend/ricemill/routes/dealer_orders.py
"""
Dealer Order API Routes

DESIGN:
- Dealers place and read their own orders (dealer id comes from the session)
- Admins list every order, approve (deducts stock) and move status forward
- Business errors map to their status code: 400 validation, 403 inactive
  dealer, 404 missing order/SKU, 409 wrong state or insufficient stock
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import RiceMillError, ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_DEALER
from ..services import order_service
from ..time_utils import parse_iso_datetime

dealer_orders_bp = Blueprint("dealer_orders", __name__, url_prefix="/api/dealer-orders")


def _date_arg(name: str, *, end_of_day: bool = False):
    raw = request.args.get(name)
    try:
        return parse_iso_datetime(raw, end_of_day=end_of_day)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")


# =============================================================================
# DEALER SIDE
# =============================================================================

@dealer_orders_bp.post("/dealer")
@require_auth
@require_role(ROLE_DEALER)
def place_order_route():
    """
    Request body:
    {
        "rice_type": "Basmati",
        "brand": "Royal",
        "bag_size": "25kg",
        "quantity_bags": 4
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.place_order(
            dealer_id=g.current_user.dealer_code,
            rice_type=data.get("rice_type"),
            brand=data.get("brand"),
            bag_size=data.get("bag_size"),
            quantity_bags=data.get("quantity_bags"),
            user_id=g.current_user.id,
        )
        return jsonify({"order": order.to_dict()}), 201
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500


@dealer_orders_bp.get("/dealer")
@require_auth
@require_role(ROLE_DEALER)
def my_orders_route():
    orders = order_service.list_orders(dealer_id=g.current_user.dealer_code)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@dealer_orders_bp.get("/dealer/analytics")
@require_auth
@require_role(ROLE_DEALER)
def my_analytics_route():
    return jsonify(order_service.dealer_analytics(g.current_user.dealer_code)), 200


# =============================================================================
# ADMIN SIDE
# =============================================================================

@dealer_orders_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_orders_route():
    """
    Query params:
    - status: one or more (comma separated)
    - dealer_id: DLR####
    - start, end: ISO-8601, inclusive, on created_at (a bare date as end covers that day)
    """
    try:
        status = request.args.get("status")
        statuses = [s.strip() for s in status.split(",") if s.strip()] if status else None
        orders = order_service.list_orders(
            dealer_id=request.args.get("dealer_id"),
            statuses=statuses,
            start=_date_arg("start"),
            end=_date_arg("end", end_of_day=True),
        )
        return jsonify({"orders": [o.to_dict(expand=True) for o in orders]}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status


@dealer_orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    """Admins see any order; dealers only their own."""
    try:
        order = order_service.get_order(order_id)
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status

    user = g.current_user
    if user.is_dealer and order.dealer_code != user.dealer_code:
        return jsonify({"error": f"Order {order_id} not found"}), 404
    return jsonify({"order": order.to_dict(expand=user.is_admin)}), 200


@dealer_orders_bp.post("/<int:order_id>/approve")
@require_auth
@require_role(ROLE_ADMIN)
def approve_order_route(order_id: int):
    try:
        order = order_service.approve_order(order_id, approved_by_user_id=g.current_user.id)
        return jsonify({"order": order.to_dict(expand=True)}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to approve order")
        return jsonify({"error": "Internal server error"}), 500


@dealer_orders_bp.post("/<int:order_id>/status")
@require_auth
@require_role(ROLE_ADMIN)
def set_order_status_route(order_id: int):
    """
    Request body: {"status": "rejected" | "dispatched" | "delivered"}

    Approval goes through /approve, never through this endpoint.
    """
    try:
        data = request.get_json(silent=True) or {}
        status = data.get("status")
        if not status:
            return jsonify({"error": "status required"}), 400
        order = order_service.set_order_status(order_id, status, user_id=g.current_user.id)
        return jsonify({"order": order.to_dict(expand=True)}), 200
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500
