# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/ricemill/routes/auth.py
"""
Authentication API routes

- Admins sign up and log in with email + password
- Dealers set a password once by dealer id, then log in with it
- Every login returns an opaque bearer token for the Authorization header
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import RiceMillError
from ..services import auth_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _login_response(user, status: int = 200):
    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "message": "Login successful",
    }), status


@auth_bp.post("/admin/signup")
def admin_signup_route():
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.create_admin(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
        )
        return _login_response(user, 201)
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to sign up admin")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/admin/login")
def admin_login_route():
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate_admin(email, password)
        return _login_response(user)
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to login admin")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/dealer/setup-password")
def dealer_setup_password_route():
    """
    First-time password setup. The dealer must already be registered by an
    admin and be active.
    """
    try:
        data = request.get_json(silent=True) or {}
        dealer_id = data.get("dealer_id")
        password = data.get("password")
        if not all([dealer_id, password]):
            return jsonify({"error": "dealer_id and password required"}), 400

        user = auth_service.setup_dealer_password(dealer_id, password)
        return _login_response(user, 201)
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to set up dealer password")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/dealer/login")
def dealer_login_route():
    try:
        data = request.get_json(silent=True) or {}
        dealer_id = data.get("dealer_id")
        password = data.get("password")
        if not all([dealer_id, password]):
            return jsonify({"error": "dealer_id and password required"}), 400

        user = auth_service.authenticate_dealer(dealer_id, password)
        return _login_response(user)
    except RiceMillError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to login dealer")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    body = {"user": user.to_dict()}
    if user.is_dealer and user.dealer is not None:
        body["dealer"] = user.dealer.to_dict()
    return jsonify(body), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out"}), 200
