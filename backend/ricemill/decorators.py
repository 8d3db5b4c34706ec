# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .errors import PermissionDenied
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user")


def require_auth(f):
    """
    Resolve the bearer token and set g.current_user / g.session_token.

    Returns 401 if the Authorization header is missing or the session is
    invalid, expired, revoked or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        user = session_service.validate_session(token)
        if user is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Must be stacked under @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401
            if g.current_user.role not in roles:
                denied = PermissionDenied("Permission denied", required_role=list(roles))
                body = denied.to_dict()
                body["required_role"] = list(roles)
                return jsonify(body), denied.http_status
            return f(*args, **kwargs)

        return decorated_function

    return decorator
