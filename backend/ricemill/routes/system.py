# backend/ricemill/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import Dealer, DealerOrder, SessionToken
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        details = {
            "dealers": db.session.query(Dealer).count(),
            "dealer_orders": db.session.query(DealerOrder).count(),
            "active_sessions": db.session.query(SessionToken).filter_by(is_revoked=False).count(),
        }
        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "details": details,
        }
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unavailable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"
    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }
    return response, 200 if healthy else 503


@system_bp.get("/version")
def version():
    env = "production" if not current_app.debug else "development"
    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
