# Overview: Flask API routes for system health and version; parses input and returns JSON responses.

"""
System health and version endpoints.

/health reports database reachability and the unit ratio table the
service is running with, since every stock quantity depends on it.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Store, User, SessionToken
from ..units import unit_ratios
from retailpos.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Count core rows; any failure marks the database unhealthy."""
    start_time = time.time()
    try:
        store_count = db.session.query(Store).count()
        user_count = db.session.query(User).count()
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "stores": store_count,
                "users": user_count,
                "active_sessions": active_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_configuration_health() -> dict:
    """Stores without users cannot receive stock; report them as degraded."""
    try:
        stores_without_users = (
            db.session.query(Store)
            .filter(~Store.users.any())
            .count()
        )
    except Exception:
        current_app.logger.exception("Configuration health check failed")
        return {"status": "unhealthy", "error": "Configuration error"}

    result = {
        "status": "healthy",
        "details": {"unit_ratios": dict(unit_ratios())},
    }
    if stores_without_users:
        result["status"] = "degraded"
        result["warning"] = f"{stores_without_users} store(s) have no users"
    return result


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    config_health = check_configuration_health()

    all_checks = [database_health, config_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "configuration": config_health,
        }
    }, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info: API version, environment, Python version."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
