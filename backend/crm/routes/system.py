# backend/crm/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from crm.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Round-trip the database and report pool occupancy.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1")).scalar()
        elapsed_ms = (time.time() - start_time) * 1000

        details = {"dialect": db.engine.dialect.name}
        pool = db.engine.pool
        # QueuePool only; SQLite's pools don't track checkouts
        if hasattr(pool, "checkedout"):
            details.update({
                "pool_size": pool.size(),
                "checked_out": pool.checkedout(),
                "idle": pool.checkedin(),
                "overflow": pool.overflow(),
            })

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    response = {
        "status": "ok" if healthy else "error",
        "database": "connected" if healthy else "disconnected",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }
    return response, 200 if healthy else 503


@system_bp.get("/version")
def version():
    env = current_app.config.get("APP_ENV", "development")
    return {
        "api_version": "1.0.0",
        "backup_format_version": current_app.config.get("BACKUP_FORMAT_VERSION"),
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
