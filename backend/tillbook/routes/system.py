# backend/tillbook/routes/system.py
"""
System health endpoint.

Checks database connectivity and reports the size of each store.
"""

import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import AuditLogEntry, InventoryItem, Layaway, TimePunch
from ..services.sales_service import CATALOG_KEY
from tillbook.time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "inventory_items": db.session.query(InventoryItem).count(),
            "layaways": db.session.query(Layaway).count(),
            "log_entries": db.session.query(AuditLogEntry).count(),
            "time_punches": db.session.query(TimePunch).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
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
    Health check endpoint.

    Returns:
    - 200: database reachable
    - 503: database unhealthy
    """
    database_health = check_database_health()
    catalog = current_app.extensions.get(CATALOG_KEY)

    healthy = database_health["status"] == "healthy"
    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {
            "database": database_health,
            "catalog": {"status": "healthy", "items": len(catalog) if catalog else 0},
        },
    }
    return response, 200 if healthy else 503
