# backend/stockroom/routes/system.py
"""
System health endpoint: database reachability and rollup worker state.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db, rollup_queue
from ..models import Product, StockAlert
from stockroom.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with two cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        open_alert_count = db.session.query(StockAlert).filter_by(is_resolved=False).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "open_stock_alerts": open_alert_count,
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


def check_rollup_queue_health() -> dict:
    if rollup_queue.mode == "disabled":
        return {"status": "degraded", "mode": rollup_queue.mode}
    return {"status": "healthy", "mode": rollup_queue.mode}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded (rollups disabled)
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    rollup_health = check_rollup_queue_health()

    if database_health["status"] == "unhealthy":
        overall_status = "unhealthy"
        http_status = 503
    elif rollup_health["status"] == "degraded":
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "rollup_queue": rollup_health,
        }
    }, http_status
