# backend/backoffice/routes/system.py
"""
System health endpoint.

Checks the database and the configuration the reconciliation depends on.
"""

import os
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import StockRecord, CashRegisterClosing, StockCashAlert
from backoffice.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        stock_record_count = db.session.query(StockRecord).count()
        closing_count = db.session.query(CashRegisterClosing).count()
        alert_count = db.session.query(StockCashAlert).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "stock_records": stock_record_count,
                "cash_register_closings": closing_count,
                "stock_cash_alerts": alert_count,
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


def check_pos_export_health() -> dict:
    """
    The POS export directory is read on every reconciliation.
    A missing directory degrades reconciliation but not the rest of the API.
    """
    export_dir = current_app.config.get("POS_EXPORT_DIR")
    if export_dir and os.path.isdir(export_dir):
        return {"status": "healthy", "details": {"pos_export_dir": export_dir}}
    return {
        "status": "degraded",
        "warning": "POS export directory not found",
        "details": {"pos_export_dir": export_dir},
    }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: Healthy or degraded
    - 503: Database unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    pos_export_health = check_pos_export_health()

    all_checks = [database_health, pos_export_health]
    unhealthy_count = sum(1 for check in all_checks if check["status"] == "unhealthy")
    degraded_count = sum(1 for check in all_checks if check["status"] == "degraded")

    if unhealthy_count > 0:
        overall_status = "unhealthy"
        http_status = 503
    elif degraded_count > 0:
        overall_status = "degraded"
        http_status = 200  # Degraded is still operational
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "pos_export": pos_export_health,
        }
    }

    return response, http_status
