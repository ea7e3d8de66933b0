# Overview: Flask API routes for alerts; feed, stock/cash alerts, stock alerts and status changes.

"""
Alert API Routes

DESIGN:
- GET /api/alerts is the generic feed every module mirrors into
- Supervisors resolve, reject or reactivate alerts through the status endpoints
- Status changes are mirrored into the feed by the service
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import alert_service
from ..services.alert_service import AlertNotFoundError, AlertStatusError, ALERT_STATUSES


alerts_bp = Blueprint("alerts", __name__, url_prefix="/api/alerts")


def _status_filter():
    status = request.args.get("status")
    if status and status not in ALERT_STATUSES:
        return None, (jsonify({"error": f"status must be one of: {', '.join(ALERT_STATUSES)}"}), 400)
    return status, None


@alerts_bp.get("")
def list_feed_route():
    status, error = _status_filter()
    if error:
        return error

    alerts = alert_service.list_feed_alerts(
        status=status,
        location_id=request.args.get("location_id"),
        alert_type=request.args.get("alert_type"),
        limit=request.args.get("limit", type=int),
    )
    return jsonify({"alerts": [a.to_dict() for a in alerts], "count": len(alerts)}), 200


@alerts_bp.get("/summary")
def summary_route():
    return jsonify(alert_service.alert_summary(location_id=request.args.get("location_id"))), 200


# =============================================================================
# STOCK / CASH ALERTS
# =============================================================================

@alerts_bp.get("/stock-cash")
def list_stock_cash_alerts_route():
    status, error = _status_filter()
    if error:
        return error

    alerts = alert_service.list_stock_cash_alerts(
        status=status,
        location_id=request.args.get("location_id"),
        limit=request.args.get("limit", type=int),
    )
    return jsonify({"stock_cash_alerts": [a.to_dict() for a in alerts], "count": len(alerts)}), 200


@alerts_bp.get("/stock-cash/<int:alert_id>")
def get_stock_cash_alert_route(alert_id: int):
    """Alert with the stock record and cash closing it was derived from."""
    try:
        alert = alert_service.get_stock_cash_alert(alert_id)
    except AlertNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({
        "stock_cash_alert": alert.to_dict(),
        "stock_record": alert.stock_record.to_dict(),
        "cash_register_closing": alert.cash_register_closing.to_dict(),
    }), 200


@alerts_bp.post("/stock-cash/<int:alert_id>/status")
def update_stock_cash_alert_status_route(alert_id: int):
    """
    Resolve, reject or reactivate a stock/cash alert.

    Request body:
    {
        "status": "resolved",          // active, resolved, rejected
        "changed_by": "Supervisor",    (optional)
        "notes": "Counted again"       (optional)
    }

    Returns:
        200: Status changed
        400: Missing status or transition not allowed
        404: Alert not found
    """
    data = request.get_json(silent=True) or {}
    new_status = data.get("status")
    if not new_status:
        return jsonify({"error": "status required"}), 400

    try:
        alert = alert_service.update_stock_cash_alert_status(
            alert_id,
            new_status,
            changed_by=data.get("changed_by"),
            notes=data.get("notes"),
        )
        return jsonify({"stock_cash_alert": alert.to_dict()}), 200

    except AlertNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AlertStatusError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update stock/cash alert status")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# STOCK ALERTS
# =============================================================================

@alerts_bp.get("/stock")
def list_stock_alerts_route():
    status, error = _status_filter()
    if error:
        return error

    alerts = alert_service.list_stock_alerts(
        status=status,
        location_id=request.args.get("location_id"),
        stock_record_id=request.args.get("stock_record_id", type=int),
        limit=request.args.get("limit", type=int),
    )
    return jsonify({"stock_alerts": [a.to_dict() for a in alerts], "count": len(alerts)}), 200


@alerts_bp.post("/stock/<int:alert_id>/status")
def update_stock_alert_status_route(alert_id: int):
    data = request.get_json(silent=True) or {}
    new_status = data.get("status")
    if not new_status:
        return jsonify({"error": "status required"}), 400

    try:
        alert = alert_service.update_stock_alert_status(
            alert_id,
            new_status,
            changed_by=data.get("changed_by"),
        )
        return jsonify({"stock_alert": alert.to_dict()}), 200

    except AlertNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AlertStatusError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update stock alert status")
        return jsonify({"error": "Internal server error"}), 500
