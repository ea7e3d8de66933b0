# Overview: Flask API routes for stock/cash reconciliation and POS sales data.

from flask import Blueprint, request, jsonify, current_app

from ..services import reconciliation_service, sales_data_service
from ..time_utils import parse_iso_date


reconciliation_bp = Blueprint("reconciliation", __name__, url_prefix="/api/reconciliation")


@reconciliation_bp.post("/compare")
def compare_route():
    """
    Compare one stock record with one cash closing.

    Request body:
    {
        "stock_record_id": 1,
        "cash_register_closing_id": 1
    }

    Returns:
        201: Discrepancy above threshold, alert created
        200: No alert (within threshold, rows missing, no sales data, or already alerted)
        400: Invalid request
    """
    data = request.get_json(silent=True) or {}

    stock_record_id = data.get("stock_record_id")
    cash_register_closing_id = data.get("cash_register_closing_id")
    ids = (stock_record_id, cash_register_closing_id)
    if any(not isinstance(v, int) or isinstance(v, bool) for v in ids):
        return jsonify({"error": "stock_record_id and cash_register_closing_id required"}), 400

    try:
        alert = reconciliation_service.reconcile(stock_record_id, cash_register_closing_id)
    except Exception:
        current_app.logger.exception("Failed to run stock/cash comparison")
        return jsonify({"error": "Internal server error"}), 500

    if alert:
        return jsonify({"alert_created": True, "stock_cash_alert": alert.to_dict()}), 201
    return jsonify({"alert_created": False, "stock_cash_alert": None}), 200


@reconciliation_bp.post("/run-pending")
def run_pending_route():
    """
    Reconcile the most recent stock records that have a cash closing.

    Request body (optional):
    {
        "limit": 10
    }
    """
    data = request.get_json(silent=True) or {}
    limit = data.get("limit")
    if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0):
        return jsonify({"error": "limit must be a positive integer"}), 400

    try:
        created = reconciliation_service.run_pending_comparisons(limit=limit)
    except Exception:
        current_app.logger.exception("Failed to run pending comparisons")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "alerts_created": len(created),
        "stock_cash_alerts": [a.to_dict() for a in created],
    }), 200


@reconciliation_bp.get("/sales-data")
def sales_data_route():
    """
    Processed POS sales for one location and day.

    Query params: location_id, date (YYYY-MM-DD)

    Returns:
        200: Per-category quantities and revenue
        400: Missing or malformed parameters
        404: No sales data for that location and day
    """
    location_id = request.args.get("location_id")
    day = request.args.get("date")
    if not location_id or not day:
        return jsonify({"error": "location_id and date required"}), 400

    try:
        day = parse_iso_date(day)
        if day is None:
            raise ValueError(day)
    except ValueError:
        return jsonify({"error": "date must be an ISO-8601 date (YYYY-MM-DD)"}), 400

    sales_data = sales_data_service.fetch_sales_data(day, location_id)
    if sales_data is None:
        return jsonify({"error": "No sales data for this location and date"}), 404

    return jsonify({"sales_data": sales_data.to_dict()}), 200
