# Overview: Flask API routes for stock records; parses input and returns JSON responses.

# backend/backoffice/routes/stock.py
"""
Stock Record API Routes

WHY: Staff submit a stock sheet at every shift handover. Supervisors open
a record to see per-category differences, the stock alerts it raised,
the matching cash closing, and run the stock/cash comparison.
"""

from flask import Blueprint, request, jsonify, current_app

from ..models import StockRecord
from ..services import stock_service, alert_service, reconciliation_service
from ..services.stock_service import StockRecordError
from ..validation import (
    ModelValidationPolicy,
    STOCK_COUNT_FIELDS,
    validate_payload,
    ValidationError,
    ConflictError,
)


STOCK_RECORD_POLICY = ModelValidationPolicy(
    writable_fields={"location_id", "location_name", "date", "shift", "responsible", "notes", *STOCK_COUNT_FIELDS},
    required_on_create={"location_id", "date", "shift", "responsible"},
)

STOCK_RECORD_PATCH_POLICY = ModelValidationPolicy(
    writable_fields=set(stock_service.STOCK_RECORD_MUTABLE_FIELDS),
)

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock-records")


@stock_bp.post("")
def create_stock_record_route():
    """
    Save a stock sheet.

    Request body:
    {
        "location_id": "cabildo",
        "location_name": "Cabildo",      (optional)
        "date": "2026-10-19",
        "shift": "morning",
        "responsible": "Ana",
        "empanadas_real": 40,
        "empanadas_pos": 50,
        ...                               (<category>_real / <category>_pos)
    }
    """
    try:
        patch = validate_payload(
            model=StockRecord,
            payload=request.get_json(silent=True),
            policy=STOCK_RECORD_POLICY,
            partial=False,
        )
        record = stock_service.create_stock_record(**patch)
        return jsonify({
            "stock_record": record.to_dict(),
            "stock_alerts": [a.to_dict() for a in record.stock_alerts],
        }), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create stock record")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("")
def list_stock_records_route():
    """
    List stock records, most recent first.

    Query params: location_id, date (YYYY-MM-DD), shift, limit
    """
    try:
        records = stock_service.list_stock_records(
            location_id=request.args.get("location_id"),
            date=request.args.get("date"),
            shift=request.args.get("shift"),
            limit=request.args.get("limit", type=int),
        )
    except ValueError:
        return jsonify({"error": "date must be an ISO-8601 date (YYYY-MM-DD)"}), 400

    return jsonify({"stock_records": [r.to_dict() for r in records], "count": len(records)}), 200


@stock_bp.get("/<int:record_id>")
def get_stock_record_route(record_id: int):
    """Stock record with differences, stock alerts, matching closing and stock/cash alert."""
    try:
        record = stock_service.get_stock_record(record_id)
    except StockRecordError as e:
        return jsonify({"error": str(e)}), 404

    closing = stock_service.find_matching_closing(record)
    stock_cash_alert = (
        alert_service.find_stock_cash_alert(record.id, closing.id) if closing else None
    )

    return jsonify({
        "stock_record": record.to_dict(),
        "differences": stock_service.category_differences(record),
        "stock_alerts": [a.to_dict() for a in alert_service.list_stock_alerts(stock_record_id=record.id)],
        "cash_register_closing": closing.to_dict() if closing else None,
        "stock_cash_alert": stock_cash_alert.to_dict() if stock_cash_alert else None,
    }), 200


@stock_bp.patch("/<int:record_id>")
def update_stock_record_route(record_id: int):
    """
    Correct a stock record before it is reconciled.

    Returns:
        200: Updated
        400: Invalid request
        404: Not found
        409: Already reconciled
    """
    try:
        payload = request.get_json(silent=True) or {}
        changed_by = payload.pop("changed_by", None) if isinstance(payload, dict) else None
        patch = validate_payload(
            model=StockRecord,
            payload=payload,
            policy=STOCK_RECORD_PATCH_POLICY,
            partial=True,
        )
        record = stock_service.update_stock_record(record_id, patch, changed_by=changed_by)
        return jsonify({"stock_record": record.to_dict()}), 200

    except StockRecordError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update stock record")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.post("/<int:record_id>/compare")
def compare_stock_record_route(record_id: int):
    """
    Compare a stock record with the cash closing of the same location, date and shift.

    Returns:
        201: Discrepancy above threshold, alert created
        200: No alert created (within threshold, or the pair already has one)
        404: Stock record or matching cash closing not found
    """
    try:
        record = stock_service.get_stock_record(record_id)
    except StockRecordError as e:
        return jsonify({"error": str(e)}), 404

    closing = stock_service.find_matching_closing(record)
    if not closing:
        return jsonify({"error": "No cash closing for this location, date and shift"}), 404

    existing = alert_service.find_stock_cash_alert(record.id, closing.id)
    if existing:
        return jsonify({"alert_created": False, "stock_cash_alert": existing.to_dict()}), 200

    try:
        alert = reconciliation_service.reconcile(record.id, closing.id)
    except Exception:
        current_app.logger.exception("Failed to compare stock record %s", record_id)
        return jsonify({"error": "Internal server error"}), 500

    if alert:
        return jsonify({"alert_created": True, "stock_cash_alert": alert.to_dict()}), 201
    return jsonify({"alert_created": False, "stock_cash_alert": None}), 200
