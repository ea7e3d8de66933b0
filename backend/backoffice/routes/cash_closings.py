# Overview: Flask API routes for cash register closings; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..models import CashRegisterClosing
from ..services import cash_register_service
from ..services.cash_register_service import CashClosingError, CLOSING_MUTABLE_FIELDS
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
)


CLOSING_POLICY = ModelValidationPolicy(
    writable_fields={
        "location_id", "location_name", "date", "shift", "responsible", "notes",
        "cash_cents", "card_cents", "mobile_cents", "other_cents", "total_cents",
    },
    required_on_create={"location_id", "date", "shift", "responsible"},
)

CLOSING_PATCH_POLICY = ModelValidationPolicy(writable_fields=set(CLOSING_MUTABLE_FIELDS))

cash_closings_bp = Blueprint("cash_closings", __name__, url_prefix="/api/cash-closings")


@cash_closings_bp.post("")
def create_closing_route():
    """
    Record a cash drawer close-out.

    Request body:
    {
        "location_id": "cabildo",
        "date": "2026-10-19",
        "shift": "morning",
        "responsible": "Ana",
        "cash_cents": 1500000,
        "card_cents": 800000,
        "mobile_cents": 0,
        "other_cents": 0,
        "total_cents": 2300000    (optional, defaults to the sum)
    }
    """
    try:
        patch = validate_payload(
            model=CashRegisterClosing,
            payload=request.get_json(silent=True),
            policy=CLOSING_POLICY,
            partial=False,
        )
        closing = cash_register_service.create_closing(**patch)
        return jsonify({"cash_register_closing": closing.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create cash closing")
        return jsonify({"error": "Internal server error"}), 500


@cash_closings_bp.get("")
def list_closings_route():
    try:
        closings = cash_register_service.list_closings(
            location_id=request.args.get("location_id"),
            date=request.args.get("date"),
            shift=request.args.get("shift"),
            limit=request.args.get("limit", type=int),
        )
    except ValueError:
        return jsonify({"error": "date must be an ISO-8601 date (YYYY-MM-DD)"}), 400

    return jsonify({"cash_register_closings": [c.to_dict() for c in closings], "count": len(closings)}), 200


@cash_closings_bp.get("/<int:closing_id>")
def get_closing_route(closing_id: int):
    try:
        closing = cash_register_service.get_closing(closing_id)
    except CashClosingError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"cash_register_closing": closing.to_dict()}), 200


@cash_closings_bp.patch("/<int:closing_id>")
def update_closing_route(closing_id: int):
    try:
        patch = validate_payload(
            model=CashRegisterClosing,
            payload=request.get_json(silent=True),
            policy=CLOSING_PATCH_POLICY,
            partial=True,
        )
        closing = cash_register_service.update_closing(closing_id, patch)
        return jsonify({"cash_register_closing": closing.to_dict()}), 200

    except CashClosingError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update cash closing")
        return jsonify({"error": "Internal server error"}), 500
