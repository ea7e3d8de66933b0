from __future__ import annotations
from datetime import date, datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from backoffice.models.stock import SHIFTS, TRACKED_CATEGORIES
from backoffice.time_utils import parse_iso_date


# Maximum amount: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical amounts
MAX_AMOUNT_CENTS = 999_999_999

STOCK_COUNT_FIELDS = frozenset(
    f"{category}_{kind}" for category in TRACKED_CATEGORIES for kind in ("real", "pos")
)

CASH_CHANNEL_FIELDS = ("cash_cents", "card_cents", "mobile_cents", "other_cents")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., editing a reconciled record)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Business dates (accept YYYY-MM-DD)
    if isinstance(coltype, Date):
        if isinstance(value, (date, datetime)):
            return parse_iso_date(value)
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _enforce_shift(patch: dict) -> None:
    if "shift" in patch and patch["shift"] not in SHIFTS:
        raise ValidationError(f"shift must be one of: {', '.join(SHIFTS)}")


def _enforce_required_text(patch: dict, *fields: str) -> None:
    for field in fields:
        if field in patch and not (patch[field] or "").strip():
            raise ValidationError(f"{field} is required")


def enforce_rules_stock_record(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _enforce_shift(patch)
    _enforce_required_text(patch, "location_id", "responsible")

    for field in STOCK_COUNT_FIELDS:
        if field in patch and patch[field] is not None:
            qty = patch[field]
            if not isinstance(qty, int) or isinstance(qty, bool):
                raise ValidationError(f"{field} must be an integer")
            if qty < 0:
                raise ValidationError(f"{field} must be >= 0")


def enforce_rules_cash_closing(patch: dict) -> None:
    _enforce_shift(patch)
    _enforce_required_text(patch, "location_id", "responsible")

    for field in (*CASH_CHANNEL_FIELDS, "total_cents"):
        if field in patch and patch[field] is not None:
            amount = patch[field]
            if not isinstance(amount, int) or isinstance(amount, bool):
                raise ValidationError(f"{field} must be an integer")
            if amount < 0:
                raise ValidationError(f"{field} must be >= 0")
            if amount > MAX_AMOUNT_CENTS:
                raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS} (${MAX_AMOUNT_CENTS / 100:,.2f})")
