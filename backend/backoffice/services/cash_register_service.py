"""
Cash Register Closing Service

WHY: Each shift ends with a cash drawer close-out: what was collected per
payment channel and in total. The total is the "actual amount" compared
against sales and stock by the reconciliation.

DESIGN PRINCIPLES:
- All amounts in cents, never negative
- total_cents defaults to the sum of the payment channels
- Closings are immutable once reconciled
"""

from flask import current_app

from ..extensions import db
from ..models import CashRegisterClosing, StockCashAlert
from backoffice.time_utils import parse_iso_date
from ..validation import (
    CASH_CHANNEL_FIELDS,
    ConflictError,
    ValidationError,
    enforce_rules_cash_closing,
)


CLOSING_MUTABLE_FIELDS = {"responsible", "notes", "total_cents", *CASH_CHANNEL_FIELDS}


class CashClosingError(Exception):
    """Raised when a cash closing does not exist."""
    pass


def get_closing(closing_id: int) -> CashRegisterClosing:
    closing = db.session.get(CashRegisterClosing, closing_id)
    if not closing:
        raise CashClosingError(f"Cash closing {closing_id} not found")
    return closing


def find_closing_for(location_id: str, date, shift: str) -> CashRegisterClosing | None:
    """First closing recorded for a location, date and shift."""
    return db.session.query(CashRegisterClosing).filter_by(
        location_id=location_id,
        date=parse_iso_date(date),
        shift=shift,
    ).order_by(CashRegisterClosing.id.asc()).first()


def list_closings(
    location_id: str | None = None,
    date=None,
    shift: str | None = None,
    limit: int | None = None,
) -> list[CashRegisterClosing]:
    query = db.session.query(CashRegisterClosing)
    if location_id:
        query = query.filter(CashRegisterClosing.location_id == location_id)
    if date:
        query = query.filter(CashRegisterClosing.date == parse_iso_date(date))
    if shift:
        query = query.filter(CashRegisterClosing.shift == shift)
    query = query.order_by(CashRegisterClosing.date.desc(), CashRegisterClosing.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def is_reconciled(closing_id: int) -> bool:
    return db.session.query(StockCashAlert.id).filter_by(
        cash_register_closing_id=closing_id
    ).first() is not None


def create_closing(
    *,
    location_id: str,
    date,
    shift: str,
    responsible: str,
    location_name: str | None = None,
    cash_cents: int = 0,
    card_cents: int = 0,
    mobile_cents: int = 0,
    other_cents: int = 0,
    total_cents: int | None = None,
    notes: str | None = None,
) -> CashRegisterClosing:
    """
    Record a shift's cash drawer close-out.

    Args:
        location_id: Location code
        date: Business date (date or "YYYY-MM-DD")
        shift: "morning" or "afternoon"
        responsible: Cashier closing the drawer
        cash_cents, card_cents, mobile_cents, other_cents: Amounts per channel
        total_cents: Collected total; defaults to the sum of the channels

    Raises:
        ValidationError: If any field is invalid
    """
    try:
        business_date = parse_iso_date(date)
    except ValueError:
        raise ValidationError("date must be an ISO-8601 date (YYYY-MM-DD)")
    if business_date is None:
        raise ValidationError("date is required")

    patch = {
        "location_id": location_id,
        "shift": shift,
        "responsible": responsible,
        "cash_cents": cash_cents or 0,
        "card_cents": card_cents or 0,
        "mobile_cents": mobile_cents or 0,
        "other_cents": other_cents or 0,
        "total_cents": total_cents,
    }
    enforce_rules_cash_closing(patch)

    if total_cents is None:
        total_cents = sum(patch[field] for field in CASH_CHANNEL_FIELDS)

    closing = CashRegisterClosing(
        location_id=location_id.strip(),
        location_name=(location_name or location_id).strip(),
        date=business_date,
        shift=shift,
        responsible=responsible.strip(),
        cash_cents=patch["cash_cents"],
        card_cents=patch["card_cents"],
        mobile_cents=patch["mobile_cents"],
        other_cents=patch["other_cents"],
        total_cents=total_cents,
        notes=notes,
    )

    db.session.add(closing)
    db.session.commit()

    current_app.logger.info(
        "Cash closing %s saved for %s %s (%s): total %s cents",
        closing.id, closing.location_id, closing.date, closing.shift, closing.total_cents,
    )
    return closing


def update_closing(closing_id: int, patch: dict) -> CashRegisterClosing:
    """
    Correct a closing that has not been reconciled yet.

    When channel amounts change and no total is given, the total is
    recomputed from the channels.

    Raises:
        CashClosingError: If the closing does not exist
        ConflictError: If the closing is already reconciled
        ValidationError: If the patch is invalid
    """
    closing = get_closing(closing_id)
    if is_reconciled(closing.id):
        raise ConflictError(f"Cash closing {closing.id} is already reconciled and cannot be changed")

    disallowed = set(patch) - CLOSING_MUTABLE_FIELDS
    if disallowed:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(disallowed))}")
    enforce_rules_cash_closing(patch)

    for field, value in patch.items():
        setattr(closing, field, value)

    if "total_cents" not in patch and any(field in patch for field in CASH_CHANNEL_FIELDS):
        closing.total_cents = sum(getattr(closing, field) or 0 for field in CASH_CHANNEL_FIELDS)

    db.session.commit()
    return closing
