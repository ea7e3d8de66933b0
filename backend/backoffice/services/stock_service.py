# backend/backoffice/services/stock_service.py
"""
Stock record service.

WHY: At every shift handover staff count the shelf and copy the POS
figures next to each count. Differences per category become stock
alerts; the record as a whole feeds the stock/cash reconciliation.

RULES:
- shift is "morning" or "afternoon"
- counts are non-negative integers
- a record referenced by a stock/cash alert is immutable
"""
from __future__ import annotations

from flask import current_app

from backoffice.extensions import db
from backoffice.models import StockRecord, StockAlert, StockCashAlert, CashRegisterClosing
from backoffice.models.alerts import ALERT_STATUS_ACTIVE, ALERT_STATUS_REJECTED
from backoffice.services import alert_service
from backoffice.services.cash_register_service import find_closing_for
from backoffice.time_utils import parse_iso_date, utcnow
from backoffice.validation import (
    ConflictError,
    STOCK_COUNT_FIELDS,
    ValidationError,
    enforce_rules_stock_record,
)


STOCK_ALERT_SHORTAGE = "shortage"
STOCK_ALERT_SURPLUS = "surplus"

STOCK_RECORD_MUTABLE_FIELDS = {"responsible", "notes"} | STOCK_COUNT_FIELDS


class StockRecordError(Exception):
    """Raised when a stock record does not exist."""
    pass


def get_stock_record(record_id: int) -> StockRecord:
    record = db.session.get(StockRecord, record_id)
    if not record:
        raise StockRecordError(f"Stock record {record_id} not found")
    return record


def list_stock_records(
    location_id: str | None = None,
    date=None,
    shift: str | None = None,
    limit: int | None = None,
) -> list[StockRecord]:
    """Most recent first."""
    query = db.session.query(StockRecord)
    if location_id:
        query = query.filter(StockRecord.location_id == location_id)
    if date:
        query = query.filter(StockRecord.date == parse_iso_date(date))
    if shift:
        query = query.filter(StockRecord.shift == shift)
    query = query.order_by(StockRecord.date.desc(), StockRecord.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def is_referenced(record_id: int) -> bool:
    """True once any stock/cash alert points at the record."""
    return db.session.query(StockCashAlert.id).filter_by(stock_record_id=record_id).first() is not None


def category_differences(record: StockRecord) -> list[dict]:
    """Per-category counted vs. POS quantities (difference = real - pos)."""
    return [
        {"category": category, "real": real, "pos": pos, "difference": real - pos}
        for category, (real, pos) in record.counts().items()
    ]


def find_matching_closing(record: StockRecord) -> CashRegisterClosing | None:
    """Cash closing for the same location, date and shift."""
    return find_closing_for(record.location_id, record.date, record.shift)


def _stock_alert_message(alert: StockAlert, shift: str) -> str:
    label = "shortage" if alert.alert_type == STOCK_ALERT_SHORTAGE else "surplus"
    return (
        f"Stock {label} of {abs(alert.difference)} {alert.category} "
        f"({alert.percentage:+.1f}%) at {alert.location_name} ({shift})"
    )


def generate_stock_alerts(record: StockRecord) -> list[StockAlert]:
    """
    Create one stock alert per category whose count differs from the POS.

    Categories the POS reports as zero are skipped (no baseline for a
    percentage). Does not commit.
    """
    alerts = []
    for category, (real, pos) in record.counts().items():
        difference = real - pos
        if difference == 0 or pos <= 0:
            continue

        alert = StockAlert(
            stock_record_id=record.id,
            category=category,
            alert_type=STOCK_ALERT_SHORTAGE if difference < 0 else STOCK_ALERT_SURPLUS,
            difference=difference,
            percentage=difference / pos * 100,
            status=ALERT_STATUS_ACTIVE,
            location_id=record.location_id,
            location_name=record.location_name,
            date=record.date,
        )
        db.session.add(alert)
        db.session.flush()

        alert_service.create_feed_alert(
            alert_type=alert_service.ALERT_TYPE_STOCK,
            message=_stock_alert_message(alert, record.shift),
            location_id=record.location_id,
            location_name=record.location_name,
            reference_type=alert_service.REFERENCE_STOCK_ALERT,
            reference_id=alert.id,
        )
        alerts.append(alert)
    return alerts


def create_stock_record(
    *,
    location_id: str,
    date,
    shift: str,
    responsible: str,
    location_name: str | None = None,
    notes: str | None = None,
    **counts: int,
) -> StockRecord:
    """
    Save a stock count and raise per-category stock alerts.

    Args:
        location_id: Location code (e.g. "cabildo")
        date: Business date (date or "YYYY-MM-DD")
        shift: "morning" or "afternoon"
        responsible: Employee who took the count
        location_name: Display name (defaults to location_id)
        notes: Optional free text
        **counts: <category>_real / <category>_pos quantities; omitted ones are 0

    Raises:
        ValidationError: If any field is invalid
    """
    unknown = set(counts) - STOCK_COUNT_FIELDS
    if unknown:
        raise ValidationError(f"Unknown stock fields: {', '.join(sorted(unknown))}")

    try:
        business_date = parse_iso_date(date)
    except ValueError:
        raise ValidationError("date must be an ISO-8601 date (YYYY-MM-DD)")
    if business_date is None:
        raise ValidationError("date is required")

    patch = {"location_id": location_id, "shift": shift, "responsible": responsible, **counts}
    enforce_rules_stock_record(patch)

    record = StockRecord(
        location_id=location_id.strip(),
        location_name=(location_name or location_id).strip(),
        date=business_date,
        shift=shift,
        responsible=responsible.strip(),
        notes=notes,
        **{field: counts.get(field) or 0 for field in STOCK_COUNT_FIELDS},
    )
    db.session.add(record)
    db.session.flush()

    alerts = generate_stock_alerts(record)
    db.session.commit()

    current_app.logger.info(
        "Stock record %s saved for %s %s (%s) with %d stock alerts",
        record.id, record.location_id, record.date, record.shift, len(alerts),
    )
    return record


def update_stock_record(record_id: int, patch: dict, changed_by: str | None = None) -> StockRecord:
    """
    Correct a stock record that has not been reconciled yet.

    When counts change, the record's active stock alerts are rejected as
    superseded and regenerated from the new counts.

    Raises:
        StockRecordError: If the record does not exist
        ConflictError: If a stock/cash alert already references the record
        ValidationError: If the patch is invalid
    """
    record = get_stock_record(record_id)
    if is_referenced(record.id):
        raise ConflictError(f"Stock record {record.id} is already reconciled and cannot be changed")

    disallowed = set(patch) - STOCK_RECORD_MUTABLE_FIELDS
    if disallowed:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(disallowed))}")
    enforce_rules_stock_record(patch)

    counts_changed = any(
        field in STOCK_COUNT_FIELDS and getattr(record, field) != value
        for field, value in patch.items()
    )
    for field, value in patch.items():
        setattr(record, field, value)

    if counts_changed:
        for alert in alert_service.list_stock_alerts(status=ALERT_STATUS_ACTIVE, stock_record_id=record.id):
            alert.status = ALERT_STATUS_REJECTED
            alert.status_changed_by = changed_by or "recount"
            alert.status_changed_at = utcnow()
            alert_service.mirror_feed_status(alert_service.REFERENCE_STOCK_ALERT, alert.id, ALERT_STATUS_REJECTED)
        db.session.flush()
        generate_stock_alerts(record)

    db.session.commit()
    return record
