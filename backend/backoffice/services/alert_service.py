# Overview: Service-layer operations for alerts; feed writes, status transitions and summaries.

"""
Alert Service

WHY: Stock and stock/cash discrepancies are reviewed by supervisors, who
resolve or reject them. Every module alert is mirrored into a generic
feed (alerts table) so dashboards show one list.

STATUS MACHINE (stock/cash alerts and stock alerts):
- active -> resolved
- active -> rejected
- resolved -> active
- rejected -> active

Nothing is truly terminal: resolved and rejected alerts can always be
reactivated. Alerts are never deleted.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Alert, StockAlert, StockCashAlert
from ..models.alerts import ALERT_STATUS_ACTIVE, ALERT_STATUS_RESOLVED, ALERT_STATUS_REJECTED
from backoffice.time_utils import utcnow


ALERT_STATUSES = (ALERT_STATUS_ACTIVE, ALERT_STATUS_RESOLVED, ALERT_STATUS_REJECTED)

STATUS_TRANSITIONS = {
    ALERT_STATUS_ACTIVE: {ALERT_STATUS_RESOLVED, ALERT_STATUS_REJECTED},
    ALERT_STATUS_RESOLVED: {ALERT_STATUS_ACTIVE},
    ALERT_STATUS_REJECTED: {ALERT_STATUS_ACTIVE},
}

# Feed alert types / reference types
ALERT_TYPE_STOCK_CASH = "stock_cash"
ALERT_TYPE_STOCK = "stock"
REFERENCE_STOCK_CASH_ALERT = "stock_cash_alert"
REFERENCE_STOCK_ALERT = "stock_alert"


class AlertError(Exception):
    """Raised for alert operation errors."""
    pass


class AlertNotFoundError(AlertError):
    """Raised when an alert id does not exist."""
    pass


class AlertStatusError(AlertError):
    """Raised for invalid status transitions."""
    pass


def format_money(cents: int) -> str:
    """Format cents as a dollar amount, e.g. 800000 -> "$8,000.00"."""
    sign = "-" if cents < 0 else ""
    return f"{sign}${abs(cents) / 100:,.2f}"


def validate_transition(current_status: str, new_status: str) -> None:
    if new_status not in ALERT_STATUSES:
        raise AlertStatusError(f"Invalid alert status: {new_status}")
    if new_status not in STATUS_TRANSITIONS.get(current_status, set()):
        raise AlertStatusError(f"Cannot change alert from {current_status} to {new_status}")


# =============================================================================
# GENERIC FEED
# =============================================================================

def create_feed_alert(
    *,
    alert_type: str,
    message: str,
    location_id: str | None = None,
    location_name: str | None = None,
    reference_type: str | None = None,
    reference_id: int | None = None,
    status: str = ALERT_STATUS_ACTIVE,
) -> Alert:
    """
    Add a row to the generic alert feed.

    Flushes but does not commit: the feed row is written in the same
    transaction as the alert it mirrors.
    """
    alert = Alert(
        alert_type=alert_type,
        message=message,
        status=status,
        location_id=location_id,
        location_name=location_name,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    db.session.add(alert)
    db.session.flush()
    return alert


def mirror_feed_status(reference_type: str, reference_id: int, status: str) -> int:
    feed_alerts = db.session.query(Alert).filter_by(
        reference_type=reference_type,
        reference_id=reference_id,
    ).all()
    for feed_alert in feed_alerts:
        feed_alert.status = status
    return len(feed_alerts)


def list_feed_alerts(
    status: str | None = None,
    location_id: str | None = None,
    alert_type: str | None = None,
    limit: int | None = None,
) -> list[Alert]:
    query = db.session.query(Alert)
    if status:
        query = query.filter(Alert.status == status)
    if location_id:
        query = query.filter(Alert.location_id == location_id)
    if alert_type:
        query = query.filter(Alert.alert_type == alert_type)
    query = query.order_by(Alert.created_at.desc(), Alert.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


# =============================================================================
# STOCK / CASH ALERTS
# =============================================================================

def get_stock_cash_alert(alert_id: int) -> StockCashAlert:
    alert = db.session.get(StockCashAlert, alert_id)
    if not alert:
        raise AlertNotFoundError(f"Stock/cash alert {alert_id} not found")
    return alert


def find_stock_cash_alert(stock_record_id: int, cash_register_closing_id: int) -> StockCashAlert | None:
    return db.session.query(StockCashAlert).filter_by(
        stock_record_id=stock_record_id,
        cash_register_closing_id=cash_register_closing_id,
    ).first()


def list_stock_cash_alerts(
    status: str | None = None,
    location_id: str | None = None,
    limit: int | None = None,
) -> list[StockCashAlert]:
    query = db.session.query(StockCashAlert)
    if status:
        query = query.filter(StockCashAlert.status == status)
    if location_id:
        query = query.filter(StockCashAlert.location_id == location_id)
    query = query.order_by(StockCashAlert.date.desc(), StockCashAlert.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def update_stock_cash_alert_status(
    alert_id: int,
    new_status: str,
    changed_by: str | None = None,
    notes: str | None = None,
) -> StockCashAlert:
    """
    Move a stock/cash alert to a new status (supervisor action).

    The mirrored feed alert is updated in the same commit.

    Raises:
        AlertNotFoundError: If the alert does not exist
        AlertStatusError: If the transition is not allowed
    """
    alert = get_stock_cash_alert(alert_id)
    validate_transition(alert.status, new_status)

    previous_status = alert.status
    alert.status = new_status
    alert.status_changed_by = changed_by
    alert.status_changed_at = utcnow()
    if notes is not None:
        alert.resolution_notes = notes

    mirror_feed_status(REFERENCE_STOCK_CASH_ALERT, alert.id, new_status)
    db.session.commit()

    current_app.logger.info(
        "Stock/cash alert %s moved from %s to %s by %s",
        alert.id, previous_status, new_status, changed_by or "unknown",
    )
    return alert


# =============================================================================
# STOCK ALERTS
# =============================================================================

def get_stock_alert(alert_id: int) -> StockAlert:
    alert = db.session.get(StockAlert, alert_id)
    if not alert:
        raise AlertNotFoundError(f"Stock alert {alert_id} not found")
    return alert


def list_stock_alerts(
    status: str | None = None,
    location_id: str | None = None,
    stock_record_id: int | None = None,
    limit: int | None = None,
) -> list[StockAlert]:
    query = db.session.query(StockAlert)
    if status:
        query = query.filter(StockAlert.status == status)
    if location_id:
        query = query.filter(StockAlert.location_id == location_id)
    if stock_record_id:
        query = query.filter(StockAlert.stock_record_id == stock_record_id)
    query = query.order_by(StockAlert.date.desc(), StockAlert.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def update_stock_alert_status(
    alert_id: int,
    new_status: str,
    changed_by: str | None = None,
) -> StockAlert:
    """Same transitions as stock/cash alerts."""
    alert = get_stock_alert(alert_id)
    validate_transition(alert.status, new_status)

    alert.status = new_status
    alert.status_changed_by = changed_by
    alert.status_changed_at = utcnow()

    mirror_feed_status(REFERENCE_STOCK_ALERT, alert.id, new_status)
    db.session.commit()
    return alert


# =============================================================================
# SUMMARY
# =============================================================================

def _status_counts(model, location_id: str | None) -> dict[str, int]:
    query = db.session.query(model.status, func.count(model.id))
    if location_id:
        query = query.filter(model.location_id == location_id)
    counts = {status: 0 for status in ALERT_STATUSES}
    for status, count in query.group_by(model.status).all():
        counts[status] = int(count)
    return counts


def alert_summary(location_id: str | None = None) -> dict:
    """
    Dashboard counts by status.

    active_difference_cents is the net difference (actual - expected) over
    active stock/cash alerts: negative means cash is missing overall.
    """
    difference_query = db.session.query(
        func.coalesce(func.sum(StockCashAlert.difference_cents), 0)
    ).filter(StockCashAlert.status == ALERT_STATUS_ACTIVE)
    if location_id:
        difference_query = difference_query.filter(StockCashAlert.location_id == location_id)

    stock_cash = _status_counts(StockCashAlert, location_id)
    stock_cash["active_difference_cents"] = int(difference_query.scalar() or 0)

    return {
        "location_id": location_id,
        "stock_cash": stock_cash,
        "stock": _status_counts(StockAlert, location_id),
        "feed": _status_counts(Alert, location_id),
    }
