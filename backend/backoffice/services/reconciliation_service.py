# Overview: Stock/cash reconciliation; compares expected revenue with the register total and raises alerts.

"""
Stock / Cash Reconciliation Service

WHY: A shift's cash register total should match what the shift sold.
Two independent estimates of "what should be in the drawer" are built:

- sales-based: quantity sold per category (POS export) x unit price
- stock-based: units the POS expected to leave the shelf beyond what
  actually left it, max(0, pos - real) per category, x unit price

The expected amount is the larger of the two, so a discrepancy is flagged
whenever either method says more money should have come in.

DESIGN:
- Degrades instead of failing: missing rows, missing sales data and
  persistence errors are logged and yield None
- The stock/cash alert and its feed alert are written in one transaction
- At most one alert per (stock record, cash closing) pair, checked before
  comparing and backed by a unique constraint
- No retries
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import CashRegisterClosing, StockCashAlert, StockRecord
from ..models.alerts import ALERT_STATUS_ACTIVE
from . import alert_service
from .cash_register_service import find_closing_for
from .price_service import get_current_prices, unit_price
from .sales_data_service import OTHER_CATEGORY, ProcessedSalesData, fetch_sales_data


def calculate_sales_based_amount(sales_data: ProcessedSalesData, prices: dict[str, int]) -> int:
    """
    Revenue implied by POS quantities sold, in cents.

    Unmapped products ("other") have no unit price and are left out.
    """
    amount = 0
    for category, sales in sales_data.product_sales.items():
        if category == OTHER_CATEGORY:
            continue
        amount += sales.quantity * unit_price(prices, category)
    return amount


def calculate_stock_based_amount(stock_record: StockRecord, prices: dict[str, int]) -> int:
    """
    Revenue implied by stock movement, in cents.

    Only categories where the POS expected more units to be gone than the
    physical count shows (pos > real) contribute. Categories with
    real >= pos add nothing, never a negative amount.
    """
    amount = 0
    for category, (real, pos) in stock_record.counts().items():
        missing = pos - real
        if missing > 0:
            amount += missing * unit_price(prices, category)
    return amount


def calculate_expected_amount(
    stock_record: StockRecord,
    sales_data: ProcessedSalesData,
    prices: dict[str, int],
) -> int:
    """The larger of the sales-based and stock-based estimates."""
    return max(
        calculate_sales_based_amount(sales_data, prices),
        calculate_stock_based_amount(stock_record, prices),
    )


def calculate_percentage(difference_cents: int, expected_cents: int) -> float:
    """difference / expected * 100; 0.0 when nothing was expected."""
    if expected_cents == 0:
        return 0.0
    return difference_cents / expected_cents * 100


def build_alert_message(alert: StockCashAlert, stock_record: StockRecord) -> str:
    kind = "shortfall" if alert.difference_cents < 0 else "surplus"
    return (
        f"Cash {kind} of {alert_service.format_money(abs(alert.difference_cents))} "
        f"between sales and cash register at {stock_record.location_name} ({stock_record.shift})"
    )


def _same_partition(stock_record: StockRecord, closing: CashRegisterClosing) -> bool:
    return (
        stock_record.location_id == closing.location_id
        and stock_record.date == closing.date
        and stock_record.shift == closing.shift
    )


def reconcile(
    stock_record_id: int,
    cash_register_closing_id: int,
    *,
    sales_source=None,
    prices: dict[str, int] | None = None,
    threshold_cents: int | None = None,
) -> StockCashAlert | None:
    """
    Compare one stock record with its cash closing.

    Args:
        stock_record_id: Stock count for the shift
        cash_register_closing_id: Cash closing for the same location, date and shift
        sales_source: POS export source (defaults to the configured CSV directory)
        prices: Unit prices in cents (defaults to configured prices)
        threshold_cents: Alert threshold (defaults to STOCK_CASH_ALERT_THRESHOLD_CENTS)

    Returns:
        The new active StockCashAlert when |actual - expected| exceeds the
        threshold, otherwise None. Nothing is stored when within threshold.
    """
    logger = current_app.logger

    stock_record = db.session.get(StockRecord, stock_record_id)
    if not stock_record:
        logger.warning("Reconciliation skipped: stock record %s not found", stock_record_id)
        return None

    closing = db.session.get(CashRegisterClosing, cash_register_closing_id)
    if not closing:
        logger.warning("Reconciliation skipped: cash closing %s not found", cash_register_closing_id)
        return None

    if not _same_partition(stock_record, closing):
        logger.warning(
            "Reconciliation skipped: stock record %s and cash closing %s are not the same location/date/shift",
            stock_record.id, closing.id,
        )
        return None

    if alert_service.find_stock_cash_alert(stock_record.id, closing.id):
        logger.info(
            "Reconciliation skipped: stock record %s and cash closing %s already have an alert",
            stock_record.id, closing.id,
        )
        return None

    sales_data = fetch_sales_data(stock_record.date, stock_record.location_id, source=sales_source)
    if sales_data is None:
        logger.warning(
            "Reconciliation skipped: no sales data for %s on %s",
            stock_record.location_id, stock_record.date,
        )
        return None

    if prices is None:
        prices = get_current_prices()
    if threshold_cents is None:
        threshold_cents = current_app.config["STOCK_CASH_ALERT_THRESHOLD_CENTS"]

    expected_cents = calculate_expected_amount(stock_record, sales_data, prices)
    actual_cents = closing.total_cents
    difference_cents = actual_cents - expected_cents
    percentage = calculate_percentage(difference_cents, expected_cents)

    if abs(difference_cents) <= threshold_cents:
        logger.info(
            "Stock record %s / cash closing %s within threshold (difference %s cents)",
            stock_record.id, closing.id, difference_cents,
        )
        return None

    alert = StockCashAlert(
        stock_record_id=stock_record.id,
        cash_register_closing_id=closing.id,
        expected_cents=expected_cents,
        actual_cents=actual_cents,
        difference_cents=difference_cents,
        percentage=percentage,
        status=ALERT_STATUS_ACTIVE,
        location_id=stock_record.location_id,
        location_name=stock_record.location_name,
        date=stock_record.date,
        shift=stock_record.shift,
    )

    try:
        db.session.add(alert)
        db.session.flush()

        alert_service.create_feed_alert(
            alert_type=alert_service.ALERT_TYPE_STOCK_CASH,
            message=build_alert_message(alert, stock_record),
            location_id=stock_record.location_id,
            location_name=stock_record.location_name,
            reference_type=alert_service.REFERENCE_STOCK_CASH_ALERT,
            reference_id=alert.id,
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(
            "Failed to save stock/cash alert for stock record %s / cash closing %s",
            stock_record_id, cash_register_closing_id,
        )
        return None

    logger.info(
        "Stock/cash alert %s raised for %s %s (%s): expected %s, actual %s, difference %s cents",
        alert.id, alert.location_id, alert.date, alert.shift,
        expected_cents, actual_cents, difference_cents,
    )
    return alert


def run_pending_comparisons(
    limit: int | None = None,
    *,
    sales_source=None,
    prices: dict[str, int] | None = None,
) -> list[StockCashAlert]:
    """
    Reconcile the most recent stock records against their cash closings.

    Best effort: records without a closing or with an existing alert are
    skipped, and an error on one record is logged before moving on to
    the next. Not transactional across records.

    Returns:
        The alerts created by this run
    """
    logger = current_app.logger
    if limit is None:
        limit = current_app.config["PENDING_COMPARISON_LIMIT"]

    stock_records = (
        db.session.query(StockRecord)
        .order_by(StockRecord.date.desc(), StockRecord.id.desc())
        .limit(limit)
        .all()
    )

    created = []
    for stock_record in stock_records:
        record_id = stock_record.id
        try:
            closing = find_closing_for(stock_record.location_id, stock_record.date, stock_record.shift)
            if not closing:
                continue

            if alert_service.find_stock_cash_alert(stock_record.id, closing.id):
                continue

            alert = reconcile(stock_record.id, closing.id, sales_source=sales_source, prices=prices)
            if alert:
                created.append(alert)
        except Exception:
            db.session.rollback()
            logger.exception("Pending comparison failed for stock record %s", record_id)

    logger.info(
        "Pending comparisons: %d stock records checked, %d alerts created",
        len(stock_records), len(created),
    )
    return created
