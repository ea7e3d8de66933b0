# Overview: Service-layer adapter for POS export data; turns raw order/line rows into per-category sales.

"""
POS Sales Data Adapter

WHY: The point-of-sale system publishes its day as two CSV exports per
branch (orders and order lines). Reconciliation needs per-category
quantity and revenue for one location and day, built only from orders
that were actually fulfilled.

FILES (one pair per branch and day, in POS_EXPORT_DIR):
- orders_<branch>_<YYYYMMDD>.csv:
  branch_code, order_code, date, time, sale_type, total, status
- order_lines_<branch>_<YYYYMMDD>.csv:
  line_code, branch_code, order_code, product_code, description,
  quantity, unit_price, line_total, date

Amounts in the export are currency units; they are converted to cents.

"No data" (None) is not the same as "zero sales": a day with orders that
were all voided is a zero-revenue day.
"""

from __future__ import annotations

import csv
import os
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from flask import current_app

from backoffice.time_utils import parse_iso_date, to_iso_date, to_pos_date


# Order status the POS uses for delivered/closed orders; anything else is voided or cancelled
FULFILLED_ORDER_STATUS = 8

OTHER_CATEGORY = "other"

# POS product code -> product category
PRODUCT_CATEGORIES = {
    # Empanadas
    101: "empanadas",
    102: "empanadas",
    103: "empanadas",
    104: "empanadas",
    105: "empanadas",
    # Croissants
    201: "croissants",
    202: "croissants",
    # Pizzas
    301: "pizzas",
    302: "pizzas",
    303: "pizzas",
    # Drinks
    401: "large_soda",
    402: "small_soda",
    403: "small_water",
    404: "beer",
}


class SalesDataError(ValueError):
    """Raised when POS export data cannot be read or parsed."""


class SalesDataNotFoundError(SalesDataError):
    """Raised when a location has no POS branch mapping."""


@dataclass
class PosOrder:
    branch_code: int
    order_code: int
    date: date
    status: int
    total_cents: int = 0
    time: str | None = None
    sale_type: str | None = None


@dataclass
class PosOrderLine:
    order_code: int
    product_code: int
    quantity: int
    line_total_cents: int
    branch_code: int | None = None
    line_code: int | None = None
    description: str | None = None
    unit_price_cents: int | None = None


@dataclass
class CategorySales:
    quantity: int = 0
    total_cents: int = 0


@dataclass
class ProcessedSalesData:
    location_id: str
    date: date
    total_sales_cents: int = 0
    product_sales: dict[str, CategorySales] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "location_id": self.location_id,
            "date": to_iso_date(self.date),
            "total_sales_cents": self.total_sales_cents,
            "product_sales": {
                category: {"quantity": sales.quantity, "total_cents": sales.total_cents}
                for category, sales in sorted(self.product_sales.items())
            },
        }


def _to_int(value: Any, column: str) -> int:
    try:
        return int(Decimal(str(value).strip()))
    except (ArithmeticError, ValueError) as e:
        raise SalesDataError(f"Invalid integer in column {column!r}: {value!r}") from e


def _to_cents(value: Any, column: str) -> int:
    raw = str(value).strip() if value is not None else ""
    if not raw:
        return 0
    try:
        cents = Decimal(raw) * 100
        return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (ArithmeticError, ValueError) as e:
        raise SalesDataError(f"Invalid amount in column {column!r}: {value!r}") from e


def parse_order_row(row: dict[str, Any]) -> PosOrder:
    try:
        return PosOrder(
            branch_code=_to_int(row["branch_code"], "branch_code"),
            order_code=_to_int(row["order_code"], "order_code"),
            date=parse_iso_date(row["date"]),
            status=_to_int(row["status"], "status"),
            total_cents=_to_cents(row.get("total"), "total"),
            time=row.get("time") or None,
            sale_type=row.get("sale_type") or None,
        )
    except KeyError as e:
        raise SalesDataError(f"Order row missing column: {e}") from e
    except ValueError as e:
        if isinstance(e, SalesDataError):
            raise
        raise SalesDataError(f"Invalid order row: {e}") from e


def parse_order_line_row(row: dict[str, Any]) -> PosOrderLine:
    try:
        unit_price = row.get("unit_price")
        line_code = row.get("line_code")
        branch_code = row.get("branch_code")
        return PosOrderLine(
            order_code=_to_int(row["order_code"], "order_code"),
            product_code=_to_int(row["product_code"], "product_code"),
            quantity=_to_int(row["quantity"], "quantity"),
            line_total_cents=_to_cents(row["line_total"], "line_total"),
            branch_code=_to_int(branch_code, "branch_code") if branch_code else None,
            line_code=_to_int(line_code, "line_code") if line_code else None,
            description=row.get("description") or None,
            unit_price_cents=_to_cents(unit_price, "unit_price") if unit_price else None,
        )
    except KeyError as e:
        raise SalesDataError(f"Order line row missing column: {e}") from e


class CsvExportSource:
    """
    Reads the daily POS export files from a directory.

    Any object with the same load(branch_code, day) signature can stand in
    for this one (reconcile() and fetch_sales_data() accept a source).
    """

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, prefix: str, branch_code: int, day: date) -> str:
        return os.path.join(self.directory, f"{prefix}_{branch_code}_{to_pos_date(day)}.csv")

    def _read(self, path: str) -> list[dict[str, Any]]:
        if not os.path.exists(path):
            return []
        with open(path, newline="", encoding="utf-8") as fh:
            try:
                return list(csv.DictReader(fh))
            except csv.Error as e:
                raise SalesDataError(f"Malformed POS export {os.path.basename(path)}: {e}") from e

    def load(self, branch_code: int, day: date) -> tuple[list[PosOrder], list[PosOrderLine]]:
        orders = [parse_order_row(r) for r in self._read(self._path("orders", branch_code, day))]
        lines = [parse_order_line_row(r) for r in self._read(self._path("order_lines", branch_code, day))]
        return orders, lines


def get_sales_source() -> CsvExportSource:
    """Default source: the export directory from app config."""
    return CsvExportSource(current_app.config["POS_EXPORT_DIR"])


def branch_code_for(location_id: str) -> int:
    """
    Resolve a location id to its POS branch code.

    Raises:
        SalesDataNotFoundError: If the location has no branch mapping
    """
    branch_codes = current_app.config.get("POS_BRANCH_CODES") or {}
    code = branch_codes.get(location_id)
    if code is None:
        raise SalesDataNotFoundError(f"Location {location_id!r} has no POS branch mapping")
    return int(code)


def category_for(product_code: int) -> str:
    return PRODUCT_CATEGORIES.get(product_code, OTHER_CATEGORY)


def process_sales(
    orders: list[PosOrder],
    lines: list[PosOrderLine],
    location_id: str,
    day: date,
) -> ProcessedSalesData | None:
    """
    Aggregate order lines into per-category quantity and revenue.

    Only lines belonging to fulfilled orders count. Lines of voided or
    cancelled orders, and lines whose order is not in the export, are
    left out of both quantity and revenue.

    Returns None when the export has no orders or no lines for the day.
    """
    if not orders or not lines:
        return None

    order_status = {order.order_code: order.status for order in orders}

    processed = ProcessedSalesData(location_id=location_id, date=day)

    for line in lines:
        if order_status.get(line.order_code) != FULFILLED_ORDER_STATUS:
            continue

        sales = processed.product_sales.setdefault(category_for(line.product_code), CategorySales())
        sales.quantity += line.quantity
        sales.total_cents += line.line_total_cents
        processed.total_sales_cents += line.line_total_cents

    return processed


def fetch_sales_data(day, location_id: str, source=None) -> ProcessedSalesData | None:
    """
    Processed sales for one location and day, or None when unavailable.

    Unknown locations, missing exports and unreadable exports all yield None;
    the reason is logged.
    """
    try:
        day = parse_iso_date(day)
        if day is None:
            raise SalesDataError("A date is required")
        branch_code = branch_code_for(location_id)
        source = source or get_sales_source()
        orders, lines = source.load(branch_code, day)
    except SalesDataNotFoundError as e:
        current_app.logger.warning("Sales data not found: %s", e)
        return None
    except (SalesDataError, OSError, ValueError):
        current_app.logger.exception("Failed to load POS sales data for %s on %s", location_id, day)
        return None

    processed = process_sales(orders, lines, location_id, day)
    if processed is None:
        current_app.logger.info("No POS transactions for %s on %s", location_id, day)
    return processed
