"""
Pytest fixtures for backoffice tests.

Provides test database setup, an in-memory POS export source, CSV export
helpers, and factories for stock records and cash closings.
"""

import csv
import os
from datetime import date

import pytest

from backoffice import create_app
from backoffice.extensions import db
from backoffice.services import stock_service, cash_register_service
from backoffice.services.sales_data_service import PosOrder, PosOrderLine


BUSINESS_DAY = date(2026, 10, 19)

ORDER_COLUMNS = ["branch_code", "order_code", "date", "time", "sale_type", "total", "status"]
LINE_COLUMNS = [
    "line_code", "branch_code", "order_code", "product_code", "description",
    "quantity", "unit_price", "line_total", "date",
]


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'POS_EXPORT_DIR': str(tmp_path_factory.mktemp("pos_exports")),
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


class StaticSalesSource:
    """POS export source backed by in-memory orders and lines."""

    def __init__(self):
        self._orders = {}
        self._lines = {}
        self._next_order_code = 1000

    def add_order(self, branch_code, day, status, lines):
        """
        Add one order; lines are (product_code, quantity, line_total_cents) tuples.
        """
        self._next_order_code += 1
        order_code = self._next_order_code
        key = (branch_code, day)

        self._orders.setdefault(key, []).append(PosOrder(
            branch_code=branch_code,
            order_code=order_code,
            date=day,
            status=status,
            total_cents=sum(total for _, _, total in lines),
        ))
        for product_code, quantity, line_total_cents in lines:
            self._lines.setdefault(key, []).append(PosOrderLine(
                order_code=order_code,
                product_code=product_code,
                quantity=quantity,
                line_total_cents=line_total_cents,
                branch_code=branch_code,
            ))
        return order_code

    def load(self, branch_code, day):
        key = (branch_code, day)
        return list(self._orders.get(key, [])), list(self._lines.get(key, []))


@pytest.fixture(scope='function')
def pos_source():
    return StaticSalesSource()


def write_pos_export(directory, branch_code, day, orders, lines):
    """
    Write one day's POS export pair.

    orders: (order_code, status) tuples
    lines: (order_code, product_code, quantity, line_total) tuples, amounts in currency units
    """
    stamp = day.strftime("%Y%m%d")

    with open(os.path.join(directory, f"orders_{branch_code}_{stamp}.csv"), "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=ORDER_COLUMNS)
        writer.writeheader()
        for order_code, status in orders:
            writer.writerow({
                "branch_code": branch_code,
                "order_code": order_code,
                "date": day.isoformat(),
                "time": "12:30",
                "sale_type": "counter",
                "total": "0",
                "status": status,
            })

    with open(os.path.join(directory, f"order_lines_{branch_code}_{stamp}.csv"), "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=LINE_COLUMNS)
        writer.writeheader()
        for index, (order_code, product_code, quantity, line_total) in enumerate(lines, start=1):
            writer.writerow({
                "line_code": index,
                "branch_code": branch_code,
                "order_code": order_code,
                "product_code": product_code,
                "description": f"Product {product_code}",
                "quantity": quantity,
                "unit_price": "",
                "line_total": line_total,
                "date": day.strftime("%Y%m%d"),
            })


@pytest.fixture(scope='function')
def pos_export_dir(app, tmp_path, monkeypatch):
    """Point POS_EXPORT_DIR at a fresh directory for this test."""
    monkeypatch.setitem(app.config, "POS_EXPORT_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture(scope='function')
def make_stock_record(db_session):
    def _make(**overrides):
        fields = {
            "location_id": "cabildo",
            "location_name": "Cabildo",
            "date": BUSINESS_DAY,
            "shift": "morning",
            "responsible": "Ana",
        }
        fields.update(overrides)
        return stock_service.create_stock_record(**fields)
    return _make


@pytest.fixture(scope='function')
def make_closing(db_session):
    def _make(**overrides):
        fields = {
            "location_id": "cabildo",
            "location_name": "Cabildo",
            "date": BUSINESS_DAY,
            "shift": "morning",
            "responsible": "Ana",
        }
        fields.update(overrides)
        return cash_register_service.create_closing(**fields)
    return _make
