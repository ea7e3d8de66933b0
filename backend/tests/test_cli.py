from datetime import date

from backoffice.extensions import db
from backoffice.models import StockCashAlert

from conftest import write_pos_export


DAY = date(2026, 10, 19)


def _seed_discrepancy(make_stock_record, make_closing, directory):
    write_pos_export(str(directory), 1, DAY, orders=[(1, 3)], lines=[(1, 101, 10, "8000")])
    record = make_stock_record(empanadas_real=40, empanadas_pos=50)
    closing = make_closing()
    return record, closing


def test_init_db(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init-db"])

    assert result.exit_code == 0
    assert "Database tables created" in result.output


def test_run_pending(app, make_stock_record, make_closing, pos_export_dir):
    _seed_discrepancy(make_stock_record, make_closing, pos_export_dir)
    runner = app.test_cli_runner()

    first = runner.invoke(args=["reconciliation", "run-pending", "--limit", "5"])
    second = runner.invoke(args=["reconciliation", "run-pending"])

    assert first.exit_code == 0
    assert "1 stock/cash alerts created" in first.output
    assert "-$8,000.00" in first.output
    assert "No new stock/cash alerts" in second.output
    assert db.session.query(StockCashAlert).count() == 1


def test_run_pending_rejects_bad_limit(app, db_session):
    result = app.test_cli_runner().invoke(args=["reconciliation", "run-pending", "--limit", "0"])

    assert result.exit_code != 0


def test_compare(app, make_stock_record, make_closing, pos_export_dir):
    record, closing = _seed_discrepancy(make_stock_record, make_closing, pos_export_dir)
    runner = app.test_cli_runner()

    result = runner.invoke(args=["reconciliation", "compare", str(record.id), str(closing.id)])
    assert result.exit_code == 0
    assert "cabildo" in result.output

    again = runner.invoke(args=["reconciliation", "compare", str(record.id), str(closing.id)])
    assert "No alert created" in again.output


def test_sales_data(app, db_session, pos_export_dir):
    write_pos_export(str(pos_export_dir), 1, DAY, orders=[(1, 8)], lines=[(1, 404, 2, "4000")])
    runner = app.test_cli_runner()

    result = runner.invoke(args=["reconciliation", "sales-data", "cabildo", "2026-10-19"])
    assert result.exit_code == 0
    assert "beer" in result.output
    assert "$4,000.00" in result.output

    missing = runner.invoke(args=["reconciliation", "sales-data", "cabildo", "2026-10-01"])
    assert missing.exit_code != 0
    assert "No sales data" in missing.output


def test_alerts_list_and_summary(app, make_stock_record, make_closing, pos_export_dir):
    _seed_discrepancy(make_stock_record, make_closing, pos_export_dir)
    runner = app.test_cli_runner()
    runner.invoke(args=["reconciliation", "run-pending"])

    listing = runner.invoke(args=["alerts", "list", "--status", "active"])
    assert listing.exit_code == 0
    assert "cabildo" in listing.output

    summary = runner.invoke(args=["alerts", "summary"])
    assert "stock_cash   active=1" in summary.output
