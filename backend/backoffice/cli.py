# Overview: Flask CLI command groups for bootstrap, reconciliation runs, and inspection.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Reconciliation:
# - python -m flask reconciliation run-pending [--limit 10]
#   Compare the most recent stock records with their cash closings.
#   Meant to be run from cron after the afternoon shift closes.
# - python -m flask reconciliation compare 12 7
#   Compare one stock record with one cash closing.
# - python -m flask reconciliation sales-data cabildo 2026-10-19
#   Show processed POS sales for a location and day.
#
# Alert inspection:
# - python -m flask alerts list --status active --location-id cabildo
#   List stock/cash alerts.
# - python -m flask alerts summary
#   Alert counts by status.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import alert_service, reconciliation_service, sales_data_service
from .services.alert_service import ALERT_STATUSES, format_money


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables are left untouched)."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('reconciliation')
def reconciliation_group():
    """Stock/cash reconciliation commands."""


def _echo_stock_cash_alert(alert):
    click.echo(
        f"{alert.id:<5} {alert.location_id:<14} {str(alert.date):<12} {alert.shift:<10} "
        f"{format_money(alert.expected_cents):>14} {format_money(alert.actual_cents):>14} "
        f"{format_money(alert.difference_cents):>14} {alert.percentage:>8.1f}% {alert.status}"
    )


def _echo_alert_header():
    click.echo("\n" + "=" * 110)
    click.echo(
        f"{'ID':<5} {'Location':<14} {'Date':<12} {'Shift':<10} "
        f"{'Expected':>14} {'Actual':>14} {'Difference':>14} {'%':>9} Status"
    )
    click.echo("=" * 110)


@reconciliation_group.command('run-pending')
@click.option('--limit', type=click.IntRange(min=1), default=None,
              help='Number of most recent stock records to check (default: PENDING_COMPARISON_LIMIT)')
@with_appcontext
def run_pending_cli(limit):
    """
    Reconcile recent stock records against their cash closings.

    Records without a closing, or already alerted, are skipped.
    Safe to run repeatedly.
    """
    created = reconciliation_service.run_pending_comparisons(limit=limit)

    if not created:
        click.echo("No new stock/cash alerts.")
        return

    _echo_alert_header()
    for alert in created:
        _echo_stock_cash_alert(alert)
    click.echo("=" * 110)
    click.echo(f"PASS {len(created)} stock/cash alerts created.\n")


@reconciliation_group.command('compare')
@click.argument('stock_record_id', type=int)
@click.argument('cash_register_closing_id', type=int)
@with_appcontext
def compare_cli(stock_record_id, cash_register_closing_id):
    """
    Compare one stock record with one cash closing.

    Example:
        flask reconciliation compare 12 7
    """
    alert = reconciliation_service.reconcile(stock_record_id, cash_register_closing_id)
    if not alert:
        click.echo("No alert created (within threshold, missing data, or already alerted).")
        return

    _echo_alert_header()
    _echo_stock_cash_alert(alert)
    click.echo("=" * 110 + "\n")


@reconciliation_group.command('sales-data')
@click.argument('location_id')
@click.argument('day')
@with_appcontext
def sales_data_cli(location_id, day):
    """
    Show processed POS sales for a location and day (YYYY-MM-DD).

    Example:
        flask reconciliation sales-data cabildo 2026-10-19
    """
    sales_data = sales_data_service.fetch_sales_data(day, location_id)
    if sales_data is None:
        raise click.ClickException(f"No sales data for {location_id} on {day}")

    click.echo(f"\nSales for {location_id} on {sales_data.date.isoformat()}")
    click.echo("=" * 50)
    click.echo(f"{'Category':<16} {'Quantity':>10} {'Revenue':>20}")
    click.echo("=" * 50)
    for category, sales in sorted(sales_data.product_sales.items()):
        click.echo(f"{category:<16} {sales.quantity:>10} {format_money(sales.total_cents):>20}")
    click.echo("=" * 50)
    click.echo(f"{'Total':<16} {'':>10} {format_money(sales_data.total_sales_cents):>20}\n")


@click.group('alerts')
def alerts_group():
    """Alert inspection commands."""


@alerts_group.command('list')
@click.option('--status', type=click.Choice(ALERT_STATUSES), help='Filter by status')
@click.option('--location-id', help='Filter by location')
@click.option('--limit', type=int, default=20, help='Max alerts to show')
@with_appcontext
def list_alerts_cli(status, location_id, limit):
    """List stock/cash alerts, most recent first."""
    alerts = alert_service.list_stock_cash_alerts(status=status, location_id=location_id, limit=limit)

    if not alerts:
        click.echo("No alerts found.")
        return

    _echo_alert_header()
    for alert in alerts:
        _echo_stock_cash_alert(alert)
    click.echo("=" * 110 + "\n")


@alerts_group.command('summary')
@click.option('--location-id', help='Restrict to one location')
@with_appcontext
def alerts_summary_cli(location_id):
    """Alert counts by status."""
    summary = alert_service.alert_summary(location_id=location_id)

    for section in ("stock_cash", "stock", "feed"):
        counts = summary[section]
        line = ", ".join(f"{status}={counts[status]}" for status in ALERT_STATUSES)
        click.echo(f"{section:<12} {line}")

    click.echo(
        f"Net active stock/cash difference: "
        f"{format_money(summary['stock_cash']['active_difference_cents'])}"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(reconciliation_group)
    app.cli.add_command(alerts_group)
