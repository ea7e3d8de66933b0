"""Stock records, cash closings and alerts

Revision ID: 20261019_stock_cash
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_stock_cash"
down_revision = None
branch_labels = None
depends_on = None


STOCK_CATEGORIES = (
    "empanadas",
    "large_soda",
    "small_soda",
    "small_water",
    "beer",
    "croissants",
    "dough",
    "pizzas",
)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    count_columns = []
    for category in STOCK_CATEGORIES:
        count_columns.append(sa.Column(f"{category}_real", sa.Integer(), nullable=False, server_default="0"))
        count_columns.append(sa.Column(f"{category}_pos", sa.Integer(), nullable=False, server_default="0"))

    op.create_table(
        "stock_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("location_id", sa.String(length=64), nullable=False),
        sa.Column("location_name", sa.String(length=128), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("shift", sa.String(length=16), nullable=False),
        sa.Column("responsible", sa.String(length=128), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *count_columns,
        *_timestamps(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_records_location_id", "stock_records", ["location_id"])
    op.create_index("ix_stock_records_date", "stock_records", ["date"])
    op.create_index("ix_stock_records_location_date_shift", "stock_records", ["location_id", "date", "shift"])

    op.create_table(
        "cash_register_closings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("location_id", sa.String(length=64), nullable=False),
        sa.Column("location_name", sa.String(length=128), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("shift", sa.String(length=16), nullable=False),
        sa.Column("responsible", sa.String(length=128), nullable=False),
        sa.Column("cash_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("card_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mobile_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("other_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_cash_register_closings_location_id", "cash_register_closings", ["location_id"])
    op.create_index("ix_cash_register_closings_date", "cash_register_closings", ["date"])
    op.create_index(
        "ix_cash_closings_location_date_shift", "cash_register_closings", ["location_id", "date", "shift"]
    )

    op.create_table(
        "stock_alerts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("stock_record_id", sa.Integer(), sa.ForeignKey("stock_records.id"), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("alert_type", sa.String(length=16), nullable=False),
        sa.Column("difference", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("location_id", sa.String(length=64), nullable=False),
        sa.Column("location_name", sa.String(length=128), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status_changed_by", sa.String(length=128), nullable=True),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_alerts_stock_record_id", "stock_alerts", ["stock_record_id"])
    op.create_index("ix_stock_alerts_status", "stock_alerts", ["status"])
    op.create_index("ix_stock_alerts_location_id", "stock_alerts", ["location_id"])

    op.create_table(
        "stock_cash_alerts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("stock_record_id", sa.Integer(), sa.ForeignKey("stock_records.id"), nullable=False),
        sa.Column(
            "cash_register_closing_id",
            sa.Integer(),
            sa.ForeignKey("cash_register_closings.id"),
            nullable=False,
        ),
        sa.Column("expected_cents", sa.Integer(), nullable=False),
        sa.Column("actual_cents", sa.Integer(), nullable=False),
        sa.Column("difference_cents", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("location_id", sa.String(length=64), nullable=False),
        sa.Column("location_name", sa.String(length=128), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("shift", sa.String(length=16), nullable=False),
        sa.Column("status_changed_by", sa.String(length=128), nullable=True),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "stock_record_id", "cash_register_closing_id",
            name="uq_stock_cash_alerts_record_closing",
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_cash_alerts_stock_record_id", "stock_cash_alerts", ["stock_record_id"])
    op.create_index(
        "ix_stock_cash_alerts_cash_register_closing_id", "stock_cash_alerts", ["cash_register_closing_id"]
    )
    op.create_index("ix_stock_cash_alerts_status", "stock_cash_alerts", ["status"])
    op.create_index("ix_stock_cash_alerts_location_id", "stock_cash_alerts", ["location_id"])
    op.create_index("ix_stock_cash_alerts_date", "stock_cash_alerts", ["date"])

    op.create_table(
        "alerts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("alert_type", sa.String(length=32), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("location_id", sa.String(length=64), nullable=True),
        sa.Column("location_name", sa.String(length=128), nullable=True),
        sa.Column("reference_type", sa.String(length=32), nullable=True),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_alerts_alert_type", "alerts", ["alert_type"])
    op.create_index("ix_alerts_status", "alerts", ["status"])
    op.create_index("ix_alerts_location_id", "alerts", ["location_id"])
    op.create_index("ix_alerts_reference", "alerts", ["reference_type", "reference_id"])


def downgrade():
    op.drop_table("alerts")
    op.drop_table("stock_cash_alerts")
    op.drop_table("stock_alerts")
    op.drop_table("cash_register_closings")
    op.drop_table("stock_records")
