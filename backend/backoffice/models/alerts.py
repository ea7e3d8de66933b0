from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z, to_iso_date


ALERT_STATUS_ACTIVE = "active"
ALERT_STATUS_RESOLVED = "resolved"
ALERT_STATUS_REJECTED = "rejected"


class StockCashAlert(db.Model):
    """
    Discrepancy between expected revenue and the cash actually collected.

    WHY: Flags shifts where the register total does not match what sales
    and stock movement say should have been collected.

    LIFECYCLE (supervisor-driven, never deleted):
    - active -> resolved | rejected
    - resolved | rejected -> active (reactivation)

    One alert per (stock record, cash closing) pair.
    """
    __tablename__ = "stock_cash_alerts"
    __table_args__ = (
        db.UniqueConstraint(
            "stock_record_id", "cash_register_closing_id",
            name="uq_stock_cash_alerts_record_closing",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    stock_record_id = db.Column(db.Integer, db.ForeignKey("stock_records.id"), nullable=False, index=True)
    cash_register_closing_id = db.Column(
        db.Integer, db.ForeignKey("cash_register_closings.id"), nullable=False, index=True
    )

    # All amounts in cents
    expected_cents = db.Column(db.Integer, nullable=False)
    actual_cents = db.Column(db.Integer, nullable=False)
    difference_cents = db.Column(db.Integer, nullable=False)  # actual - expected
    percentage = db.Column(db.Float, nullable=False, default=0.0)

    status = db.Column(db.String(16), nullable=False, default=ALERT_STATUS_ACTIVE, index=True)

    location_id = db.Column(db.String(64), nullable=False, index=True)
    location_name = db.Column(db.String(128), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    shift = db.Column(db.String(16), nullable=False)

    status_changed_by = db.Column(db.String(128), nullable=True)
    status_changed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    resolution_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    stock_record = db.relationship("StockRecord", backref=db.backref("stock_cash_alerts", lazy=True))
    cash_register_closing = db.relationship(
        "CashRegisterClosing", backref=db.backref("stock_cash_alerts", lazy=True)
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stock_record_id": self.stock_record_id,
            "cash_register_closing_id": self.cash_register_closing_id,
            "expected_cents": self.expected_cents,
            "actual_cents": self.actual_cents,
            "difference_cents": self.difference_cents,
            "percentage": self.percentage,
            "status": self.status,
            "location_id": self.location_id,
            "location_name": self.location_name,
            "date": to_iso_date(self.date),
            "shift": self.shift,
            "status_changed_by": self.status_changed_by,
            "status_changed_at": to_utc_z(self.status_changed_at),
            "resolution_notes": self.resolution_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Alert(db.Model):
    """
    Generic cross-module alert feed.

    Other modules mirror their own alerts here so dashboards can show one
    list. reference_type/reference_id point back at the source row.
    """
    __tablename__ = "alerts"
    __table_args__ = (
        db.Index("ix_alerts_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    alert_type = db.Column(db.String(32), nullable=False, index=True)  # stock_cash, stock
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=ALERT_STATUS_ACTIVE, index=True)

    location_id = db.Column(db.String(64), nullable=True, index=True)
    location_name = db.Column(db.String(128), nullable=True)

    reference_type = db.Column(db.String(32), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "alert_type": self.alert_type,
            "message": self.message,
            "status": self.status,
            "location_id": self.location_id,
            "location_name": self.location_name,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
