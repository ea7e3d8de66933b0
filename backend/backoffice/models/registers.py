from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z, to_iso_date


class CashRegisterClosing(db.Model):
    """
    End-of-shift cash drawer close-out for one location.

    WHY: Cashier accountability. The collected total is the "actual amount"
    the stock/cash reconciliation compares against sales and stock.

    IMMUTABLE: Once reconciled (referenced by a stock/cash alert) the
    closing cannot be edited.
    """
    __tablename__ = "cash_register_closings"
    __table_args__ = (
        db.Index("ix_cash_closings_location_date_shift", "location_id", "date", "shift"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    location_id = db.Column(db.String(64), nullable=False, index=True)
    location_name = db.Column(db.String(128), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    shift = db.Column(db.String(16), nullable=False)
    responsible = db.Column(db.String(128), nullable=False)

    # Collected amounts by payment channel (all amounts in cents)
    cash_cents = db.Column(db.Integer, nullable=False, default=0)
    card_cents = db.Column(db.Integer, nullable=False, default=0)
    mobile_cents = db.Column(db.Integer, nullable=False, default=0)
    other_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "location_id": self.location_id,
            "location_name": self.location_name,
            "date": to_iso_date(self.date),
            "shift": self.shift,
            "responsible": self.responsible,
            "cash_cents": self.cash_cents,
            "card_cents": self.card_cents,
            "mobile_cents": self.mobile_cents,
            "other_cents": self.other_cents,
            "total_cents": self.total_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
