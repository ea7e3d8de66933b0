from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z, to_iso_date


# Categories counted on every stock sheet, in display order
TRACKED_CATEGORIES = (
    "empanadas",
    "large_soda",
    "small_soda",
    "small_water",
    "beer",
    "croissants",
    "dough",
    "pizzas",
)

SHIFT_MORNING = "morning"
SHIFT_AFTERNOON = "afternoon"
SHIFTS = (SHIFT_MORNING, SHIFT_AFTERNOON)


class StockRecord(db.Model):
    """
    Physical stock count taken at shift handover.

    WHY: Compares what the staff counted on the shelf against what the POS
    export says should be there. Feeds the stock/cash reconciliation.

    Each tracked category has a pair of columns:
    - <category>_real: physically counted quantity
    - <category>_pos: quantity reported by the POS export

    IMMUTABLE: Once a stock/cash alert references the record it cannot be edited.
    """
    __tablename__ = "stock_records"
    __table_args__ = (
        db.Index("ix_stock_records_location_date_shift", "location_id", "date", "shift"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    location_id = db.Column(db.String(64), nullable=False, index=True)
    location_name = db.Column(db.String(128), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    shift = db.Column(db.String(16), nullable=False)  # morning, afternoon
    responsible = db.Column(db.String(128), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    empanadas_real = db.Column(db.Integer, nullable=False, default=0)
    empanadas_pos = db.Column(db.Integer, nullable=False, default=0)
    large_soda_real = db.Column(db.Integer, nullable=False, default=0)
    large_soda_pos = db.Column(db.Integer, nullable=False, default=0)
    small_soda_real = db.Column(db.Integer, nullable=False, default=0)
    small_soda_pos = db.Column(db.Integer, nullable=False, default=0)
    small_water_real = db.Column(db.Integer, nullable=False, default=0)
    small_water_pos = db.Column(db.Integer, nullable=False, default=0)
    beer_real = db.Column(db.Integer, nullable=False, default=0)
    beer_pos = db.Column(db.Integer, nullable=False, default=0)
    croissants_real = db.Column(db.Integer, nullable=False, default=0)
    croissants_pos = db.Column(db.Integer, nullable=False, default=0)
    dough_real = db.Column(db.Integer, nullable=False, default=0)
    dough_pos = db.Column(db.Integer, nullable=False, default=0)
    pizzas_real = db.Column(db.Integer, nullable=False, default=0)
    pizzas_pos = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def counts(self) -> dict[str, tuple[int, int]]:
        """Map each tracked category to its (real, pos) pair."""
        return {
            category: (
                getattr(self, f"{category}_real") or 0,
                getattr(self, f"{category}_pos") or 0,
            )
            for category in TRACKED_CATEGORIES
        }

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "location_id": self.location_id,
            "location_name": self.location_name,
            "date": to_iso_date(self.date),
            "shift": self.shift,
            "responsible": self.responsible,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        for category, (real, pos) in self.counts().items():
            data[f"{category}_real"] = real
            data[f"{category}_pos"] = pos
        return data


class StockAlert(db.Model):
    """
    Per-category discrepancy between counted and POS-reported stock.

    TYPES:
    - shortage: fewer units on the shelf than the POS expects (real < pos)
    - surplus: more units on the shelf than the POS expects (real > pos)
    """
    __tablename__ = "stock_alerts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    stock_record_id = db.Column(db.Integer, db.ForeignKey("stock_records.id"), nullable=False, index=True)

    category = db.Column(db.String(32), nullable=False)
    alert_type = db.Column(db.String(16), nullable=False)  # shortage, surplus
    difference = db.Column(db.Integer, nullable=False)  # real - pos
    percentage = db.Column(db.Float, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)
    location_id = db.Column(db.String(64), nullable=False, index=True)
    location_name = db.Column(db.String(128), nullable=False)
    date = db.Column(db.Date, nullable=False)

    status_changed_by = db.Column(db.String(128), nullable=True)
    status_changed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    stock_record = db.relationship("StockRecord", backref=db.backref("stock_alerts", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stock_record_id": self.stock_record_id,
            "category": self.category,
            "alert_type": self.alert_type,
            "difference": self.difference,
            "percentage": self.percentage,
            "status": self.status,
            "location_id": self.location_id,
            "location_name": self.location_name,
            "date": to_iso_date(self.date),
            "status_changed_by": self.status_changed_by,
            "status_changed_at": to_utc_z(self.status_changed_at),
            "created_at": to_utc_z(self.created_at),
        }
