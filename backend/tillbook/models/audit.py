from __future__ import annotations

from ..extensions import db
from tillbook.time_utils import to_utc_z

class AuditLogEntry(db.Model):
    """
    Append-only audit log line.

    One logical log per calendar day (log_date). Rows are never updated or
    deleted after they are written; ordering within a day is insertion (id)
    order.
    """
    __tablename__ = "audit_log_entries"
    __table_args__ = (
        db.Index("ix_audit_log_entries_day", "log_date", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    log_date = db.Column(db.Date, nullable=False)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False)
    action = db.Column(db.String(128), nullable=False, index=True)
    item_code = db.Column(db.String(64), nullable=False)
    category = db.Column(db.String(128), nullable=False)
    brand = db.Column(db.String(128), nullable=False)
    item = db.Column(db.String(255), nullable=False)

    # Text columns so "N/A" and "+1" style values are preserved as written
    quantity_change = db.Column(db.String(32), nullable=False, default="N/A")
    new_quantity = db.Column(db.String(32), nullable=False, default="N/A")
    price_sold = db.Column(db.String(32), nullable=False, default="N/A")
    discount_applied = db.Column(db.String(64), nullable=False, default="No")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "log_date": self.log_date.isoformat(),
            "timestamp": to_utc_z(self.timestamp),
            "action": self.action,
            "item_code": self.item_code,
            "category": self.category,
            "brand": self.brand,
            "item": self.item,
            "quantity_change": self.quantity_change,
            "new_quantity": self.new_quantity,
            "price_sold": self.price_sold,
            "discount_applied": self.discount_applied,
        }
