from __future__ import annotations

from ..extensions import db
from ..snapshots import InventoryRecord, format_money, to_money
from tillbook.time_utils import to_utc_z

class InventoryItem(db.Model):
    """
    Persisted inventory record.

    KEY: (category, brand, item) is unique. The categories "Clips, etc." and
    "Other" never get rows; they are priced from the menu catalog.

    Quantity is a plain mutable count and may be negative (out-of-stock sales
    are allowed once the cashier confirms them).
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.UniqueConstraint("category", "brand", "item", name="uq_inventory_items_key"),
        db.Index("ix_inventory_items_item_code", "item_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    item_code = db.Column(db.String(64), nullable=False)
    category = db.Column(db.String(128), nullable=False)
    brand = db.Column(db.String(128), nullable=False)
    item = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    price = db.Column(db.Numeric(10, 2), nullable=False)

    last_change = db.Column(db.String(255), nullable=True)
    last_change_date = db.Column(db.DateTime(timezone=True), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<InventoryItem {self.category!r}/{self.brand!r}/{self.item!r} qty={self.quantity}>"

    def to_record(self) -> InventoryRecord:
        return InventoryRecord(
            item_code=self.item_code,
            category=self.category,
            brand=self.brand,
            item=self.item,
            quantity=self.quantity,
            price=to_money(self.price) if self.price is not None else None,
            last_change=self.last_change or "Initial",
            last_change_date=self.last_change_date,
        )

    def apply_record(self, record: InventoryRecord) -> None:
        self.item_code = record.item_code
        self.category = record.category
        self.brand = record.brand
        self.item = record.item
        self.quantity = record.quantity
        self.price = record.price
        self.last_change = record.last_change
        self.last_change_date = record.last_change_date

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_code": self.item_code,
            "category": self.category,
            "brand": self.brand,
            "item": self.item,
            "quantity": self.quantity,
            "price": format_money(self.price),
            "last_change": self.last_change,
            "last_change_date": to_utc_z(self.last_change_date),
        }
