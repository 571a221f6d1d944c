from __future__ import annotations

from ..extensions import db
from ..snapshots import LayawayHold, to_money


class Layaway(db.Model):
    """
    Open layaway hold.

    LIFECYCLE: created with the down payment -> zero or more payments ->
    deleted on pay-off (completion) or explicit cancellation. Rows are always
    rewritten as a whole collection by the layaway store.
    """
    __tablename__ = "layaway_holds"
    __table_args__ = (
        db.UniqueConstraint("layaway_id", name="uq_layaway_holds_layaway_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    layaway_id = db.Column(db.String(64), nullable=False)
    # Insertion order of the hold list
    position = db.Column(db.Integer, nullable=False, default=0)

    item_code = db.Column(db.String(64), nullable=False)
    category = db.Column(db.String(128), nullable=False)
    brand = db.Column(db.String(128), nullable=False)
    item = db.Column(db.String(255), nullable=False)

    original_price = db.Column(db.Numeric(10, 2), nullable=False)
    amount_paid = db.Column(db.Numeric(10, 2), nullable=False)
    remaining_balance = db.Column(db.Numeric(10, 2), nullable=False)
    is_inventory_tracked = db.Column(db.Boolean, nullable=False, default=True)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @classmethod
    def from_hold(cls, hold: LayawayHold, position: int) -> "Layaway":
        return cls(
            layaway_id=hold.layaway_id,
            position=position,
            item_code=hold.item_code,
            category=hold.category,
            brand=hold.brand,
            item=hold.item,
            original_price=hold.original_price,
            amount_paid=hold.amount_paid,
            remaining_balance=hold.remaining_balance,
            is_inventory_tracked=hold.is_inventory_tracked,
            customer_name=hold.customer_name,
            customer_phone=hold.customer_phone,
            created_at=hold.created_at,
        )

    def to_hold(self) -> LayawayHold:
        return LayawayHold(
            layaway_id=self.layaway_id,
            item_code=self.item_code,
            category=self.category,
            brand=self.brand,
            item=self.item,
            original_price=to_money(self.original_price),
            amount_paid=to_money(self.amount_paid),
            remaining_balance=to_money(self.remaining_balance),
            is_inventory_tracked=self.is_inventory_tracked,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            created_at=self.created_at,
        )
