# Overview: Pending sale ledger values and pure snapshot transitions for apply, revert and commit.

"""
Pending Sale Ledger

A pending sale is an ordered tuple of lines. Each line kind is its own type:

- SaleItemLine: a sold item (tracked, or a clip/custom/other line)
- LayawayDownPaymentLine: the down payment that opened a new hold
- LayawayPaymentLine: a payment against an existing hold

Every function here takes snapshots and returns new snapshots; nothing is
persisted and nothing is mutated in place. The session service decides when
the results are saved.

Speculative state:
- A tracked SaleItemLine has already taken one unit out of the inventory
  snapshot when it is appended (original_quantity_change == -1).
- A LayawayDownPaymentLine has already added its hold (down payment applied)
  to the layaway snapshot.
- A LayawayPaymentLine changes nothing until it is committed.

revert_line() undoes exactly the speculative part of a line; commit_line()
finalizes a line and returns the audit entries it produces.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from .errors import EmptyLedger, InvalidAmount
from .snapshots import (
    AuditEntry,
    InventoryRecord,
    InventorySnapshot,
    LayawayHold,
    LayawaySnapshot,
    audit_entry,
    to_money,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

DOWN_PAYMENT_LABEL = "Layaway 30% Down"
PAYMENT_LABEL = "Layaway Payment"
PAID_OFF_LABEL = "Layaway Paid Off"

_last_sale_item_id = 0


def new_sale_item_id() -> int:
    """Unique, strictly increasing line id derived from the nanosecond clock."""
    global _last_sale_item_id
    _last_sale_item_id = max(_last_sale_item_id + 1, time.time_ns())
    return _last_sale_item_id


@dataclass(frozen=True)
class SaleItemLine:
    sale_item_id: int
    item_code: str
    category: str
    brand: str
    item: str
    price_sold: Decimal
    discount_applied: str = "No"
    is_inventory_tracked: bool = False
    # 0 or -1: units taken out of the inventory snapshot when appended
    original_quantity_change: int = 0
    # Quantity right after this line's decrement (tracked lines only)
    new_quantity: Optional[int] = None

    kind = "sale"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "sale_item_id": self.sale_item_id,
            "item_code": self.item_code,
            "category": self.category,
            "brand": self.brand,
            "item": self.item,
            "price_sold": str(self.price_sold),
            "discount_applied": self.discount_applied,
            "is_inventory_tracked": self.is_inventory_tracked,
            "original_quantity_change": self.original_quantity_change,
        }


@dataclass(frozen=True)
class LayawayDownPaymentLine:
    sale_item_id: int
    layaway_id: str
    item_code: str
    category: str
    brand: str
    item: str
    price_sold: Decimal
    discount_applied: str = DOWN_PAYMENT_LABEL

    kind = "layaway_down_payment"
    is_inventory_tracked = False
    original_quantity_change = 0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "sale_item_id": self.sale_item_id,
            "layaway_id": self.layaway_id,
            "item_code": self.item_code,
            "category": self.category,
            "brand": self.brand,
            "item": self.item,
            "price_sold": str(self.price_sold),
            "discount_applied": self.discount_applied,
        }


@dataclass(frozen=True)
class LayawayPaymentLine:
    sale_item_id: int
    layaway_id: str
    item_code: str
    category: str
    brand: str
    item: str
    price_sold: Decimal
    discount_applied: str = PAYMENT_LABEL

    kind = "layaway_payment"
    is_inventory_tracked = False
    original_quantity_change = 0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "sale_item_id": self.sale_item_id,
            "layaway_id": self.layaway_id,
            "item_code": self.item_code,
            "category": self.category,
            "brand": self.brand,
            "item": self.item,
            "price_sold": str(self.price_sold),
            "discount_applied": self.discount_applied,
        }


SaleLine = Union[SaleItemLine, LayawayDownPaymentLine, LayawayPaymentLine]


@dataclass(frozen=True)
class PendingSale:
    """The cart. total is always the sum of the lines' price_sold."""
    lines: tuple = ()

    @property
    def total(self) -> Decimal:
        return to_money(sum((line.price_sold for line in self.lines), ZERO))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def last(self) -> SaleLine:
        if not self.lines:
            raise EmptyLedger("There are no items in the current sale")
        return self.lines[-1]

    def append(self, line: SaleLine) -> "PendingSale":
        return PendingSale(self.lines + (line,))

    def pop(self) -> tuple["PendingSale", SaleLine]:
        line = self.last
        return PendingSale(self.lines[:-1]), line

    def pending_payments(self, layaway_id: str) -> Decimal:
        """Uncommitted payment lines already queued against a hold."""
        return sum(
            (
                line.price_sold
                for line in self.lines
                if isinstance(line, LayawayPaymentLine) and line.layaway_id == layaway_id
            ),
            ZERO,
        )

    def references_hold(self, layaway_id: str) -> bool:
        return any(
            getattr(line, "layaway_id", None) == layaway_id for line in self.lines
        )

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "total": str(self.total),
        }


def apply_discount(price: Decimal, percentage) -> tuple[Decimal, str]:
    """price * (1 - pct / 100), labelled "<pct>% Discount"."""
    pct = Decimal(str(percentage))
    if pct < 0 or pct > 100:
        raise InvalidAmount("Discount must be between 0 and 100 percent", details={"percentage": str(pct)})
    discounted = to_money(price * (Decimal(1) - pct / Decimal(100)))
    label = f"{pct.normalize():f}% Discount"
    return discounted, label


def take_one(inventory: InventorySnapshot, record: InventoryRecord) -> tuple[InventorySnapshot, InventoryRecord]:
    """Speculatively remove one unit. last_change is left for commit to stamp."""
    current = inventory.get(*record.key) or record
    updated = current.with_quantity(current.quantity - 1)
    return inventory.put(updated), updated


def revert_line(
    inventory: InventorySnapshot,
    layaways: LayawaySnapshot,
    line: SaleLine,
) -> tuple[InventorySnapshot, LayawaySnapshot]:
    """Undo the speculative effect of one uncommitted line."""
    if isinstance(line, SaleItemLine):
        if line.is_inventory_tracked and line.original_quantity_change:
            record = inventory.get(line.category, line.brand, line.item)
            if record is None:
                logger.warning(
                    "Cannot return %s / %s / %s to stock: no inventory record",
                    line.category, line.brand, line.item,
                )
                return inventory, layaways
            inventory = inventory.put(record.with_quantity(record.quantity - line.original_quantity_change))
        return inventory, layaways

    if isinstance(line, LayawayDownPaymentLine):
        # The down payment is always the first event on a hold, so removing
        # the hold reverses it entirely.
        return inventory, layaways.remove(line.layaway_id)

    return inventory, layaways


@dataclass
class CommitResult:
    inventory: InventorySnapshot
    layaways: LayawaySnapshot
    entries: list[AuditEntry] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)


def complete_hold(
    inventory: InventorySnapshot,
    layaways: LayawaySnapshot,
    hold: LayawayHold,
    now: datetime,
) -> CommitResult:
    """Remove a paid-off hold; take the unit out of stock if it is tracked."""
    result = CommitResult(inventory=inventory, layaways=layaways.remove(hold.layaway_id))
    record = inventory.get(hold.category, hold.brand, hold.item) if hold.is_inventory_tracked else None

    if hold.is_inventory_tracked and record is not None:
        updated = record.with_quantity(record.quantity - 1).annotated("Layaway Completed (-1)", now)
        result.inventory = inventory.put(updated)
        result.entries.append(audit_entry(
            "Layaway Completed",
            when=now,
            item_code=hold.item_code,
            category=hold.category,
            brand=hold.brand,
            item=hold.item,
            quantity_change=-1,
            new_quantity=updated.quantity,
            price_sold=hold.original_price,
            discount_applied=PAID_OFF_LABEL,
        ))
    else:
        if hold.is_inventory_tracked:
            logger.warning(
                "Layaway %s completed but %s / %s / %s is no longer in inventory",
                hold.layaway_id, hold.category, hold.brand, hold.item,
            )
        result.entries.append(audit_entry(
            "Layaway Completed" if hold.is_inventory_tracked else "Layaway Completed (No Inv. Track)",
            when=now,
            item_code=hold.item_code,
            category=hold.category,
            brand=hold.brand,
            item=hold.item,
            price_sold=hold.original_price,
            discount_applied=PAID_OFF_LABEL,
        ))

    result.notices.append(f"Layaway for {hold.item} is fully paid and has been finalized.")
    logger.info("Layaway %s completed (%s)", hold.layaway_id, hold.item)
    return result


def commit_line(
    inventory: InventorySnapshot,
    layaways: LayawaySnapshot,
    line: SaleLine,
    now: datetime,
) -> CommitResult:
    """Finalize one line against the snapshots and build its audit entries."""
    if isinstance(line, SaleItemLine):
        result = CommitResult(inventory=inventory, layaways=layaways)
        if line.is_inventory_tracked:
            record = inventory.get(line.category, line.brand, line.item)
            if record is not None:
                result.inventory = inventory.put(record.annotated(str(line.original_quantity_change), now))
            result.entries.append(audit_entry(
                "Sold Item",
                when=now,
                item_code=line.item_code,
                category=line.category,
                brand=line.brand,
                item=line.item,
                quantity_change=line.original_quantity_change,
                new_quantity=line.new_quantity,
                price_sold=line.price_sold,
                discount_applied=line.discount_applied,
            ))
        else:
            result.entries.append(audit_entry(
                "Sold Item (No Inv. Track)",
                when=now,
                item_code=line.item_code,
                category=line.category,
                brand=line.brand,
                item=line.item,
                price_sold=line.price_sold,
                discount_applied=line.discount_applied,
            ))
        return result

    hold = layaways.get(line.layaway_id)
    if hold is None:
        logger.error("Layaway %s referenced by the sale no longer exists", line.layaway_id)
        return CommitResult(inventory=inventory, layaways=layaways)

    if isinstance(line, LayawayDownPaymentLine):
        # Already applied when the hold was opened.
        action = "Layaway Down Payment"
    else:
        hold = hold.with_payment(line.price_sold)
        layaways = layaways.replace(hold)
        action = "Layaway Payment"

    entries = [audit_entry(
        action,
        when=now,
        item_code=line.item_code,
        category=line.category,
        brand=line.brand,
        item=line.item,
        price_sold=line.price_sold,
        discount_applied=line.discount_applied,
    )]

    if not hold.is_paid_off:
        return CommitResult(inventory=inventory, layaways=layaways, entries=entries)

    result = complete_hold(inventory, layaways, hold, now)
    result.entries[:0] = entries
    return result
