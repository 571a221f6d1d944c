# Overview: Service-layer operations for inventory; snapshot store, catalog reconciliation and manual adjustments.

# backend/tillbook/services/inventory_service.py

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..errors import InvalidAmount, MissingItemData, PendingSaleOpen
from ..models import InventoryItem
from ..snapshots import (
    InventoryRecord,
    InventorySnapshot,
    audit_entry,
    is_tracked_category,
    to_money,
)
from tillbook.time_utils import utcnow
from .catalog_service import MenuCatalog, generate_item_code
from .persistence import run_or_fail
"""
Tillbook Inventory Invariants (authoritative)

Storage:
- One row per (category, brand, item); the row quantity is the stock count.
- "Clips, etc." and "Other" never get rows. Writes for them are ignored.
- Writes are last-writer-wins; there is exactly one mutator (the sale session).

Quantities:
- May go negative. Selling out of stock is a UI confirmation, not an error here.

Snapshots:
- load() returns an immutable InventorySnapshot.
- save(snapshot) replaces the stored set: upserts every record and deletes rows
  the snapshot no longer has.

Manual adjustments:
- Refused while a sale is pending, so durable stock never absorbs a
  speculative decrement.
- Each adjustment writes one record and one audit entry.
"""

logger = logging.getLogger(__name__)


class InventoryStore:
    """Inventory snapshot store backed by the inventory_items table."""

    def load(self) -> InventorySnapshot:
        rows = db.session.query(InventoryItem).all()
        return InventorySnapshot(row.to_record() for row in rows)

    def get(self, category: str, brand: str, item: str) -> InventoryRecord | None:
        row = self._row(category, brand, item)
        return row.to_record() if row else None

    def put(self, record: InventoryRecord) -> None:
        if not is_tracked_category(record.category):
            return
        run_or_fail(
            lambda: self._upsert(record),
            "Failed to save inventory record",
            details={"item_code": record.item_code},
        )

    def stage(self, snapshot: InventorySnapshot) -> None:
        """Write the snapshot into the session without committing."""
        rows = {
            (row.category, row.brand, row.item): row
            for row in db.session.query(InventoryItem).all()
        }
        wanted = {r.key for r in snapshot if is_tracked_category(r.category)}
        for key, row in rows.items():
            if key not in wanted:
                db.session.delete(row)
        for record in snapshot:
            if not is_tracked_category(record.category):
                continue
            row = rows.get(record.key)
            if row is None:
                row = InventoryItem()
                db.session.add(row)
            row.apply_record(record)
        db.session.flush()

    def save(self, snapshot: InventorySnapshot) -> None:
        run_or_fail(lambda: self.stage(snapshot), "Failed to save inventory")

    def _row(self, category: str, brand: str, item: str) -> InventoryItem | None:
        return db.session.query(InventoryItem).filter_by(
            category=category, brand=brand, item=item
        ).first()

    def _upsert(self, record: InventoryRecord) -> None:
        row = self._row(*record.key)
        if row is None:
            row = InventoryItem()
            db.session.add(row)
        row.apply_record(record)
        db.session.flush()


def reconcile_with_catalog(
    snapshot: InventorySnapshot,
    catalog: MenuCatalog,
    *,
    default_quantity: int,
    default_price: Decimal,
    now: datetime | None = None,
) -> InventorySnapshot:
    """
    Make the snapshot cover exactly the tracked catalog items.

    - Missing items get a fresh record (default quantity, catalog or default
      price, generated item code, last change "Initial").
    - Non-integer quantities are reset to the default ("Quantity Corrected").
    - Records the catalog no longer reaches are dropped.
    """
    now = now or utcnow()
    records = []
    for entry in catalog.tracked_items():
        existing = snapshot.get(entry.category, entry.brand, entry.item)
        if existing is None:
            records.append(InventoryRecord(
                item_code=generate_item_code(entry.category, entry.brand, entry.item),
                category=entry.category,
                brand=entry.brand,
                item=entry.item,
                quantity=default_quantity,
                price=entry.price if entry.price is not None else to_money(default_price),
                last_change="Initial",
                last_change_date=now,
            ))
            continue

        record = existing
        if not isinstance(record.quantity, int) or isinstance(record.quantity, bool):
            record = record.with_quantity(default_quantity).annotated("Quantity Corrected", now)
        if record.price is None:
            record = replace(record, price=entry.price if entry.price is not None else to_money(default_price))
        records.append(record)

    dropped = len(snapshot.keys() - {r.key for r in records})
    if dropped:
        logger.info("Dropped %d inventory records no longer in the catalog", dropped)
    return InventorySnapshot(records)


def _require_no_pending_sale(session) -> None:
    if not session.pending.is_empty:
        raise PendingSaleOpen(
            "Complete or cancel the current sale before adjusting inventory",
            details={"pending_lines": len(session.pending.lines)},
        )


def _require_record(session, category: str, brand: str, item: str) -> InventoryRecord:
    record = session.inventory.get(category, brand, item)
    if record is None:
        logger.error("No inventory record for %s / %s / %s", category, brand, item)
        raise MissingItemData(
            "Inventory item not found",
            details={"category": category, "brand": brand, "item": item},
        )
    return record


def _write(session, record: InventoryRecord, entry) -> InventoryRecord:
    session.inventory = session.inventory.put(record)
    session.inventory_store.put(record)
    session.audit_log.append(entry)
    return record


def adjust_quantity(session, category: str, brand: str, item: str, adjustment: int) -> InventoryRecord:
    """Add (or subtract) units from stock and log "Adjusted Inventory"."""
    _require_no_pending_sale(session)
    record = _require_record(session, category, brand, item)
    now = utcnow()

    new_quantity = record.quantity + adjustment
    label = f"{'+' if adjustment > 0 else ''}{adjustment}"
    updated = record.with_quantity(new_quantity).annotated(label, now)

    return _write(session, updated, audit_entry(
        "Adjusted Inventory",
        when=now,
        item_code=record.item_code,
        category=category,
        brand=brand,
        item=item,
        quantity_change=label,
        new_quantity=new_quantity,
        price_sold=record.price,
    ))


def set_quantity(session, category: str, brand: str, item: str, quantity: int) -> InventoryRecord:
    """Overwrite the stock count and log "Manually Set Inventory"."""
    _require_no_pending_sale(session)
    record = _require_record(session, category, brand, item)
    now = utcnow()

    change = quantity - record.quantity
    label = f"{'+' if change > 0 else ''}{change}" if change != 0 else "N/A"
    updated = record.with_quantity(quantity).annotated(label, now)

    return _write(session, updated, audit_entry(
        "Manually Set Inventory",
        when=now,
        item_code=record.item_code,
        category=category,
        brand=brand,
        item=item,
        quantity_change=label,
        new_quantity=quantity,
        price_sold=record.price,
    ))


def set_price(session, category: str, brand: str, item: str, price: Decimal) -> InventoryRecord:
    """Change the unit price and log "Price Updated"."""
    _require_no_pending_sale(session)
    record = _require_record(session, category, brand, item)
    price = to_money(price)
    if price < 0:
        raise InvalidAmount("Price cannot be negative", details={"price": str(price)})

    now = utcnow()
    updated = replace(record, price=price).annotated(
        f"Price changed from ${record.price} to ${price}", now
    )

    return _write(session, updated, audit_entry(
        "Price Updated",
        when=now,
        item_code=record.item_code,
        category=category,
        brand=brand,
        item=item,
        new_quantity=record.quantity,
        price_sold=price,
    ))


def save_reconciled(store: InventoryStore, snapshot: InventorySnapshot) -> None:
    store.save(snapshot)
    logger.info("Inventory reconciled with catalog: %d records", len(snapshot))
