"""
Sale Session Service - the pending sale transaction engine

WHY: The cashier builds a sale one tap at a time and needs the screen to show
stock as if the sale already happened. The session applies each line
speculatively to in-memory snapshots and either commits everything at once
(complete) or reverses everything (cancel).

INVARIANTS:
- Between the first add and complete/cancel the in-memory inventory and
  layaway snapshots are speculatively ahead of the audit log.
- Exactly one of complete_sale() or cancel_sale() resolves that state.
- Inventory and layaway snapshots are persisted together in one transaction.
  The only exception is a new hold, which is saved as soon as its down
  payment is taken (and deleted again by undo/cancel).
- complete_sale() writes one audit entry per line (plus a "Layaway
  Completed" entry when a payment pays a hold off).

There is a single session per process and a single mutator; no locking.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from flask import current_app

from ..errors import EmptyLedger, InvalidAmount, MissingItemData, OutOfStock
from ..ledger import (
    ZERO,
    LayawayDownPaymentLine,
    LayawayPaymentLine,
    PendingSale,
    SaleItemLine,
    SaleLine,
    apply_discount,
    commit_line,
    new_sale_item_id,
    revert_line,
    take_one,
)
from ..snapshots import (
    OTHER_CATEGORY,
    InventoryRecord,
    InventorySnapshot,
    LayawayHold,
    LayawaySnapshot,
    is_tracked_category,
    to_money,
)
from ..validation import ValidationError
from tillbook.time_utils import utcnow
from .audit_log_service import AuditLog
from .catalog_service import CUSTOM_BRAND, MenuCatalog, generate_item_code
from .inventory_service import InventoryStore, reconcile_with_catalog, save_reconciled
from .layaway_service import LayawayStore, missing_layaway
from .persistence import run_or_fail

logger = logging.getLogger(__name__)

SESSION_KEY = "tillbook.sale_session"
CATALOG_KEY = "tillbook.catalog"


class SaleSession:
    """
    Process-wide sale state, passed explicitly to every operation.

    Holds the store collaborators, the current inventory/layaway snapshots,
    the pending sale and the last completed sale total.
    """

    def __init__(
        self,
        *,
        inventory_store: InventoryStore,
        layaway_store: LayawayStore,
        audit_log: AuditLog,
        catalog: MenuCatalog,
        down_payment_rate: Decimal = Decimal("0.30"),
        inventory: InventorySnapshot | None = None,
        layaways: LayawaySnapshot | None = None,
    ):
        self.inventory_store = inventory_store
        self.layaway_store = layaway_store
        self.audit_log = audit_log
        self.catalog = catalog
        self.down_payment_rate = Decimal(down_payment_rate)

        self.inventory = inventory if inventory is not None else inventory_store.load()
        self.layaways = layaways if layaways is not None else layaway_store.load()
        self.pending = PendingSale()
        self.last_completed_total = ZERO

    @property
    def down_payment_label(self) -> str:
        return f"Layaway {(self.down_payment_rate * 100).normalize():f}% Down"

    def persist(self) -> None:
        """Save inventory and layaway snapshots together in one transaction."""
        def _stage():
            self.inventory_store.stage(self.inventory)
            self.layaway_store.stage(self.layaways)

        run_or_fail(_stage, "Failed to save inventory and layaway data")

    def to_dict(self) -> dict:
        return {
            **self.pending.to_dict(),
            "last_completed_total": str(self.last_completed_total),
        }


@dataclass
class SaleReceipt:
    total: Decimal
    line_count: int
    entries_written: int
    notices: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": str(self.total),
            "line_count": self.line_count,
            "entries_written": self.entries_written,
            "notices": list(self.notices),
        }


def open_session(
    catalog: MenuCatalog,
    *,
    default_quantity: int = 10,
    default_price: Decimal = Decimal("25.00"),
    down_payment_rate: Decimal = Decimal("0.30"),
) -> SaleSession:
    """Load both stores, reconcile inventory with the catalog and save it."""
    inventory_store = InventoryStore()
    inventory = reconcile_with_catalog(
        inventory_store.load(),
        catalog,
        default_quantity=default_quantity,
        default_price=default_price,
    )
    save_reconciled(inventory_store, inventory)

    return SaleSession(
        inventory_store=inventory_store,
        layaway_store=LayawayStore(),
        audit_log=AuditLog(),
        catalog=catalog,
        down_payment_rate=down_payment_rate,
        inventory=inventory,
    )


def current_session() -> SaleSession:
    """The app's single sale session, opened on first use."""
    session = current_app.extensions.get(SESSION_KEY)
    if session is None:
        config = current_app.config
        session = open_session(
            current_app.extensions[CATALOG_KEY],
            default_quantity=config["DEFAULT_ITEM_QUANTITY"],
            default_price=to_money(config["DEFAULT_ITEM_PRICE"]),
            down_payment_rate=Decimal(str(config["LAYAWAY_DOWN_PAYMENT_RATE"])),
        )
        current_app.extensions[SESSION_KEY] = session
    return session


def reset_session() -> None:
    current_app.extensions.pop(SESSION_KEY, None)


def _missing_item(category: str, brand: str, item: str, action: str) -> MissingItemData:
    logger.error("Could not %s: missing item data for %s / %s / %s", action, category, brand, item)
    return MissingItemData(
        f"Could not {action} due to missing item data",
        details={"category": category, "brand": brand, "item": item},
    )


def _catalog_record(session: SaleSession, category: str, brand: str, item: str) -> InventoryRecord | None:
    """Transient record for a catalog-priced (untracked) item."""
    price = session.catalog.price_for(category, brand, item)
    if price is None:
        return None
    return InventoryRecord(
        item_code=generate_item_code(category, brand, item),
        category=category,
        brand=brand,
        item=item,
        quantity=0,
        price=price,
        last_change="N/A",
    )


def _resolve_item(session: SaleSession, category: str, brand: str, item: str) -> InventoryRecord | None:
    if is_tracked_category(category):
        return session.inventory.get(category, brand, item)
    return _catalog_record(session, category, brand, item)


def add_sale_line(
    session: SaleSession,
    category: str,
    brand: str,
    item: str,
    price_sold,
    discount_label: str = "No",
    track_inventory: bool = True,
    item_snapshot: InventoryRecord | None = None,
) -> SaleItemLine:
    """
    Append a sale line.

    Tracked items lose one unit from the in-memory inventory right away
    (original_quantity_change = -1); nothing is logged until complete_sale().
    A tracked item must already be in inventory; item_snapshot only stands in
    for untracked lines.
    """
    price_sold = to_money(price_sold)
    if price_sold < 0:
        raise InvalidAmount("Price cannot be negative", details={"price_sold": str(price_sold)})

    tracked = bool(track_inventory) and is_tracked_category(category)
    if tracked:
        record = session.inventory.get(category, brand, item)
    else:
        record = item_snapshot or _resolve_item(session, category, brand, item)
    if record is None:
        raise _missing_item(category, brand, item, "log sale")

    new_quantity = None
    if tracked:
        session.inventory, updated = take_one(session.inventory, record)
        new_quantity = updated.quantity

    line = SaleItemLine(
        sale_item_id=new_sale_item_id(),
        item_code=record.item_code or generate_item_code(category, brand, item),
        category=category,
        brand=brand,
        item=item,
        price_sold=price_sold,
        discount_applied=discount_label or "No",
        is_inventory_tracked=tracked,
        original_quantity_change=-1 if tracked else 0,
        new_quantity=new_quantity,
    )
    session.pending = session.pending.append(line)
    return line


def sell_item(
    session: SaleSession,
    category: str,
    brand: str,
    item: str,
    *,
    discount_percentage=None,
    confirm_out_of_stock: bool = False,
) -> SaleItemLine:
    """Tap-to-sell: resolve the price, apply an optional discount, add the line."""
    record = _resolve_item(session, category, brand, item)
    if record is None:
        raise _missing_item(category, brand, item, "log sale")

    if is_tracked_category(category) and record.quantity <= 0 and not confirm_out_of_stock:
        raise OutOfStock(
            f"{category} - {brand} - {item} is out of stock",
            details={"quantity": record.quantity, "item_code": record.item_code},
        )

    price, label = record.price, "No"
    if discount_percentage is not None:
        price, label = apply_discount(record.price, discount_percentage)

    return add_sale_line(session, category, brand, item, price, label, True, record)


def add_custom_item(
    session: SaleSession,
    name: str,
    price,
    *,
    category: str = OTHER_CATEGORY,
    brand: str = CUSTOM_BRAND,
) -> SaleItemLine:
    """A one-off item typed in at the till; never inventory tracked."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Item name is required")
    price = to_money(price)
    if price < 0:
        raise InvalidAmount("Price cannot be negative", details={"price": str(price)})

    snapshot = InventoryRecord(
        item_code=generate_item_code(category, brand, name),
        category=category,
        brand=brand,
        item=name,
        quantity=0,
        price=price,
        last_change="N/A",
    )
    return add_sale_line(session, category, brand, name, price, "No", False, snapshot)


def add_layaway_down_payment(
    session: SaleSession,
    category: str,
    brand: str,
    item: str,
    original_price=None,
    customer_name: str | None = None,
    customer_phone: str | None = None,
) -> tuple[LayawayHold, LayawayDownPaymentLine]:
    """
    Open a new hold and put its down payment on the sale.

    The hold is saved immediately with the down payment applied; inventory
    is not touched until the hold is paid off.
    """
    record = _resolve_item(session, category, brand, item)
    if record is None:
        raise _missing_item(category, brand, item, "place item on layaway")

    original = to_money(original_price if original_price is not None else record.price)
    if original <= 0:
        raise InvalidAmount("Layaway price must be greater than zero", details={"original_price": str(original)})

    down_payment = to_money(original * session.down_payment_rate)
    hold = LayawayHold(
        layaway_id=uuid.uuid4().hex,
        item_code=record.item_code,
        category=category,
        brand=brand,
        item=item,
        original_price=original,
        amount_paid=down_payment,
        remaining_balance=original - down_payment,
        is_inventory_tracked=is_tracked_category(category),
        customer_name=customer_name,
        customer_phone=customer_phone,
        created_at=utcnow(),
    )
    line = LayawayDownPaymentLine(
        sale_item_id=new_sale_item_id(),
        layaway_id=hold.layaway_id,
        item_code=hold.item_code,
        category=category,
        brand=brand,
        item=item,
        price_sold=down_payment,
        discount_applied=session.down_payment_label,
    )

    session.layaways = session.layaways.add(hold)
    session.pending = session.pending.append(line)
    session.layaway_store.save(session.layaways)
    logger.info(
        "Layaway %s opened for %s: down %s, remaining %s",
        hold.layaway_id, item, down_payment, hold.remaining_balance,
    )
    return hold, line


def add_layaway_payment(session: SaleSession, hold: LayawayHold | str, amount) -> LayawayPaymentLine:
    """
    Queue a payment against an open hold.

    0 < amount <= remaining balance, where the balance already counts payments
    queued earlier in this sale. Rejected before anything changes.
    """
    layaway_id = hold if isinstance(hold, str) else hold.layaway_id
    current = session.layaways.get(layaway_id)
    if current is None:
        raise missing_layaway(layaway_id, "take layaway payment")

    amount = to_money(amount)
    available = current.remaining_balance - session.pending.pending_payments(layaway_id)
    if amount <= 0:
        raise InvalidAmount("Please enter a valid positive number for the payment", details={"amount": str(amount)})
    if amount > available:
        raise InvalidAmount(
            f"Payment amount ${amount} exceeds remaining balance ${available}",
            details={"amount": str(amount), "remaining_balance": str(available)},
        )

    line = LayawayPaymentLine(
        sale_item_id=new_sale_item_id(),
        layaway_id=layaway_id,
        item_code=current.item_code,
        category=current.category,
        brand=current.brand,
        item=current.item,
        price_sold=amount,
    )
    session.pending = session.pending.append(line)
    return line


def undo_last(session: SaleSession) -> SaleLine:
    """Pop the last line and reverse its speculative effect."""
    session.pending, line = session.pending.pop()
    session.inventory, session.layaways = revert_line(session.inventory, session.layaways, line)

    if isinstance(line, LayawayDownPaymentLine):
        session.layaway_store.save(session.layaways)
    return line


def duplicate_last(session: SaleSession, *, confirm_out_of_stock: bool = False) -> SaleLine:
    """
    Repeat the last line.

    - Sale lines are re-added with the same price and a fresh id; tracked
      items re-check stock after the previous decrement.
    - Down payment lines open a brand-new, independent hold with the same
      price and customer; they never pay twice into one hold.
    - Payment lines queue the same amount again on the same hold.
    """
    line = session.pending.last

    if isinstance(line, LayawayDownPaymentLine):
        source = session.layaways.get(line.layaway_id)
        if source is None:
            raise missing_layaway(line.layaway_id, "duplicate layaway")
        _, new_line = add_layaway_down_payment(
            session,
            line.category,
            line.brand,
            line.item,
            source.original_price,
            source.customer_name,
            source.customer_phone,
        )
        return new_line

    if isinstance(line, LayawayPaymentLine):
        return add_layaway_payment(session, line.layaway_id, line.price_sold)

    snapshot = None
    if line.is_inventory_tracked:
        snapshot = session.inventory.get(line.category, line.brand, line.item)
        if snapshot is None:
            raise _missing_item(line.category, line.brand, line.item, "duplicate item")
        if snapshot.quantity <= 0 and not confirm_out_of_stock:
            raise OutOfStock(
                f"{line.category} - {line.brand} - {line.item} is out of stock",
                details={"quantity": snapshot.quantity, "item_code": snapshot.item_code},
            )
    else:
        snapshot = InventoryRecord(
            item_code=line.item_code,
            category=line.category,
            brand=line.brand,
            item=line.item,
            quantity=0,
            price=line.price_sold,
            last_change="N/A",
        )

    return add_sale_line(
        session,
        line.category,
        line.brand,
        line.item,
        line.price_sold,
        line.discount_applied,
        line.is_inventory_tracked,
        snapshot,
    )


def complete_sale(session: SaleSession) -> SaleReceipt:
    """
    Commit the pending sale.

    Lines are finalized in insertion order and their audit entries appended as
    they go. Snapshots are saved once, after the loop. If that save fails the
    sale is still complete in memory (and in the log); save_session() retries
    the snapshot write.
    """
    if session.pending.is_empty:
        raise EmptyLedger("There are no items in the current sale to complete")

    pending = session.pending
    now = utcnow()
    inventory, layaways = session.inventory, session.layaways
    notices: list[str] = []
    written = 0

    for line in pending.lines:
        result = commit_line(inventory, layaways, line, now)
        inventory, layaways = result.inventory, result.layaways
        written += session.audit_log.append_all(result.entries)
        notices.extend(result.notices)

    session.inventory, session.layaways = inventory, layaways
    session.pending = PendingSale()
    session.last_completed_total = pending.total
    logger.info("Sale completed: %d lines, total %s", len(pending.lines), pending.total)

    session.persist()
    return SaleReceipt(
        total=pending.total,
        line_count=len(pending.lines),
        entries_written=written,
        notices=notices,
    )


def cancel_sale(session: SaleSession) -> int:
    """
    Reverse every line of the pending sale and discard it.

    Runs the whole reversal before saving. Holds opened by down payments in
    this sale are deleted. Returns the number of lines reversed.
    """
    if session.pending.is_empty:
        return 0

    lines = session.pending.lines
    inventory, layaways = session.inventory, session.layaways
    for line in reversed(lines):
        inventory, layaways = revert_line(inventory, layaways, line)

    session.inventory, session.layaways = inventory, layaways
    session.pending = PendingSale()
    session.last_completed_total = ZERO
    logger.info("Sale cancelled: %d lines reversed", len(lines))

    session.persist()
    return len(lines)


def save_session(session: SaleSession) -> None:
    """Write the current snapshots again (retry after a PersistenceFailure)."""
    session.persist()
