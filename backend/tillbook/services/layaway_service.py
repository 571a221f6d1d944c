# Overview: Service-layer operations for layaway holds; whole-list store, manual balance edits and cancellation.

"""
Layaway Service

WHY: A hold reserves an item against partial payments. Holds are opened and
paid through the sale session; this module owns their storage and the two
manual operations done from the layaway screen.

LIFECYCLE: created (down payment) -> payments -> completed (auto-removed)
or cancelled (explicit removal). Inventory is never touched for an open hold,
so cancelling has no stock effect.

STORAGE: the store has no partial update API. Every save rewrites the full
list in order.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..errors import InvalidBalance, MissingItemData, PendingSaleOpen
from ..ledger import complete_hold
from ..models import Layaway
from ..snapshots import LayawayHold, LayawaySnapshot, audit_entry, to_money
from tillbook.time_utils import utcnow
from .persistence import run_or_fail

logger = logging.getLogger(__name__)


class LayawayStore:
    """Layaway snapshot store backed by the layaway_holds table."""

    def load(self) -> LayawaySnapshot:
        rows = db.session.query(Layaway).order_by(Layaway.position.asc(), Layaway.id.asc()).all()
        return LayawaySnapshot(row.to_hold() for row in rows)

    def stage(self, holds: LayawaySnapshot) -> None:
        """Replace the stored list inside the current transaction."""
        db.session.query(Layaway).delete()
        for position, hold in enumerate(holds):
            db.session.add(Layaway.from_hold(hold, position))
        db.session.flush()

    def save(self, holds: LayawaySnapshot) -> None:
        run_or_fail(lambda: self.stage(holds), "Failed to save layaway items")


def missing_layaway(layaway_id: str, action: str) -> MissingItemData:
    logger.error("Could not %s: layaway %s not found", action, layaway_id)
    return MissingItemData("Layaway not found", details={"layaway_id": layaway_id})


def _require_hold(session, layaway_id: str, action: str) -> LayawayHold:
    hold = session.layaways.get(layaway_id)
    if hold is None:
        raise missing_layaway(layaway_id, action)
    if session.pending.references_hold(layaway_id):
        raise PendingSaleOpen(
            "This layaway is part of the current sale; complete or cancel the sale first",
            details={"layaway_id": layaway_id},
        )
    return hold


def list_holds(session) -> list[LayawayHold]:
    return list(session.layaways)


def set_balance(session, layaway_id: str, remaining: Decimal) -> list[str]:
    """
    Manually correct a hold's remaining balance.

    amount_paid follows (original_price - remaining). A balance of zero
    completes the hold exactly like a final payment would. Returns any
    user-facing notices.
    """
    hold = _require_hold(session, layaway_id, "edit layaway balance")
    remaining = to_money(remaining)
    if remaining < 0 or remaining > hold.original_price:
        raise InvalidBalance(
            "Balance must be between 0 and the original price",
            details={"remaining_balance": str(remaining), "original_price": str(hold.original_price)},
        )

    if remaining == 0 and not session.pending.is_empty:
        # Completion writes inventory; the cart's speculative stock must not ride along.
        raise PendingSaleOpen(
            "Complete or cancel the current sale before paying off a layaway manually",
            details={"layaway_id": layaway_id},
        )

    now = utcnow()
    updated = hold.with_balance(remaining)
    inventory = session.inventory
    layaways = session.layaways.replace(updated)
    entries = [audit_entry(
        "Layaway Balance Edited",
        when=now,
        item_code=hold.item_code,
        category=hold.category,
        brand=hold.brand,
        item=hold.item,
        price_sold=updated.amount_paid,
        discount_applied=f"Balance {hold.remaining_balance} -> {remaining}",
    )]
    notices: list[str] = []

    if updated.is_paid_off:
        result = complete_hold(inventory, layaways, updated, now)
        inventory, layaways = result.inventory, result.layaways
        entries.extend(result.entries)
        notices.extend(result.notices)

    session.audit_log.append_all(entries)
    session.inventory, session.layaways = inventory, layaways
    if notices:
        session.persist()
    else:
        session.layaway_store.save(layaways)
    return notices


def cancel_hold(session, layaway_id: str) -> LayawayHold:
    """Remove a hold without any inventory effect."""
    hold = _require_hold(session, layaway_id, "cancel layaway")
    session.layaways = session.layaways.remove(layaway_id)

    session.audit_log.append(audit_entry(
        "Layaway Cancelled",
        when=utcnow(),
        item_code=hold.item_code,
        category=hold.category,
        brand=hold.brand,
        item=hold.item,
        price_sold=hold.amount_paid,
        discount_applied="Layaway Cancelled",
    ))
    session.layaway_store.save(session.layaways)
    logger.info("Layaway %s cancelled (%s)", layaway_id, hold.item)
    return hold
