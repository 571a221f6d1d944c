# Overview: Immutable in-memory snapshots of inventory and layaway state.

"""
Snapshot Invariants (authoritative)

- Snapshots are values. Every "mutation" returns a new snapshot; the old one
  is untouched, so a sale can be rolled back by keeping or recomputing values.
- Inventory is keyed by (category, brand, item). Quantity may be negative.
- The categories "Clips, etc." and "Other" are priced from the catalog and are
  never tracked in inventory.
- For every hold: amount_paid + remaining_balance == original_price.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Iterator, Optional

from .time_utils import to_utc_z

CENT = Decimal("0.01")

CLIPS_CATEGORY = "Clips, etc."
OTHER_CATEGORY = "Other"
UNTRACKED_CATEGORIES = frozenset({CLIPS_CATEGORY, OTHER_CATEGORY})

ItemKey = tuple[str, str, str]


def to_money(value) -> Decimal:
    """Coerce int/str/Decimal to a cent-quantized Decimal (half-up)."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Optional[Decimal]) -> str:
    if value is None:
        return "N/A"
    return str(to_money(value))


def is_tracked_category(category: str) -> bool:
    return category not in UNTRACKED_CATEGORIES


@dataclass(frozen=True)
class InventoryRecord:
    item_code: str
    category: str
    brand: str
    item: str
    quantity: int
    price: Decimal
    last_change: str = "Initial"
    last_change_date: Optional[datetime] = None

    @property
    def key(self) -> ItemKey:
        return (self.category, self.brand, self.item)

    def with_quantity(self, quantity: int) -> "InventoryRecord":
        return replace(self, quantity=quantity)

    def annotated(self, last_change: str, when: datetime) -> "InventoryRecord":
        return replace(self, last_change=last_change, last_change_date=when)

    def to_dict(self) -> dict:
        return {
            "item_code": self.item_code,
            "category": self.category,
            "brand": self.brand,
            "item": self.item,
            "quantity": self.quantity,
            "price": format_money(self.price),
            "last_change": self.last_change,
            "last_change_date": to_utc_z(self.last_change_date),
        }


class InventorySnapshot:
    """Read-only mapping of (category, brand, item) -> InventoryRecord."""

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[InventoryRecord] = ()):
        self._records: dict[ItemKey, InventoryRecord] = {r.key: r for r in records}

    def get(self, category: str, brand: str, item: str) -> Optional[InventoryRecord]:
        return self._records.get((category, brand, item))

    def put(self, record: InventoryRecord) -> "InventorySnapshot":
        records = dict(self._records)
        records[record.key] = record
        return InventorySnapshot(records.values())

    def remove(self, category: str, brand: str, item: str) -> "InventorySnapshot":
        return InventorySnapshot(
            r for key, r in self._records.items() if key != (category, brand, item)
        )

    def keys(self) -> set[ItemKey]:
        return set(self._records)

    def as_nested(self) -> dict[str, dict[str, dict[str, InventoryRecord]]]:
        """category -> brand -> item -> record."""
        nested: dict[str, dict[str, dict[str, InventoryRecord]]] = {}
        for record in self._records.values():
            nested.setdefault(record.category, {}).setdefault(record.brand, {})[record.item] = record
        return nested

    @classmethod
    def from_nested(cls, nested: dict) -> "InventorySnapshot":
        return cls(
            record
            for brands in nested.values()
            for items in brands.values()
            for record in items.values()
        )

    def __iter__(self) -> Iterator[InventoryRecord]:
        return iter(sorted(self._records.values(), key=lambda r: r.key))

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other) -> bool:
        if not isinstance(other, InventorySnapshot):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"<InventorySnapshot records={len(self._records)}>"


@dataclass(frozen=True)
class LayawayHold:
    layaway_id: str
    item_code: str
    category: str
    brand: str
    item: str
    original_price: Decimal
    amount_paid: Decimal
    remaining_balance: Decimal
    is_inventory_tracked: bool
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.amount_paid + self.remaining_balance != self.original_price:
            raise ValueError(
                f"layaway {self.layaway_id}: amount_paid + remaining_balance != original_price"
            )

    @property
    def is_paid_off(self) -> bool:
        return self.remaining_balance <= 0

    def with_payment(self, amount: Decimal) -> "LayawayHold":
        paid = self.amount_paid + amount
        return replace(self, amount_paid=paid, remaining_balance=self.original_price - paid)

    def with_balance(self, remaining: Decimal) -> "LayawayHold":
        return replace(self, amount_paid=self.original_price - remaining, remaining_balance=remaining)

    def to_dict(self) -> dict:
        return {
            "layaway_id": self.layaway_id,
            "item_code": self.item_code,
            "category": self.category,
            "brand": self.brand,
            "item": self.item,
            "original_price": format_money(self.original_price),
            "amount_paid": format_money(self.amount_paid),
            "remaining_balance": format_money(self.remaining_balance),
            "is_inventory_tracked": self.is_inventory_tracked,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "created_at": to_utc_z(self.created_at),
        }


class LayawaySnapshot:
    """Ordered, read-only collection of open holds."""

    __slots__ = ("_holds",)

    def __init__(self, holds: Iterable[LayawayHold] = ()):
        self._holds: tuple[LayawayHold, ...] = tuple(holds)

    def get(self, layaway_id: str) -> Optional[LayawayHold]:
        for hold in self._holds:
            if hold.layaway_id == layaway_id:
                return hold
        return None

    def add(self, hold: LayawayHold) -> "LayawaySnapshot":
        return LayawaySnapshot(self._holds + (hold,))

    def replace(self, hold: LayawayHold) -> "LayawaySnapshot":
        return LayawaySnapshot(h if h.layaway_id != hold.layaway_id else hold for h in self._holds)

    def remove(self, layaway_id: str) -> "LayawaySnapshot":
        return LayawaySnapshot(h for h in self._holds if h.layaway_id != layaway_id)

    def __iter__(self) -> Iterator[LayawayHold]:
        return iter(self._holds)

    def __len__(self) -> int:
        return len(self._holds)

    def __eq__(self, other) -> bool:
        if not isinstance(other, LayawaySnapshot):
            return NotImplemented
        return self._holds == other._holds

    def __repr__(self) -> str:
        return f"<LayawaySnapshot holds={len(self._holds)}>"


@dataclass(frozen=True)
class AuditEntry:
    """One audit log line; quantity fields are text so "N/A" fits."""
    timestamp: datetime
    action: str
    item_code: str
    category: str
    brand: str
    item: str
    quantity_change: str = "N/A"
    new_quantity: str = "N/A"
    price_sold: str = "N/A"
    discount_applied: str = "No"

    REQUIRED_FIELDS = ("timestamp", "action", "item_code", "category", "brand", "item")

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]


def audit_entry(
    action: str,
    *,
    when: datetime,
    item_code: str,
    category: str,
    brand: str,
    item: str,
    quantity_change=None,
    new_quantity=None,
    price_sold: Optional[Decimal] = None,
    discount_applied: Optional[str] = None,
) -> AuditEntry:
    return AuditEntry(
        timestamp=when,
        action=action,
        item_code=item_code,
        category=category,
        brand=brand,
        item=item,
        quantity_change="N/A" if quantity_change is None else str(quantity_change),
        new_quantity="N/A" if new_quantity is None else str(new_quantity),
        price_sold=format_money(price_sold),
        discount_applied=discount_applied or "No",
    )
