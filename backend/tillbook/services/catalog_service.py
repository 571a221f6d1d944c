# Overview: Service-layer operations for the menu catalog; read-only price and item lookups.

"""
Menu Catalog

WHY: The catalog decides which (category, brand, item) triples exist. Tracked
items get their price from inventory; "Clips, etc." and "Other" are priced
here and never reach inventory.

The "Clips, etc." > "Fixed Prices" brand is always regenerated from
FIXED_PRICES so a hand-edited menu file cannot drift from the till buttons.
"""

from __future__ import annotations

import json
import logging
import random
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterator, Optional

from ..snapshots import CLIPS_CATEGORY, OTHER_CATEGORY, is_tracked_category, to_money

logger = logging.getLogger(__name__)

FIXED_PRICES_BRAND = "Fixed Prices"
CUSTOM_BRAND = "Custom"

FIXED_PRICES = [
    2, 5, 10, 12, 14, 18, 20, 22, 25, 30,
    40, 50, 60, 70, 80, 90, 100, 110, 120, 130,
    140, 150, 160, 170, 180, 190, 200, 250,
]

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def _code_part(value: str) -> str:
    return _NON_ALNUM.sub("", value)[:3].upper()


def generate_item_code(category: str, brand: str, item: str) -> str:
    """CAT-BRA-ITE-NNNNN with five random digits."""
    suffix = random.randint(10000, 99999)
    return f"{_code_part(category)}-{_code_part(brand)}-{_code_part(item)}-{suffix}"


def _fixed_price_items() -> list[dict]:
    return [{"name": f"${price}.00", "price": price} for price in FIXED_PRICES]


def default_menus() -> dict:
    return {
        "categories": [
            {"name": OTHER_CATEGORY, "brands": [{"name": CUSTOM_BRAND, "items": []}]},
            {
                "name": CLIPS_CATEGORY,
                "brands": [{"name": FIXED_PRICES_BRAND, "items": _fixed_price_items()}],
            },
        ]
    }


@dataclass(frozen=True)
class CatalogItem:
    category: str
    brand: str
    item: str
    price: Optional[Decimal]


def _catalog_item(category: str, brand: str, entry: dict) -> Optional[CatalogItem]:
    """One menu entry, or None (with a warning) when it cannot be used."""
    name = entry.get("name")
    if not name:
        logger.warning("Skipping item without a name in %s / %s", category, brand)
        return None

    price = entry.get("price")
    if price is not None:
        try:
            price = to_money(price)
        except (InvalidOperation, TypeError, ValueError):
            logger.warning("Skipping %s / %s / %s: invalid price %r", category, brand, name, entry["price"])
            return None
    return CatalogItem(category=category, brand=brand, item=name, price=price)


class MenuCatalog:
    """Immutable view of the category > brand > item menu tree."""

    def __init__(self, menus: dict):
        self._items: dict[tuple[str, str, str], CatalogItem] = {}
        self._categories: list[str] = []
        for category in menus.get("categories") or []:
            category_name = category.get("name")
            if not category_name:
                logger.warning("Skipping menu category without a name: %r", category)
                continue
            self._categories.append(category_name)
            for brand in category.get("brands") or []:
                brand_name = brand.get("name")
                if not brand_name:
                    logger.warning("Skipping brand without a name in %s", category_name)
                    continue
                for entry in brand.get("items") or []:
                    catalog_item = _catalog_item(category_name, brand_name, entry)
                    if catalog_item is not None:
                        self._items[(category_name, brand_name, catalog_item.item)] = catalog_item

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    def lookup(self, category: str, brand: str, item: str) -> Optional[CatalogItem]:
        return self._items.get((category, brand, item))

    def price_for(self, category: str, brand: str, item: str) -> Optional[Decimal]:
        entry = self.lookup(category, brand, item)
        return entry.price if entry else None

    def tracked_items(self) -> Iterator[CatalogItem]:
        for entry in self._items.values():
            if is_tracked_category(entry.category):
                yield entry

    def __len__(self) -> int:
        return len(self._items)


def normalize_menus(menus: Optional[dict]) -> dict:
    """Fall back to defaults when empty and force the fixed price buttons."""
    if not menus or not menus.get("categories"):
        return default_menus()

    categories = [dict(c) for c in menus["categories"]]
    clips = next((c for c in categories if c.get("name") == CLIPS_CATEGORY), None)
    if clips is None:
        clips = {"name": CLIPS_CATEGORY, "brands": []}
        categories.append(clips)

    brands = [b for b in clips.get("brands") or [] if b.get("name") != FIXED_PRICES_BRAND]
    brands.append({"name": FIXED_PRICES_BRAND, "items": _fixed_price_items()})
    clips["brands"] = brands
    return {"categories": categories}


def load_catalog(path: Optional[str] = None) -> MenuCatalog:
    if not path:
        return MenuCatalog(default_menus())

    menu_path = Path(path)
    if not menu_path.exists():
        logger.warning("Catalog file %s not found; using default menus", menu_path)
        return MenuCatalog(default_menus())

    with menu_path.open(encoding="utf-8") as fh:
        menus = json.load(fh)
    return MenuCatalog(normalize_menus(menus))
