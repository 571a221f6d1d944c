from datetime import datetime
from decimal import Decimal

import pytest

from tillbook.errors import InvalidAmount, MissingItemData, PendingSaleOpen
from tillbook.models import AuditLogEntry, InventoryItem
from tillbook.services import inventory_service, sales_service
from tillbook.services.catalog_service import MenuCatalog
from tillbook.snapshots import InventoryRecord, InventorySnapshot


TOTE = ("Handbags", "Coach", "Leather Tote")

MENUS = {
    "categories": [
        {"name": "Handbags", "brands": [
            {"name": "Coach", "items": [
                {"name": "Leather Tote", "price": 25},
                {"name": "Wallet"},
            ]},
        ]},
        {"name": "Other", "brands": [
            {"name": "Services", "items": [{"name": "Gift Wrap", "price": 5}]},
        ]},
    ]
}


def _record(item="Leather Tote", quantity=4, price="30.00", brand="Coach"):
    return InventoryRecord(
        item_code="HAN-COA-XXX-11111",
        category="Handbags",
        brand=brand,
        item=item,
        quantity=quantity,
        price=Decimal(price),
        last_change="+1",
    )


class TestReconcile:

    def test_missing_items_created_with_defaults(self):
        result = inventory_service.reconcile_with_catalog(
            InventorySnapshot(),
            MenuCatalog(MENUS),
            default_quantity=10,
            default_price=Decimal("25.00"),
        )

        wallet = result.get("Handbags", "Coach", "Wallet")
        assert wallet.quantity == 10
        assert wallet.price == Decimal("25.00")
        assert wallet.last_change == "Initial"
        assert wallet.item_code.startswith("HAN-COA-WAL-")
        assert result.get("Other", "Services", "Gift Wrap") is None

    def test_existing_records_kept(self):
        existing = _record()
        result = inventory_service.reconcile_with_catalog(
            InventorySnapshot([existing]),
            MenuCatalog(MENUS),
            default_quantity=10,
            default_price=Decimal("25.00"),
        )
        assert result.get(*TOTE) == existing

    def test_records_outside_catalog_dropped(self):
        stale = _record(item="Discontinued")
        result = inventory_service.reconcile_with_catalog(
            InventorySnapshot([stale]),
            MenuCatalog(MENUS),
            default_quantity=10,
            default_price=Decimal("25.00"),
        )
        assert result.get("Handbags", "Coach", "Discontinued") is None
        assert len(result) == 2

    def test_bad_quantity_corrected(self):
        broken = _record(quantity="lots")
        now = datetime(2026, 10, 19, 9, 0)
        result = inventory_service.reconcile_with_catalog(
            InventorySnapshot([broken]),
            MenuCatalog(MENUS),
            default_quantity=10,
            default_price=Decimal("25.00"),
            now=now,
        )
        fixed = result.get(*TOTE)
        assert fixed.quantity == 10
        assert fixed.last_change == "Quantity Corrected"
        assert fixed.last_change_date == now


class TestInventoryStore:

    def test_put_ignores_untracked_categories(self, db_session):
        store = inventory_service.InventoryStore()
        store.put(InventoryRecord(
            item_code="OTH-SER-GIF-12345",
            category="Other",
            brand="Services",
            item="Gift Wrap",
            quantity=0,
            price=Decimal("5.00"),
        ))
        assert db_session.query(InventoryItem).count() == 0

    def test_save_replaces_stored_set(self, db_session):
        store = inventory_service.InventoryStore()
        store.save(InventorySnapshot([_record(), _record(item="Wallet")]))
        store.save(InventorySnapshot([_record(quantity=-2)]))

        loaded = store.load()
        assert len(loaded) == 1
        assert loaded.get(*TOTE).quantity == -2
        assert loaded.get(*TOTE).price == Decimal("30.00")


class TestManualAdjustments:

    def test_adjust_quantity(self, session, db_session):
        record = inventory_service.adjust_quantity(session, *TOTE, 5)

        assert record.quantity == 15
        assert record.last_change == "+5"
        assert session.inventory.get(*TOTE).quantity == 15
        assert db_session.query(InventoryItem).filter_by(item="Leather Tote").one().quantity == 15
        entry = db_session.query(AuditLogEntry).one()
        assert entry.action == "Adjusted Inventory"
        assert entry.quantity_change == "+5"
        assert entry.new_quantity == "15"

    def test_set_quantity(self, session, db_session):
        record = inventory_service.set_quantity(session, *TOTE, 3)

        assert record.quantity == 3
        assert record.last_change == "-7"
        assert db_session.query(AuditLogEntry).one().action == "Manually Set Inventory"

    def test_set_price(self, session, db_session):
        record = inventory_service.set_price(session, *TOTE, Decimal("31.5"))

        assert record.price == Decimal("31.50")
        assert record.last_change == "Price changed from $25.00 to $31.50"
        entry = db_session.query(AuditLogEntry).one()
        assert entry.action == "Price Updated"
        assert entry.price_sold == "31.50"
        # Later sales use the new price
        assert sales_service.sell_item(session, *TOTE).price_sold == Decimal("31.50")

    def test_negative_price_rejected(self, session):
        with pytest.raises(InvalidAmount):
            inventory_service.set_price(session, *TOTE, Decimal("-1"))

    def test_unknown_item(self, session):
        with pytest.raises(MissingItemData):
            inventory_service.adjust_quantity(session, "Handbags", "Coach", "Nope", 1)

    def test_refused_while_sale_pending(self, session, db_session):
        sales_service.sell_item(session, *TOTE)

        with pytest.raises(PendingSaleOpen):
            inventory_service.adjust_quantity(session, *TOTE, 1)
        with pytest.raises(PendingSaleOpen):
            inventory_service.set_price(session, *TOTE, Decimal("1.00"))
        assert session.inventory.get(*TOTE).quantity == 9
        assert db_session.query(AuditLogEntry).count() == 0
