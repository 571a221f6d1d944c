from decimal import Decimal

import pytest

from tillbook.snapshots import (
    InventoryRecord,
    InventorySnapshot,
    LayawayHold,
    LayawaySnapshot,
    format_money,
    is_tracked_category,
    to_money,
)


def _record(item="Tote", quantity=3):
    return InventoryRecord(
        item_code="HAN-COA-TOT-10000",
        category="Handbags",
        brand="Coach",
        item=item,
        quantity=quantity,
        price=Decimal("25.00"),
    )


def _hold(layaway_id="a", paid="30.00", remaining="70.00"):
    return LayawayHold(
        layaway_id=layaway_id,
        item_code="HAN-COA-TOT-10000",
        category="Handbags",
        brand="Coach",
        item="Tote",
        original_price=Decimal("100.00"),
        amount_paid=Decimal(paid),
        remaining_balance=Decimal(remaining),
        is_inventory_tracked=True,
    )


class TestMoney:

    @pytest.mark.parametrize("value,expected", [
        (25, "25.00"),
        ("2.345", "2.35"),
        (0.1, "0.10"),
        (Decimal("19.999"), "20.00"),
    ])
    def test_to_money(self, value, expected):
        assert to_money(value) == Decimal(expected)

    def test_format_money(self):
        assert format_money(None) == "N/A"
        assert format_money(Decimal("5")) == "5.00"

    def test_tracked_categories(self):
        assert is_tracked_category("Handbags")
        assert not is_tracked_category("Clips, etc.")
        assert not is_tracked_category("Other")


class TestInventorySnapshot:

    def test_put_returns_new_snapshot(self):
        before = InventorySnapshot([_record()])
        after = before.put(_record(quantity=2))

        assert before.get("Handbags", "Coach", "Tote").quantity == 3
        assert after.get("Handbags", "Coach", "Tote").quantity == 2
        assert before != after

    def test_nested_view_round_trip(self):
        snapshot = InventorySnapshot([_record(), _record(item="Wallet")])
        nested = snapshot.as_nested()

        assert nested["Handbags"]["Coach"]["Wallet"].item == "Wallet"
        assert InventorySnapshot.from_nested(nested) == snapshot

    def test_remove(self):
        snapshot = InventorySnapshot([_record()]).remove("Handbags", "Coach", "Tote")
        assert len(snapshot) == 0


class TestLayaways:

    def test_hold_invariant_enforced(self):
        with pytest.raises(ValueError):
            _hold(paid="30.00", remaining="60.00")

    def test_payment_keeps_invariant(self):
        hold = _hold().with_payment(Decimal("20.00"))
        assert hold.amount_paid == Decimal("50.00")
        assert hold.remaining_balance == Decimal("50.00")
        assert not hold.is_paid_off

    def test_paid_off(self):
        assert _hold().with_payment(Decimal("70.00")).is_paid_off
        assert _hold().with_balance(Decimal("0")).is_paid_off

    def test_snapshot_keeps_insertion_order(self):
        snapshot = LayawaySnapshot().add(_hold("b")).add(_hold("a"))
        assert [h.layaway_id for h in snapshot] == ["b", "a"]

        replaced = snapshot.replace(_hold("b").with_payment(Decimal("10.00")))
        assert [h.layaway_id for h in replaced] == ["b", "a"]
        assert snapshot.get("b").amount_paid == Decimal("30.00")
