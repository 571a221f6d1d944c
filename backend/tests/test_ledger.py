"""
Pure ledger tests: pending sale values and snapshot transitions.

No database; every function here is snapshot-in/snapshot-out.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from tillbook.errors import EmptyLedger, InvalidAmount
from tillbook.ledger import (
    LayawayDownPaymentLine,
    LayawayPaymentLine,
    PendingSale,
    SaleItemLine,
    apply_discount,
    commit_line,
    new_sale_item_id,
    revert_line,
    take_one,
)
from tillbook.snapshots import InventoryRecord, InventorySnapshot, LayawayHold, LayawaySnapshot


NOW = datetime(2026, 10, 19, 12, 0, 0)


def _record(quantity=10, price="25.00"):
    return InventoryRecord(
        item_code="HAN-COA-LEA-12345",
        category="Handbags",
        brand="Coach",
        item="Leather Tote",
        quantity=quantity,
        price=Decimal(price),
    )


def _hold(paid="30.00", remaining="70.00", tracked=True):
    return LayawayHold(
        layaway_id="hold-1",
        item_code="HAN-COA-LEA-12345",
        category="Handbags",
        brand="Coach",
        item="Leather Tote",
        original_price=Decimal("100.00"),
        amount_paid=Decimal(paid),
        remaining_balance=Decimal(remaining),
        is_inventory_tracked=tracked,
    )


def _sale_line(price="25.00", tracked=True, new_quantity=9):
    return SaleItemLine(
        sale_item_id=new_sale_item_id(),
        item_code="HAN-COA-LEA-12345",
        category="Handbags",
        brand="Coach",
        item="Leather Tote",
        price_sold=Decimal(price),
        is_inventory_tracked=tracked,
        original_quantity_change=-1 if tracked else 0,
        new_quantity=new_quantity if tracked else None,
    )


def _payment_line(amount="70.00"):
    return LayawayPaymentLine(
        sale_item_id=new_sale_item_id(),
        layaway_id="hold-1",
        item_code="HAN-COA-LEA-12345",
        category="Handbags",
        brand="Coach",
        item="Leather Tote",
        price_sold=Decimal(amount),
    )


class TestPendingSale:

    def test_total_is_sum_of_lines(self):
        sale = PendingSale().append(_sale_line("25.00")).append(_sale_line("12.50", tracked=False))
        assert sale.total == Decimal("37.50")

    def test_empty_sale_has_zero_total(self):
        assert PendingSale().total == Decimal("0.00")
        assert PendingSale().is_empty

    def test_pop_returns_last_line(self):
        first, second = _sale_line(), _sale_line("10.00")
        sale = PendingSale().append(first).append(second)

        sale, popped = sale.pop()

        assert popped is second
        assert sale.lines == (first,)

    def test_pop_on_empty_raises(self):
        with pytest.raises(EmptyLedger):
            PendingSale().pop()

    def test_append_does_not_mutate(self):
        empty = PendingSale()
        empty.append(_sale_line())
        assert empty.is_empty

    def test_pending_payments_counts_only_that_hold(self):
        sale = PendingSale().append(_payment_line("10.00")).append(_payment_line("5.00"))
        assert sale.pending_payments("hold-1") == Decimal("15.00")
        assert sale.pending_payments("other") == Decimal("0.00")

    def test_line_ids_strictly_increase(self):
        ids = [new_sale_item_id() for _ in range(50)]
        assert ids == sorted(set(ids))


class TestDiscount:

    def test_percentage_discount(self):
        price, label = apply_discount(Decimal("25.00"), 10)
        assert price == Decimal("22.50")
        assert label == "10% Discount"

    def test_discount_rounds_half_up(self):
        price, _ = apply_discount(Decimal("0.25"), 50)
        assert price == Decimal("0.13")

    @pytest.mark.parametrize("pct", [-1, 101])
    def test_out_of_range_rejected(self, pct):
        with pytest.raises(InvalidAmount):
            apply_discount(Decimal("25.00"), pct)


class TestTransitions:

    def test_take_one_then_revert_restores_quantity(self):
        before = InventorySnapshot([_record(quantity=10)])
        after, updated = take_one(before, _record())
        assert updated.quantity == 9

        line = _sale_line(new_quantity=9)
        restored, _ = revert_line(after, LayawaySnapshot(), line)

        assert restored == before
        assert before.get("Handbags", "Coach", "Leather Tote").quantity == 10

    def test_take_one_may_go_negative(self):
        _, updated = take_one(InventorySnapshot([_record(quantity=0)]), _record(quantity=0))
        assert updated.quantity == -1

    def test_revert_down_payment_removes_hold(self):
        layaways = LayawaySnapshot([_hold()])
        line = LayawayDownPaymentLine(
            sale_item_id=new_sale_item_id(),
            layaway_id="hold-1",
            item_code="HAN-COA-LEA-12345",
            category="Handbags",
            brand="Coach",
            item="Leather Tote",
            price_sold=Decimal("30.00"),
        )
        _, after = revert_line(InventorySnapshot(), layaways, line)
        assert len(after) == 0

    def test_revert_payment_changes_nothing(self):
        inventory = InventorySnapshot([_record()])
        layaways = LayawaySnapshot([_hold()])
        assert revert_line(inventory, layaways, _payment_line()) == (inventory, layaways)


class TestCommitLine:

    def test_tracked_sale_logs_sold_item_and_annotates(self):
        inventory = InventorySnapshot([_record(quantity=9)])

        result = commit_line(inventory, LayawaySnapshot(), _sale_line(new_quantity=9), NOW)

        [entry] = result.entries
        assert entry.action == "Sold Item"
        assert entry.quantity_change == "-1"
        assert entry.new_quantity == "9"
        assert entry.price_sold == "25.00"
        record = result.inventory.get("Handbags", "Coach", "Leather Tote")
        assert record.quantity == 9
        assert record.last_change == "-1"
        assert record.last_change_date == NOW

    def test_untracked_sale_logs_no_inv_track(self):
        result = commit_line(InventorySnapshot(), LayawaySnapshot(), _sale_line(tracked=False), NOW)

        [entry] = result.entries
        assert entry.action == "Sold Item (No Inv. Track)"
        assert entry.quantity_change == "N/A"
        assert entry.new_quantity == "N/A"

    def test_partial_payment_updates_hold(self):
        layaways = LayawaySnapshot([_hold()])

        result = commit_line(InventorySnapshot(), layaways, _payment_line("20.00"), NOW)

        hold = result.layaways.get("hold-1")
        assert hold.amount_paid == Decimal("50.00")
        assert hold.remaining_balance == Decimal("50.00")
        assert [e.action for e in result.entries] == ["Layaway Payment"]
        assert result.notices == []

    def test_final_payment_completes_tracked_hold(self):
        inventory = InventorySnapshot([_record(quantity=10)])
        layaways = LayawaySnapshot([_hold()])

        result = commit_line(inventory, layaways, _payment_line("70.00"), NOW)

        assert result.layaways.get("hold-1") is None
        assert result.inventory.get("Handbags", "Coach", "Leather Tote").quantity == 9
        assert [e.action for e in result.entries] == ["Layaway Payment", "Layaway Completed"]
        completed = result.entries[1]
        assert completed.quantity_change == "-1"
        assert completed.price_sold == "100.00"
        assert completed.discount_applied == "Layaway Paid Off"
        assert result.notices == ["Layaway for Leather Tote is fully paid and has been finalized."]

    def test_final_payment_untracked_hold_leaves_inventory(self):
        inventory = InventorySnapshot([_record(quantity=10)])
        layaways = LayawaySnapshot([_hold(tracked=False)])

        result = commit_line(inventory, layaways, _payment_line("70.00"), NOW)

        assert result.inventory == inventory
        assert result.entries[-1].action == "Layaway Completed (No Inv. Track)"

    def test_missing_hold_is_skipped(self):
        result = commit_line(InventorySnapshot(), LayawaySnapshot(), _payment_line(), NOW)
        assert result.entries == []
