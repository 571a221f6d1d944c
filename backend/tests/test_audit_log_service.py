from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from tillbook.errors import PersistenceFailure
from tillbook.extensions import db
from tillbook.services.audit_log_service import AuditLog
from tillbook.snapshots import AuditEntry, audit_entry


def _entry(action="Sold Item", when=datetime(2026, 10, 19, 10, 0), **overrides):
    fields = dict(
        when=when,
        item_code="HAN-COA-LEA-12345",
        category="Handbags",
        brand="Coach",
        item="Leather Tote",
        quantity_change=-1,
        new_quantity=9,
        price_sold=Decimal("25"),
    )
    fields.update(overrides)
    return audit_entry(action, **fields)


class TestAuditEntry:

    def test_defaults(self):
        entry = audit_entry(
            "Sold Item (No Inv. Track)",
            when=datetime(2026, 10, 19),
            item_code="X",
            category="Other",
            brand="Custom",
            item="Repair",
        )
        assert entry.quantity_change == "N/A"
        assert entry.new_quantity == "N/A"
        assert entry.price_sold == "N/A"
        assert entry.discount_applied == "No"

    def test_price_written_with_two_decimals(self):
        assert _entry(price_sold=Decimal("7.5")).price_sold == "7.50"


class TestAuditLog:

    def test_entries_partitioned_by_day(self, db_session):
        log = AuditLog()
        log.append(_entry(when=datetime(2026, 10, 18, 23, 59)))
        log.append(_entry("Adjusted Inventory", when=datetime(2026, 10, 19, 0, 1)))
        log.append(_entry("Price Updated", when=datetime(2026, 10, 19, 8, 0)))

        today = log.entries_for_day(date(2026, 10, 19))

        assert [e.action for e in today] == ["Adjusted Inventory", "Price Updated"]
        assert len(log.entries_for_day(date(2026, 10, 18))) == 1
        assert log.days() == [date(2026, 10, 19), date(2026, 10, 18)]

    def test_malformed_entry_dropped_with_warning(self, db_session, caplog):
        log = AuditLog()
        bad = AuditEntry(
            timestamp=datetime(2026, 10, 19),
            action="Sold Item",
            item_code="",
            category="Handbags",
            brand="Coach",
            item="Leather Tote",
        )

        written = log.append_all([bad, _entry()])

        assert written == 1
        assert len(log.entries_for_day(date(2026, 10, 19))) == 1
        assert any(r.levelname == "WARNING" and "malformed" in r.getMessage() for r in caplog.records)

    def test_commit_failure_raises_persistence_failure(self, db_session, monkeypatch, caplog):
        def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db.session, "commit", broken_commit)

        with pytest.raises(PersistenceFailure):
            AuditLog().append(_entry())
        assert any(r.levelname == "ERROR" for r in caplog.records)
