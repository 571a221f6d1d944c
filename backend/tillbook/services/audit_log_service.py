# Overview: Service-layer operations for the audit log; append-only writes and per-day reads.

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import MalformedLogEntry, PersistenceFailure
from ..models import AuditLogEntry
from ..snapshots import AuditEntry
"""
Audit Log Invariants (authoritative)

- Append-only: one row per committed business event, never updated or deleted.
- Partitioned by calendar day (log_date = timestamp.date()).
- Insertion order within a day is preserved (id order).
- Entries missing timestamp, action, item_code, category, brand or item are
  dropped with a warning; they are never partially written.
- Each append commits on its own. Appends are not rolled back when a later
  step of the same sale fails.
"""

logger = logging.getLogger(__name__)


def validate_entry(entry: AuditEntry) -> None:
    missing = entry.missing_fields()
    if missing:
        raise MalformedLogEntry(
            "Audit log entry is missing required fields",
            details={"missing": missing, "action": entry.action},
        )


class AuditLog:
    """Audit log sink backed by the audit_log_entries table."""

    def append(self, entry: AuditEntry) -> AuditLogEntry | None:
        """
        Append one entry and commit it.

        Returns None (after logging a warning) when the entry is malformed.
        """
        try:
            validate_entry(entry)
        except MalformedLogEntry as exc:
            logger.warning("Skipping malformed log entry: %s %s", exc.message, exc.details)
            return None

        row = AuditLogEntry(
            log_date=entry.timestamp.date(),
            timestamp=entry.timestamp,
            action=entry.action,
            item_code=entry.item_code,
            category=entry.category,
            brand=entry.brand,
            item=entry.item,
            quantity_change=entry.quantity_change,
            new_quantity=entry.new_quantity,
            price_sold=entry.price_sold,
            discount_applied=entry.discount_applied,
        )
        try:
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Failed to append log entry %r: %s", entry.action, exc)
            raise PersistenceFailure(
                "Failed to save log entry",
                details={"action": entry.action, "item_code": entry.item_code},
            ) from exc
        return row

    def append_all(self, entries: Iterable[AuditEntry]) -> int:
        written = 0
        for entry in entries:
            if self.append(entry) is not None:
                written += 1
        return written

    def entries_for_day(self, day: date) -> list[AuditLogEntry]:
        return (
            db.session.query(AuditLogEntry)
            .filter(AuditLogEntry.log_date == day)
            .order_by(AuditLogEntry.id.asc())
            .all()
        )

    def days(self) -> list[date]:
        rows = (
            db.session.query(AuditLogEntry.log_date)
            .distinct()
            .order_by(AuditLogEntry.log_date.desc())
            .all()
        )
        return [row[0] for row in rows]
