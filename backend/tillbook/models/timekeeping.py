from __future__ import annotations

from ..extensions import db
from tillbook.time_utils import to_utc_z

class TimePunch(db.Model):
    """
    A single IN or OUT punch.

    Punches are raw events; worked hours are derived from them per pay period
    and never stored.
    """
    __tablename__ = "time_punches"
    __table_args__ = (
        db.Index("ix_time_punches_worker_at", "worker", "punched_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    worker = db.Column(db.String(128), nullable=False)

    # IN or OUT
    direction = db.Column(db.String(8), nullable=False)
    punched_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker": self.worker,
            "direction": self.direction,
            "punched_at": to_utc_z(self.punched_at),
            "created_at": to_utc_z(self.created_at),
        }
