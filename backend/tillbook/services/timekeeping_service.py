# Overview: Service-layer operations for time punches; pay period windows and worked-hours aggregation.

"""
Payroll Period Calculator

Pay periods are fixed half-month windows: the 1st through the 14th, and the
15th through the last day of the month. A period is half-open internally
([start, end) on midnight boundaries) and titled with its inclusive last day.

Hours are derived, never stored. For each worker the punches inside a period
are sorted by time and paired greedily:
- IN followed by OUT is a shift.
- IN followed by another IN: the first IN is discarded (open shift, 0 hours).
- OUT with no open IN is ignored.
- A trailing IN with no OUT contributes nothing.
A pair whose OUT is earlier than its IN still counts as a shift of 0 hours.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceFailure, TillbookError
from ..extensions import db
from ..models import TimePunch
from tillbook.time_utils import utcnow

logger = logging.getLogger(__name__)

PUNCH_IN = "IN"
PUNCH_OUT = "OUT"
DIRECTIONS = (PUNCH_IN, PUNCH_OUT)

SECONDS_PER_HOUR = Decimal(3600)
HOURS = Decimal("0.01")


class TimekeepingError(TillbookError):
    """Rejected punch (unknown direction or blank worker)."""


@dataclass(frozen=True)
class Punch:
    worker: str
    direction: str
    at: datetime


@dataclass(frozen=True)
class PayPeriod:
    start: date
    end: date  # exclusive

    @property
    def last_day(self) -> date:
        return self.end - timedelta(days=1)

    @property
    def title(self) -> str:
        last = self.last_day
        return f"{self.start:%b} {self.start.day} - {last:%b} {last.day}, {last.year}"

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.end, time.min)

    def contains(self, moment: datetime) -> bool:
        return self.starts_at <= moment < self.ends_at

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.last_day.isoformat(),
        }


@dataclass
class WorkerHours:
    worker: str
    hours: Decimal = Decimal("0.00")
    shifts: int = 0

    def to_dict(self) -> dict:
        return {"worker": self.worker, "hours": str(self.hours), "shifts": self.shifts}


@dataclass
class PeriodReport:
    period: PayPeriod
    workers: list[WorkerHours] = field(default_factory=list)

    @property
    def total_hours(self) -> Decimal:
        return sum((w.hours for w in self.workers), Decimal("0.00"))

    def to_dict(self) -> dict:
        return {
            **self.period.to_dict(),
            "total_hours": str(self.total_hours),
            "workers": [w.to_dict() for w in self.workers],
        }


def _first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def period_containing(day: date) -> PayPeriod:
    if day.day < 15:
        return PayPeriod(start=day.replace(day=1), end=day.replace(day=15))
    return PayPeriod(start=day.replace(day=15), end=_first_of_next_month(day))


def pay_periods(today: date) -> tuple[PayPeriod, PayPeriod]:
    """(current, previous) periods for the given day."""
    current = period_containing(today)
    previous = period_containing(current.start - timedelta(days=1))
    return current, previous


def worked_hours(punches: Iterable[Punch], period: PayPeriod) -> list[WorkerHours]:
    """Per-worker hours inside the period, sorted by worker name."""
    by_worker: dict[str, list[Punch]] = defaultdict(list)
    for punch in punches:
        if period.contains(punch.at):
            by_worker[punch.worker].append(punch)

    results = []
    for worker in sorted(by_worker):
        seconds = Decimal(0)
        shifts = 0
        open_in: datetime | None = None

        for punch in sorted(by_worker[worker], key=lambda p: p.at):
            if punch.direction == PUNCH_IN:
                if open_in is not None:
                    logger.debug("Discarding unmatched IN for %s at %s", worker, open_in)
                open_in = punch.at
            elif open_in is not None:
                duration = (punch.at - open_in).total_seconds()
                seconds += Decimal(str(max(duration, 0)))
                shifts += 1
                open_in = None

        hours = (seconds / SECONDS_PER_HOUR).quantize(HOURS, rounding=ROUND_HALF_UP)
        results.append(WorkerHours(worker=worker, hours=hours, shifts=shifts))
    return results


def record_punch(worker: str, direction: str, at: datetime | None = None) -> Punch:
    worker = (worker or "").strip()
    direction = (direction or "").strip().upper()
    if not worker:
        raise TimekeepingError("Worker name is required")
    if direction not in DIRECTIONS:
        raise TimekeepingError(
            "Punch direction must be IN or OUT",
            details={"direction": direction},
        )

    punch = Punch(worker=worker, direction=direction, at=at or utcnow())
    db.session.add(TimePunch(worker=punch.worker, direction=punch.direction, punched_at=punch.at))
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to record punch for %s: %s", worker, exc)
        raise PersistenceFailure("Failed to record punch", details={"worker": worker}) from exc

    logger.info("Punch %s recorded for %s", direction, worker)
    return punch


def load_punches(start: datetime | None = None, end: datetime | None = None) -> list[Punch]:
    query = db.session.query(TimePunch)
    if start is not None:
        query = query.filter(TimePunch.punched_at >= start)
    if end is not None:
        query = query.filter(TimePunch.punched_at < end)
    rows = query.order_by(TimePunch.punched_at.asc(), TimePunch.id.asc()).all()
    return [Punch(worker=row.worker, direction=row.direction, at=row.punched_at) for row in rows]


def payroll_summary(now: datetime | None = None) -> list[PeriodReport]:
    """Reports for the current and previous pay periods, current first."""
    now = now or utcnow()
    current, previous = pay_periods(now.date())
    punches = load_punches(previous.starts_at, current.ends_at)
    return [
        PeriodReport(period=period, workers=worked_hours(punches, period))
        for period in (current, previous)
    ]
