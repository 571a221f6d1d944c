from datetime import date, datetime
from decimal import Decimal

import pytest

from tillbook.models import TimePunch
from tillbook.services import timekeeping_service
from tillbook.services.timekeeping_service import (
    PayPeriod,
    Punch,
    TimekeepingError,
    pay_periods,
    worked_hours,
)


OCT_1 = PayPeriod(start=date(2026, 10, 1), end=date(2026, 10, 15))


def _punches(worker, *events):
    return [Punch(worker=worker, direction=d, at=datetime.fromisoformat(at)) for d, at in events]


class TestPayPeriods:

    def test_second_half_of_month(self):
        current, previous = pay_periods(date(2026, 10, 19))

        assert current.title == "Oct 15 - Oct 31, 2026"
        assert previous.title == "Oct 1 - Oct 14, 2026"
        assert current.start == date(2026, 10, 15)
        assert current.end == date(2026, 11, 1)

    def test_first_half_rolls_back_a_month(self):
        current, previous = pay_periods(date(2026, 3, 2))

        assert current.title == "Mar 1 - Mar 14, 2026"
        assert previous.title == "Feb 15 - Feb 28, 2026"

    def test_year_rollover(self):
        current, previous = pay_periods(date(2027, 1, 14))
        assert previous.title == "Dec 15 - Dec 31, 2026"

        current, _ = pay_periods(date(2026, 12, 31))
        assert current.end == date(2027, 1, 1)

    def test_period_bounds_are_half_open(self):
        assert OCT_1.contains(datetime(2026, 10, 1, 0, 0))
        assert OCT_1.contains(datetime(2026, 10, 14, 23, 59, 59))
        assert not OCT_1.contains(datetime(2026, 10, 15, 0, 0))


class TestWorkedHours:

    def test_single_shift(self):
        punches = _punches("sam", ("IN", "2026-10-06T09:00"), ("OUT", "2026-10-06T17:00"))

        [hours] = worked_hours(punches, OCT_1)

        assert hours.worker == "sam"
        assert hours.hours == Decimal("8.00")
        assert hours.shifts == 1

    def test_trailing_in_contributes_nothing(self):
        punches = _punches(
            "sam",
            ("IN", "2026-10-06T09:00"),
            ("OUT", "2026-10-06T17:00"),
            ("IN", "2026-10-07T09:00"),
        )
        [hours] = worked_hours(punches, OCT_1)
        assert hours.hours == Decimal("8.00")
        assert hours.shifts == 1

    def test_repeated_in_discards_first(self):
        punches = _punches(
            "sam",
            ("IN", "2026-10-06T08:00"),
            ("IN", "2026-10-06T09:00"),
            ("OUT", "2026-10-06T12:30"),
        )
        [hours] = worked_hours(punches, OCT_1)
        assert hours.hours == Decimal("3.50")

    def test_stray_out_ignored(self):
        punches = _punches("sam", ("OUT", "2026-10-06T08:00"))
        [hours] = worked_hours(punches, OCT_1)
        assert hours.hours == Decimal("0.00")
        assert hours.shifts == 0

    def test_unsorted_input_is_sorted(self):
        punches = _punches(
            "sam",
            ("OUT", "2026-10-06T17:00"),
            ("IN", "2026-10-06T09:15"),
        )
        [hours] = worked_hours(punches, OCT_1)
        assert hours.hours == Decimal("7.75")

    def test_zero_length_shift_still_counts(self):
        punches = [
            Punch("sam", "IN", datetime(2026, 10, 6, 17, 0)),
            Punch("sam", "OUT", datetime(2026, 10, 6, 17, 0)),
        ]
        [hours] = worked_hours(punches, OCT_1)
        assert hours.hours == Decimal("0.00")
        assert hours.shifts == 1

    def test_punches_outside_period_ignored(self):
        punches = _punches("sam", ("IN", "2026-10-15T09:00"), ("OUT", "2026-10-15T17:00"))
        assert worked_hours(punches, OCT_1) == []

    def test_workers_counted_separately(self):
        punches = (
            _punches("sam", ("IN", "2026-10-06T09:00"), ("OUT", "2026-10-06T13:00"))
            + _punches("ada", ("IN", "2026-10-06T10:00"), ("OUT", "2026-10-06T12:20"))
        )
        result = {h.worker: h.hours for h in worked_hours(punches, OCT_1)}
        assert result == {"ada": Decimal("2.33"), "sam": Decimal("4.00")}


class TestPunchStore:

    def test_record_and_summarize(self, db_session):
        timekeeping_service.record_punch("sam", "in", datetime(2026, 10, 16, 9, 0))
        timekeeping_service.record_punch("sam", "OUT", datetime(2026, 10, 16, 17, 0))
        timekeeping_service.record_punch("sam", "IN", datetime(2026, 10, 2, 9, 0))
        timekeeping_service.record_punch("sam", "OUT", datetime(2026, 10, 2, 13, 0))

        assert db_session.query(TimePunch).count() == 4

        current, previous = timekeeping_service.payroll_summary(datetime(2026, 10, 19, 12, 0))

        assert current.period.title == "Oct 15 - Oct 31, 2026"
        assert [(w.worker, w.hours) for w in current.workers] == [("sam", Decimal("8.00"))]
        assert [(w.worker, w.hours) for w in previous.workers] == [("sam", Decimal("4.00"))]
        assert current.to_dict()["total_hours"] == "8.00"

    def test_load_punches_window(self, db_session):
        timekeeping_service.record_punch("sam", "IN", datetime(2026, 10, 1, 9, 0))
        timekeeping_service.record_punch("sam", "OUT", datetime(2026, 10, 20, 9, 0))

        loaded = timekeeping_service.load_punches(datetime(2026, 10, 1), datetime(2026, 10, 15))

        assert [p.direction for p in loaded] == ["IN"]

    @pytest.mark.parametrize("worker,direction", [("", "IN"), ("sam", "LUNCH")])
    def test_invalid_punch_rejected(self, db_session, worker, direction):
        with pytest.raises(TimekeepingError):
            timekeeping_service.record_punch(worker, direction)
        assert db_session.query(TimePunch).count() == 0
