"""Tests for the missed-workout sweeper."""

from datetime import datetime, timedelta

from app.schedules.models import ScheduleStatus
from app.schedules.sweeper import missed_sweep_tick, sweep

NOW = datetime(2030, 5, 1, 12, 0)


class TestSweep:
    def test_marks_only_stale_scheduled(self, db_session, make_schedule):
        stale = make_schedule(NOW - timedelta(hours=3))
        recent = make_schedule(NOW - timedelta(hours=1))
        future = make_schedule(NOW + timedelta(hours=1))

        count = sweep(db_session, now=NOW)

        assert count == 1
        for schedule in (stale, recent, future):
            db_session.refresh(schedule)
        assert stale.status == ScheduleStatus.MISSED.value
        assert recent.status == ScheduleStatus.SCHEDULED.value
        assert future.status == ScheduleStatus.SCHEDULED.value

    def test_cutoff_is_exclusive(self, db_session, make_schedule):
        boundary = make_schedule(NOW - timedelta(hours=2))

        assert sweep(db_session, now=NOW) == 0
        db_session.refresh(boundary)
        assert boundary.status == ScheduleStatus.SCHEDULED.value

    def test_other_statuses_untouched(self, db_session, make_schedule):
        old = NOW - timedelta(days=1)
        schedules = {
            status: make_schedule(old, status=status)
            for status in (ScheduleStatus.IN_PROGRESS, ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED)
        }

        assert sweep(db_session, now=NOW) == 0
        for status, schedule in schedules.items():
            db_session.refresh(schedule)
            assert schedule.status == status.value

    def test_idempotent(self, db_session, make_schedule):
        make_schedule(NOW - timedelta(hours=5))

        assert sweep(db_session, now=NOW) == 1
        assert sweep(db_session, now=NOW) == 0


class TestMissedSweepTick:
    def test_tick_sweeps_with_current_time(self, db_session, make_schedule):
        stale = make_schedule(datetime(2020, 1, 1, 8, 0))

        missed_sweep_tick()

        db_session.refresh(stale)
        assert stale.status == ScheduleStatus.MISSED.value

    def test_tick_logs_failures_without_raising(self, db_session, monkeypatch):
        def boom(_session):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr("app.schedules.sweeper.sweep", boom)

        missed_sweep_tick()
