"""
Tests for the check-in/check-out engine and its persisted ledger.
"""

import datetime
import json
import pytest
from chronose.infra.storage import KeyValueStorage, MemoryStorage
from chronose.services.timer_service import STORAGE_KEY, TimerService

TODAY = "2026-03-11"
YESTERDAY = "2026-03-10"


class BrokenStorage(KeyValueStorage):
    """Storage whose every access fails"""

    def get_item(self, key):
        raise OSError("disk unavailable")

    def set_item(self, key, value):
        raise OSError("disk unavailable")

    def remove_item(self, key):
        raise OSError("disk unavailable")


def running_count(timer: TimerService) -> int:
    return len(timer.running_dates())


class TestCheckInOut:

    def test_check_in_creates_running_session(self, timer, clock):
        assert timer.check_in(TODAY) is True

        ledger = timer.get_ledger(TODAY)
        assert ledger.running.start == clock.now
        assert ledger.sessions == []
        assert timer.running_date == TODAY
        assert timer.is_running

    def test_check_in_twice_is_noop(self, timer, clock):
        timer.check_in(TODAY)
        first_start = clock.now
        clock.advance(minutes=5)

        assert timer.check_in(TODAY) is False
        assert timer.get_ledger(TODAY).running.start == first_start

    def test_only_one_running_session_across_dates(self, timer, clock):
        timer.check_in(YESTERDAY)
        assert timer.check_in(TODAY) is False
        assert timer.running_dates() == [YESTERDAY]
        assert timer.get_ledger(TODAY) is None

    def test_check_out_without_running_is_noop(self, timer):
        assert timer.check_out(TODAY) is None
        assert timer.get_ledger(TODAY) is None

    def test_check_out_other_date_does_not_close(self, timer, clock):
        timer.check_in(TODAY)
        clock.advance(minutes=1)
        assert timer.check_out(YESTERDAY) is None
        assert timer.running_date == TODAY

    def test_check_out_appends_session(self, timer, clock):
        start = clock.now
        timer.check_in(TODAY)
        end = clock.advance(hours=1, seconds=30, microseconds=900000)

        duration = timer.check_out(TODAY)

        assert duration == 3630
        ledger = timer.get_ledger(TODAY)
        assert ledger.running is None
        assert len(ledger.sessions) == 1
        assert ledger.sessions[0].start == start
        assert ledger.sessions[0].end == end
        assert timer.last_session_seconds == 3630
        assert not timer.is_running

    def test_clock_going_backwards_never_yields_negative(self, timer, clock):
        timer.check_in(TODAY)
        clock.advance(seconds=-30)
        assert timer.check_out(TODAY) == 0
        assert timer.recalculate_total(TODAY) == 0

    def test_alternating_sequences_keep_single_running(self, timer, clock):
        dates = ["2026-03-09", "2026-03-10", "2026-03-11"]
        for i in range(9):
            timer.check_in(dates[i % 3])
            assert running_count(timer) <= 1
            clock.advance(minutes=10)
            if i % 2:
                timer.check_out(dates[(i - 1) % 3])
            assert running_count(timer) <= 1


class TestTotals:

    def test_total_sums_closed_sessions(self, timer, clock):
        for minutes in (30, 45, 15):
            timer.check_in(TODAY)
            clock.advance(minutes=minutes)
            timer.check_out(TODAY)
            clock.advance(minutes=5)

        assert timer.recalculate_total(TODAY) == 90 * 60

    def test_running_session_not_counted(self, timer, clock):
        timer.check_in(TODAY)
        clock.advance(hours=2)
        assert timer.recalculate_total(TODAY) == 0

    def test_unknown_date_is_zero(self, timer):
        assert timer.recalculate_total("1999-01-01") == 0

    def test_total_is_pure_read(self, timer, storage):
        timer.recalculate_total(TODAY)
        assert storage.get_item(STORAGE_KEY) is None


class TestTick:

    def test_tick_scenario(self, timer, clock):
        """Check in, five one-second ticks, check out."""
        before = timer.recalculate_total(TODAY)
        timer.check_in(TODAY)
        for _ in range(5):
            clock.advance(seconds=1)
            timer.tick()
        assert timer.elapsed_seconds == 5
        assert timer.formatted_elapsed() == "00:00:05"

        assert timer.check_out(TODAY) == 5
        assert timer.last_session_seconds == 5
        assert timer.get_ledger(TODAY).running is None
        assert timer.recalculate_total(TODAY) == before + 5

    def test_tick_recomputes_after_missed_ticks(self, timer, clock):
        timer.check_in(TODAY)
        clock.advance(seconds=1)
        timer.tick()
        # Machine slept for ten minutes
        clock.advance(minutes=10)
        assert timer.tick() == 601

    def test_tick_when_idle(self, timer):
        assert timer.tick() == 0

    def test_tick_emits_signal(self, timer, clock):
        received = []
        timer.ticked.connect(lambda text, seconds: received.append((text, seconds)))
        timer.check_in(TODAY)
        clock.advance(seconds=65)
        timer.tick()
        assert received == [("00:01:05", 65)]

    def test_tick_is_not_persisted(self, timer, clock, storage):
        timer.check_in(TODAY)
        saved = storage.get_item(STORAGE_KEY)
        clock.advance(seconds=3)
        timer.tick()
        assert storage.get_item(STORAGE_KEY) == saved


class TestPersistence:

    def test_layout_is_namespaced_by_date(self, timer, clock, storage):
        timer.check_in(TODAY)
        clock.advance(minutes=1)
        timer.check_out(TODAY)

        data = json.loads(storage.get_item(STORAGE_KEY))
        assert list(data) == ["byDate"]
        assert data["byDate"][TODAY]["date"] == TODAY
        assert len(data["byDate"][TODAY]["sessions"]) == 1
        assert data["byDate"][TODAY]["running"] is None

    def test_state_survives_reload(self, timer, clock, storage):
        timer.check_in(TODAY)
        clock.advance(minutes=20)
        timer.check_out(TODAY)
        timer.check_in(TODAY)

        reloaded = TimerService(storage, clock=clock)
        assert reloaded.recalculate_total(TODAY) == 1200
        assert reloaded.running_dates() == [TODAY]
        # Running session found in storage still blocks a second check-in
        assert reloaded.check_in(YESTERDAY) is False

    def test_corrupt_storage_means_empty_ledger(self, clock):
        storage = MemoryStorage({STORAGE_KEY: "{not json"})
        timer = TimerService(storage, clock=clock)
        assert timer.dates_with_activity() == []
        assert timer.check_in(TODAY) is True

    def test_wrong_shape_means_empty_ledger(self, clock):
        storage = MemoryStorage({STORAGE_KEY: json.dumps({"byDate": {"x": {"sessions": 3}}})})
        timer = TimerService(storage, clock=clock)
        assert timer.dates_with_activity() == []

    def test_offset_timestamps_read_as_local_time(self, clock):
        stale_start = (clock() - datetime.timedelta(hours=25)).astimezone()
        storage = MemoryStorage({STORAGE_KEY: json.dumps({"byDate": {
            YESTERDAY: {"date": YESTERDAY, "sessions": [], "running": {"start": stale_start.isoformat()}},
        }})})
        timer = TimerService(storage, clock=clock)

        notices = timer.reconcile_on_startup()
        assert len(notices) == 1
        assert timer.recalculate_total(YESTERDAY) == 12 * 3600

    def test_offset_running_session_can_be_checked_out(self, clock):
        start = (clock() - datetime.timedelta(hours=1)).astimezone()
        storage = MemoryStorage({STORAGE_KEY: json.dumps({"byDate": {
            TODAY: {"date": TODAY, "sessions": [], "running": {"start": start.isoformat()}},
        }})})
        timer = TimerService(storage, clock=clock)
        timer.reconcile_on_startup()
        assert timer.check_out(TODAY) == 3600

    def test_storage_failures_never_raise(self, clock):
        timer = TimerService(BrokenStorage(), clock=clock)
        assert timer.check_in(TODAY) is True
        clock.advance(seconds=10)
        assert timer.check_out(TODAY) == 10
        assert timer.recalculate_total(TODAY) == 10


class TestReconcileOnStartup:

    def _with_running(self, storage, clock, started: datetime.datetime) -> TimerService:
        seed_clock = lambda: started
        TimerService(storage, clock=seed_clock).check_in(started.date())
        return TimerService(storage, clock=clock)

    def test_stale_session_closed_at_cap(self, storage, clock):
        started = clock.now - datetime.timedelta(hours=30)
        timer = self._with_running(storage, clock, started)
        emitted = []
        timer.stale_session_closed.connect(lambda message, date: emitted.append((message, date)))

        notices = timer.reconcile_on_startup()

        key = started.date().isoformat()
        ledger = timer.get_ledger(key)
        assert ledger.running is None
        assert ledger.sessions[-1].start == started
        assert ledger.sessions[-1].end == started + datetime.timedelta(hours=12)
        assert timer.recalculate_total(key) == 12 * 3600
        assert len(notices) == 1
        assert notices[0].date == key
        assert "12 hours" in notices[0].message
        assert emitted == [(notices[0].message, key)]
        assert timer.pending_notices == notices
        assert not timer.is_running

    def test_exactly_at_cap_is_stale(self, storage, clock):
        started = clock.now - datetime.timedelta(hours=12)
        timer = self._with_running(storage, clock, started)
        assert len(timer.reconcile_on_startup()) == 1

    def test_notice_emitted_once(self, storage, clock):
        started = clock.now - datetime.timedelta(hours=13)
        timer = self._with_running(storage, clock, started)
        timer.reconcile_on_startup()

        assert timer.reconcile_on_startup() == []
        # Nor after another reload
        assert TimerService(storage, clock=clock).reconcile_on_startup() == []

    def test_recent_session_resumes(self, storage, clock):
        started = clock.now - datetime.timedelta(hours=2, seconds=5)
        timer = self._with_running(storage, clock, started)

        assert timer.reconcile_on_startup() == []
        assert timer.running_date == started.date().isoformat()
        assert timer.elapsed_seconds == 2 * 3600 + 5
        clock.advance(seconds=1)
        assert timer.tick() == 2 * 3600 + 6

    def test_custom_cap(self, storage, clock):
        started = clock.now - datetime.timedelta(hours=5)
        TimerService(storage, clock=lambda: started).check_in(started.date())
        timer = TimerService(storage, clock=clock, stale_session_hours=4)

        notices = timer.reconcile_on_startup()
        assert len(notices) == 1
        assert timer.get_ledger(started.date()).sessions[-1].end == started + datetime.timedelta(hours=4)

    def test_dismiss_notice(self, storage, clock):
        started = clock.now - datetime.timedelta(hours=20)
        timer = self._with_running(storage, clock, started)
        notice = timer.reconcile_on_startup()[0]

        timer.dismiss_notice(notice)
        assert timer.pending_notices == []

    def test_check_out_of_other_running_date_keeps_display(self, clock):
        storage = MemoryStorage({STORAGE_KEY: json.dumps({"byDate": {
            YESTERDAY: {"date": YESTERDAY, "sessions": [], "running": {"start": "2026-03-10T18:00:00"}},
            TODAY: {"date": TODAY, "sessions": [], "running": {"start": "2026-03-11T08:00:00"}},
        }})})
        timer = TimerService(storage, clock=clock, stale_session_hours=24)
        timer.reconcile_on_startup()
        assert timer.running_date == TODAY

        assert timer.check_out(YESTERDAY) == 15 * 3600
        assert timer.running_date == TODAY
        assert timer.elapsed_seconds == 3600
