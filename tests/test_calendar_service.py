"""
Tests for the calendar selector: views, selection and per-day totals.
"""

import datetime
import pytest
from chronose.domain.models import CalendarView, EntryType
from chronose.services.calendar_service import CalendarService
from tests.conftest import make_entry


def cell_for(calendar: CalendarService, day: datetime.date):
    return next(c for c in calendar.cells if c.date == day)


def log_session(timer, clock, day: str, minutes: int):
    timer.check_in(day)
    clock.advance(minutes=minutes)
    timer.check_out(day)


class TestSelection:

    def test_defaults_to_today_in_week_view(self, calendar, clock):
        assert calendar.selected_date == clock.now.date()
        assert calendar.view == CalendarView.WEEK
        assert len(calendar.cells) == 7
        assert calendar.cells[0].date == datetime.date(2026, 3, 9)
        selected = [c for c in calendar.cells if c.is_selected]
        assert [c.date for c in selected] == [clock.now.date()]
        assert cell_for(calendar, clock.now.date()).is_today

    def test_select_date_moves_window(self, calendar):
        calendar.select_date("2026-04-02")
        assert calendar.selected_iso == "2026-04-02"
        assert calendar.cells[0].date == datetime.date(2026, 3, 30)
        assert cell_for(calendar, datetime.date(2026, 4, 2)).is_selected

    def test_select_date_emits_signal(self, calendar):
        seen = []
        calendar.selection_changed.connect(seen.append)
        calendar.select_date(datetime.date(2026, 5, 4))
        assert seen == ["2026-05-04"]

    def test_selection_survives_view_round_trip(self, calendar):
        calendar.select_date("2026-07-17")
        calendar.set_view("month")
        assert calendar.selected_iso == "2026-07-17"
        assert cell_for(calendar, datetime.date(2026, 7, 17)).is_selected

        calendar.set_view(CalendarView.WEEK)
        assert calendar.selected_iso == "2026-07-17"
        assert cell_for(calendar, datetime.date(2026, 7, 17)).is_selected

    def test_today_returns_to_current_week(self, calendar, clock):
        calendar.select_date("2025-12-24")
        calendar.next_period()
        calendar.today()
        assert calendar.selected_date == clock.now.date()
        assert clock.now.date() in calendar.visible_dates()

    def test_invalid_view_rejected(self, calendar):
        with pytest.raises(ValueError):
            calendar.set_view("year")


class TestCells:

    def test_cells_show_timer_totals(self, timer, calendar, clock):
        log_session(timer, clock, "2026-03-10", 90)
        calendar.refresh()
        assert cell_for(calendar, datetime.date(2026, 3, 10)).total_seconds == 5400
        assert cell_for(calendar, datetime.date(2026, 3, 12)).total_seconds == 0

    def test_cells_refresh_on_check_out(self, timer, calendar, clock):
        log_session(timer, clock, "2026-03-11", 30)
        # No explicit refresh: the ledger_changed signal did it
        assert cell_for(calendar, datetime.date(2026, 3, 11)).total_seconds == 1800

    def test_calendar_does_not_mutate_timer(self, timer, calendar, storage):
        calendar.set_view("month")
        calendar.select_date("2026-03-01")
        assert timer.dates_with_activity() == []
        assert storage.get_item("chronose.timer.v1") is None

    def test_month_view_tags_outside_days(self, calendar):
        calendar.select_date("2026-02-14")
        calendar.set_view(CalendarView.MONTH)
        assert len(calendar.cells) == 42
        assert cell_for(calendar, datetime.date(2026, 1, 26)).is_outside_month
        assert not cell_for(calendar, datetime.date(2026, 2, 1)).is_outside_month

    def test_week_view_never_tags_outside_month(self, calendar):
        calendar.select_date("2026-03-31")
        assert not any(c.is_outside_month for c in calendar.cells)

    def test_holidays_and_weekends(self, calendar):
        calendar.select_date("2026-12-25")
        christmas = cell_for(calendar, datetime.date(2026, 12, 25))
        assert christmas.holiday_name
        assert not christmas.is_working_day
        assert not cell_for(calendar, datetime.date(2026, 12, 27)).is_working_day
        assert cell_for(calendar, datetime.date(2026, 12, 22)).is_working_day


class TestNavigation:

    def test_next_week_keeps_selection(self, calendar):
        calendar.next_period()
        assert calendar.cells[0].date == datetime.date(2026, 3, 16)
        assert calendar.selected_date == datetime.date(2026, 3, 11)
        assert not any(c.is_selected for c in calendar.cells)

    def test_previous_month(self, calendar):
        calendar.set_view("month")
        calendar.previous_period()
        assert calendar.anchor_date.month == 2
        assert calendar.visible_range() == (datetime.date(2026, 2, 1), datetime.date(2026, 2, 28))


class TestSummary:

    def test_week_summary(self, timer, calendar, clock):
        log_session(timer, clock, "2026-03-09", 9 * 60)
        log_session(timer, clock, "2026-03-10", 7 * 60)
        calendar.refresh()
        entries = [
            make_entry(1, "2026-03-12", EntryType.LEAVE),
            make_entry(2, "2026-03-13", EntryType.LEAVE, status="rejected"),
            make_entry(3, "2026-03-20", EntryType.LEAVE),
        ]

        summary = calendar.summary(entries)

        assert summary.total_seconds == 16 * 3600
        assert summary.days_worked == 2
        assert summary.working_days == 5
        assert summary.average_hours_per_day == 8.0
        assert summary.overtime_seconds == 3600
        assert summary.leaves_taken == 1

    def test_month_summary_ignores_padding_days(self, timer, clock, calendar):
        log_session(timer, clock, "2026-02-27", 60)
        calendar.set_view("month")
        summary = calendar.summary()
        assert summary.start == datetime.date(2026, 3, 1)
        assert summary.total_seconds == 0
