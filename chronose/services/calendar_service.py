"""
Calendar Service - Week/month views over the timer ledger.

Owns the selected date cursor shared with the entry form, and derives the
visible cells (with their aggregated hours) from it. Holidays come from the
'holidays' library so the calendar can tell working days apart.
"""

import datetime
import logging
from typing import Callable, Iterable, List, Optional, Union

import holidays
from PySide6.QtCore import QObject, Signal

from chronose.domain.dates import (
    add_months, month_bounds, month_grid, parse_iso_date, start_of_week, week_dates,
)
from chronose.domain.models import (
    CalendarCell, CalendarView, EntryStatus, EntryType, PeriodSummary, RemoteEntry,
)
from chronose.services.timer_service import TimerService

logger = logging.getLogger(__name__)

# 'holidays' names its English locale en_US
_HOLIDAY_LANGUAGES = {"en": "en_US", "de": "de"}


class CalendarService(QObject):
    """
    Calendar selector: selected date, active view and visible cells.

    Reads totals from the TimerService but never mutates it.
    """

    selection_changed = Signal(str)  # iso date
    view_changed = Signal(str)  # 'week' | 'month'
    cells_changed = Signal()

    def __init__(self, timer: TimerService,
                 view: Union[CalendarView, str] = CalendarView.WEEK,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now,
                 country: str = 'DE', subdivision: Optional[str] = 'BY',
                 respect_holidays: bool = True, respect_weekends: bool = True,
                 work_hours_per_day: float = 8.0):
        """
        Initialize the calendar on today's date.

        Args:
            timer: Source of per-date totals
            view: Initial view
            clock: Returns the current local time
            country: Country code for public holidays
            subdivision: State/province code for public holidays
            respect_holidays: Whether to consider holidays as non-working days
            respect_weekends: Whether to consider weekends as non-working days
            work_hours_per_day: Target hours used for overtime
        """
        super().__init__()
        self.timer = timer
        self.clock = clock
        self.view = CalendarView(view)
        self.respect_holidays = respect_holidays
        self.respect_weekends = respect_weekends
        self.work_hours_per_day = work_hours_per_day
        self.holidays = self._load_holidays(country, subdivision)

        self.selected_date: datetime.date = self.clock().date()
        # First visible day is derived from this; it only differs from the
        # selection after next_period()/previous_period()
        self.anchor_date: datetime.date = self.selected_date
        self.cells: List[CalendarCell] = []

        self.timer.ledger_changed.connect(self._on_ledger_changed)
        self.refresh()

    @staticmethod
    def _load_holidays(country: str, subdivision: Optional[str]):
        from chronose.i18n import get_language
        lang = _HOLIDAY_LANGUAGES.get(get_language())
        try:
            return holidays.country_holidays(country, subdiv=subdivision, language=lang)
        except NotImplementedError:
            logger.warning("No holiday data for %s/%s, using none", country, subdivision)
            return holidays.HolidayBase()

    # ------------------------------------------------------------------
    # Selection and view
    # ------------------------------------------------------------------

    @property
    def selected_iso(self) -> str:
        return self.selected_date.isoformat()

    def select_date(self, date: Union[str, datetime.date, datetime.datetime]) -> None:
        """Move the cursor and recompute the visible cells"""
        self.selected_date = parse_iso_date(date)
        self.anchor_date = self.selected_date
        self.refresh()
        self.selection_changed.emit(self.selected_iso)

    def set_view(self, view: Union[CalendarView, str]) -> None:
        """Switch between week and month view; the selection is kept"""
        self.view = CalendarView(view)
        self.anchor_date = self.selected_date
        self.refresh()
        self.view_changed.emit(self.view.value)

    def today(self) -> None:
        """Select the current date and bring its week/month into view"""
        self.select_date(self.clock().date())

    def next_period(self) -> None:
        self._shift(1)

    def previous_period(self) -> None:
        self._shift(-1)

    def _shift(self, steps: int) -> None:
        if self.view == CalendarView.WEEK:
            self.anchor_date = self.anchor_date + datetime.timedelta(weeks=steps)
        else:
            self.anchor_date = add_months(self.anchor_date, steps)
        self.refresh()

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def visible_dates(self) -> List[datetime.date]:
        if self.view == CalendarView.WEEK:
            return week_dates(start_of_week(self.anchor_date))
        return [cell.date for cell in month_grid(self.anchor_date)]

    def refresh(self) -> List[CalendarCell]:
        """Rebuild the visible cells from the timer ledger"""
        today = self.clock().date()
        if self.view == CalendarView.WEEK:
            days = [(d, False) for d in self.visible_dates()]
        else:
            days = [(cell.date, cell.outside_month) for cell in month_grid(self.anchor_date)]

        self.cells = [
            CalendarCell(
                date=day,
                total_seconds=self.timer.recalculate_total(day),
                is_selected=day == self.selected_date,
                is_outside_month=outside,
                is_today=day == today,
                is_working_day=self.is_working_day(day),
                holiday_name=self.get_holiday_name(day),
            )
            for day, outside in days
        ]
        self.cells_changed.emit()
        return self.cells

    def _on_ledger_changed(self, iso_date: str) -> None:
        if parse_iso_date(iso_date) in self.visible_dates():
            self.refresh()

    def visible_range(self):
        """First and last day the summary covers (month view: the month itself)"""
        if self.view == CalendarView.WEEK:
            dates = self.visible_dates()
            return dates[0], dates[-1]
        return month_bounds(self.anchor_date)

    def summary(self, entries: Optional[Iterable[RemoteEntry]] = None) -> PeriodSummary:
        """
        Aggregate the visible range.

        Args:
            entries: Remote entries used to count leaves taken (optional)

        Returns:
            PeriodSummary for the week, or for the month without padding days
        """
        first, last = self.visible_range()
        in_range = [c for c in self.cells if first <= c.date <= last]
        target_seconds = int(self.work_hours_per_day * 3600)

        total = sum(c.total_seconds for c in in_range)
        worked = [c for c in in_range if c.total_seconds > 0]
        overtime = sum(max(0, c.total_seconds - target_seconds) for c in worked)
        leaves = [
            e for e in (entries or [])
            if e.type == EntryType.LEAVE and e.status != EntryStatus.REJECTED
            and first <= e.date <= last
        ]

        return PeriodSummary(
            start=first,
            end=last,
            total_seconds=total,
            days_worked=len(worked),
            working_days=self.get_working_days_in_range(first, last),
            average_hours_per_day=round(total / 3600 / len(worked), 2) if worked else 0.0,
            overtime_seconds=overtime,
            leaves_taken=len(leaves),
        )

    # ------------------------------------------------------------------
    # Working-day logic
    # ------------------------------------------------------------------

    def is_working_day(self, date_obj: datetime.date) -> bool:
        """
        Check if a given date is a working day.

        Args:
            date_obj: The date to check

        Returns:
            True if it's a working day, False otherwise
        """
        # Check weekend (Saturday=5, Sunday=6)
        if self.respect_weekends and date_obj.weekday() > 4:
            return False

        if self.respect_holidays and date_obj in self.holidays:
            return False

        return True

    def get_holiday_name(self, date_obj: datetime.date) -> str:
        """Holiday name or empty string if not a holiday"""
        return self.holidays.get(date_obj, "") or ""

    def get_working_days_in_range(self, start_date: datetime.date,
                                  end_date: datetime.date) -> int:
        """Count working days in a date range (both ends inclusive)"""
        working_days = 0
        current = start_date

        while current <= end_date:
            if self.is_working_day(current):
                working_days += 1
            current += datetime.timedelta(days=1)

        return working_days
