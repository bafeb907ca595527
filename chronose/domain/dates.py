"""
Date utilities - pure calendar math used by the timer and the calendar.

All functions work on local wall-clock date components only; no timezone
conversion takes place. Weeks always start on Monday, independent of locale.
"""

import calendar
import datetime
from typing import List, NamedTuple, Tuple, Union

DateLike = Union[datetime.date, datetime.datetime]

WEEK_LENGTH = 7
GRID_CELLS = 42  # 6 rows x 7 days


class GridDay(NamedTuple):
    """A single cell of the month grid"""
    date: datetime.date
    outside_month: bool


def _as_date(value: DateLike) -> datetime.date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def to_iso_date(value: DateLike) -> str:
    """
    Format a date as YYYY-MM-DD using its local calendar components.

    Args:
        value: A date or naive/local datetime

    Returns:
        Zero-padded ISO date string
    """
    d = _as_date(value)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_iso_date(value: Union[str, DateLike]) -> datetime.date:
    """Parse an ISO date string. Dates and datetimes are passed through."""
    if isinstance(value, (datetime.date, datetime.datetime)):
        return _as_date(value)
    return datetime.date.fromisoformat(value.strip()[:10])


def start_of_week(value: DateLike) -> datetime.datetime:
    """
    Get the Monday of the week containing the given date, at midnight.

    Args:
        value: Any date within the week

    Returns:
        Monday 00:00 of that week
    """
    d = _as_date(value)
    monday = d - datetime.timedelta(days=d.weekday())
    return datetime.datetime(monday.year, monday.month, monday.day)


def week_dates(week_start: DateLike) -> List[datetime.date]:
    """Return the seven dates Monday..Sunday starting at week_start."""
    first = _as_date(week_start)
    return [first + datetime.timedelta(days=i) for i in range(WEEK_LENGTH)]


def month_bounds(value: DateLike) -> Tuple[datetime.date, datetime.date]:
    """Return the first and last day of the month containing value."""
    d = _as_date(value)
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=1), d.replace(day=last_day)


def month_grid(date_in_month: DateLike) -> List[GridDay]:
    """
    Build the fixed 6x7 month grid.

    The grid starts on the Monday on or before the 1st of the month, so the
    first and last day of the month are always contained. Days outside the
    month are tagged rather than dropped.

    Args:
        date_in_month: Any date within the month to display

    Returns:
        42 GridDay cells
    """
    first, last = month_bounds(date_in_month)
    grid_start = start_of_week(first).date()
    cells = []
    for offset in range(GRID_CELLS):
        day = grid_start + datetime.timedelta(days=offset)
        cells.append(GridDay(day, day < first or day > last))
    return cells


def add_months(value: DateLike, months: int) -> datetime.date:
    """Shift a date by whole months, clamping the day to the target month."""
    d = _as_date(value)
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return datetime.date(year, month, day)
