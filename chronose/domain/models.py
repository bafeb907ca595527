"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
The timer ledger is persisted as JSON text and reloaded on every start. Pydantic
validates that text on the way in (a corrupt ledger fails loudly instead of
half-loading) and gives us serialization for free on the way out.
"""

import datetime
import math
from enum import Enum
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Partial and full-day leave are counted against an 8 hour day
FULL_DAY_HOURS = 8.0


class EntryType(str, Enum):
    WORK = "work"
    LEAVE = "leave"


class EntryStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(str, Enum):
    CASUAL = "casual"
    SICK = "sick"
    VACATION = "vacation"


class LeaveDuration(str, Enum):
    FULL = "full"
    PARTIAL = "partial"


class CalendarView(str, Enum):
    WEEK = "week"
    MONTH = "month"


def elapsed_seconds(start: datetime.datetime, end: datetime.datetime) -> int:
    """Whole seconds between two timestamps, floored and never negative"""
    return max(0, math.floor((end - start).total_seconds()))


def local_naive(value: datetime.datetime) -> datetime.datetime:
    """Convert an offset-aware timestamp to local wall-clock time without tzinfo"""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Timer ledger
# ---------------------------------------------------------------------------

class Session(BaseModel):
    """A closed work session. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    start: datetime.datetime
    end: datetime.datetime

    @field_validator("start", "end")
    @classmethod
    def to_local_naive(cls, value: datetime.datetime) -> datetime.datetime:
        return local_naive(value)

    @property
    def duration_seconds(self) -> int:
        return elapsed_seconds(self.start, self.end)


class RunningSession(BaseModel):
    """A check-in that has not been checked out yet."""
    start: datetime.datetime

    @field_validator("start")
    @classmethod
    def to_local_naive(cls, value: datetime.datetime) -> datetime.datetime:
        return local_naive(value)


class DayLedger(BaseModel):
    """
    All sessions recorded for one calendar date.

    Holds the ordered closed sessions plus at most one running session.
    """
    date: str
    sessions: List[Session] = Field(default_factory=list)
    running: Optional[RunningSession] = None

    def total_seconds(self) -> int:
        return sum(session.duration_seconds for session in self.sessions)


class TimerState(BaseModel):
    """Process-wide timer ledger, keyed by ISO date"""
    model_config = ConfigDict(populate_by_name=True)

    by_date: Dict[str, DayLedger] = Field(default_factory=dict, alias="byDate")


class Notice(BaseModel):
    """One-shot, dismissible message for the UI"""
    message: str
    date: str
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)


# ---------------------------------------------------------------------------
# Calendar read model
# ---------------------------------------------------------------------------

class CalendarCell(BaseModel):
    """What the calendar needs to render a single day"""
    date: datetime.date
    total_seconds: int = 0
    is_selected: bool = False
    is_outside_month: bool = False
    is_today: bool = False
    is_working_day: bool = True
    holiday_name: str = ""

    @property
    def iso_date(self) -> str:
        return self.date.isoformat()


class PeriodSummary(BaseModel):
    """Aggregated figures for the visible calendar range"""
    start: datetime.date
    end: datetime.date
    total_seconds: int = 0
    days_worked: int = 0
    working_days: int = 0
    average_hours_per_day: float = 0.0
    overtime_seconds: int = 0
    leaves_taken: int = 0


# ---------------------------------------------------------------------------
# Entry drafts
# ---------------------------------------------------------------------------

# Form inputs arrive as raw text and are only checked on validation
FormNumber = Union[float, str, None]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class WorkDraft(BaseModel):
    """Field state of the work entry form"""
    date: Optional[str] = None
    project: str = ""
    task: str = ""
    hours: FormNumber = None
    notes: str = ""

    def to_payload(self) -> dict:
        return {
            "type": EntryType.WORK,
            "date": self.date,
            "project": self.project or None,
            "task": self.task or None,
            # Unfinished drafts may be saved without hours
            "hours": _blank_to_none(self.hours) or 0,
            "notes": self.notes or None,
        }


class LeaveDraft(BaseModel):
    """Field state of the leave entry form"""
    date: Optional[str] = None
    leave_type: Optional[str] = LeaveType.CASUAL.value
    leave_duration: Optional[str] = LeaveDuration.FULL.value
    leave_hours: FormNumber = None
    leave_reason: str = ""

    @property
    def is_partial(self) -> bool:
        return self.leave_duration == LeaveDuration.PARTIAL.value

    @property
    def effective_hours(self) -> FormNumber:
        """Hours charged for this leave. Full days always count as 8 hours."""
        if not self.is_partial:
            return FULL_DAY_HOURS
        return _blank_to_none(self.leave_hours)

    def to_payload(self) -> dict:
        return {
            "type": EntryType.LEAVE,
            "date": self.date,
            "leave_type": self.leave_type or None,
            "leave_duration": self.leave_duration or None,
            "leave_hours": self.effective_hours,
            "leave_reason": self.leave_reason or None,
            "hours": self.effective_hours or 0,
        }


# ---------------------------------------------------------------------------
# Remote entries
# ---------------------------------------------------------------------------

class RemoteEntry(BaseModel):
    """
    A work or leave record as stored by the remote entry store.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    user_id: str
    date: datetime.date
    type: EntryType = EntryType.WORK
    status: EntryStatus = EntryStatus.DRAFT

    # Work payload
    project: Optional[str] = None
    task: Optional[str] = None
    hours: float = Field(default=0.0, ge=0, le=24)
    notes: Optional[str] = Field(default=None, max_length=500)

    # Leave payload
    leave_type: Optional[LeaveType] = None
    leave_duration: Optional[LeaveDuration] = None
    leave_hours: Optional[float] = Field(default=None, ge=0, le=FULL_DAY_HOURS)
    leave_reason: Optional[str] = Field(default=None, max_length=300)

    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)
    updated_at: Optional[datetime.datetime] = None


def can_edit_or_delete(entry: RemoteEntry) -> bool:
    """Approved entries are locked for the employee"""
    return entry.status != EntryStatus.APPROVED


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

class UserPreferences(BaseModel):
    """
    User configuration and preferences.

    This allows users to customize behavior without touching code.
    """
    model_config = ConfigDict(from_attributes=True)

    # Timer
    stale_session_hours: float = Field(
        default=12.0, gt=0,
        description="Running sessions older than this are closed automatically"
    )

    # Calendar
    default_view: CalendarView = Field(default=CalendarView.WEEK, description="'week' or 'month'")
    country: str = Field(default="DE", description="Country code used for public holidays")
    subdivision: Optional[str] = Field(default="BY", description="State/province code for holidays")
    respect_holidays: bool = Field(default=True, description="Treat holidays as non-working days")
    respect_weekends: bool = Field(default=True, description="Treat weekends as non-working days")
    work_hours_per_day: float = Field(default=8.0, description="Target daily working hours")

    # UI
    language: str = Field(default="auto", description="UI language: 'en', 'de', or 'auto' (detect from system)")
