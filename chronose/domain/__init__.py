"""Domain layer - Pure business entities and logic"""

from .models import (
    Session, RunningSession, DayLedger, TimerState,
    WorkDraft, LeaveDraft, RemoteEntry, UserPreferences,
)
from .errors import ChronoseError, EntryLockedError

__all__ = [
    "Session", "RunningSession", "DayLedger", "TimerState",
    "WorkDraft", "LeaveDraft", "RemoteEntry", "UserPreferences",
    "ChronoseError", "EntryLockedError",
]
