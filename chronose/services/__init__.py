"""Services layer - Business logic"""

from .timer_service import TimerService
from .calendar_service import CalendarService
from .sync_service import SyncService
from .entry_service import EntryFormService

__all__ = ["TimerService", "CalendarService", "SyncService", "EntryFormService"]
