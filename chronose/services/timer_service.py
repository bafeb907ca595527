"""
Timer Service - Check-in/check-out engine and per-date session ledger.

Architecture Decision: Observer Pattern (Qt Signals)
The service emits signals when state changes, keeping it decoupled from UI.
The ledger itself is an owned object behind this service: every read and
write goes through it, which is what keeps "at most one running session"
enforceable in one place.
"""

import datetime
import logging
from typing import Callable, Dict, List, Optional, Union
from PySide6.QtCore import QCoreApplication, QObject, QTimer, Signal

from chronose.domain.dates import to_iso_date
from chronose.domain.models import (
    DayLedger, Notice, RunningSession, Session, TimerState, elapsed_seconds,
)
from chronose.i18n import tr
from chronose.infra.storage import KeyValueStorage
from chronose.utils import format_hms

logger = logging.getLogger(__name__)

STORAGE_KEY = "chronose.timer.v1"
DEFAULT_STALE_SESSION_HOURS = 12.0

DateKey = Union[str, datetime.date, datetime.datetime]


def date_key(value: DateKey) -> str:
    """Normalize a date, datetime or ISO string to the ledger key"""
    if isinstance(value, str):
        return datetime.date.fromisoformat(value.strip()[:10]).isoformat()
    return to_iso_date(value)


class TimerService(QObject):
    """
    The time tracking engine. Manages state but knows nothing about the UI.
    Emits signals when things change (Observer Pattern).

    State per date:  Idle -> Running (check_in) -> Idle (check_out)
                     Running -> Idle (stale auto-closure on start-up)
    """

    # Signals
    ticked = Signal(str, int)  # (formatted_elapsed, elapsed_seconds)
    checked_in = Signal(str)  # iso date
    checked_out = Signal(str, int)  # iso date, session seconds
    ledger_changed = Signal(str)  # iso date
    stale_session_closed = Signal(str, str)  # message, iso date

    def __init__(self, storage: KeyValueStorage,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now,
                 stale_session_hours: float = DEFAULT_STALE_SESSION_HOURS):
        super().__init__()
        self.storage = storage
        self.clock = clock
        self.stale_session_cap = datetime.timedelta(hours=stale_session_hours)

        # Display state, never persisted
        self.running_date: Optional[str] = None
        self.elapsed_seconds: int = 0
        self.last_session_seconds: int = 0
        self.pending_notices: List[Notice] = []

        self._state: TimerState = self._load_state()

        # Internal timer that fires every second while a session runs
        self.timer = QTimer(self)
        self.timer.setInterval(1000)
        self.timer.timeout.connect(self._on_tick)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load_state(self) -> TimerState:
        """Read the ledger. Any failure yields an empty ledger."""
        try:
            raw = self.storage.get_item(STORAGE_KEY)
            if not raw:
                return TimerState()
            return TimerState.model_validate_json(raw)
        except Exception as e:
            logger.warning("Timer ledger unreadable, starting empty: %s", e)
            return TimerState()

    def _persist(self) -> None:
        """Write the ledger. Failures are logged and otherwise ignored."""
        try:
            self.storage.set_item(STORAGE_KEY, self._state.model_dump_json(by_alias=True))
        except Exception as e:
            logger.warning("Timer ledger could not be saved: %s", e)

    # ------------------------------------------------------------------
    # Ledger access
    # ------------------------------------------------------------------

    def _ledger_for(self, key: str) -> DayLedger:
        ledger = self._state.by_date.get(key)
        if ledger is None:
            ledger = DayLedger(date=key)
            self._state.by_date[key] = ledger
        return ledger

    def get_ledger(self, date: DateKey) -> Optional[DayLedger]:
        """Copy of the ledger for a date, or None if the date never had activity"""
        ledger = self._state.by_date.get(date_key(date))
        return ledger.model_copy(deep=True) if ledger else None

    def dates_with_activity(self) -> List[str]:
        return sorted(self._state.by_date)

    def running_dates(self) -> List[str]:
        """Dates that currently hold a running session"""
        return [key for key, ledger in sorted(self._state.by_date.items()) if ledger.running]

    def totals(self, dates) -> Dict[str, int]:
        """Closed-session totals for several dates at once"""
        return {date_key(d): self.recalculate_total(d) for d in dates}

    @property
    def is_running(self) -> bool:
        return self.running_date is not None or bool(self.running_dates())

    @property
    def running_start(self) -> Optional[datetime.datetime]:
        if self.running_date is None:
            return None
        ledger = self._state.by_date.get(self.running_date)
        return ledger.running.start if ledger and ledger.running else None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def check_in(self, date: DateKey) -> bool:
        """
        Start a session on the given date.

        Only one session may run system-wide; checking in while anything is
        running is a silent no-op.

        Returns:
            True if a session was started
        """
        key = date_key(date)
        if self.is_running:
            logger.debug("Check-in on %s ignored, %s is running", key, self.running_date)
            return False

        now = self.clock()
        self._ledger_for(key).running = RunningSession(start=now)
        self._persist()

        self.running_date = key
        self.elapsed_seconds = 0
        self._start_clock()

        self.checked_in.emit(key)
        self.ledger_changed.emit(key)
        return True

    def check_out(self, date: DateKey) -> Optional[int]:
        """
        Close the running session on the given date.

        Returns:
            Duration of the closed session in seconds, or None if nothing ran
        """
        key = date_key(date)
        ledger = self._state.by_date.get(key)
        if ledger is None or ledger.running is None:
            return None

        start = ledger.running.start
        end = max(self.clock(), start)
        session = Session(start=start, end=end)
        ledger.sessions.append(session)
        ledger.running = None
        self._persist()

        duration = session.duration_seconds
        if self.running_date == key:
            self.running_date = None
            self._stop_clock()
            self.elapsed_seconds = 0
        self.last_session_seconds = duration

        self.checked_out.emit(key, duration)
        self.ledger_changed.emit(key)
        return duration

    def recalculate_total(self, date: DateKey) -> int:
        """Sum of closed session durations for a date, in whole seconds"""
        ledger = self._state.by_date.get(date_key(date))
        if ledger is None:
            return 0
        return ledger.total_seconds()

    def reconcile_on_startup(self) -> List[Notice]:
        """
        Recover running sessions found in the persisted ledger.

        Sessions older than the stale cap were forgotten: they are closed at
        exactly start + cap and a notice is queued. A younger session resumes
        ticking from its original start.

        Returns:
            Notices created by this call
        """
        now = self.clock()
        created: List[Notice] = []
        resumable = []

        for key, ledger in sorted(self._state.by_date.items()):
            if ledger.running is None:
                continue
            start = ledger.running.start
            if now >= start + self.stale_session_cap:
                ledger.sessions.append(Session(start=start, end=start + self.stale_session_cap))
                ledger.running = None
                hours = f"{self.stale_session_cap.total_seconds() / 3600:g}"
                notice = Notice(
                    message=tr("timer.stale_session_closed", date=key, hours=hours),
                    date=key,
                    created_at=now,
                )
                created.append(notice)
                logger.info("Closed stale session on %s started at %s", key, start)
            else:
                resumable.append((start, key))

        if created:
            self._persist()
            self.pending_notices.extend(created)
            for notice in created:
                self.stale_session_closed.emit(notice.message, notice.date)
                self.ledger_changed.emit(notice.date)

        if resumable:
            # More than one can only come from an edited ledger; follow the newest
            start, key = max(resumable)
            if len(resumable) > 1:
                logger.warning("Found %d running sessions, resuming %s", len(resumable), key)
            self.running_date = key
            self.elapsed_seconds = elapsed_seconds(start, now)
            self._start_clock()

        return created

    def dismiss_notice(self, notice: Notice) -> None:
        if notice in self.pending_notices:
            self.pending_notices.remove(notice)

    def dismiss_all_notices(self) -> None:
        self.pending_notices.clear()

    # ------------------------------------------------------------------
    # Display clock
    # ------------------------------------------------------------------

    def _start_clock(self) -> None:
        # QTimer needs a running Qt application; headless callers drive tick()
        if QCoreApplication.instance() is not None and not self.timer.isActive():
            self.timer.start()

    def _stop_clock(self) -> None:
        if self.timer.isActive():
            self.timer.stop()

    def _on_tick(self) -> None:
        self.tick()

    def tick(self) -> int:
        """
        Refresh the elapsed display counter.

        Elapsed time is derived from the session start, so missed ticks
        (sleep, background tabs) never make the display drift.

        Returns:
            Elapsed seconds of the running session, 0 when idle
        """
        start = self.running_start
        if start is None:
            self.elapsed_seconds = 0
            return 0

        self.elapsed_seconds = elapsed_seconds(start, self.clock())
        self.ticked.emit(format_hms(self.elapsed_seconds), self.elapsed_seconds)
        return self.elapsed_seconds

    def formatted_elapsed(self) -> str:
        return format_hms(self.elapsed_seconds)
