"""
Console Application - Plain text front end for the Chronose engine.

Architecture Decision: Presentation Layer
This layer only handles input parsing and output. Business logic is
delegated to Services; text layout lives in Jinja2 templates.
"""

import argparse
import asyncio
import datetime
import logging
from typing import Callable, List, Optional

from jinja2 import Environment, FileSystemLoader

from chronose.domain.models import CalendarView, EntryType
from chronose.i18n import set_language, tr
from chronose.infra.auth import StaticAuthProvider
from chronose.infra.config import Settings, get_settings
from chronose.infra.db import init_db
from chronose.infra.repository import EntryRepository
from chronose.infra.storage import JsonFileStorage, KeyValueStorage
from chronose.infra.store import EntryStore
from chronose.services import CalendarService, EntryFormService, SyncService, TimerService
from chronose.utils import format_hms, get_resource_path

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chronose", description="Employee time tracking")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show the running session and today's total")
    for name in ("check-in", "check-out"):
        cmd = sub.add_parser(name)
        cmd.add_argument("date", nargs="?", help="ISO date, defaults to today")
    for name in ("week", "month"):
        cmd = sub.add_parser(name, help=f"Show the {name} around a date")
        cmd.add_argument("date", nargs="?")

    entries = sub.add_parser("entries", help="List remote entries")
    entries.add_argument("--type", choices=[t.value for t in EntryType])

    work = sub.add_parser("log-work", help="Create a work entry")
    work.add_argument("date")
    work.add_argument("hours")
    work.add_argument("--project", default="")
    work.add_argument("--task", default="")
    work.add_argument("--notes", default="")
    work.add_argument("--draft", action="store_true", help="Save as draft instead of submitting")

    leave = sub.add_parser("log-leave", help="Create a leave entry")
    leave.add_argument("date")
    leave.add_argument("leave_type", choices=["casual", "sick", "vacation"])
    leave.add_argument("reason")
    leave.add_argument("--hours", help="Partial day hours; omit for a full day")
    leave.add_argument("--draft", action="store_true")

    delete = sub.add_parser("delete", help="Delete an entry")
    delete.add_argument("entry_id", type=int)
    return parser


class ConsoleApp:
    """
    Wires settings, storage and services together and runs one command.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 storage: Optional[KeyValueStorage] = None,
                 store: Optional[EntryStore] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now,
                 output: Callable[[str], None] = print):
        self.settings = settings or get_settings()
        self.output = output
        self.clock = clock
        prefs = self.settings.preferences

        set_language(prefs.language)

        self.timer = TimerService(
            storage or JsonFileStorage(self.settings.ledger_path),
            clock=clock,
            stale_session_hours=prefs.stale_session_hours,
        )
        self.calendar = CalendarService(
            self.timer,
            view=prefs.default_view,
            clock=clock,
            country=prefs.country,
            subdivision=prefs.subdivision,
            respect_holidays=prefs.respect_holidays,
            respect_weekends=prefs.respect_weekends,
            work_hours_per_day=prefs.work_hours_per_day,
        )
        self._owns_store = store is None
        self.store = store or EntryRepository(enabled=self.settings.enable_real_data)
        self.sync = SyncService(self.store, StaticAuthProvider(self.settings.user_id))
        self.form = EntryFormService(self.calendar, self.sync)

        template_dir = get_resource_path("chronose/resources/templates")
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True
        )
        self.env.globals['tr'] = tr
        self.env.filters['format_duration'] = format_hms
        self.env.filters['format_time'] = self._format_time

    @staticmethod
    def _format_time(value: Optional[datetime.datetime]) -> str:
        return value.strftime("%H:%M:%S") if value else ""

    def render(self, template_name: str, **context) -> str:
        return self.env.get_template(template_name).render(**context).rstrip("\n")

    async def startup(self) -> None:
        """Recover the timer and load remote entries"""
        if self._owns_store and self.settings.enable_real_data:
            await init_db(self.settings.database_url)
        self.timer.reconcile_on_startup()
        await self.sync.refresh_all()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _date_arg(self, value: Optional[str]) -> str:
        return value or self.clock().date().isoformat()

    def show_status(self) -> None:
        self.timer.tick()
        self.output(self.render(
            "status.txt",
            running_date=self.timer.running_date,
            running_start=self.timer.running_start,
            elapsed=self.timer.elapsed_seconds,
            last_session=self.timer.last_session_seconds,
            today_total=self.timer.recalculate_total(self.clock()),
            notices=self.timer.pending_notices,
            banner=self.sync.banner,
        ))
        self.timer.dismiss_all_notices()

    def show_calendar(self, view: CalendarView, date: Optional[str]) -> None:
        self.calendar.set_view(view)
        self.calendar.select_date(self._date_arg(date))
        self.output(self.render(
            "calendar.txt",
            view=self.calendar.view.value,
            anchor=self.calendar.anchor_date,
            cells=self.calendar.cells,
            summary=self.calendar.summary(self.sync.all_entries()),
        ))

    def show_entries(self, entry_type: Optional[str]) -> None:
        if entry_type:
            entries = self.sync.entries_for(entry_type)
        else:
            entries = sorted(self.sync.all_entries(), key=lambda e: e.date, reverse=True)
        self.output(self.render("entries.txt", entries=entries, banner=self.sync.banner))

    async def _finish_form(self, draft: bool) -> int:
        ok = await (self.form.save_draft() if draft else self.form.submit())
        if ok:
            return 0
        for field, message in self.form.errors.items():
            self.output(f"{field}: {message}")
        if self.form.error_message:
            self.output(self.form.error_message)
        return 1

    async def run(self, argv: Optional[List[str]] = None) -> int:
        args = build_parser().parse_args(argv)
        await self.startup()
        command = args.command or "status"
        logger.debug("Running command %s", command)

        if command == "status":
            self.show_status()
        elif command == "check-in":
            if not self.timer.check_in(self._date_arg(args.date)):
                self.output(tr("timer.already_running", date=self.timer.running_date))
                return 1
            self.show_status()
        elif command == "check-out":
            date = args.date or self.timer.running_date or self._date_arg(None)
            if self.timer.check_out(date) is None:
                self.output(tr("timer.not_running", date=date))
                return 1
            self.show_status()
        elif command in ("week", "month"):
            self.show_calendar(CalendarView(command), args.date)
        elif command == "entries":
            self.show_entries(args.type)
        elif command == "log-work":
            self.calendar.select_date(args.date)
            self.form.open(EntryType.WORK)
            self.form.update_fields(hours=args.hours, project=args.project,
                                    task=args.task, notes=args.notes)
            return await self._finish_form(args.draft)
        elif command == "log-leave":
            self.calendar.select_date(args.date)
            self.form.open(EntryType.LEAVE)
            self.form.update_fields(
                leave_type=args.leave_type,
                leave_duration="partial" if args.hours else "full",
                leave_hours=args.hours,
                leave_reason=args.reason,
            )
            return await self._finish_form(args.draft)
        elif command == "delete":
            outcome = await self.sync.optimistic_delete(args.entry_id)
            if not outcome.ok:
                self.output(outcome.error)
                return 1
        else:
            self.output(tr("console.unknown_command", command=command))
            return 2
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = ConsoleApp(settings)
    return asyncio.run(app.run(argv))
