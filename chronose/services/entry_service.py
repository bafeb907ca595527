"""
Entry Form Service - Draft/submit state machine for work and leave entries.

The panel holds two drafts side by side (work and leave) and a discriminant
telling which one is active. Switching modes never clears the other draft.
"""

import logging
import math
from typing import Dict, Optional, Union

from pydantic import BaseModel
from PySide6.QtCore import QObject, Signal

from chronose.domain.errors import EntryLockedError
from chronose.domain.models import (
    FULL_DAY_HOURS, EntryStatus, EntryType, LeaveDraft, LeaveDuration, LeaveType,
    RemoteEntry, WorkDraft, can_edit_or_delete,
)
from chronose.i18n import tr
from chronose.services.calendar_service import CalendarService
from chronose.services.sync_service import MutationResult, SyncService

logger = logging.getLogger(__name__)

MAX_WORK_HOURS = 24
MAX_NOTES_LENGTH = 500
MAX_REASON_LENGTH = 300

Fields = Union[dict, BaseModel]


class ValidationResult(BaseModel):
    errors: Dict[str, str] = {}
    valid: bool = True


def _as_dict(fields: Fields) -> dict:
    return fields.model_dump() if isinstance(fields, BaseModel) else dict(fields)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_number(value) -> Optional[float]:
    """Parse a form number; None if it is not one"""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _result(errors: Dict[str, str]) -> ValidationResult:
    return ValidationResult(errors=errors, valid=not errors)


def validate_work(fields: Fields) -> ValidationResult:
    """
    Validate work entry fields.

    Project and task are left unchecked for now; the remote schema has not
    settled on what they must contain.
    """
    values = _as_dict(fields)
    errors = {}

    if _is_blank(values.get("date")):
        errors["date"] = tr("validation.date_required")

    hours = values.get("hours")
    if _is_blank(hours):
        errors["hours"] = tr("validation.hours_required")
    else:
        number = _to_number(hours)
        if number is None:
            errors["hours"] = tr("validation.hours_number")
        elif number < 0:
            errors["hours"] = tr("validation.hours_negative")
        elif number > MAX_WORK_HOURS:
            errors["hours"] = tr("validation.hours_max")

    notes = values.get("notes") or ""
    if len(notes) > MAX_NOTES_LENGTH:
        errors["notes"] = tr("validation.notes_length")

    return _result(errors)


def validate_leave(fields: Fields) -> ValidationResult:
    """
    Validate leave entry fields.

    Leave hours only matter for partial days; a full day is always 8 hours.
    """
    values = _as_dict(fields)
    errors = {}

    if _is_blank(values.get("date")):
        errors["date"] = tr("validation.date_required")

    if values.get("leave_type") not in {t.value for t in LeaveType}:
        errors["leave_type"] = tr("validation.leave_type_required")

    duration = values.get("leave_duration")
    if duration not in {d.value for d in LeaveDuration}:
        errors["leave_duration"] = tr("validation.leave_duration_required")

    reason = values.get("leave_reason")
    if _is_blank(reason):
        errors["leave_reason"] = tr("validation.leave_reason_required")
    elif len(reason) > MAX_REASON_LENGTH:
        errors["leave_reason"] = tr("validation.leave_reason_length")

    if duration == LeaveDuration.PARTIAL.value:
        leave_hours = values.get("leave_hours")
        if _is_blank(leave_hours):
            errors["leave_hours"] = tr("validation.leave_hours_required")
        else:
            number = _to_number(leave_hours)
            if number is None:
                errors["leave_hours"] = tr("validation.leave_hours_number")
            elif not 0 <= number <= FULL_DAY_HOURS:
                errors["leave_hours"] = tr("validation.leave_hours_range")

    return _result(errors)


class EntryFormService(QObject):
    """
    State of the entry panel: active mode, both drafts, edit target, errors.

    The drafts follow the calendar's selected date.
    """

    state_changed = Signal()

    def __init__(self, calendar: CalendarService, sync: SyncService):
        super().__init__()
        self.calendar = calendar
        self.sync = sync

        self.mode: EntryType = EntryType.WORK
        self.work = WorkDraft(date=calendar.selected_iso)
        self.leave = LeaveDraft(date=calendar.selected_iso)
        self.editing_entry_id: Optional[int] = None
        self.errors: Dict[str, str] = {}
        self.error_message: Optional[str] = None
        self.is_open: bool = False

        self.calendar.selection_changed.connect(self._on_date_selected)

    @property
    def active_draft(self) -> Union[WorkDraft, LeaveDraft]:
        return self.work if self.mode == EntryType.WORK else self.leave

    def _on_date_selected(self, iso_date: str) -> None:
        self.work.date = iso_date
        self.leave.date = iso_date
        self.state_changed.emit()

    # ------------------------------------------------------------------
    # Panel
    # ------------------------------------------------------------------

    def open(self, mode: Optional[Union[EntryType, str]] = None) -> None:
        self.is_open = True
        if mode is not None:
            self.set_mode(mode)
        self.state_changed.emit()

    def set_mode(self, mode: Union[EntryType, str]) -> None:
        """Switch the active draft; the other draft keeps its fields"""
        self.mode = EntryType(mode)
        self.errors = {}
        self.state_changed.emit()

    def update_fields(self, **fields) -> None:
        """Set fields on the active draft"""
        draft = self.active_draft
        for name, value in fields.items():
            if name not in type(draft).model_fields:
                raise KeyError(f"{type(draft).__name__} has no field '{name}'")
            setattr(draft, name, value)
        self.state_changed.emit()

    def load_for_edit(self, entry: RemoteEntry) -> None:
        """
        Fill the matching draft from an existing entry and edit it in place.

        Raises:
            EntryLockedError: If the entry is already approved
        """
        if not can_edit_or_delete(entry):
            raise EntryLockedError(entry.id)

        iso_date = entry.date.isoformat()
        if entry.type == EntryType.LEAVE:
            self.leave = LeaveDraft(
                date=iso_date,
                leave_type=entry.leave_type.value if entry.leave_type else None,
                leave_duration=entry.leave_duration.value if entry.leave_duration else None,
                leave_hours=entry.leave_hours,
                leave_reason=entry.leave_reason or "",
            )
        else:
            self.work = WorkDraft(
                date=iso_date,
                project=entry.project or "",
                task=entry.task or "",
                hours=entry.hours,
                notes=entry.notes or "",
            )

        self.editing_entry_id = entry.id
        self.mode = entry.type
        self.errors = {}
        self.error_message = None
        self.is_open = True
        self.calendar.select_date(entry.date)
        self.state_changed.emit()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_work(self, fields: Optional[Fields] = None) -> ValidationResult:
        return validate_work(self.work if fields is None else fields)

    def validate_leave(self, fields: Optional[Fields] = None) -> ValidationResult:
        return validate_leave(self.leave if fields is None else fields)

    def validate(self) -> ValidationResult:
        if self.mode == EntryType.LEAVE:
            return self.validate_leave()
        return self.validate_work()

    # ------------------------------------------------------------------
    # Save / submit
    # ------------------------------------------------------------------

    async def _write(self, status: EntryStatus) -> MutationResult:
        payload = dict(self.active_draft.to_payload(), status=status)
        if self.editing_entry_id is None:
            return await self.sync.create(payload)
        return await self.sync.update(self.editing_entry_id, payload)

    async def save_draft(self) -> bool:
        """
        Store the active draft with status 'draft'.

        Returns:
            True on success (fields are cleared); False keeps the fields and
            sets error_message
        """
        result = await self._write(EntryStatus.DRAFT)
        if not result.ok:
            self.error_message = result.error
            self.state_changed.emit()
            return False

        self.clear()
        return True

    async def submit(self) -> bool:
        """
        Validate and submit the active draft.

        New drafts are created as 'submitted'; an entry loaded for edit is
        updated and forced to 'submitted'.

        Returns:
            True if the store accepted the entry
        """
        validation = self.validate()
        if not validation.valid:
            self.errors = validation.errors
            self.state_changed.emit()
            return False

        self.errors = {}
        result = await self._write(EntryStatus.SUBMITTED)
        if not result.ok:
            self.error_message = result.error
            self.state_changed.emit()
            return False

        logger.info("Submitted %s entry for %s", self.mode.value, self.active_draft.date)
        self.clear()
        return True

    def clear(self) -> None:
        """Reset both drafts and leave edit mode, whichever mode is active"""
        selected = self.calendar.selected_iso
        self.work = WorkDraft(date=selected)
        self.leave = LeaveDraft(date=selected)
        self.editing_entry_id = None
        self.errors = {}
        self.error_message = None
        self.state_changed.emit()

    def close(self) -> None:
        self.clear()
        self.is_open = False
        self.state_changed.emit()
