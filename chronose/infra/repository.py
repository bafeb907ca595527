"""
Repository Pattern Implementation of the remote entry store.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Mock data for testing
- Change data sources (local DB to cloud API)

Errors are returned, never raised: the client has to keep working when the
store is not configured or its schema has not been provisioned yet.
"""

import datetime
import logging
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chronose.domain.models import EntryType, RemoteEntry
from chronose.i18n import tr
from chronose.infra.db import TimeEntryModel, get_engine
from chronose.infra.store import (
    EntryStore, StoreResult, FEATURE_DISABLED, MISSING_SCHEMA, VALIDATION_ERROR,
)

logger = logging.getLogger(__name__)

# Fields a client may change on an existing entry
UPDATABLE_FIELDS = (
    "date", "type", "status", "project", "task", "hours", "notes",
    "leave_type", "leave_duration", "leave_hours", "leave_reason",
)


def is_missing_table(error: Exception) -> bool:
    """Detect a missing table across SQLite and PostgreSQL drivers"""
    message = str(getattr(error, "orig", None) or error).lower()
    code = getattr(getattr(error, "orig", None), "pgcode", None) or getattr(error, "code", None)
    return (
        "no such table" in message
        or ("relation" in message and "does not exist" in message)
        or ("table" in message and "not exist" in message)
        or code == "42P01"
    )


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"{field}: {first.get('msg')}" if field else first.get("msg", str(error))


class EntryRepository(EntryStore):
    """
    Handles all RemoteEntry-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    """

    def __init__(self, session: Optional[AsyncSession] = None, enabled: Optional[bool] = None):
        self.session = session
        if enabled is None:
            from chronose.infra.config import get_settings
            enabled = get_settings().enable_real_data
        self.enabled = enabled

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()

    def _disabled(self, data=None) -> StoreResult:
        return StoreResult.failure(tr("sync.not_available"), FEATURE_DISABLED, data=data)

    def _from_db_error(self, error: SQLAlchemyError, fallback_key: str, data=None) -> StoreResult:
        if is_missing_table(error):
            return StoreResult.failure(tr("sync.not_available"), MISSING_SCHEMA, data=data)
        logger.warning("Entry store error: %s", error)
        message = str(getattr(error, "orig", None) or "") or tr(fallback_key)
        return StoreResult.failure(message, data=data)

    async def list_entries(self, user_id: str, entry_type: Optional[EntryType] = None) -> StoreResult:
        """List a user's entries ordered by date, newest first"""
        if not self.enabled:
            return self._disabled(data=[])
        try:
            session = await self._get_session()
            async with session:
                query = select(TimeEntryModel).where(TimeEntryModel.user_id == user_id)
                if entry_type is not None:
                    query = query.where(TimeEntryModel.type == EntryType(entry_type).value)
                result = await session.execute(
                    query.order_by(TimeEntryModel.date.desc(), TimeEntryModel.id.desc())
                )
                entries: List[RemoteEntry] = [
                    RemoteEntry.model_validate(m) for m in result.scalars().all()
                ]
                return StoreResult.success(entries)
        except SQLAlchemyError as e:
            return self._from_db_error(e, "sync.fetch_failed", data=[])

    async def create(self, payload: dict) -> StoreResult:
        """Create a new entry"""
        if not self.enabled:
            return self._disabled()
        try:
            entry = RemoteEntry.model_validate(payload)
        except ValidationError as e:
            return StoreResult.failure(_validation_message(e), VALIDATION_ERROR)

        try:
            session = await self._get_session()
            async with session:
                model = TimeEntryModel(**entry.model_dump(mode="python", exclude={"id", "updated_at"}))
                model.type = entry.type.value
                model.status = entry.status.value
                model.leave_type = entry.leave_type.value if entry.leave_type else None
                model.leave_duration = entry.leave_duration.value if entry.leave_duration else None
                session.add(model)
                await session.commit()
                await session.refresh(model)
                return StoreResult.success(RemoteEntry.model_validate(model))
        except SQLAlchemyError as e:
            return self._from_db_error(e, "sync.create_failed")

    async def update(self, entry_id: int, patch: dict) -> StoreResult:
        """Update an existing entry with the given fields"""
        if not self.enabled:
            return self._disabled()
        try:
            session = await self._get_session()
            async with session:
                result = await session.execute(
                    select(TimeEntryModel).where(TimeEntryModel.id == entry_id)
                )
                model = result.scalar_one_or_none()
                if model is None:
                    return StoreResult.failure(tr("sync.entry_not_found"))

                merged = RemoteEntry.model_validate(model).model_dump()
                merged.update({k: v for k, v in patch.items() if k in UPDATABLE_FIELDS})
                try:
                    entry = RemoteEntry.model_validate(merged)
                except ValidationError as e:
                    return StoreResult.failure(_validation_message(e), VALIDATION_ERROR)

                for field in UPDATABLE_FIELDS:
                    value = getattr(entry, field)
                    setattr(model, field, getattr(value, "value", value))
                model.updated_at = datetime.datetime.now()

                await session.commit()
                await session.refresh(model)
                return StoreResult.success(RemoteEntry.model_validate(model))
        except SQLAlchemyError as e:
            return self._from_db_error(e, "sync.update_failed")

    async def delete(self, entry_id: int) -> StoreResult:
        """Delete an entry by ID"""
        if not self.enabled:
            return self._disabled()
        try:
            session = await self._get_session()
            async with session:
                await session.execute(
                    delete(TimeEntryModel).where(TimeEntryModel.id == entry_id)
                )
                await session.commit()
                return StoreResult.success({"id": entry_id})
        except SQLAlchemyError as e:
            return self._from_db_error(e, "sync.delete_failed")
