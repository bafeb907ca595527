"""
Pytest configuration and fixtures.
"""

import sys
import datetime
from pathlib import Path
from typing import List, Optional
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from chronose.domain.models import EntryType, RemoteEntry
from chronose.i18n import set_language
from chronose.infra.auth import StaticAuthProvider
from chronose.infra.db import Base
from chronose.infra.storage import MemoryStorage
from chronose.infra.store import EntryStore, StoreResult
from chronose.services import CalendarService, EntryFormService, SyncService, TimerService


class FakeClock:
    """Manually advanced replacement for datetime.now"""

    def __init__(self, start: datetime.datetime):
        self.now = start

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs) -> datetime.datetime:
        self.now += datetime.timedelta(**kwargs)
        return self.now


class FakeEntryStore(EntryStore):
    """
    In-memory entry store. Set `failures[op] = StoreResult.failure(...)` to make
    the next call of that operation fail.
    """

    def __init__(self, entries: Optional[List[RemoteEntry]] = None):
        self.entries = {e.id: e for e in entries or []}
        self.next_id = max(self.entries, default=0) + 1
        self.failures = {}
        self.calls = []

    def _failure(self, op):
        self.calls.append(op)
        return self.failures.pop(op, None)

    async def list_entries(self, user_id, entry_type=None):
        failure = self._failure("list")
        if failure:
            return failure
        entries = [
            e for e in self.entries.values()
            if e.user_id == user_id and (entry_type is None or e.type == entry_type)
        ]
        return StoreResult.success(sorted(entries, key=lambda e: (e.date, e.id), reverse=True))

    async def create(self, payload):
        failure = self._failure("create")
        if failure:
            return failure
        entry = RemoteEntry.model_validate(dict(payload, id=self.next_id))
        self.entries[entry.id] = entry
        self.next_id += 1
        return StoreResult.success(entry)

    async def update(self, entry_id, patch):
        failure = self._failure("update")
        if failure:
            return failure
        data = self.entries[entry_id].model_dump()
        data.update(patch)
        entry = RemoteEntry.model_validate(data)
        self.entries[entry_id] = entry
        return StoreResult.success(entry)

    async def delete(self, entry_id):
        failure = self._failure("delete")
        if failure:
            return failure
        self.entries.pop(entry_id, None)
        return StoreResult.success({"id": entry_id})


def make_entry(entry_id: int, day: str, entry_type: EntryType = EntryType.WORK,
               status: str = "draft", user_id: str = "user-1", **fields) -> RemoteEntry:
    if entry_type == EntryType.LEAVE:
        defaults = dict(leave_type="sick", leave_duration="full", leave_hours=8.0,
                        leave_reason="Flu", hours=8.0)
    else:
        defaults = dict(project="Apollo", task="Build", hours=7.5, notes="")
    defaults.update(fields)
    return RemoteEntry(id=entry_id, user_id=user_id, date=day, type=entry_type,
                       status=status, **defaults)


@pytest.fixture(autouse=True)
def english():
    set_language("en")
    yield


@pytest.fixture
def clock():
    # Wednesday
    return FakeClock(datetime.datetime(2026, 3, 11, 9, 0, 0))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def timer(storage, clock):
    return TimerService(storage, clock=clock)


@pytest.fixture
def calendar(timer, clock):
    return CalendarService(timer, clock=clock)


@pytest.fixture
def store():
    return FakeEntryStore()


@pytest.fixture
def sync(store):
    return SyncService(store, StaticAuthProvider("user-1"))


@pytest.fixture
def form(calendar, sync):
    return EntryFormService(calendar, sync)


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session
