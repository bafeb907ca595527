"""
Tests for the SQLAlchemy-backed entry store.
"""

import datetime
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from chronose.domain.models import EntryStatus, EntryType
from chronose.infra.repository import EntryRepository, is_missing_table
from chronose.infra.store import FEATURE_DISABLED, MISSING_SCHEMA, VALIDATION_ERROR


@pytest.fixture
def repo(db_session):
    return EntryRepository(session=db_session, enabled=True)


def work_payload(day="2026-03-11", **fields):
    payload = {
        "user_id": "user-1",
        "date": day,
        "type": "work",
        "status": "draft",
        "project": "Apollo",
        "task": "Build",
        "hours": "7.5",
        "notes": None,
    }
    payload.update(fields)
    return payload


@pytest.mark.asyncio
async def test_create_and_list(repo):
    created = await repo.create(work_payload())
    assert created.ok
    assert created.data.id is not None
    assert created.data.hours == 7.5
    assert created.data.date == datetime.date(2026, 3, 11)

    await repo.create(work_payload("2026-03-12"))
    await repo.create(work_payload("2026-03-13", user_id="user-2"))
    await repo.create({
        "user_id": "user-1", "date": "2026-03-10", "type": "leave", "status": "submitted",
        "leave_type": "vacation", "leave_duration": "full", "leave_hours": 8, "hours": 8,
        "leave_reason": "Trip",
    })

    work = await repo.list_entries("user-1", EntryType.WORK)
    assert [e.date.isoformat() for e in work.data] == ["2026-03-12", "2026-03-11"]

    everything = await repo.list_entries("user-1")
    assert len(everything.data) == 3
    leave = [e for e in everything.data if e.type == EntryType.LEAVE][0]
    assert leave.leave_type.value == "vacation"
    assert leave.status == EntryStatus.SUBMITTED


@pytest.mark.asyncio
async def test_create_validation_error(repo):
    result = await repo.create(work_payload(hours=30))
    assert not result.ok
    assert result.error.code == VALIDATION_ERROR
    assert "hours" in result.error.message


@pytest.mark.asyncio
async def test_update_patches_fields(repo):
    created = (await repo.create(work_payload())).data

    result = await repo.update(created.id, {"hours": 6, "status": "submitted", "id": 999})

    assert result.ok
    assert result.data.id == created.id
    assert result.data.hours == 6
    assert result.data.status == EntryStatus.SUBMITTED
    assert result.data.project == "Apollo"
    assert result.data.updated_at is not None


@pytest.mark.asyncio
async def test_update_missing_entry(repo):
    result = await repo.update(12345, {"hours": 1})
    assert not result.ok
    assert result.error.message == "Entry not found"


@pytest.mark.asyncio
async def test_delete(repo):
    created = (await repo.create(work_payload())).data
    result = await repo.delete(created.id)
    assert result.ok
    assert result.data == {"id": created.id}
    assert (await repo.list_entries("user-1")).data == []


@pytest.mark.asyncio
async def test_disabled_store():
    repo = EntryRepository(enabled=False)
    listed = await repo.list_entries("user-1")
    assert listed.data == []
    assert listed.error.code == FEATURE_DISABLED
    assert (await repo.create(work_payload())).error.code == FEATURE_DISABLED
    assert (await repo.delete(1)).error.code == FEATURE_DISABLED


@pytest_asyncio.fixture
async def empty_session():
    """Database without any tables"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.mark.asyncio
async def test_missing_schema(empty_session):
    repo = EntryRepository(session=empty_session, enabled=True)
    listed = await repo.list_entries("user-1")
    assert listed.error.code == MISSING_SCHEMA
    assert listed.error.message == "Data not available yet"
    assert listed.data == []


def test_is_missing_table_detection():
    assert is_missing_table(Exception("relation \"time_entries\" does not exist"))
    assert is_missing_table(Exception("no such table: time_entries"))
    assert not is_missing_table(Exception("connection refused"))
