"""
SQLAlchemy database models and configuration for the entry store.

Architecture Decision: Why SQLAlchemy?
- Provides ORM for cleaner code and prevents SQL injection
- Supports async operations so remote calls never block the timer tick
- The same code talks to the local SQLite file or a hosted PostgreSQL
"""

import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Integer, Date, DateTime, Float, Text


# Base class for all models
class Base(DeclarativeBase):
    pass


class TimeEntryModel(Base):
    """SQLAlchemy model for RemoteEntry (work and leave records)"""
    __tablename__ = "time_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String(16), default="work", nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="draft", nullable=False)

    project: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    task: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    hours: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    leave_type: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    leave_duration: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    leave_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    leave_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now, nullable=False)
    updated_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime, nullable=True)


class DatabaseEngine:
    """
    Manages database connection and session lifecycle.

    Singleton pattern ensures only one engine exists per application.
    """
    _instance: Optional['DatabaseEngine'] = None

    def __init__(self, db_url: str):
        self.engine = create_async_engine(db_url, echo=False)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    @classmethod
    def get_instance(cls, db_url: Optional[str] = None) -> 'DatabaseEngine':
        """Get or create the database engine instance"""
        if cls._instance is None:
            if db_url is None:
                from chronose.infra.config import get_settings
                settings = get_settings()
                db_url = settings.database_url or f"sqlite+aiosqlite:///{settings.data_dir / 'chronose.db'}"
            cls._instance = cls(db_url)
        return cls._instance

    async def create_tables(self):
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def get_session(self) -> AsyncSession:
        """Get a new database session"""
        return self.session_factory()


# Convenience functions
def get_engine(db_url: Optional[str] = None) -> DatabaseEngine:
    """Get the database engine instance"""
    return DatabaseEngine.get_instance(db_url)


async def init_db(db_url: Optional[str] = None):
    """Initialize the database (create tables)"""
    engine = get_engine(db_url)
    await engine.create_tables()
