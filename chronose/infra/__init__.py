"""Infrastructure layer - Database, local storage and configuration"""

from .db import DatabaseEngine, get_engine, init_db
from .repository import EntryRepository
from .storage import KeyValueStorage, MemoryStorage, JsonFileStorage
from .store import EntryStore, StoreError, StoreResult

__all__ = [
    "DatabaseEngine", "get_engine", "init_db", "EntryRepository",
    "KeyValueStorage", "MemoryStorage", "JsonFileStorage",
    "EntryStore", "StoreError", "StoreResult",
]
