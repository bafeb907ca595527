"""
Local key/value storage for client-side state.

Architecture Decision: Why a key/value interface?
The timer ledger lives under a single namespaced key, the same way a browser
client would keep it in local storage. Services only see this interface, so
tests swap in MemoryStorage and the desktop build uses a JSON file.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """
    Abstract string storage.

    Implementations may raise OSError/ValueError on I/O problems; callers
    decide how to degrade.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored text for key, or None if absent"""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store text under key"""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete key if present"""


class MemoryStorage(KeyValueStorage):
    """In-process storage, used by tests and as a last-resort fallback"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """
    Stores all keys in one JSON object on disk.

    The file is re-read on every access so that edits made by another process
    between two calls are picked up; no locking is attempted.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} does not contain an object")
        return data

    def _write_all(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(items, f, indent=2)
        tmp_path.replace(self.path)

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            items = self._read_all()
        except ValueError:
            # Unreadable file: start over rather than refusing every write
            logger.warning("Discarding corrupt storage file %s", self.path)
            items = {}
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key in items:
            del items[key]
            self._write_all(items)
