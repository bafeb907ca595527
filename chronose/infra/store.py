"""
Remote entry store interface.

Every call returns a StoreResult instead of raising, so callers can tell
"not configured" apart from "broken" without wrapping each call in
try/except.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional
from pydantic import BaseModel

from chronose.domain.models import EntryType, RemoteEntry

FEATURE_DISABLED = "feature_disabled"
MISSING_SCHEMA = "missing_schema"
VALIDATION_ERROR = "validation_error"
CLIENT_ERROR = "client_error"

# Codes that mean "the store is not there yet" rather than "the call failed"
UNAVAILABLE_CODES = frozenset({FEATURE_DISABLED, MISSING_SCHEMA})


class StoreError(BaseModel):
    code: str = CLIENT_ERROR
    message: str

    @property
    def is_unavailable(self) -> bool:
        return self.code in UNAVAILABLE_CODES


class StoreResult(BaseModel):
    data: Any = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any) -> "StoreResult":
        return cls(data=data)

    @classmethod
    def failure(cls, message: str, code: str = CLIENT_ERROR, data: Any = None) -> "StoreResult":
        return cls(data=data, error=StoreError(code=code, message=message))


class EntryStore(ABC):
    """
    Create/read/update/delete of dated work and leave records.
    """

    @abstractmethod
    async def list_entries(self, user_id: str, entry_type: Optional[EntryType] = None) -> StoreResult:
        """List a user's entries, newest date first. data is a List[RemoteEntry]."""

    @abstractmethod
    async def create(self, payload: dict) -> StoreResult:
        """Create an entry. data is the stored RemoteEntry."""

    @abstractmethod
    async def update(self, entry_id: int, patch: dict) -> StoreResult:
        """Apply patch to an entry. data is the updated RemoteEntry."""

    @abstractmethod
    async def delete(self, entry_id: int) -> StoreResult:
        """Delete an entry. data is {'id': entry_id}."""


def entries_of(result: StoreResult) -> List[RemoteEntry]:
    """The entry list carried by a list_entries result, empty on error"""
    if not result.ok or not result.data:
        return []
    return list(result.data)
