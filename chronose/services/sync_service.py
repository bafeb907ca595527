"""
Sync Service - Keeps the local entry lists in line with the remote store.

Architecture Decision: Refetch instead of patching
After every create/update/delete the affected list is read again from the
store. Deletes are the only optimistic mutation: the entry disappears at
once and the previous list comes back if the store refuses.
"""

import logging
from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from chronose.domain.models import EntryType, RemoteEntry, can_edit_or_delete
from chronose.i18n import tr
from chronose.infra.auth import AuthProvider
from chronose.infra.store import EntryStore, StoreError, entries_of

logger = logging.getLogger(__name__)


def normalize_error(error: StoreError) -> str:
    """User-facing message for a store error"""
    if error.is_unavailable:
        return tr("sync.not_available")
    return error.message


class MutationResult(BaseModel):
    """Outcome of a pessimistic create/update"""
    entry: Optional[RemoteEntry] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DeleteOutcome(BaseModel):
    """
    Outcome of an optimistic delete.

    Carries either the confirmed list (delete accepted) or the list to roll
    back to (delete refused), never both. An unknown id has neither and no
    entry type.
    """
    entry_id: int
    entry_type: Optional[EntryType] = None
    confirmed: Optional[List[RemoteEntry]] = None
    rollback: Optional[List[RemoteEntry]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def entries(self) -> List[RemoteEntry]:
        return (self.confirmed if self.ok else self.rollback) or []


class SyncService:
    """
    Local view of the user's remote entries, one list per entry type.
    """

    def __init__(self, store: EntryStore, auth: AuthProvider):
        self.store = store
        self.auth = auth
        self.entries: Dict[EntryType, List[RemoteEntry]] = {t: [] for t in EntryType}

        # Remote unavailable: lists stay empty and the UI shows the banner
        self.banner: Optional[str] = None
        self.read_only: bool = False
        # Last failure of a user action, shown next to that action
        self.error_message: Optional[str] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.auth.current_user_id()

    def entries_for(self, entry_type: Union[EntryType, str]) -> List[RemoteEntry]:
        return list(self.entries[EntryType(entry_type)])

    def all_entries(self) -> List[RemoteEntry]:
        return [e for entries in self.entries.values() for e in entries]

    def find(self, entry_id: int) -> Optional[RemoteEntry]:
        for entry in self.all_entries():
            if entry.id == entry_id:
                return entry
        return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def refetch_after_mutation(self, user_id: Optional[str],
                                     entry_type: Union[EntryType, str]) -> List[RemoteEntry]:
        """
        Replace the local list of one entry type with the store's.

        On unavailability the list is emptied and the service turns read-only;
        on any other failure the current list is kept.
        """
        entry_type = EntryType(entry_type)
        result = await self.store.list_entries(user_id, entry_type)
        if result.ok:
            self.entries[entry_type] = entries_of(result)
            self.banner = None
            self.read_only = False
        elif result.error.is_unavailable:
            self.entries[entry_type] = []
            self.banner = normalize_error(result.error)
            self.read_only = True
        else:
            logger.warning("Refreshing %s entries failed: %s", entry_type.value, result.error.message)
            self.error_message = normalize_error(result.error)
        return self.entries_for(entry_type)

    async def refresh(self, entry_type: Union[EntryType, str]) -> List[RemoteEntry]:
        return await self.refetch_after_mutation(self.user_id, entry_type)

    async def refresh_all(self) -> None:
        for entry_type in EntryType:
            await self.refresh(entry_type)

    # ------------------------------------------------------------------
    # Pessimistic writes
    # ------------------------------------------------------------------

    def _failed(self, error: StoreError, action: str) -> MutationResult:
        message = normalize_error(error)
        logger.warning("%s failed (%s): %s", action, error.code, error.message)
        self.error_message = message
        return MutationResult(error=message, code=error.code)

    async def create(self, payload: dict) -> MutationResult:
        """Create an entry for the current user, then refetch its list"""
        payload = dict(payload, user_id=self.user_id)
        result = await self.store.create(payload)
        if not result.ok:
            return self._failed(result.error, "Create")

        entry: RemoteEntry = result.data
        self.error_message = None
        await self.refetch_after_mutation(self.user_id, entry.type)
        return MutationResult(entry=entry)

    async def update(self, entry_id: int, patch: dict) -> MutationResult:
        """Update an entry, then refetch the lists it may have moved between"""
        current = self.find(entry_id)
        if current is not None and not can_edit_or_delete(current):
            self.error_message = tr("sync.entry_locked")
            return MutationResult(error=self.error_message)

        result = await self.store.update(entry_id, patch)
        if not result.ok:
            return self._failed(result.error, "Update")

        entry: RemoteEntry = result.data
        self.error_message = None
        await self.refetch_after_mutation(self.user_id, entry.type)
        if current is not None and current.type != entry.type:
            await self.refetch_after_mutation(self.user_id, current.type)
        return MutationResult(entry=entry)

    # ------------------------------------------------------------------
    # Optimistic delete
    # ------------------------------------------------------------------

    def _apply(self, outcome: DeleteOutcome) -> None:
        self.entries[outcome.entry_type] = list(outcome.entries)
        self.error_message = outcome.error

    async def optimistic_delete(self, entry_id: int) -> DeleteOutcome:
        """
        Remove an entry locally first, then ask the store to delete it.

        Returns:
            DeleteOutcome with the confirmed list, or the rollback list and
            the error if the store refused
        """
        entry = self.find(entry_id)
        if entry is None:
            self.error_message = tr("sync.entry_not_found")
            return DeleteOutcome(entry_id=entry_id, error=self.error_message)

        previous = self.entries_for(entry.type)
        if not can_edit_or_delete(entry):
            outcome = DeleteOutcome(entry_id=entry_id, entry_type=entry.type,
                                    rollback=previous, error=tr("sync.entry_locked"))
            self._apply(outcome)
            return outcome

        self.entries[entry.type] = [e for e in previous if e.id != entry_id]

        result = await self.store.delete(entry_id)
        if not result.ok:
            logger.warning("Delete of entry %s failed, rolling back: %s", entry_id, result.error.message)
            outcome = DeleteOutcome(entry_id=entry_id, entry_type=entry.type,
                                    rollback=previous, error=normalize_error(result.error))
            self._apply(outcome)
            return outcome

        await self.refetch_after_mutation(self.user_id, entry.type)
        outcome = DeleteOutcome(entry_id=entry_id, entry_type=entry.type,
                                confirmed=self.entries_for(entry.type))
        self._apply(outcome)
        return outcome
