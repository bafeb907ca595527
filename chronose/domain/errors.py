"""Exceptions raised by the Chronose engine."""


class ChronoseError(Exception):
    """Base class for all Chronose errors"""


class EntryLockedError(ChronoseError, ValueError):
    """Raised when an approved entry is about to be edited or deleted"""

    def __init__(self, entry_id):
        super().__init__(f"Entry {entry_id} is approved and can no longer be changed")
        self.entry_id = entry_id
