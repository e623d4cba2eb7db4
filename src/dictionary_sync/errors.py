"""Exception hierarchy for dictionary synchronisation.

All errors raised by the sync core derive from ``SyncError`` so callers
that surface structured outcomes can catch one type.  Each error carries
the affected ``key`` (when known) for reporting.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for dictionary sync failures.

    Args:
        message: Human-readable description.
        key: Key of the affected item, if known.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class MalformedInputError(SyncError):
    """A serialized fragment could not be decoded or is too deep."""


class DanglingReferenceError(SyncError):
    """A parent chain references a node that does not exist."""


class CycleDetectedError(SyncError):
    """A parent chain loops back onto itself."""


class StoreOperationError(SyncError):
    """An underlying node store create/save/delete failed."""


class FileOperationError(SyncError):
    """Persisting or archiving a file failed."""
