"""Pydantic models for the dictionary sync core.

Defines the data contracts used across the sync modules:

- ``FragmentValue`` / ``Fragment``: serialized form of one item and its
  child items.
- ``ImportResult``: outcome of a create-only import of one tree.
- ``ChangeType``: what an operation did (or would do) to an item.
- ``SyncOutcome``: structured per-item result surfaced to callers.
- ``ActionType`` / ``TrackedAction``: pending actions recorded against a
  key until the next successful export.

Fragments and outcomes are frozen (immutable).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from ..core.models import Node

ITEM_TYPE = "DictionaryItem"


class FragmentValue(BaseModel):
    """One localized value inside a fragment.

    Attributes:
        locale: Locale identifier as written in the file (e.g. ``"en-US"``).
        text: The translated text.
    """

    locale: str
    text: str

    model_config = {"frozen": True}


class Fragment(BaseModel):
    """Serialized counterpart of a node subtree.

    Attributes:
        key: Item key.
        values: Localized values in document order.
        children: Child fragments in document order.
    """

    key: str
    values: list[FragmentValue] = []
    children: list[Fragment] = []

    model_config = {"frozen": True}

    def iter_tree(self):
        """Yield this fragment and every descendant, depth-first."""
        stack = [self]
        while stack:
            fragment = stack.pop()
            yield fragment
            stack.extend(reversed(fragment.children))

    def count(self) -> int:
        """Number of fragments in the subtree, including this one."""
        return sum(1 for _ in self.iter_tree())


class ImportResult(BaseModel):
    """Result of importing one fragment subtree.

    Attributes:
        node: The resolved (existing or newly created) item.
        changed: True if this item or any descendant was created.
    """

    node: Node
    changed: bool

    model_config = {"frozen": True}


class ChangeType(str, Enum):
    """What happened (or would happen) to an item."""

    NO_CHANGE = "no_change"
    IMPORT = "import"
    EXPORT = "export"
    UPDATE = "update"
    DELETE = "delete"
    FAIL = "fail"


class SyncOutcome(BaseModel):
    """Structured result of one sync operation on one item.

    Attributes:
        key: Key of the affected item (or file name when no key is known).
        item_type: Kind of item, always ``"DictionaryItem"`` here.
        change: What the operation did.
        success: Whether the operation succeeded.
        file_name: File written, archived or read, if any.
        message: Informational note for the caller.
        error: Error detail when ``success`` is False.
    """

    key: str
    item_type: str = ITEM_TYPE
    change: ChangeType
    success: bool
    file_name: str | None = None
    message: str | None = None
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def changed(self) -> bool:
        """True when the operation created, updated, or deleted something."""
        return self.change not in (ChangeType.NO_CHANGE, ChangeType.FAIL)

    @classmethod
    def succeed(
        cls,
        key: str,
        change: ChangeType,
        file_name: str | None = None,
        message: str | None = None,
    ) -> SyncOutcome:
        return cls(
            key=key,
            change=change,
            success=True,
            file_name=file_name,
            message=message,
        )

    @classmethod
    def fail(
        cls,
        key: str,
        error: str,
        file_name: str | None = None,
    ) -> SyncOutcome:
        return cls(
            key=key,
            change=ChangeType.FAIL,
            success=False,
            file_name=file_name,
            error=error,
        )


class ActionType(str, Enum):
    """Kinds of pending action tracked against an item key."""

    DELETE = "delete"
    OUT_OF_SYNC = "out_of_sync"


class TrackedAction(BaseModel):
    """A pending action recorded for an item.

    Attributes:
        action: Kind of action.
        key: Item key the action applies to.
        item_type: Kind of item.
        recorded_at: ISO 8601 timestamp of when it was recorded.
    """

    action: ActionType
    key: str
    item_type: str = ITEM_TYPE
    recorded_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    model_config = {"frozen": True}


Fragment.model_rebuild()
