"""Pydantic model for a dictionary node held by the node store.

A ``Node`` is one entry of the dictionary tree: a unique ``key`` alias, a
stable ``id``, an optional ``parent_id`` (absent for a tree root) and a
mapping of locale identifier to translated text.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Node(BaseModel):
    """A single dictionary item.

    Attributes:
        key: Unique item key (alias), e.g. ``"Header.Title"``.
        id: Stable unique identifier.
        parent_id: Identifier of the parent item, ``None`` for a root.
        values: Locale identifier (ISO code) to text.
    """

    key: str
    id: UUID = Field(default_factory=uuid4)
    parent_id: UUID | None = None
    values: dict[str, str] = Field(default_factory=dict)

    @property
    def is_root(self) -> bool:
        """True when the item has no parent."""
        return self.parent_id is None
