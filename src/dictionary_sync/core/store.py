"""Node store contract and a thread-safe in-memory implementation.

``NodeStore`` is the narrow interface the sync core consumes: existence
checks, lookups by key and id, create/update/save/delete, locale
enumeration, tree navigation, and three notification channels:

* ``on_saved``    -- published after ``save()`` commits a node.
* ``on_deleting`` -- published with the whole batch *before* a delete
  removes anything.
* ``on_deleted``  -- published with the same batch *after* removal.

``InMemoryNodeStore`` keeps nodes in dicts guarded by an ``RLock`` and
hands out copies, so callers mutate a node and then ``save()`` it, the same
way an ORM-backed service would behave.  Snapshots are persisted as JSON
with an atomic temp-file + ``os.replace()`` write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol
from uuid import UUID

from pydantic import ValidationError

from ..errors import StoreOperationError
from .events import EventChannel
from .models import Node

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class NodeStore(Protocol):
    """Interface of the authoritative dictionary store."""

    on_saved: EventChannel[Node]
    on_deleting: EventChannel[Node]
    on_deleted: EventChannel[Node]

    def exists(self, key: str) -> bool: ...

    def get_by_key(self, key: str) -> Node | None: ...

    def get_by_id(self, node_id: UUID) -> Node | None: ...

    def create(self, key: str, parent_id: UUID | None = None) -> Node: ...

    def add_or_update_value(
        self, node: Node, locale: str, text: str
    ) -> None: ...

    def save(self, node: Node) -> None: ...

    def delete(self, node: Node) -> None: ...

    def all_locales(self) -> set[str]: ...

    def root_items(self) -> list[Node]: ...

    def children_of(self, node_id: UUID) -> list[Node]: ...


class InMemoryNodeStore:
    """Dictionary store held in process memory.

    Args:
        locales: Recognised locale identifiers (ISO codes such as
            ``"en-US"``).  Values for other locales are rejected by
            ``add_or_update_value``.
    """

    def __init__(self, locales: Iterable[str] = ()) -> None:
        self._locales: list[str] = []
        self._items: dict[UUID, Node] = {}
        self._by_key: dict[str, UUID] = {}
        self._lock = threading.RLock()

        self.on_saved: EventChannel[Node] = EventChannel("saved")
        self.on_deleting: EventChannel[Node] = EventChannel("deleting")
        self.on_deleted: EventChannel[Node] = EventChannel("deleted")

        for locale in locales:
            self.add_locale(locale)

    # ------------------------------------------------------------------
    # Locales
    # ------------------------------------------------------------------

    def add_locale(self, locale: str) -> None:
        with self._lock:
            if locale not in self._locales:
                self._locales.append(locale)

    def all_locales(self) -> set[str]:
        with self._lock:
            return set(self._locales)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._by_key

    def get_by_key(self, key: str) -> Node | None:
        with self._lock:
            node_id = self._by_key.get(key)
            if node_id is None:
                return None
            return self._items[node_id].model_copy(deep=True)

    def get_by_id(self, node_id: UUID) -> Node | None:
        with self._lock:
            node = self._items.get(node_id)
            return node.model_copy(deep=True) if node else None

    def root_items(self) -> list[Node]:
        with self._lock:
            return [
                n.model_copy(deep=True)
                for n in self._items.values()
                if n.parent_id is None
            ]

    def children_of(self, node_id: UUID) -> list[Node]:
        with self._lock:
            return [
                n.model_copy(deep=True)
                for n in self._items.values()
                if n.parent_id == node_id
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create(self, key: str, parent_id: UUID | None = None) -> Node:
        """Create and commit a new, empty node.

        Raises:
            StoreOperationError: If *key* is taken or *parent_id* is unknown.
        """
        if not key:
            raise StoreOperationError("Item key cannot be empty")
        with self._lock:
            if key in self._by_key:
                raise StoreOperationError(
                    f"Item '{key}' already exists", key=key
                )
            if parent_id is not None and parent_id not in self._items:
                raise StoreOperationError(
                    f"Parent {parent_id} of '{key}' does not exist",
                    key=key,
                )
            node = Node(key=key, parent_id=parent_id)
            self._items[node.id] = node
            self._by_key[key] = node.id
        logger.debug("Created item '%s' (%s)", key, node.id)
        return node.model_copy(deep=True)

    def add_or_update_value(
        self, node: Node, locale: str, text: str
    ) -> None:
        """Set the text for *locale* on *node* (not committed until ``save``).

        Raises:
            StoreOperationError: If *locale* is not a recognised locale.
        """
        if locale not in self.all_locales():
            raise StoreOperationError(
                f"Unknown locale '{locale}'", key=node.key
            )
        node.values[locale] = text

    def save(self, node: Node) -> None:
        """Commit *node* and publish it on ``on_saved``.

        Raises:
            StoreOperationError: If the node was never created or its
                parent does not exist.
        """
        with self._lock:
            current = self._items.get(node.id)
            if current is None or self._by_key.get(node.key) not in (
                None,
                node.id,
            ):
                raise StoreOperationError(
                    f"Item '{node.key}' is not known to the store",
                    key=node.key,
                )
            if (
                node.parent_id is not None
                and node.parent_id not in self._items
            ):
                raise StoreOperationError(
                    f"Parent {node.parent_id} of '{node.key}' does not exist",
                    key=node.key,
                )
            if current.key != node.key:
                del self._by_key[current.key]
            self._items[node.id] = node.model_copy(deep=True)
            self._by_key[node.key] = node.id
        self.on_saved.publish([node.model_copy(deep=True)])

    def delete(self, node: Node) -> None:
        """Delete *node* together with all of its descendants.

        ``on_deleting`` fires with the batch (the node first, then its
        descendants breadth-first) while every item still exists;
        ``on_deleted`` fires with the same batch once they are removed.

        Raises:
            StoreOperationError: If the node does not exist.
        """
        with self._lock:
            if node.id not in self._items:
                raise StoreOperationError(
                    f"Item '{node.key}' does not exist", key=node.key
                )
            batch = self._collect_subtree(node.id)

        self.on_deleting.publish(batch)

        with self._lock:
            for item in batch:
                self._items.pop(item.id, None)
                if self._by_key.get(item.key) == item.id:
                    del self._by_key[item.key]
        logger.debug(
            "Deleted %d item(s) starting at '%s'", len(batch), node.key
        )

        self.on_deleted.publish(batch)

    def _collect_subtree(self, node_id: UUID) -> list[Node]:
        batch: list[Node] = []
        seen: set[UUID] = set()
        queue = [node_id]
        while queue:
            current = queue.pop(0)
            if current in seen:
                continue
            seen.add(current)
            batch.append(self._items[current].model_copy(deep=True))
            queue.extend(
                n.id
                for n in self._items.values()
                if n.parent_id == current
            )
        return batch

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "version": SNAPSHOT_VERSION,
                "locales": list(self._locales),
                "items": [
                    n.model_dump(mode="json") for n in self._items.values()
                ],
            }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> InMemoryNodeStore:
        """Build a store from a snapshot dict.

        Raises:
            StoreOperationError: If the snapshot is malformed or an item
                references a missing parent.
        """
        store = cls(data.get("locales", []))
        try:
            nodes = [Node.model_validate(raw) for raw in data.get("items", [])]
        except ValidationError as exc:
            raise StoreOperationError(f"Invalid snapshot item: {exc}") from exc

        for node in nodes:
            if node.key in store._by_key:
                raise StoreOperationError(
                    f"Duplicate item key '{node.key}' in snapshot",
                    key=node.key,
                )
            store._items[node.id] = node
            store._by_key[node.key] = node.id

        for node in nodes:
            if node.parent_id is not None and node.parent_id not in store._items:
                raise StoreOperationError(
                    f"Item '{node.key}' references missing parent {node.parent_id}",
                    key=node.key,
                )
        return store

    @classmethod
    def load_snapshot(
        cls, path: Path, locales: Iterable[str] = ()
    ) -> InMemoryNodeStore:
        """Load a store from *path*.

        A missing file yields an empty store with *locales*.
        """
        if not path.exists():
            logger.info("No snapshot at %s, starting with an empty store", path)
            return cls(locales)
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreOperationError(
                f"Cannot read snapshot {path}: {exc}"
            ) from exc
        store = cls.from_snapshot(data)
        for locale in locales:
            store.add_locale(locale)
        return store

    def save_snapshot(self, path: Path) -> None:
        """Persist the store to *path* atomically."""
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.to_snapshot()
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
