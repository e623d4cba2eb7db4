"""Resolve any dictionary item to the root of its tree."""

from __future__ import annotations

import logging
from uuid import UUID

from ..core.models import Node
from ..core.store import NodeStore
from ..errors import CycleDetectedError, DanglingReferenceError

logger = logging.getLogger(__name__)


class AncestorResolver:
    """Walk ``parent_id`` links up to the item that has no parent."""

    def __init__(self, store: NodeStore) -> None:
        self.store = store

    def resolve_root(self, node_id: UUID) -> Node:
        """Return the root item of the tree containing *node_id*.

        Raises:
            DanglingReferenceError: If *node_id* or any ancestor is missing.
            CycleDetectedError: If the parent chain revisits an item.
        """
        visited: list[UUID] = []
        current_id: UUID | None = node_id
        while current_id is not None:
            if current_id in visited:
                raise CycleDetectedError(
                    f"Parent chain of {node_id} loops back to {current_id}"
                )
            visited.append(current_id)

            node = self.store.get_by_id(current_id)
            if node is None:
                raise DanglingReferenceError(
                    f"Item {current_id} in the parent chain of {node_id} does not exist"
                )
            if node.parent_id is None:
                logger.debug("Root of %s is '%s'", node_id, node.key)
                return node
            current_id = node.parent_id

        raise DanglingReferenceError(f"Item {node_id} does not exist")
