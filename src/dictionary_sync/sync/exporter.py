"""Full-subtree export of dictionary trees to disk.

A root item owns exactly one file holding its entire subtree, so every
export starts from a root and re-encodes all of its descendants.
Failures are captured per root as failed ``SyncOutcome`` objects.
"""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import UUID

from ..core.models import Node
from ..core.store import NodeStore
from ..errors import CycleDetectedError
from .codec import XmlFragmentCodec
from .models import ITEM_TYPE, ChangeType, Fragment, SyncOutcome
from .repository import FileRepository, to_safe_alias

logger = logging.getLogger(__name__)


class TreeExporter:
    """Serialize item subtrees and persist them through the repository.

    Args:
        store: Source node store.
        codec: Codec used to encode items.
        repository: File repository that writes the documents.
        folder: Sync folder the files are written under.
        category: Sub-folder for dictionary items.
    """

    def __init__(
        self,
        store: NodeStore,
        codec: XmlFragmentCodec,
        repository: FileRepository,
        folder: Path,
        category: str = ITEM_TYPE,
    ) -> None:
        self.store = store
        self.codec = codec
        self.repository = repository
        self.folder = folder
        self.category = category

    def encode_tree(self, node: Node) -> Fragment:
        """Encode *node* and all of its current descendants.

        Raises:
            CycleDetectedError: If an item shows up twice in the subtree.
        """
        return self._encode(node, set())

    def _encode(self, node: Node, visited: set[UUID]) -> Fragment:
        if node.id in visited:
            raise CycleDetectedError(
                f"Item '{node.key}' appears twice in its own subtree",
                key=node.key,
            )
        visited.add(node.id)
        children = [
            self._encode(child, visited)
            for child in self.store.children_of(node.id)
        ]
        return self.codec.encode(node, children)

    def export_to_disk(self, node: Node | None) -> SyncOutcome:
        """Write the subtree rooted at *node* to its file."""
        if node is None:
            return SyncOutcome.fail(self.category, "item not set")

        try:
            fragment = self.encode_tree(node)
            path = self.repository.path_for(
                self.folder, self.category, to_safe_alias(node.key)
            )
            self.repository.persist(fragment, path)
        except Exception as exc:
            logger.error("Export of '%s' failed: %s", node.key, exc)
            return SyncOutcome.fail(node.key, str(exc))

        logger.info("Exported '%s' to %s", node.key, path)
        return SyncOutcome.succeed(
            node.key, ChangeType.EXPORT, file_name=str(path)
        )

    def export_all(self) -> list[SyncOutcome]:
        """Export every root item independently."""
        logger.info("Exporting all dictionary items to %s", self.folder)
        outcomes = [
            self.export_to_disk(root) for root in self.store.root_items()
        ]
        failed = sum(1 for o in outcomes if not o.success)
        if failed:
            logger.warning(
                "Export finished with %d failure(s) of %d", failed, len(outcomes)
            )
        return outcomes
