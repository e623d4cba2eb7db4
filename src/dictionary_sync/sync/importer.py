"""Create-only import of dictionary fragment trees.

An item that already exists in the store wins: its values are never
touched.  Missing items are created under the parent resolved one level
up, receive the fragment's values for every recognised locale, and are
saved.  Each commit is independent; a failure part-way through a tree
leaves the items already saved in place.
"""

from __future__ import annotations

import logging
from uuid import UUID

from ..core.models import Node
from ..core.store import NodeStore
from ..errors import MalformedInputError
from .codec import DEFAULT_MAX_DEPTH
from .models import Fragment, ImportResult

logger = logging.getLogger(__name__)


class ImportEngine:
    """Import fragments into a node store without overwriting anything.

    Args:
        store: Target node store.
        max_depth: Deepest fragment nesting accepted; deeper trees raise
            ``MalformedInputError``.
    """

    def __init__(
        self, store: NodeStore, max_depth: int = DEFAULT_MAX_DEPTH
    ) -> None:
        self.store = store
        self.max_depth = max_depth

    def import_fragment(
        self, fragment: Fragment, parent_id: UUID | None = None
    ) -> ImportResult:
        """Import *fragment* and its children.

        Args:
            fragment: Decoded fragment tree.
            parent_id: Parent for the top item, ``None`` for a root.

        Returns:
            ``ImportResult`` for the top item; ``changed`` is True when the
            item or any descendant was created.
        """
        locales = self.store.all_locales()
        return self._import(fragment, parent_id, locales, depth=1)

    def _import(
        self,
        fragment: Fragment,
        parent_id: UUID | None,
        locales: set[str],
        depth: int,
    ) -> ImportResult:
        if depth > self.max_depth:
            raise MalformedInputError(
                f"Fragment nesting exceeds maximum depth of {self.max_depth}",
                key=fragment.key,
            )

        node, created = self._import_item(fragment, parent_id, locales)

        changed = created
        for child in fragment.children:
            result = self._import(child, node.id, locales, depth + 1)
            changed = changed or result.changed

        return ImportResult(node=node, changed=changed)

    def _import_item(
        self,
        fragment: Fragment,
        parent_id: UUID | None,
        locales: set[str],
    ) -> tuple[Node, bool]:
        existing = self.store.get_by_key(fragment.key)
        if existing is not None:
            logger.debug("Item '%s' exists, leaving it untouched", fragment.key)
            return existing, False

        node = self.store.create(fragment.key, parent_id)
        for value in fragment.values:
            if value.locale not in locales:
                logger.debug(
                    "Skipping value for unknown locale '%s' on '%s'",
                    value.locale,
                    fragment.key,
                )
                continue
            self.store.add_or_update_value(node, value.locale, value.text)
        self.store.save(node)

        logger.info("Imported new item '%s'", fragment.key)
        return node, True
