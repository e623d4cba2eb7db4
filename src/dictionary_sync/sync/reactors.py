"""Reactions to node store change notifications.

``SaveReactor`` re-exports the tree of every saved item.
``DeleteCoordinator`` handles deletes in two phases:

1. *Deleting* (items still exist): a deleted root's file is archived at
   once and a delete action is tracked.  A deleted non-root only queues its
   root's key, because the root's file also holds the surviving siblings.
2. *Deleted* (items gone): the roots this batch queued are released and
   re-exported once, so the file no longer lists the removed descendants.
   A root still claimed by another in-flight delete waits for that
   batch's own flush.

Both reactors do nothing while synchronisation is paused.  Ancestor
resolution failures are logged and the affected item skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..core.models import Node
from ..core.store import NodeStore
from ..errors import CycleDetectedError, DanglingReferenceError, SyncError
from .ancestry import AncestorResolver
from .exporter import TreeExporter
from .models import ActionType, ChangeType, SyncOutcome
from .pause import SyncPause
from .pending import PendingDeleteSet, batch_token
from .repository import FileRepository, to_safe_alias
from .tracker import ActionTracker

logger = logging.getLogger(__name__)


class SaveReactor:
    """Export the full tree of each saved item."""

    def __init__(
        self,
        resolver: AncestorResolver,
        exporter: TreeExporter,
        tracker: ActionTracker,
        pause: SyncPause,
    ) -> None:
        self.resolver = resolver
        self.exporter = exporter
        self.tracker = tracker
        self.pause = pause

    def handle_saved(self, nodes: Sequence[Node]) -> list[SyncOutcome]:
        if self.pause.is_paused:
            return []

        outcomes: list[SyncOutcome] = []
        for node in nodes:
            logger.info("Save: %s", node.key)
            try:
                root = self.resolver.resolve_root(node.id)
            except (DanglingReferenceError, CycleDetectedError) as exc:
                logger.warning("Cannot resolve root of '%s': %s", node.key, exc)
                outcomes.append(SyncOutcome.fail(node.key, str(exc)))
                continue

            outcome = self.exporter.export_to_disk(root)
            if outcome.success:
                self.tracker.remove_actions(root.key)
            outcomes.append(outcome)
        return outcomes


class DeleteCoordinator:
    """Archive deleted roots and re-export roots that lost descendants.

    Args:
        store: Node store, used to re-fetch queued roots after a delete.
        resolver: Ancestor resolver.
        exporter: Tree exporter for the deferred re-exports.
        repository: File repository for archiving root files.
        tracker: Tracker receiving delete actions.
        pause: Shared pause flag.
        pending: Queue of root keys; a private one is created if omitted.
    """

    def __init__(
        self,
        store: NodeStore,
        resolver: AncestorResolver,
        exporter: TreeExporter,
        repository: FileRepository,
        tracker: ActionTracker,
        pause: SyncPause,
        pending: PendingDeleteSet | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.exporter = exporter
        self.repository = repository
        self.tracker = tracker
        self.pause = pause
        self.pending = pending if pending is not None else PendingDeleteSet()

    def handle_deleting(self, nodes: Sequence[Node]) -> list[SyncOutcome]:
        if self.pause.is_paused:
            return []

        batch = batch_token(n.id for n in nodes)
        outcomes: list[SyncOutcome] = []
        for node in nodes:
            try:
                root = self.resolver.resolve_root(node.id)
            except (DanglingReferenceError, CycleDetectedError) as exc:
                logger.warning("No root found for '%s': %s", node.key, exc)
                continue

            if root.id != node.id:
                if self.pending.add(root.key, batch):
                    logger.info("Added to save after delete: %s", root.key)
                continue

            outcomes.append(self._archive_root(node))
        return outcomes

    def _archive_root(self, node: Node) -> SyncOutcome:
        category = self.exporter.category
        try:
            archived = self.repository.archive(category, to_safe_alias(node.key))
        except (SyncError, ValueError) as exc:
            logger.error("Archiving '%s' failed: %s", node.key, exc)
            return SyncOutcome.fail(node.key, str(exc))

        self.tracker.add_action(ActionType.DELETE, node.key)
        return SyncOutcome.succeed(
            node.key,
            ChangeType.DELETE,
            file_name=str(archived) if archived else None,
        )

    def handle_deleted(self, nodes: Sequence[Node]) -> list[SyncOutcome]:
        if self.pause.is_paused:
            return []

        outcomes: list[SyncOutcome] = []
        for key in self.pending.drain(batch_token(n.id for n in nodes)):
            logger.info("Saving top after delete: %s", key)
            root = self.store.get_by_key(key)
            if root is None:
                logger.info("Queued root '%s' no longer exists", key)
                continue
            outcomes.append(self.exporter.export_to_disk(root))
        return outcomes
