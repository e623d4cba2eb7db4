"""Create-only dictionary handler.

``DictionaryHandler`` wires the codec, file repository, importer,
exporter and the save/delete reactors around one node store, and exposes
the operations the surrounding system calls:

- ``import_file`` / ``import_all`` -- create-only import from disk.
- ``export_to_disk`` / ``export_all`` -- full-subtree export per root.
- ``report_item`` / ``report_all`` -- read-only staleness report.
- ``register_events`` / ``unregister_events`` -- attach the reactors to
  the store's saved/deleting/deleted channels.

Every operation returns ``SyncOutcome`` objects; errors are folded into
failed outcomes rather than raised.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.events import Subscription
from ..core.models import Node
from ..core.store import NodeStore
from ..errors import SyncError
from .ancestry import AncestorResolver
from .codec import DEFAULT_MAX_DEPTH, XmlFragmentCodec
from .exporter import TreeExporter
from .importer import ImportEngine
from .models import ITEM_TYPE, ChangeType, SyncOutcome
from .pause import SyncPause
from .pending import PendingDeleteSet
from .reactors import DeleteCoordinator, SaveReactor
from .repository import FileRepository
from .tracker import ActionTracker

logger = logging.getLogger(__name__)

ORDERING_NOTE = "Tree ordering is not guaranteed stable across re-export"

ARCHIVE_DIR_NAME = "_archive"


class DictionaryHandler:
    """Synchronise one node store with a folder of dictionary files.

    Args:
        store: The authoritative node store.
        folder: Sync folder; files live in ``folder/category``.
        archive_folder: Where archived files go.  Defaults to
            ``folder/_archive``.
        category: Sub-folder name for dictionary files.
        max_depth: Maximum accepted fragment nesting depth.
        pause: Shared pause flag (a private one is created if omitted).
        tracker: Shared action tracker (private if omitted).
        pending: Pending delete set (private if omitted).
    """

    name = "CreateOnlyDictionaryHandler"

    def __init__(
        self,
        store: NodeStore,
        folder: Path,
        archive_folder: Path | None = None,
        category: str = ITEM_TYPE,
        max_depth: int = DEFAULT_MAX_DEPTH,
        pause: SyncPause | None = None,
        tracker: ActionTracker | None = None,
        pending: PendingDeleteSet | None = None,
    ) -> None:
        self.store = store
        self.folder = folder
        self.category = category
        self.pause = pause or SyncPause()
        self.tracker = tracker or ActionTracker()

        self.codec = XmlFragmentCodec(store, max_depth=max_depth)
        self.repository = FileRepository(
            root=folder,
            archive_root=archive_folder or folder / ARCHIVE_DIR_NAME,
            codec=self.codec,
        )
        self.importer = ImportEngine(store, max_depth=max_depth)
        self.resolver = AncestorResolver(store)
        self.exporter = TreeExporter(
            store, self.codec, self.repository, folder, category
        )
        self.save_reactor = SaveReactor(
            self.resolver, self.exporter, self.tracker, self.pause
        )
        self.delete_coordinator = DeleteCoordinator(
            store,
            self.resolver,
            self.exporter,
            self.repository,
            self.tracker,
            self.pause,
            pending,
        )
        self._subscriptions: list[Subscription] = []

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_file(self, path: Path) -> SyncOutcome:
        """Create-only import of the fragment stored at *path*.

        Returns:
            Outcome keyed by the root item; ``change`` is ``IMPORT`` when
            any item was created, ``NO_CHANGE`` otherwise.
        """
        try:
            fragment = self.codec.load(path)
            result = self.importer.import_fragment(fragment)
        except (SyncError, ValueError) as exc:
            logger.error("Import of %s failed: %s", path, exc)
            return SyncOutcome.fail(
                getattr(exc, "key", None) or path.name,
                str(exc),
                file_name=str(path),
            )

        change = ChangeType.IMPORT if result.changed else ChangeType.NO_CHANGE
        logger.info("Imported %s: %s", result.node.key, change.value)
        return SyncOutcome.succeed(
            result.node.key, change, file_name=str(path)
        )

    def import_all(self) -> list[SyncOutcome]:
        """Import every dictionary file in the sync folder."""
        files = self.repository.list_files(self.folder, self.category)
        logger.info("Importing %d dictionary file(s)", len(files))
        return [self.import_file(path) for path in files]

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_to_disk(self, node: Node | None) -> SyncOutcome:
        return self.exporter.export_to_disk(node)

    def export_all(self) -> list[SyncOutcome]:
        return self.exporter.export_all()

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------

    def report_item(self, path: Path) -> SyncOutcome:
        """Report whether importing *path* would change the store.

        Read-only: nothing is created or written.
        """
        try:
            fragment = self.codec.load(path)
            update = self.codec.is_update(fragment)
        except (SyncError, ValueError) as exc:
            logger.error("Report of %s failed: %s", path, exc)
            return SyncOutcome.fail(
                getattr(exc, "key", None) or path.name,
                str(exc),
                file_name=str(path),
            )

        change = ChangeType.UPDATE if update else ChangeType.NO_CHANGE
        return SyncOutcome.succeed(
            fragment.key, change, file_name=str(path), message=ORDERING_NOTE
        )

    def report_all(self) -> list[SyncOutcome]:
        files = self.repository.list_files(self.folder, self.category)
        return [self.report_item(path) for path in files]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @property
    def events_registered(self) -> bool:
        return bool(self._subscriptions)

    def register_events(self) -> None:
        """Subscribe the reactors to the store's change channels."""
        if self._subscriptions:
            logger.debug("%s events already registered", self.name)
            return
        self._subscriptions = [
            self.store.on_saved.subscribe(self.save_reactor.handle_saved),
            self.store.on_deleting.subscribe(
                self.delete_coordinator.handle_deleting
            ),
            self.store.on_deleted.subscribe(
                self.delete_coordinator.handle_deleted
            ),
        ]
        logger.info("%s registered for store events", self.name)

    def unregister_events(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        logger.info("%s unregistered from store events", self.name)
