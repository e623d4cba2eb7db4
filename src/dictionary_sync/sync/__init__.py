"""Create-only dictionary synchronisation.

Public API for keeping a hierarchical dictionary (localized text items
organised as parent/child trees) in a node store in step with a folder of
XML files, one file per root item.

Modules:

- ``models``     -- ``Fragment``, ``ImportResult``, ``SyncOutcome``,
  ``ChangeType``, ``TrackedAction``: core data contracts.
- ``codec``      -- ``XmlFragmentCodec``: lxml encode/decode and staleness
  check.
- ``repository`` -- ``FileRepository``: file paths, persist and archive.
- ``importer``   -- ``ImportEngine``: recursive create-only import.
- ``ancestry``   -- ``AncestorResolver``: item -> tree root.
- ``exporter``   -- ``TreeExporter``: full-subtree export per root.
- ``reactors``   -- ``SaveReactor`` and ``DeleteCoordinator``: store event
  reactions.
- ``pending`` / ``tracker`` / ``pause`` -- shared, injectable state.
- ``handler``    -- ``DictionaryHandler``: wiring and entry points.
- ``reporter``   -- human-readable and JSON formatting.

Usage example
-------------
::

    from pathlib import Path
    from dictionary_sync.core import InMemoryNodeStore
    from dictionary_sync.sync import DictionaryHandler, format_outcomes

    store = InMemoryNodeStore(locales=["en-US", "nl-NL"])
    handler = DictionaryHandler(store, folder=Path("uSync/data"))
    handler.register_events()

    outcomes = handler.import_all()
    print(format_outcomes("Import", outcomes))
"""

from .ancestry import AncestorResolver
from .codec import XmlFragmentCodec
from .exporter import TreeExporter
from .handler import DictionaryHandler
from .importer import ImportEngine
from .models import (
    ActionType,
    ChangeType,
    Fragment,
    FragmentValue,
    ImportResult,
    SyncOutcome,
    TrackedAction,
)
from .pause import SyncPause
from .pending import PendingDeleteSet, batch_token
from .reactors import DeleteCoordinator, SaveReactor
from .reporter import format_outcomes, format_tracked_actions, outcomes_to_json
from .repository import FileRepository, to_safe_alias
from .tracker import ActionTracker

__all__ = [
    "ActionTracker",
    "ActionType",
    "AncestorResolver",
    "ChangeType",
    "DeleteCoordinator",
    "DictionaryHandler",
    "FileRepository",
    "Fragment",
    "FragmentValue",
    "ImportEngine",
    "ImportResult",
    "PendingDeleteSet",
    "SaveReactor",
    "SyncOutcome",
    "SyncPause",
    "TrackedAction",
    "TreeExporter",
    "XmlFragmentCodec",
    "batch_token",
    "format_outcomes",
    "format_tracked_actions",
    "outcomes_to_json",
    "to_safe_alias",
]
