"""Tests for dictionary_sync.sync.reactors -- save and delete reactions.

Covers:
- Saving any item re-exports its root's file
- Deleting a non-root item defers one re-export of its root until the
  delete has committed
- Deleting a root archives its file and tracks a delete action
- Pause suppresses every reaction
"""

from unittest.mock import MagicMock, patch
from uuid import uuid4

from dictionary_sync.core.models import Node
from dictionary_sync.errors import DanglingReferenceError, FileOperationError
from dictionary_sync.sync.models import ActionType, ChangeType, ITEM_TYPE
from dictionary_sync.sync.pause import SyncPause
from dictionary_sync.sync.reactors import DeleteCoordinator, SaveReactor
from dictionary_sync.sync.tracker import ActionTracker


def _root_file(sync_folder, key):
    return sync_folder / ITEM_TYPE / f"{key}.config"


# -------------------------------------------------------------------------
# SaveReactor
# -------------------------------------------------------------------------


class TestSaveReactor:
    """Tests for SaveReactor via store events."""

    def test_saving_child_exports_root(self, handler, make_tree, sync_folder):
        make_tree({"Header": ({"en-US": "Hi"}, {"Header.Title": ({}, {})})})

        path = _root_file(sync_folder, "Header")
        assert path.exists()
        content = path.read_text(encoding="utf-8")
        assert 'Key="Header"' in content
        assert 'Key="Header.Title"' in content

    def test_paused_save_does_not_export(self, handler, make_tree, sync_folder):
        with handler.pause.paused():
            make_tree({"Header": ({}, {})})

        assert not _root_file(sync_folder, "Header").exists()

    def test_successful_export_clears_tracked_actions(self, handler, store):
        handler.tracker.add_action(ActionType.DELETE, "Header")

        node = store.create("Header")
        store.save(node)

        assert handler.tracker.actions("Header") == []

    def test_resolution_error_becomes_failed_outcome(self):
        resolver = MagicMock()
        resolver.resolve_root.side_effect = DanglingReferenceError("gone")
        exporter = MagicMock()
        reactor = SaveReactor(resolver, exporter, ActionTracker(), SyncPause())

        outcomes = reactor.handle_saved([Node(key="Lost", parent_id=uuid4())])

        assert len(outcomes) == 1
        assert outcomes[0].success is False
        assert outcomes[0].key == "Lost"
        exporter.export_to_disk.assert_not_called()

    def test_paused_returns_nothing(self):
        pause = SyncPause()
        pause.pause()
        resolver = MagicMock()
        reactor = SaveReactor(resolver, MagicMock(), ActionTracker(), pause)

        assert reactor.handle_saved([Node(key="A")]) == []
        resolver.resolve_root.assert_not_called()


# -------------------------------------------------------------------------
# DeleteCoordinator
# -------------------------------------------------------------------------


class TestDeferredDelete:
    """Deleting a non-root item re-exports its root after the commit."""

    def test_exactly_one_export_for_subtree_delete(self, handler, store, make_tree):
        nodes = make_tree(
            {
                "Root": (
                    {},
                    {
                        "Root.A": ({}, {"Root.A.1": ({}, {}), "Root.A.2": ({}, {})}),
                        "Root.B": ({}, {}),
                    },
                )
            }
        )

        with patch.object(
            handler.exporter,
            "export_to_disk",
            wraps=handler.exporter.export_to_disk,
        ) as spy:
            store.delete(nodes["Root.A"])

        spy.assert_called_once()
        assert spy.call_args[0][0].key == "Root"
        assert len(handler.delete_coordinator.pending) == 0

    def test_reexport_excludes_deleted_items(
        self, handler, store, make_tree, sync_folder
    ):
        nodes = make_tree(
            {"Root": ({}, {"Root.Gone": ({}, {}), "Root.Kept": ({}, {})})}
        )

        store.delete(nodes["Root.Gone"])

        content = _root_file(sync_folder, "Root").read_text(encoding="utf-8")
        assert "Root.Gone" not in content
        assert "Root.Kept" in content

    def test_pending_filled_before_commit(self, store, make_tree):
        nodes = make_tree({"Root": ({}, {"Root.A": ({}, {})})})
        exporter = MagicMock()
        coordinator = DeleteCoordinator(
            store,
            MagicMock(resolve_root=MagicMock(return_value=nodes["Root"])),
            exporter,
            MagicMock(),
            ActionTracker(),
            SyncPause(),
        )

        outcomes = coordinator.handle_deleting([nodes["Root.A"]])

        assert outcomes == []
        assert "Root" in coordinator.pending
        exporter.export_to_disk.assert_not_called()

    def test_interleaved_batches_flush_after_last_commit(
        self, handler, store, make_tree, sync_folder
    ):
        nodes = make_tree(
            {"A": ({}, {"A.B": ({}, {}), "A.C": ({}, {}), "A.D": ({}, {})})}
        )
        coordinator = handler.delete_coordinator
        first = [nodes["A.B"]]
        second = [nodes["A.C"]]

        coordinator.handle_deleting(first)
        coordinator.handle_deleting(second)
        handler.unregister_events()
        store.delete(nodes["A.B"])
        assert coordinator.handle_deleted(first) == []
        assert "A" in coordinator.pending

        store.delete(nodes["A.C"])
        outcomes = coordinator.handle_deleted(second)

        assert [o.key for o in outcomes] == ["A"]
        content = _root_file(sync_folder, "A").read_text(encoding="utf-8")
        assert 'Key="A.B"' not in content
        assert 'Key="A.C"' not in content
        assert 'Key="A.D"' in content

    def test_other_batch_flush_leaves_queued_root(
        self, handler, store, make_tree, sync_folder
    ):
        nodes = make_tree({"A": ({}, {"A.B": ({}, {}), "A.C": ({}, {})})})
        coordinator = handler.delete_coordinator

        coordinator.handle_deleting([nodes["A.C"]])
        handler.unregister_events()
        store.delete(nodes["A.B"])
        coordinator.handle_deleted([nodes["A.B"]])
        store.delete(nodes["A.C"])
        coordinator.handle_deleted([nodes["A.C"]])

        content = _root_file(sync_folder, "A").read_text(encoding="utf-8")
        assert 'Key="A.C"' not in content

    def test_missing_root_is_skipped_on_flush(self, store):
        exporter = MagicMock()
        coordinator = DeleteCoordinator(
            store, MagicMock(), exporter, MagicMock(), ActionTracker(), SyncPause()
        )
        coordinator.pending.add("NoLongerThere")

        assert coordinator.handle_deleted([]) == []
        exporter.export_to_disk.assert_not_called()

    def test_resolution_error_is_skipped(self, store):
        resolver = MagicMock()
        resolver.resolve_root.side_effect = DanglingReferenceError("gone")
        coordinator = DeleteCoordinator(
            store, resolver, MagicMock(), MagicMock(), ActionTracker(), SyncPause()
        )

        assert coordinator.handle_deleting([Node(key="X", parent_id=uuid4())]) == []
        assert len(coordinator.pending) == 0


class TestRootDelete:
    """Deleting a root archives its file immediately."""

    def test_root_file_is_archived(self, handler, store, make_tree, sync_folder):
        nodes = make_tree({"Header": ({}, {"Header.Title": ({}, {})})})
        path = _root_file(sync_folder, "Header")
        assert path.exists()

        store.delete(nodes["Header"])

        assert not path.exists()
        archived = list((sync_folder / "_archive" / ITEM_TYPE).glob("Header_*.config"))
        assert len(archived) == 1

    def test_similar_key_file_survives_root_delete(
        self, handler, store, make_tree, sync_folder
    ):
        nodes = make_tree({"a b": ({}, {}), "a_b": ({}, {})})
        kept = _root_file(sync_folder, "a_b")
        assert kept.exists()

        store.delete(nodes["a b"])

        assert kept.exists()
        assert len(list((sync_folder / ITEM_TYPE).iterdir())) == 1

    def test_root_delete_tracks_action(self, handler, store, make_tree):
        nodes = make_tree({"Header": ({}, {})})

        store.delete(nodes["Header"])

        actions = handler.tracker.actions("Header")
        assert [a.action for a in actions] == [ActionType.DELETE]

    def test_root_delete_does_not_reexport(self, handler, store, make_tree, sync_folder):
        nodes = make_tree({"Header": ({}, {"Header.Title": ({}, {})})})

        store.delete(nodes["Header"])

        assert not _root_file(sync_folder, "Header").exists()

    def test_handle_deleting_returns_delete_outcome(self, store, make_tree):
        nodes = make_tree({"Header": ({}, {})})
        repository = MagicMock()
        repository.archive.return_value = None
        tracker = ActionTracker()
        coordinator = DeleteCoordinator(
            store,
            MagicMock(resolve_root=MagicMock(return_value=nodes["Header"])),
            MagicMock(category=ITEM_TYPE),
            repository,
            tracker,
            SyncPause(),
        )

        outcomes = coordinator.handle_deleting([nodes["Header"]])

        assert len(outcomes) == 1
        assert outcomes[0].change == ChangeType.DELETE
        assert outcomes[0].success is True
        repository.archive.assert_called_once_with(ITEM_TYPE, "Header")

    def test_archive_failure_becomes_failed_outcome(self, store, make_tree):
        nodes = make_tree({"Header": ({}, {})})
        repository = MagicMock()
        repository.archive.side_effect = FileOperationError("disk full")
        tracker = ActionTracker()
        coordinator = DeleteCoordinator(
            store,
            MagicMock(resolve_root=MagicMock(return_value=nodes["Header"])),
            MagicMock(category=ITEM_TYPE),
            repository,
            tracker,
            SyncPause(),
        )

        outcomes = coordinator.handle_deleting([nodes["Header"]])

        assert outcomes[0].success is False
        assert "disk full" in outcomes[0].error
        assert tracker.actions() == []


class TestPausedDelete:
    def test_paused_delete_does_nothing(self, handler, store, make_tree, sync_folder):
        nodes = make_tree({"Root": ({}, {"Root.A": ({}, {})})})
        path = _root_file(sync_folder, "Root")
        before = path.read_text(encoding="utf-8")

        with handler.pause.paused():
            store.delete(nodes["Root.A"])

        assert path.read_text(encoding="utf-8") == before
        assert len(handler.delete_coordinator.pending) == 0

    def test_paused_root_delete_keeps_file(self, handler, store, make_tree, sync_folder):
        nodes = make_tree({"Root": ({}, {})})

        with handler.pause.paused():
            store.delete(nodes["Root"])

        assert _root_file(sync_folder, "Root").exists()
        assert handler.tracker.actions() == []
