"""Tests for dictionary_sync.sync.ancestry -- root resolution."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from dictionary_sync.core.models import Node
from dictionary_sync.errors import CycleDetectedError, DanglingReferenceError
from dictionary_sync.sync.ancestry import AncestorResolver


def _lookup_store(*nodes):
    """Mock store whose ``get_by_id`` serves *nodes* as given."""
    by_id = {n.id: n for n in nodes}
    store = MagicMock()
    store.get_by_id.side_effect = by_id.get
    return store


class TestResolveRoot:
    def test_root_resolves_to_itself(self, store, make_tree):
        nodes = make_tree({"Header": ({}, {})})
        root = AncestorResolver(store).resolve_root(nodes["Header"].id)
        assert root.id == nodes["Header"].id

    def test_deep_chain(self, store, make_tree):
        nodes = make_tree(
            {"A": ({}, {"A.B": ({}, {"A.B.C": ({}, {"A.B.C.D": ({}, {})})})})}
        )
        root = AncestorResolver(store).resolve_root(nodes["A.B.C.D"].id)
        assert root.key == "A"

    def test_missing_node_is_dangling(self, store):
        with pytest.raises(DanglingReferenceError):
            AncestorResolver(store).resolve_root(uuid4())

    def test_missing_ancestor_is_dangling(self):
        orphan = Node(key="Orphan", parent_id=uuid4())
        with pytest.raises(DanglingReferenceError):
            AncestorResolver(_lookup_store(orphan)).resolve_root(orphan.id)

    def test_cycle_is_detected(self):
        a_id, b_id = uuid4(), uuid4()
        a = Node(key="A", id=a_id, parent_id=b_id)
        b = Node(key="B", id=b_id, parent_id=a_id)

        with pytest.raises(CycleDetectedError):
            AncestorResolver(_lookup_store(a, b)).resolve_root(a_id)

    def test_self_parent_is_a_cycle(self):
        node_id = uuid4()
        node = Node(key="Self", id=node_id, parent_id=node_id)

        with pytest.raises(CycleDetectedError):
            AncestorResolver(_lookup_store(node)).resolve_root(node_id)
