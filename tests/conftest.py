"""Shared pytest fixtures for dictionary-sync tests."""

import textwrap

import pytest

from dictionary_sync.core.store import InMemoryNodeStore
from dictionary_sync.sync.handler import DictionaryHandler
from dictionary_sync.sync.models import ITEM_TYPE

LOCALES = ("en-US", "nl-NL")


@pytest.fixture
def store():
    """An empty in-memory store recognising en-US and nl-NL."""
    return InMemoryNodeStore(LOCALES)


@pytest.fixture
def sync_folder(tmp_path):
    return tmp_path / "uSync"


@pytest.fixture
def handler(store, sync_folder):
    """A handler over ``store`` with its reactors registered."""
    h = DictionaryHandler(store, sync_folder)
    h.register_events()
    yield h
    h.unregister_events()


@pytest.fixture
def write_fragment(sync_folder):
    """Write an XML fragment under ``<sync_folder>/DictionaryItem``."""

    def _write(name: str, xml: str):
        path = sync_folder / ITEM_TYPE / f"{name}.config"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(xml).strip(), encoding="utf-8")
        return path

    return _write


def _build_tree(store, spec, parent_id=None):
    nodes = {}
    for key, (values, children) in spec.items():
        node = store.create(key, parent_id)
        for locale, text in values.items():
            store.add_or_update_value(node, locale, text)
        store.save(node)
        nodes[key] = node
        nodes.update(_build_tree(store, children, node.id))
    return nodes


@pytest.fixture
def make_tree(store):
    """Create and save nodes in ``store`` from ``{key: (values, children)}``.

    Returns a dict of key to saved node.
    """

    def _make(spec):
        return _build_tree(store, spec)

    return _make
