"""Tests for dictionary_sync.sync.exporter -- full-subtree export."""

from unittest.mock import MagicMock

from dictionary_sync.errors import FileOperationError
from dictionary_sync.sync.codec import XmlFragmentCodec
from dictionary_sync.sync.exporter import TreeExporter
from dictionary_sync.sync.models import ITEM_TYPE, ChangeType
from dictionary_sync.sync.repository import FileRepository, to_safe_alias


def _exporter(store, folder, repository=None):
    codec = XmlFragmentCodec(store)
    repository = repository or FileRepository(folder, folder / "_archive", codec)
    return TreeExporter(store, codec, repository, folder)


class TestEncodeTree:
    def test_includes_every_descendant(self, store, make_tree, tmp_path):
        nodes = make_tree(
            {"A": ({"en-US": "a"}, {"A.B": ({}, {"A.B.C": ({"nl-NL": "c"}, {})})})}
        )

        fragment = _exporter(store, tmp_path).encode_tree(nodes["A"])

        assert [f.key for f in fragment.iter_tree()] == ["A", "A.B", "A.B.C"]
        assert fragment.children[0].children[0].values[0].text == "c"


class TestExportToDisk:
    def test_writes_root_file(self, store, make_tree, tmp_path):
        nodes = make_tree({"Header": ({"en-US": "Welcome"}, {})})

        outcome = _exporter(store, tmp_path).export_to_disk(nodes["Header"])

        assert outcome.success is True
        assert outcome.change == ChangeType.EXPORT
        path = tmp_path / ITEM_TYPE / "Header.config"
        assert outcome.file_name == str(path.resolve())
        assert "Welcome" in path.read_text(encoding="utf-8")

    def test_unsafe_key_gets_safe_file_name(self, store, make_tree, tmp_path):
        nodes = make_tree({"../Odd key!": ({}, {})})

        outcome = _exporter(store, tmp_path).export_to_disk(nodes["../Odd key!"])

        assert outcome.success is True
        expected = tmp_path / ITEM_TYPE / f"{to_safe_alias('../Odd key!')}.config"
        assert expected.name.startswith("Odd_key_")
        assert expected.exists()

    def test_non_ascii_key_is_exported(self, store, make_tree, tmp_path):
        nodes = make_tree({"日本語": ({"en-US": "Japanese"}, {})})

        outcome = _exporter(store, tmp_path).export_to_disk(nodes["日本語"])

        assert outcome.success is True
        path = tmp_path / ITEM_TYPE / f"{to_safe_alias('日本語')}.config"
        assert "Japanese" in path.read_text(encoding="utf-8")

    def test_none_node_fails(self, store, tmp_path):
        outcome = _exporter(store, tmp_path).export_to_disk(None)
        assert outcome.success is False
        assert outcome.error == "item not set"

    def test_write_failure_is_captured(self, store, make_tree, tmp_path):
        nodes = make_tree({"Header": ({}, {})})
        repository = MagicMock()
        repository.path_for.return_value = tmp_path / "x.config"
        repository.persist.side_effect = FileOperationError("read-only")

        outcome = _exporter(store, tmp_path, repository).export_to_disk(
            nodes["Header"]
        )

        assert outcome.success is False
        assert outcome.key == "Header"
        assert "read-only" in outcome.error


class TestExportAll:
    def test_one_file_per_root(self, store, make_tree, tmp_path):
        make_tree(
            {
                "Header": ({}, {"Header.Title": ({}, {})}),
                "Footer": ({}, {}),
            }
        )

        outcomes = _exporter(store, tmp_path).export_all()

        assert sorted(o.key for o in outcomes) == ["Footer", "Header"]
        files = sorted(p.name for p in (tmp_path / ITEM_TYPE).iterdir())
        assert files == ["Footer.config", "Header.config"]

    def test_failure_of_one_root_does_not_stop_others(
        self, store, make_tree, tmp_path
    ):
        make_tree({"Bad": ({}, {}), "Good": ({}, {})})
        codec = XmlFragmentCodec(store)
        real = FileRepository(tmp_path, tmp_path / "_archive", codec)
        repository = MagicMock(wraps=real)

        def _persist(fragment, path):
            if fragment.key == "Bad":
                raise FileOperationError("cannot write", key="Bad")
            return real.persist(fragment, path)

        repository.persist.side_effect = _persist

        outcomes = {o.key: o for o in _exporter(store, tmp_path, repository).export_all()}

        assert outcomes["Bad"].success is False
        assert outcomes["Good"].success is True
        assert (tmp_path / ITEM_TYPE / "Good.config").exists()

    def test_similar_keys_get_separate_files(self, store, make_tree, tmp_path):
        make_tree({"a b": ({"en-US": "spaced"}, {}), "a_b": ({"en-US": "plain"}, {})})

        outcomes = _exporter(store, tmp_path).export_all()

        assert all(o.success for o in outcomes)
        files = list((tmp_path / ITEM_TYPE).iterdir())
        assert len(files) == 2
        assert "plain" in (tmp_path / ITEM_TYPE / "a_b.config").read_text(
            encoding="utf-8"
        )

    def test_empty_store(self, store, tmp_path):
        assert _exporter(store, tmp_path).export_all() == []
