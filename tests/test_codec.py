"""Tests for dictionary_sync.sync.codec -- XML fragment encoding."""

import pytest

from dictionary_sync.core.models import Node
from dictionary_sync.errors import FileOperationError, MalformedInputError
from dictionary_sync.sync.codec import XmlFragmentCodec, fragment_checksum
from dictionary_sync.sync.models import Fragment, FragmentValue

SAMPLE = b"""<?xml version="1.0" encoding="utf-8"?>
<DictionaryItem Key="Header">
  <Value LanguageCultureAlias="en-US"><![CDATA[Welcome <b>home</b>]]></Value>
  <Value LanguageCultureAlias="nl-NL"><![CDATA[Welkom]]></Value>
  <DictionaryItem Key="Header.Title">
    <Value LanguageCultureAlias="en-US"><![CDATA[Title]]></Value>
  </DictionaryItem>
</DictionaryItem>
"""


class TestDecode:
    def test_decodes_tree(self):
        fragment = XmlFragmentCodec().decode(SAMPLE)

        assert fragment.key == "Header"
        assert fragment.values == [
            FragmentValue(locale="en-US", text="Welcome <b>home</b>"),
            FragmentValue(locale="nl-NL", text="Welkom"),
        ]
        assert [c.key for c in fragment.children] == ["Header.Title"]

    def test_accepts_str(self):
        fragment = XmlFragmentCodec().decode('<DictionaryItem Key="A"/>')
        assert fragment == Fragment(key="A")

    def test_empty_value_is_empty_text(self):
        fragment = XmlFragmentCodec().decode(
            '<DictionaryItem Key="A"><Value LanguageCultureAlias="en-US"/></DictionaryItem>'
        )
        assert fragment.values[0].text == ""

    @pytest.mark.parametrize(
        "data",
        [
            b"<DictionaryItem Key='A'>",
            b"not xml at all",
            b"<Other Key='A'/>",
            b"<DictionaryItem/>",
            b"<DictionaryItem Key='  '/>",
            b"<DictionaryItem Key='A'><Value>x</Value></DictionaryItem>",
        ],
    )
    def test_malformed_input(self, data):
        with pytest.raises(MalformedInputError):
            XmlFragmentCodec().decode(data)

    def test_nesting_deeper_than_limit(self):
        data = (
            b"<DictionaryItem Key='1'><DictionaryItem Key='2'>"
            b"<DictionaryItem Key='3'/></DictionaryItem></DictionaryItem>"
        )
        with pytest.raises(MalformedInputError, match="depth"):
            XmlFragmentCodec(max_depth=2).decode(data)

    def test_entities_are_not_expanded(self):
        data = (
            b'<?xml version="1.0"?>'
            b'<!DOCTYPE d [<!ENTITY x "expanded">]>'
            b'<DictionaryItem Key="A"><Value LanguageCultureAlias="en-US">&x;</Value></DictionaryItem>'
        )
        fragment = XmlFragmentCodec().decode(data)
        assert "expanded" not in fragment.values[0].text

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileOperationError):
            XmlFragmentCodec().load(tmp_path / "missing.config")

    def test_load_names_file_on_malformed(self, tmp_path):
        path = tmp_path / "broken.config"
        path.write_bytes(b"<nope")
        with pytest.raises(MalformedInputError, match="broken.config"):
            XmlFragmentCodec().load(path)


class TestEncode:
    def test_values_sorted_by_locale(self):
        node = Node(key="A", values={"nl-NL": "b", "en-US": "a"})
        fragment = XmlFragmentCodec.encode(node)
        assert [v.locale for v in fragment.values] == ["en-US", "nl-NL"]

    def test_dumps_uses_cdata(self):
        fragment = Fragment(
            key="A", values=[FragmentValue(locale="en-US", text="a & <b>")]
        )
        data = XmlFragmentCodec().dumps(fragment)
        assert data.startswith(b"<?xml")
        assert b"<![CDATA[a & <b>]]>" in data

    def test_dumps_output_decodes_to_same_fragment(self):
        codec = XmlFragmentCodec()
        fragment = codec.decode(SAMPLE)
        assert codec.decode(codec.dumps(fragment)) == fragment


class TestIsUpdate:
    def test_unknown_root_is_update(self, store):
        codec = XmlFragmentCodec(store)
        assert codec.is_update(Fragment(key="New")) is True

    def test_identical_tree_is_not_update(self, store, make_tree):
        make_tree(
            {"Header": ({"en-US": "Welcome <b>home</b>", "nl-NL": "Welkom"},
                        {"Header.Title": ({"en-US": "Title"}, {})})}
        )
        codec = XmlFragmentCodec(store)
        assert codec.is_update(codec.decode(SAMPLE)) is False

    def test_changed_value_is_update(self, store, make_tree):
        make_tree({"A": ({"en-US": "one"}, {})})
        codec = XmlFragmentCodec(store)
        fragment = Fragment(
            key="A", values=[FragmentValue(locale="en-US", text="two")]
        )
        assert codec.is_update(fragment) is True

    def test_ignores_child_order_and_unknown_locales(self, store, make_tree):
        make_tree({"A": ({"en-US": "a"}, {"A.1": ({}, {}), "A.2": ({}, {})})})
        codec = XmlFragmentCodec(store)
        fragment = Fragment(
            key="A",
            values=[
                FragmentValue(locale="fr-FR", text="ignored"),
                FragmentValue(locale="en-US", text="a"),
            ],
            children=[Fragment(key="A.2"), Fragment(key="A.1")],
        )
        assert codec.is_update(fragment) is False

    def test_requires_store(self):
        with pytest.raises(RuntimeError):
            XmlFragmentCodec().is_update(Fragment(key="A"))


class TestChecksum:
    def test_locale_filter(self):
        a = Fragment(key="A", values=[FragmentValue(locale="xx", text="1")])
        b = Fragment(key="A")
        assert fragment_checksum(a) != fragment_checksum(b)
        assert fragment_checksum(a, {"en-US"}) == fragment_checksum(b, {"en-US"})
