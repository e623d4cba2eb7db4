"""XML codec for dictionary fragments.

One root item and its whole subtree are stored as a single XML document
using the uSync dictionary layout::

    <?xml version='1.0' encoding='utf-8'?>
    <DictionaryItem Key="Header">
      <Value LanguageCultureAlias="en-US"><![CDATA[Welcome]]></Value>
      <DictionaryItem Key="Header.Title">
        <Value LanguageCultureAlias="en-US"><![CDATA[Title]]></Value>
      </DictionaryItem>
    </DictionaryItem>

Decoding treats input as untrusted: entity resolution and network access
are disabled and nesting deeper than ``max_depth`` is rejected with
``MalformedInputError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import UUID

from lxml import etree

from ..errors import CycleDetectedError, FileOperationError, MalformedInputError
from .models import Fragment, FragmentValue

if TYPE_CHECKING:
    from ..core.models import Node
    from ..core.store import NodeStore

logger = logging.getLogger(__name__)

ITEM_TAG = "DictionaryItem"
VALUE_TAG = "Value"
KEY_ATTR = "Key"
LOCALE_ATTR = "LanguageCultureAlias"

DEFAULT_MAX_DEPTH = 64


class XmlFragmentCodec:
    """Encode/decode ``Fragment`` trees to and from XML.

    Args:
        store: Node store used by ``is_update`` to compare a fragment with
            the current state.  Optional for pure encode/decode use.
        max_depth: Maximum nesting depth accepted by ``decode``.
    """

    def __init__(
        self,
        store: NodeStore | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.store = store
        self.max_depth = max_depth

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    @staticmethod
    def encode(node: Node, children: Sequence[Fragment] = ()) -> Fragment:
        """Build the fragment for *node* with already-encoded *children*.

        Values are written sorted by locale so repeated exports of an
        unchanged item produce identical files.
        """
        return Fragment(
            key=node.key,
            values=[
                FragmentValue(locale=locale, text=text)
                for locale, text in sorted(node.values.items())
            ],
            children=list(children),
        )

    def dumps(self, fragment: Fragment) -> bytes:
        """Serialize *fragment* to a pretty-printed UTF-8 XML document."""
        root = self._to_element(fragment)
        return etree.tostring(
            root,
            pretty_print=True,
            xml_declaration=True,
            encoding="utf-8",
        )

    def _to_element(self, fragment: Fragment) -> etree._Element:
        element = etree.Element(ITEM_TAG)
        element.set(KEY_ATTR, fragment.key)
        for value in fragment.values:
            value_el = etree.SubElement(element, VALUE_TAG)
            value_el.set(LOCALE_ATTR, value.locale)
            value_el.text = etree.CDATA(value.text)
        for child in fragment.children:
            element.append(self._to_element(child))
        return element

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, data: bytes | str) -> Fragment:
        """Parse an XML document into a ``Fragment`` tree.

        Raises:
            MalformedInputError: If the document is not well-formed, has
                the wrong root element, lacks a key, or nests too deeply.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            remove_blank_text=True,
        )
        try:
            root = etree.fromstring(data, parser)
        except (etree.XMLSyntaxError, ValueError) as exc:
            raise MalformedInputError(f"Cannot parse fragment: {exc}") from exc

        if root.tag != ITEM_TAG:
            raise MalformedInputError(
                f"Expected <{ITEM_TAG}> root element, found <{root.tag}>"
            )
        return self._from_element(root, depth=1)

    def load(self, path: Path) -> Fragment:
        """Read and decode the fragment stored at *path*.

        Raises:
            FileOperationError: If the file cannot be read.
            MalformedInputError: If the contents cannot be decoded.
        """
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise FileOperationError(f"Cannot read {path}: {exc}") from exc
        try:
            return self.decode(data)
        except MalformedInputError as exc:
            raise MalformedInputError(f"{path.name}: {exc}") from exc

    def _from_element(self, element: etree._Element, depth: int) -> Fragment:
        if depth > self.max_depth:
            raise MalformedInputError(
                f"Fragment nesting exceeds maximum depth of {self.max_depth}"
            )
        key = (element.get(KEY_ATTR) or "").strip()
        if not key:
            raise MalformedInputError(
                f"<{ITEM_TAG}> element on line {element.sourceline} has no {KEY_ATTR}"
            )

        values: list[FragmentValue] = []
        children: list[Fragment] = []
        for child in element:
            if child.tag == VALUE_TAG:
                locale = child.get(LOCALE_ATTR)
                if not locale:
                    raise MalformedInputError(
                        f"<{VALUE_TAG}> in '{key}' has no {LOCALE_ATTR}",
                    )
                values.append(
                    FragmentValue(locale=locale, text=child.text or "")
                )
            elif child.tag == ITEM_TAG:
                children.append(self._from_element(child, depth + 1))
            elif isinstance(child.tag, str):
                logger.debug(
                    "Ignoring unexpected <%s> element in '%s'", child.tag, key
                )

        return Fragment(key=key, values=values, children=children)

    # ------------------------------------------------------------------
    # Staleness check
    # ------------------------------------------------------------------

    def is_update(self, fragment: Fragment) -> bool:
        """Return True if *fragment* differs from the current store state.

        Comparison ignores child and value ordering, and only considers
        values in locales the store recognises.
        """
        if self.store is None:
            raise RuntimeError("is_update requires a codec bound to a store")

        existing = self.store.get_by_key(fragment.key)
        if existing is None:
            return True

        locales = self.store.all_locales()
        current = self._encode_current(self.store, existing, set())
        return fragment_checksum(fragment, locales) != fragment_checksum(
            current, locales
        )

    def _encode_current(
        self, store: NodeStore, node: Node, visited: set[UUID]
    ) -> Fragment:
        if node.id in visited:
            raise CycleDetectedError(
                f"Item '{node.key}' appears twice in its own subtree",
                key=node.key,
            )
        visited.add(node.id)
        children = [
            self._encode_current(store, child, visited)
            for child in store.children_of(node.id)
        ]
        return self.encode(node, children)


def _canonical(fragment: Fragment, locales: set[str] | None) -> dict:
    return {
        "key": fragment.key,
        "values": sorted(
            (v.locale, v.text)
            for v in fragment.values
            if locales is None or v.locale in locales
        ),
        "children": sorted(
            (_canonical(c, locales) for c in fragment.children),
            key=lambda c: c["key"],
        ),
    }


def fragment_checksum(
    fragment: Fragment, locales: set[str] | None = None
) -> str:
    """Order-insensitive SHA-256 digest of a fragment subtree."""
    canonical = json.dumps(_canonical(fragment, locales), sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
