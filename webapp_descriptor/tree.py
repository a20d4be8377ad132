"""Generic markup tree used by the descriptor parser.

The descriptor is read once with lxml into immutable `Node` values. Tags and
attribute names are stored by local name, so a default namespace on the root
element (`xmlns="http://appengine.google.com/ns/1.0"`) does not leak into
lookups.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import IO, Mapping

from lxml import etree

from webapp_descriptor.errors import MalformedDescriptorError


@dataclass(frozen=True, slots=True)
class Node:
    tag: str
    attributes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    text: str = ""
    children: tuple[Node, ...] = ()

    def child(self, tag: str) -> Node | None:
        """Return the first direct child named `tag`."""

        for c in self.children:
            if c.tag == tag:
                return c
        return None

    def children_named(self, tag: str) -> list[Node]:
        return [c for c in self.children if c.tag == tag]

    def attr(self, name: str) -> str | None:
        return self.attributes.get(name)


def _make_parser() -> etree.XMLParser:
    # Internal DTD entities expand; external ones and network fetches do not.
    return etree.XMLParser(
        resolve_entities="internal",
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )


def _to_node(el: etree._Element) -> Node:
    return Node(
        tag=etree.QName(el).localname,
        attributes=MappingProxyType({etree.QName(k).localname: v for k, v in el.attrib.items()}),
        text="".join(el.itertext()).strip(),
        children=tuple(_to_node(c) for c in el if isinstance(c.tag, str)),
    )


def read_tree(source: bytes | IO[bytes]) -> Node:
    """Read a descriptor into a `Node` tree.

    Args:
        source: Raw bytes, or a binary file-like object opened by the caller.

    Raises:
        MalformedDescriptorError: If the input is empty or not well-formed.
    """

    data = source if isinstance(source, (bytes, bytearray)) else source.read()
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"descriptor must be read as bytes, got {type(data).__name__}")
    if not bytes(data).strip():
        raise MalformedDescriptorError("Descriptor is empty")

    try:
        root = etree.fromstring(bytes(data), _make_parser())
    except etree.XMLSyntaxError as e:
        raise MalformedDescriptorError(f"Descriptor is not well-formed: {e}") from e

    return _to_node(root)
