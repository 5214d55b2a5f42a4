"""
JSON and XML serialization of report entries.

XML is produced from a small tagged tree (scalar, list or mapping) that
report entries build for themselves, so the serializer never has to guess
the shape of the data it is given.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple, Union
from xml.sax.saxutils import escape

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_INVALID_TAG_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def xml_tag(name: str) -> str:
    """Turn an arbitrary key (e.g. a model id) into a valid element name."""
    tag = _INVALID_TAG_CHARS.sub("_", name)
    if not tag or not (tag[0].isalpha() or tag[0] == "_") or tag.lower().startswith("xml"):
        tag = f"_{tag}"
    return tag


@dataclass(frozen=True)
class XmlScalar:
    """Leaf text value."""
    value: Any

    def render(self) -> str:
        return escape(str(self.value))


@dataclass(frozen=True)
class XmlList:
    """Sequence rendered as repeated ``<item>`` elements."""
    items: Tuple["XmlNode", ...]

    def render(self) -> str:
        return "".join(f"<item>{item.render()}</item>" for item in self.items)


@dataclass(frozen=True)
class XmlMapping:
    """Ordered fields rendered as one child element each."""
    fields: Tuple[Tuple[str, "XmlNode"], ...]

    def render(self) -> str:
        parts = []
        for name, node in self.fields:
            tag = xml_tag(name)
            parts.append(f"<{tag}>{node.render()}</{tag}>")
        return "".join(parts)


XmlNode = Union[XmlScalar, XmlList, XmlMapping]


def mapping(*fields: Tuple[str, XmlNode]) -> XmlMapping:
    return XmlMapping(tuple(fields))


def to_xml_node(value: Any) -> XmlNode:
    """Tag plain JSON-shaped data (dicts, lists, scalars) for XML rendering."""
    if isinstance(value, dict):
        return XmlMapping(tuple((str(key), to_xml_node(item)) for key, item in value.items()))
    if isinstance(value, (list, tuple)):
        return XmlList(tuple(to_xml_node(item) for item in value))
    return XmlScalar(value)


def to_xml_document(root: str, node: XmlNode) -> str:
    """Render ``node`` wrapped in a ``root`` element, with XML declaration."""
    tag = xml_tag(root)
    return f"{XML_DECLARATION}\n<{tag}>{node.render()}</{tag}>"


def message_document(root: str, message: str) -> str:
    """Minimal document carrying a single human-readable message."""
    tag = xml_tag(root)
    return f"{XML_DECLARATION}\n<{tag}>\n  <message>{escape(message)}</message>\n</{tag}>"


def to_json(entries: Sequence[dict]) -> str:
    """Pretty-printed JSON array of report entries."""
    return json.dumps(list(entries), indent=2, ensure_ascii=False)


def entries_to_xml(root: str, nodes: List[XmlNode]) -> str:
    return to_xml_document(root, XmlList(tuple(nodes)))
