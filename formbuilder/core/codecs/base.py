from __future__ import annotations

"""Shared lxml plumbing for the dialect codecs."""

import logging
import re
from typing import Iterator, Optional

from lxml import etree as ET  # type: ignore

from formbuilder.core.exceptions import ParseError
from formbuilder.core.ids import IdGenerator
from formbuilder.core.models import Dialect, Document

__all__ = [
    "DialectCodec",
    "parse_xml",
    "strip_declaration",
    "local_name",
    "child_elements",
    "text_of",
    "attr_of",
    "bool_attr",
    "set_attr",
    "serialize",
]

logger = logging.getLogger(__name__)

_DECLARATION = re.compile(r"^\ufeff?\s*<\?xml[^>]*\?>\s*")


def strip_declaration(xml_text: str) -> str:
    """Drop a leading ``<?xml ...?>`` declaration.

    lxml refuses ``str`` input that declares an encoding, and the text has
    already been decoded by the caller anyway.
    """
    return _DECLARATION.sub("", xml_text, count=1)


def parse_xml(xml_text: str) -> ET._Element:
    """Parse *xml_text* and return its root element.

    Raises
    ------
    ParseError
        If the text is empty or not well-formed.
    """
    if xml_text is None or not str(xml_text).strip():
        raise ParseError("No XML content to load.")
    parser = ET.XMLParser(
        remove_comments=True,
        remove_pis=True,
        resolve_entities=False,  # Security: disable entity resolution
        no_network=True,
    )
    try:
        return ET.fromstring(strip_declaration(str(xml_text)), parser)
    except ET.XMLSyntaxError as e:
        raise ParseError(f"Invalid XML: {e}", cause=e) from e


def local_name(element: ET._Element) -> str:
    return ET.QName(element).localname


def child_elements(element: ET._Element) -> Iterator[ET._Element]:
    for child in element:
        if isinstance(child.tag, str):
            yield child


def text_of(element: Optional[ET._Element]) -> str:
    """Return the text of *element* verbatim.

    Whitespace-only text ahead of child elements is layout written by
    :func:`serialize` and reads back as empty.
    """
    if element is None:
        return ""
    text = element.text or ""
    if not text.strip() and any(isinstance(child.tag, str) for child in element):
        return ""
    return text


def attr_of(element: ET._Element, name: str) -> str:
    """Return attribute *name* verbatim, or an empty string when absent."""
    return element.get(name) or ""


def bool_attr(element: ET._Element, name: str) -> bool:
    return (element.get(name) or "").strip().lower() == "true"


def set_attr(element: ET._Element, name: str, value: str, always: bool = False) -> None:
    """Set *name* when *value* is non-empty (or when *always* is set)."""
    if value or always:
        element.set(name, value or "")


def serialize(root: ET._Element, encoding_label: str, indent: int = 2) -> str:
    """Pretty-print *root* behind a fixed XML declaration."""
    ET.indent(root, space=" " * max(0, int(indent)))
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="{encoding_label}"?>\n{body}'


class DialectCodec:
    """Interface shared by the dialect codecs.

    Subclasses fill the dispatch tables: ``NodeType -> encoder`` and
    ``element name -> decoder``. Adding a node type is a table edit.
    """

    dialect: Dialect
    root_tag: str
    encoding_label = "utf-8"

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    def decode(self, root: ET._Element, ids: IdGenerator) -> Document:  # pragma: no cover - interface
        raise NotImplementedError

    def encode(self, document: Document) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def _skip(self, element: ET._Element, where: str) -> None:
        self._logger.warning("Skipping unsupported <%s> in %s", local_name(element), where)
