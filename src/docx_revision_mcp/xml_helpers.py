"""Low-level XML utilities for OOXML package parts."""

from __future__ import annotations

from typing import Iterator
from lxml import etree

# OOXML namespaces
NAMESPACES = {
    "w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main",
    "w14": "http://schemas.microsoft.com/office/word/2010/wordml",
    "w15": "http://schemas.microsoft.com/office/word/2012/wordml",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "xml": "http://www.w3.org/XML/1998/namespace",
}

# Package-level namespaces (unprefixed in their parts)
CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
PR_NS = "http://schemas.openxmlformats.org/package/2006/relationships"


_TYPOGRAPHY_TABLE = str.maketrans({
    "\u2018": "'",   # left single quote
    "\u2019": "'",   # right single quote / apostrophe
    "\u201A": "'",   # single low-9 quote
    "\u201C": '"',   # left double quote
    "\u201D": '"',   # right double quote
    "\u201E": '"',   # double low-9 quote
    "\u2013": "-",   # en-dash
    "\u2014": "-",   # em-dash
    "\u2011": "-",   # non-breaking hyphen
    "\u00A0": " ",   # non-breaking space
})


def normalize_typography(text: str) -> str:
    """Replace smart/fancy Unicode characters with their plain ASCII equivalents.

    All replacements are 1:1 character mappings, so string length is preserved.
    """
    return text.translate(_TYPOGRAPHY_TABLE)


def qn(tag: str) -> str:
    """Convert a prefixed tag name to Clark notation.

    Example: qn('w:p') -> '{http://schemas.openxmlformats.org/wordprocessingml/2006/main}p'
    """
    if ":" not in tag:
        return tag
    prefix, local = tag.split(":", 1)
    if prefix not in NAMESPACES:
        raise ValueError(f"Unknown namespace prefix: {prefix}")
    return f"{{{NAMESPACES[prefix]}}}{local}"


def parse_xml(data: bytes) -> etree._Element:
    """Parse a package part into its root element.

    Entity resolution and network access are disabled.
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    return etree.fromstring(data, parser)


def get_text_content(element: etree._Element) -> str:
    """Extract all text content from an element and its descendants."""
    texts = []
    for text_elem in element.iter(qn("w:t"), qn("w:delText")):
        if text_elem.text:
            texts.append(text_elem.text)
    return "".join(texts)


def iter_paragraphs(document: etree._Element) -> Iterator[tuple[int, etree._Element]]:
    """Yield ``(index, w:p)`` for every body paragraph, table cells included."""
    body = document.find(qn("w:body"))
    if body is None:
        return
    yield from enumerate(body.iter(qn("w:p")))


def get_paragraph_style(paragraph: etree._Element) -> str | None:
    """Style id from ``w:pPr/w:pStyle``, if the paragraph has one."""
    style = paragraph.find(f"{qn('w:pPr')}/{qn('w:pStyle')}")
    return None if style is None else style.get(qn("w:val"))


def create_element(tag: str, attribs: dict[str, str] | None = None) -> etree._Element:
    """Create an element from a prefixed tag, e.g. ``create_element("w:ins", {"w:id": "3"})``.

    Attribute names may be prefixed or in Clark notation.
    """
    elem = etree.Element(qn(tag) if not tag.startswith("{") else tag)
    for key, value in (attribs or {}).items():
        elem.set(key if key.startswith("{") else qn(key), value)
    return elem


def create_text_element(tag: str, text: str) -> etree._Element:
    """Create a w:t or w:delText element that keeps surrounding whitespace."""
    elem = create_element(tag)
    elem.set(qn("xml:space"), "preserve")
    elem.text = text
    return elem


def get_max_id(root: etree._Element | None, id_attr: str = "w:id") -> int:
    """Largest integer value of ``id_attr`` anywhere under ``root``, or -1."""
    if root is None:
        return -1
    attr_name = qn(id_attr)
    ids = [-1]
    for elem in root.iter():
        value = elem.get(attr_name)
        if value is not None and value.lstrip("-").isdigit():
            ids.append(int(value))
    return max(ids)


def serialize_xml(root: etree._Element) -> bytes:
    """Serialize a part root with an XML declaration and ``standalone="yes"``."""
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)
