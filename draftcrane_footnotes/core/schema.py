from __future__ import annotations

"""Node schema for footnotes embedded in an lxml document tree.

The document is an ordinary HTML element tree. Three element shapes carry
footnote semantics:

- reference: ``<sup class="footnote-ref" data-footnote-id=.. data-footnote-label=..>[N]</sup>``
- content:   ``<div class="footnote-content" ...><span class="footnote-label">[N]</span>
  <div class="footnote-body">...</div></div>``
- section:   ``<div class="footnotes">`` holding the content elements, preceded
  by an ``<hr>`` divider.

This module is free of behaviour beyond construction and classification.
"""

from typing import Iterator, Optional

from lxml import etree as ET

__all__ = [
    "REFERENCE",
    "CONTENT",
    "ID_ATTR",
    "LABEL_ATTR",
    "REF_CLASS",
    "CONTENT_CLASS",
    "SECTION_CLASS",
    "LABEL_CLASS",
    "BODY_CLASS",
    "TEXTBLOCK_TAGS",
    "INLINE_TAGS",
    "has_class",
    "is_reference",
    "is_content",
    "is_section",
    "is_divider",
    "is_textblock",
    "footnote_id",
    "footnote_label",
    "content_body",
    "make_reference",
    "make_content",
    "make_section",
    "make_divider",
    "make_quote",
    "make_paragraph",
    "set_label",
    "find_section",
    "iter_references",
    "iter_contents",
]

REFERENCE = "reference"
CONTENT = "content"

ID_ATTR = "data-footnote-id"
LABEL_ATTR = "data-footnote-label"

REF_CLASS = "footnote-ref"
CONTENT_CLASS = "footnote-content"
SECTION_CLASS = "footnotes"
LABEL_CLASS = "footnote-label"
BODY_CLASS = "footnote-body"

# Elements that hold inline content and may receive a reference.
TEXTBLOCK_TAGS = frozenset(
    {"p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "td", "th", "pre", "dt", "dd", "figcaption"}
)

# Phrasing elements; loose runs of these at the top level are wrapped in a paragraph.
INLINE_TAGS = frozenset(
    {
        "a", "abbr", "b", "bdi", "bdo", "br", "cite", "code", "del", "dfn", "em", "i", "img",
        "ins", "kbd", "mark", "q", "s", "samp", "small", "span", "strong", "sub", "sup",
        "time", "u", "var", "wbr",
    }
)

UNSET_LABEL = "0"


def has_class(element, name: str) -> bool:
    """Return True if *element* carries CSS class *name*."""
    if not isinstance(getattr(element, "tag", None), str):
        return False
    return name in (element.get("class") or "").split()


def is_reference(element) -> bool:
    return getattr(element, "tag", None) == "sup" and element.get(ID_ATTR) is not None


def is_content(element) -> bool:
    return getattr(element, "tag", None) == "div" and has_class(element, CONTENT_CLASS)


def is_section(element) -> bool:
    return getattr(element, "tag", None) == "div" and has_class(element, SECTION_CLASS)


def is_divider(element) -> bool:
    return getattr(element, "tag", None) == "hr"


def is_textblock(element) -> bool:
    return getattr(element, "tag", None) in TEXTBLOCK_TAGS


def footnote_id(element) -> str:
    """Return the footnote id of a reference or content element ("" if missing)."""
    return (element.get(ID_ATTR) or "").strip()


def footnote_label(element) -> str:
    return element.get(LABEL_ATTR) or UNSET_LABEL


def content_body(content: ET._Element) -> ET._Element:
    """Return the element holding a content node's inline text."""
    for child in content:
        if has_class(child, BODY_CLASS):
            return child
    return content


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def make_reference(fid: str, label: str = UNSET_LABEL, *, editor_attributes: bool = True) -> ET._Element:
    """Build a reference element.

    With *editor_attributes* the element is marked non-editable, the way the
    editing surface renders atoms. The serializer strips those markers.
    """
    sup = ET.Element("sup")
    sup.set("class", REF_CLASS)
    sup.set(ID_ATTR, fid)
    sup.set(LABEL_ATTR, label)
    if editor_attributes:
        sup.set("contenteditable", "false")
    sup.text = f"[{label}]"
    return sup


def make_content(fid: str, text: Optional[str] = None, label: str = UNSET_LABEL) -> ET._Element:
    div = ET.Element("div")
    div.set("class", CONTENT_CLASS)
    div.set(ID_ATTR, fid)
    div.set(LABEL_ATTR, label)
    marker = ET.SubElement(div, "span")
    marker.set("class", LABEL_CLASS)
    marker.text = f"[{label}]"
    body = ET.SubElement(div, "div")
    body.set("class", BODY_CLASS)
    body.text = text or None
    return div


def make_section(*contents: ET._Element) -> ET._Element:
    section = ET.Element("div")
    section.set("class", SECTION_CLASS)
    for content in contents:
        section.append(content)
    return section


def make_divider() -> ET._Element:
    return ET.Element("hr")


def make_paragraph(text: Optional[str] = None) -> ET._Element:
    p = ET.Element("p")
    p.text = text or None
    return p


def make_quote(text: str) -> ET._Element:
    """Build the quote block wrapping a pasted clip."""
    quote = ET.Element("blockquote")
    quote.append(make_paragraph(text))
    return quote


def set_label(element: ET._Element, label: str) -> None:
    """Write *label* onto a reference or content element, display text included."""
    element.set(LABEL_ATTR, label)
    if is_reference(element):
        for child in list(element):
            element.remove(child)
        element.text = f"[{label}]"
        return
    for child in element:
        if has_class(child, LABEL_CLASS):
            child.text = f"[{label}]"
            return
    marker = ET.Element("span")
    marker.set("class", LABEL_CLASS)
    marker.text = f"[{label}]"
    marker.tail = element.text
    element.text = None
    element.insert(0, marker)


# ---------------------------------------------------------------------------
# Tree queries
# ---------------------------------------------------------------------------

def find_section(root: ET._Element) -> Optional[ET._Element]:
    """Return the first section element in document order, or None."""
    for element in root.iter("div"):
        if is_section(element):
            return element
    return None


def iter_references(root: ET._Element) -> Iterator[ET._Element]:
    """Yield reference elements in document (pre-order) order."""
    for element in root.iter("sup"):
        if is_reference(element):
            yield element


def iter_contents(root: ET._Element) -> Iterator[ET._Element]:
    for element in root.iter("div"):
        if is_content(element):
            yield element
