from __future__ import annotations

"""HTML markup contract for footnotes.

Serialized form (stable, shared with exported documents)::

    <p>Body text<sup class="footnote-ref" data-footnote-id="fn-1" data-footnote-label="1">[1]</sup></p>
    <hr>
    <div class="footnotes">
      <div class="footnote-content" data-footnote-id="fn-1" data-footnote-label="1">
        <span class="footnote-label">[1]</span><div class="footnote-body">Source A</div>
      </div>
    </div>

(whitespace added for readability; the serializer emits none.)

Deserialization accepts that form plus legacy content elements without a
``footnote-body`` wrapper, repairs the structure (single section, divider in
front of it, loose contents moved into it) and then runs one corrector pass so
labels read 1..N in reference order whatever the source said.
"""

from copy import deepcopy
import logging
import re
from typing import Iterable, List, Optional

import lxml.html
from lxml import etree as ET

from draftcrane_footnotes.config import ConfigManager
from draftcrane_footnotes.core import schema
from draftcrane_footnotes.core.footnotes.corrector import normalize
from draftcrane_footnotes.core.utils import is_ancestor, remove_preserving_tail

__all__ = ["serialize_document", "deserialize_document"]

logger = logging.getLogger(__name__)

_BODY_TAG = re.compile(r"<body[\s>]", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def serialize_document(
    root: ET._Element,
    editor_only_attributes: Optional[Iterable[str]] = None,
    editor_only_class_prefixes: Optional[Iterable[str]] = None,
) -> str:
    """Return the exported HTML for the blocks under *root*.

    Editor-only markup is stripped from a copy; *root* is not modified.
    """
    config = ConfigManager().get_footnote_config()
    attributes = list(config["editor_only_attributes"] if editor_only_attributes is None else editor_only_attributes)
    prefixes = tuple(config["editor_only_class_prefixes"] if editor_only_class_prefixes is None else editor_only_class_prefixes)

    clean = deepcopy(root)
    for element in clean.iter():
        if not isinstance(element.tag, str):
            continue
        for name in attributes:
            element.attrib.pop(name, None)
        classes = (element.get("class") or "").split()
        if prefixes and any(c.startswith(prefixes) for c in classes):
            kept = [c for c in classes if not c.startswith(prefixes)]
            if kept:
                element.set("class", " ".join(kept))
            else:
                del element.attrib["class"]

    return "".join(lxml.html.tostring(child, encoding="unicode") for child in clean)


# ---------------------------------------------------------------------------
# Deserialization
# ---------------------------------------------------------------------------

def deserialize_document(html: str, *, correct: bool = True) -> ET._Element:
    """Parse *html* into a document root and normalise its footnotes.

    Parameters
    ----------
    html
        A fragment (``<p>..</p><hr><div class="footnotes">..``) or a full
        document; only the body is kept.
    correct
        Run the corrector pass after structural repair (default). Tests of
        the raw parse can switch it off.
    """
    root = _parse(html or "")
    _wrap_loose_inline(root)
    for ref in list(schema.iter_references(root)):
        _normalize_reference(ref)
    for content in list(schema.iter_contents(root)):
        _normalize_content(content)
    _normalize_sections(root)
    if not len(root):
        root.append(schema.make_paragraph())
    if correct and normalize(root):
        logger.info("Deserialize: footnotes normalised on load")
    return root


def _parse(html: str) -> ET._Element:
    if not html.strip():
        return lxml.html.Element("div")
    if _BODY_TAG.search(html):
        body = lxml.html.document_fromstring(html).body
        root = lxml.html.Element("div")
        root.text = body.text
        for child in list(body):
            root.append(child)
        return root
    return lxml.html.fragment_fromstring(html, create_parent="div")


def _is_inline(element: ET._Element) -> bool:
    return isinstance(element.tag, str) and element.tag in schema.INLINE_TAGS


def _wrap_loose_inline(root: ET._Element) -> None:
    """Wrap each run of loose text and inline elements under *root* in one ``<p>``.

    Text is kept as written; whitespace-only text between blocks is dropped.
    """
    paragraph = None
    if root.text and root.text.strip():
        paragraph = schema.make_paragraph(root.text)
        root.insert(0, paragraph)
    root.text = None

    for child in list(root):
        if _is_inline(child):
            if paragraph is None:
                paragraph = schema.make_paragraph()
                child.addprevious(paragraph)
            # the tail travels with the element
            paragraph.append(child)
            continue
        paragraph = None
        tail = child.tail
        child.tail = None
        if tail and tail.strip():
            paragraph = schema.make_paragraph(tail)
            child.addnext(paragraph)


def _normalize_reference(ref: ET._Element) -> None:
    classes = (ref.get("class") or "").split()
    if schema.REF_CLASS not in classes:
        ref.set("class", " ".join(classes + [schema.REF_CLASS]))
    ref.set("contenteditable", "false")
    schema.set_label(ref, schema.footnote_label(ref))


def _normalize_content(content: ET._Element) -> None:
    """Rebuild a content element as label marker + body wrapper."""
    label = schema.footnote_label(content)
    body = None
    for child in content:
        if schema.has_class(child, schema.BODY_CLASS):
            body = child
            break
    if body is None:
        body = ET.Element("div")
        body.set("class", schema.BODY_CLASS)
        body.text = content.text
        for child in list(content):
            if schema.has_class(child, schema.LABEL_CLASS):
                _append_text(body, child.tail)
                continue
            body.append(child)

    for child in list(content):
        content.remove(child)
    content.text = None
    content.append(body)
    body.tail = None
    schema.set_label(content, label)


def _append_text(element: ET._Element, text: Optional[str]) -> None:
    if not text:
        return
    if len(element):
        last = element[-1]
        last.tail = (last.tail or "") + text
    else:
        element.text = (element.text or "") + text


def _normalize_sections(root: ET._Element) -> None:
    """Merge sections into one, gather loose contents, ensure the divider."""
    sections: List[ET._Element] = [el for el in root.iter("div") if schema.is_section(el)]
    # a section nested inside another section is treated as loose contents
    sections = [s for s in sections if not any(is_ancestor(other, s) for other in sections if other is not s)]
    section = sections[0] if sections else None

    for extra in sections[1:]:
        previous = extra.getprevious()
        for content in [c for c in extra if schema.is_content(c)]:
            section.append(content)
        remove_preserving_tail(extra)
        if previous is not None and schema.is_divider(previous):
            remove_preserving_tail(previous)

    loose = [c for c in schema.iter_contents(root) if section is None or c.getparent() is not section]
    if loose:
        if section is None:
            section = schema.make_section()
            root.append(section)
        for content in loose:
            # tail text belongs to the old parent
            remove_preserving_tail(content)
            section.append(content)
        logger.debug("Deserialize: moved %d loose footnote contents into the section", len(loose))

    if section is not None:
        for child in list(section):
            if not schema.is_content(child):
                section.remove(child)
        for child in section:
            child.tail = None
        section.text = None
        previous = section.getprevious()
        if previous is None or not schema.is_divider(previous):
            section.addprevious(schema.make_divider())
