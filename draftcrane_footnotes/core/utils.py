from __future__ import annotations

"""Simple reusable tree helpers.

These helpers are side-effect-free apart from the element they are handed
and contain no I/O; they are shared by the mutation layer, the corrector and
the serializer.
"""

from typing import Iterable, Optional, Sequence, Tuple
import logging
import uuid

from lxml import etree as ET

from draftcrane_footnotes.core import schema

__all__ = [
    "generate_footnote_id",
    "path_of",
    "locate",
    "is_ancestor",
    "remove_preserving_tail",
    "inline_length",
    "insert_inline",
    "top_level_block",
]

logger = logging.getLogger(__name__)

NodePath = Tuple[int, ...]

# Void inline elements count as one caret unit, like references.
_ATOM_TAGS = frozenset({"br", "img", "wbr"})


def generate_footnote_id(prefix: str = "fn", existing: Iterable[str] = ()) -> str:
    """Return an id unique among *existing*."""
    taken = set(existing)
    while True:
        candidate = f"{prefix}-{uuid.uuid4().hex[:12]}"
        if candidate not in taken:
            return candidate


def path_of(element: ET._Element, root: ET._Element) -> Optional[NodePath]:
    """Return the child-index path from *root* to *element*, or None if detached."""
    indices = []
    node = element
    while node is not root:
        parent = node.getparent()
        if parent is None:
            return None
        indices.append(parent.index(node))
        node = parent
    return tuple(reversed(indices))


def locate(root: ET._Element, path: Sequence[int]) -> Optional[ET._Element]:
    """Resolve a child-index path; None when any step is out of range."""
    node = root
    for idx in path:
        if idx < 0 or idx >= len(node):
            return None
        node = node[idx]
    return node


def is_ancestor(ancestor: ET._Element, node: ET._Element) -> bool:
    """Return True if *ancestor* strictly contains *node*."""
    for parent in node.iterancestors():
        if parent is ancestor:
            return True
    return False


def top_level_block(element: ET._Element, root: ET._Element) -> Optional[ET._Element]:
    """Return the direct child of *root* that contains *element* (or is it)."""
    node = element
    while node is not None and node.getparent() is not root:
        node = node.getparent()
    return node


def remove_preserving_tail(element: ET._Element) -> None:
    """Detach *element*, keeping the text that followed it in place.

    lxml stores trailing text on the element itself, so a plain
    ``parent.remove()`` would drop it.
    """
    parent = element.getparent()
    if parent is None:
        return
    tail = element.tail
    if tail:
        previous = element.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
    parent.remove(element)


def _is_atom(element) -> bool:
    if not isinstance(element.tag, str):
        # comments and processing instructions have no caret width
        return False
    return schema.is_reference(element) or element.tag in _ATOM_TAGS


def inline_length(block: ET._Element) -> int:
    """Return the number of caret units inside *block*.

    Every character is one unit; a reference or void element is one unit.
    """
    total = len(block.text or "")
    for child in block:
        if _is_atom(child):
            total += 1
        elif isinstance(child.tag, str):
            total += inline_length(child)
        total += len(child.tail or "")
    return total


def insert_inline(block: ET._Element, offset: int, new: ET._Element) -> None:
    """Insert *new* at caret *offset* inside *block*, splitting text as needed."""
    if offset < 0 or offset > inline_length(block):
        raise ValueError(f"offset {offset} outside block")
    _insert_inline(block, offset, new)


def _insert_inline(parent: ET._Element, offset: int, new: ET._Element) -> int:
    """Place *new*; return -1 once placed, otherwise the unconsumed offset."""
    text = parent.text or ""
    if offset <= len(text):
        new.tail = text[offset:] or None
        parent.text = text[:offset] or None
        parent.insert(0, new)
        return -1
    offset -= len(text)
    for index, child in enumerate(parent):
        if _is_atom(child):
            offset -= 1
        elif isinstance(child.tag, str):
            offset = _insert_inline(child, offset, new)
            if offset < 0:
                return -1
        tail = child.tail or ""
        if offset <= len(tail):
            new.tail = tail[offset:] or None
            child.tail = tail[:offset] or None
            parent.insert(index + 1, new)
            return -1
        offset -= len(tail)
    return offset
