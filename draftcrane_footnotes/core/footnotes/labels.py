from __future__ import annotations

"""Sequential label assignment from document order."""

from typing import Dict, Iterable, List

from lxml import etree as ET

from draftcrane_footnotes.core import schema

__all__ = ["reference_order", "assign_labels", "compute_labels"]


def reference_order(root: ET._Element) -> List[str]:
    """Return reference ids in document order, first occurrence only."""
    seen: List[str] = []
    for ref in schema.iter_references(root):
        fid = schema.footnote_id(ref)
        if fid and fid not in seen:
            seen.append(fid)
    return seen


def assign_labels(ordered_ids: Iterable[str]) -> Dict[str, int]:
    """Map each id to its 1-based rank."""
    return {fid: index + 1 for index, fid in enumerate(ordered_ids)}


def compute_labels(root: ET._Element) -> Dict[str, int]:
    """Labels for every reference in *root*, ignoring pairing."""
    return assign_labels(reference_order(root))
