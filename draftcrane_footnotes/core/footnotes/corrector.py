from __future__ import annotations

"""Footnote consistency corrector.

Registered as a post-commit hook on the editor session. After every commit it
recomputes labels and pairing from a full walk of the new tree and, when the
tree is inconsistent, returns one :class:`BatchMutation` that

1. relabels every surviving reference/content whose label or displayed marker
   differs from its rank, matched by id, and
2. deletes every orphan, plus every footnote section left without a
   surviving content, together with the ``<hr>`` divider in front of it.

The batch only relabels and deletes, so running the corrector on its own
output yields ``None``: one pass always reaches the fixed point.
"""

import logging
from typing import Iterable, List, Optional

from lxml import etree as ET

from draftcrane_footnotes.core import schema
from draftcrane_footnotes.core.footnotes.labels import assign_labels
from draftcrane_footnotes.core.footnotes.orphans import OrphanReport, detect_orphans
from draftcrane_footnotes.core.mutations import BatchMutation
from draftcrane_footnotes.core.utils import is_ancestor, path_of

__all__ = ["compute_correction", "on_committed", "normalize"]

logger = logging.getLogger(__name__)

CORRECTOR_ORIGIN = "corrector"


def _displayed_label(element: ET._Element) -> Optional[str]:
    if schema.is_reference(element):
        if len(element):
            return None
        return element.text
    for child in element:
        if schema.has_class(child, schema.LABEL_CLASS):
            return child.text
    return None


def _needs_label(element: ET._Element, label: str) -> bool:
    return schema.footnote_label(element) != label or _displayed_label(element) != f"[{label}]"


def _section_removals(root: ET._Element, report: OrphanReport) -> List[ET._Element]:
    """Every section holding no surviving content, each with the divider before it."""
    kept = list(report.contents.values())
    removals: List[ET._Element] = []
    for section in root.iter("div"):
        if section is root or not schema.is_section(section):
            continue
        if any(is_ancestor(section, content) for content in kept):
            continue
        if any(is_ancestor(container, section) for container in removals):
            continue
        previous = section.getprevious()
        if previous is not None and schema.is_divider(previous):
            removals.append(previous)
        removals.append(section)
    return removals


def compute_correction(root: ET._Element) -> Optional[BatchMutation]:
    """Return the corrective batch for *root*, or None when it is consistent."""
    report = detect_orphans(root)
    labels = assign_labels(report.surviving_ids)

    batch = BatchMutation(origin=CORRECTOR_ORIGIN)
    relabeled = 0
    for fid in report.surviving_ids:
        label = str(labels[fid])
        if _needs_label(report.references[fid], label):
            batch.set_label(schema.REFERENCE, fid, label)
            relabeled += 1
        if _needs_label(report.contents[fid], label):
            batch.set_label(schema.CONTENT, fid, label)
            relabeled += 1

    removed_containers = _section_removals(root, report)
    doomed: List[ET._Element] = list(removed_containers)
    for element in report.orphan_references + report.orphan_contents:
        if any(is_ancestor(container, element) for container in doomed):
            continue
        doomed.append(element)
    for element in doomed:
        batch.delete_node(path_of(element, root))

    if batch.is_empty():
        return None
    logger.info(
        "Footnotes corrected: relabeled=%d orphan_refs=%d orphan_contents=%d section_removed=%s",
        relabeled,
        len(report.orphan_references),
        len(report.orphan_contents),
        bool(removed_containers),
    )
    return batch


def _ids(elements: Iterable[ET._Element]) -> set:
    return {schema.footnote_id(el) for el in elements}


def on_committed(old_tree: Optional[ET._Element], new_tree: ET._Element) -> Optional[BatchMutation]:
    """Post-commit hook: inspect the committed tree and propose a correction."""
    if logger.isEnabledFor(logging.DEBUG) and old_tree is not None:
        gone_refs = _ids(schema.iter_references(old_tree)) - _ids(schema.iter_references(new_tree))
        gone_contents = _ids(schema.iter_contents(old_tree)) - _ids(schema.iter_contents(new_tree))
        if gone_refs or gone_contents:
            logger.debug("Commit removed refs=%s contents=%s", sorted(gone_refs), sorted(gone_contents))
    return compute_correction(new_tree)


def normalize(root: ET._Element) -> bool:
    """Apply one corrector pass directly to *root*; return True if it changed."""
    batch = compute_correction(root)
    if batch is None:
        return False
    batch.apply(root)
    return True
