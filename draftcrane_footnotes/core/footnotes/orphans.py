from __future__ import annotations

"""Orphan detection between reference and content nodes.

References and contents are correlated only through their shared id. The
lookup is rebuilt from scratch on every call; nothing holds a pointer from a
reference to its content between passes.

Canonical-first policy
----------------------
For each kind, the first node in document order carrying a given id is
canonical. Later nodes of the same kind with that id, nodes without an id,
and references nested inside a content node are orphans regardless of
pairing.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from lxml import etree as ET

from draftcrane_footnotes.core import schema

__all__ = ["OrphanReport", "detect_orphans"]


@dataclass(frozen=True)
class OrphanReport:
    """Result of one orphan scan.

    Attributes
    ----------
    orphan_references
        Reference elements to delete, in document order.
    orphan_contents
        Content elements to delete, in document order.
    surviving_ids
        Ids of the pairs that survive, in reference document order.
    references
        Surviving reference element per id.
    contents
        Surviving content element per id.
    """

    orphan_references: Tuple[ET._Element, ...] = ()
    orphan_contents: Tuple[ET._Element, ...] = ()
    surviving_ids: Tuple[str, ...] = ()
    references: Dict[str, ET._Element] = field(default_factory=dict)
    contents: Dict[str, ET._Element] = field(default_factory=dict)

    @property
    def has_orphans(self) -> bool:
        return bool(self.orphan_references or self.orphan_contents)

    @property
    def surviving_content_count(self) -> int:
        return len(self.contents)

    @property
    def orphan_reference_ids(self) -> Set[str]:
        return {schema.footnote_id(el) for el in self.orphan_references}

    @property
    def orphan_content_ids(self) -> Set[str]:
        return {schema.footnote_id(el) for el in self.orphan_contents}


def _inside_content(element: ET._Element) -> bool:
    return any(schema.is_content(parent) for parent in element.iterancestors())


def _canonical(elements: List[ET._Element]) -> Tuple[Dict[str, ET._Element], List[ET._Element]]:
    canonical: Dict[str, ET._Element] = {}
    rejected: List[ET._Element] = []
    for element in elements:
        fid = schema.footnote_id(element)
        if not fid or fid in canonical:
            rejected.append(element)
        else:
            canonical[fid] = element
    return canonical, rejected


def detect_orphans(root: ET._Element) -> OrphanReport:
    """Compare reference ids against content ids in *root*."""
    all_refs = list(schema.iter_references(root))
    body_refs = [ref for ref in all_refs if not _inside_content(ref)]
    canonical_refs, rejected_refs = _canonical(body_refs)
    canonical_contents, rejected_contents = _canonical(list(schema.iter_contents(root)))

    rejected = set(rejected_refs) | {ref for ref in all_refs if _inside_content(ref)}
    rejected.update(el for fid, el in canonical_refs.items() if fid not in canonical_contents)
    rejected.update(rejected_contents)
    rejected.update(el for fid, el in canonical_contents.items() if fid not in canonical_refs)

    survivors = [fid for fid in canonical_refs if fid in canonical_contents]
    return OrphanReport(
        orphan_references=tuple(el for el in all_refs if el in rejected),
        orphan_contents=tuple(el for el in schema.iter_contents(root) if el in rejected),
        surviving_ids=tuple(survivors),
        references={fid: canonical_refs[fid] for fid in survivors},
        contents={fid: canonical_contents[fid] for fid in survivors},
    )
