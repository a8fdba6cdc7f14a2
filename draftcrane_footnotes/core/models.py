from __future__ import annotations

"""Shared data structures used across the DraftCrane footnote core.

This module is intentionally free of UI / I/O code so that the contained
objects can be reused in any context (unit-tests, CLI, editor hosts).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from lxml import etree as ET

from draftcrane_footnotes.core.mutations import Position

__all__ = ["DocumentContext", "FootnoteEntry"]


@dataclass
class DocumentContext:
    """In-memory state of one open chapter.

    Attributes
    ----------
    root
        Container element (``<div>``) whose children are the document blocks.
    selection
        Last known caret, or None when the editor never had focus.
    metadata
        Arbitrary key/value pairs supplied by the caller (chapter id, title…).
    """

    root: Optional[ET._Element] = None
    selection: Optional[Position] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FootnoteEntry:
    """One footnote as listed for display: label, id and content text."""

    label: int
    footnote_id: str
    text: str
