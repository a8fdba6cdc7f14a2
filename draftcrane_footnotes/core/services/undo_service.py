from __future__ import annotations

"""Undo/redo snapshot management for DocumentContext.

This service is UI-agnostic and performs pure in-memory history tracking of
a document. It serializes the whole tree into each snapshot and can restore
previous states into a provided DocumentContext.

Design principles
-----------------
- No UI imports and no I/O (filesystem/console).
- Snapshots are immutable blobs once stored.
- Redo stack is cleared on every new snapshot push (standard undo/redo behavior).
- Memory usage controlled by a max_history policy (trim oldest).

Snapshots serialize the tree with ``lxml.html.tostring`` so that markup the
HTML parser accepted is restored unchanged.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

import lxml.html
from lxml import etree as ET

from draftcrane_footnotes.core.models import DocumentContext
from draftcrane_footnotes.core.mutations import Position

logger = logging.getLogger(__name__)

__all__ = ["UndoService"]


@dataclass(frozen=True)
class _Snapshot:
    """Immutable in-memory snapshot of a DocumentContext.

    Attributes
    ----------
    document_html :
        Serialized root element as bytes, or None if no document exists.
    selection :
        Caret at the time of the snapshot.
    metadata :
        Shallow-copied metadata dictionary.
    """

    document_html: Optional[bytes]
    selection: Optional[Position]
    metadata: Dict[str, Any]


class UndoService:
    """Manage undo/redo stacks for :class:`DocumentContext`.

    Parameters
    ----------
    max_history : int, default=100
        Maximum number of undo snapshots to keep. Oldest entries are discarded
        when the capacity is exceeded. Values below 1 are coerced to 1.

    Notes
    -----
    Callers push a baseline snapshot when a document is loaded and one more
    after every committed change. Undo then restores the snapshot below the
    top of the stack.

    Examples
    --------
    >>> ctx = DocumentContext()
    >>> svc = UndoService(max_history=10)
    >>> svc.push_snapshot(ctx)        # baseline
    >>> # ... mutate ctx.root ...
    >>> svc.push_snapshot(ctx)
    >>> changed = svc.undo(ctx)       # restores the baseline
    >>> redo_ok = svc.redo(ctx)
    """

    def __init__(self, max_history: int = 100) -> None:
        self._max_history: int = max(1, int(max_history))
        self._undo_stack: List[_Snapshot] = []
        self._redo_stack: List[_Snapshot] = []

    # --------------------------------------------------------------------- API

    def push_snapshot(self, context: DocumentContext) -> None:
        """Capture current context state and push onto the undo stack.

        The redo stack is cleared. If the undo stack exceeds max_history, the
        oldest snapshot is dropped.
        """
        snap = self._create_snapshot(context)
        if snap is None:
            return
        self._undo_stack.append(snap)
        # New user action invalidates redo history
        self._redo_stack.clear()
        overflow = len(self._undo_stack) - self._max_history
        if overflow > 0:
            del self._undo_stack[0:overflow]

    def undo(self, context: DocumentContext) -> bool:
        """Restore the previous state into the provided context.

        Given undo_stack = [..., baseline, post] and current context == post,
        'post' moves to the redo stack and 'baseline' is restored.
        """
        if len(self._undo_stack) < 2:
            return False

        post_snap = self._undo_stack.pop()
        baseline_snap = self._undo_stack[-1]

        if not self._restore_snapshot_into_context(context, baseline_snap):
            # Put back the popped snapshot to maintain stack consistency
            self._undo_stack.append(post_snap)
            return False

        self._redo_stack.append(post_snap)
        overflow = len(self._redo_stack) - self._max_history
        if overflow > 0:
            del self._redo_stack[0:overflow]
        return True

    def redo(self, context: DocumentContext) -> bool:
        """Re-apply a state that was previously undone."""
        if not self._redo_stack:
            return False

        post_snap = self._redo_stack[-1]
        if not self._restore_snapshot_into_context(context, post_snap):
            return False

        self._redo_stack.pop()
        self._undo_stack.append(post_snap)
        overflow = len(self._undo_stack) - self._max_history
        if overflow > 0:
            del self._undo_stack[0:overflow]
        return True

    def can_undo(self) -> bool:
        """Return True if an undo operation is currently possible."""
        return len(self._undo_stack) > 1

    def can_redo(self) -> bool:
        """Return True if a redo operation is currently possible."""
        return bool(self._redo_stack)

    def clear(self) -> None:
        """Clear both undo and redo histories."""
        self._undo_stack.clear()
        self._redo_stack.clear()

    # --------------------------------------------------------------- Internals

    def _create_snapshot(self, context: DocumentContext) -> Optional[_Snapshot]:
        try:
            document_html: Optional[bytes]
            if context.root is not None:
                document_html = lxml.html.tostring(context.root, encoding="utf-8")
            else:
                document_html = None
            return _Snapshot(
                document_html=document_html,
                selection=context.selection,
                metadata=dict(context.metadata),
            )
        except (ET.SerialisationError, ValueError) as exc:
            logger.error("Undo snapshot failed: %s", exc)
            return None

    def _restore_snapshot_into_context(self, context: DocumentContext, snap: _Snapshot) -> bool:
        """Restore a snapshot into *context* in place (build-then-swap)."""
        try:
            if snap.document_html is not None:
                new_root = lxml.html.fragment_fromstring(snap.document_html.decode("utf-8"))
            else:
                new_root = None
        except (ET.ParserError, ValueError) as exc:
            logger.error("Undo restore failed: %s", exc)
            return False

        context.root = new_root
        context.selection = snap.selection
        context.metadata = dict(snap.metadata)
        return True
