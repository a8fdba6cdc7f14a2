from __future__ import annotations

"""In-memory editor session: the host side of the footnote engine.

This module provides a UI-agnostic, testable stand-in for the rich-text
framework the footnote engine plugs into. It owns one document tree and
offers the four host capabilities the engine relies on:

- tree query (``root``, ``locate``, ``path_of``)
- atomic batch submission (``submit``)
- post-commit hooks that may append one follow-up batch to the same commit
- grouping of submissions into a single undo/redo history entry

Scope and guarantees:
- Operates purely in-memory, no file I/O nor UI imports.
- ``submit`` never raises for batches that fail to resolve or apply, nor when
  a commit hook raises; it returns OperationResult(success=False, ...) and
  leaves the tree as it was.
- A hook is never re-entered on the follow-up batch it produced itself.

Examples
--------
Basic usage:

    session = EditorSession("<p>Hello world</p>")
    batch = BatchMutation().delete_node((0,))
    result = session.submit(batch)
    if not result.success:
        print(result.message)
"""

from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from lxml import etree as ET

from draftcrane_footnotes.config import ConfigManager
from draftcrane_footnotes.core.exceptions import PositionError
from draftcrane_footnotes.core.footnotes.corrector import on_committed
from draftcrane_footnotes.core.models import DocumentContext
from draftcrane_footnotes.core.mutations import BatchMutation, Position
from draftcrane_footnotes.core.serialization.html import deserialize_document, serialize_document
from draftcrane_footnotes.core.services.undo_service import UndoService
from draftcrane_footnotes.core.utils import locate, path_of


__all__ = ["CommitHook", "OperationResult", "EditorSession"]

logger = logging.getLogger(__name__)

CommitHook = Callable[[Optional[ET._Element], ET._Element], Optional[BatchMutation]]


@dataclass(frozen=True)
class OperationResult:
    """Result of a submitted batch.

    Attributes
    ----------
    success
        Whether the batch was committed.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


class EditorSession:
    """One open document plus its history and commit hooks.

    Parameters
    ----------
    html
        Initial markup, deserialized through the footnote markup contract.
    hooks
        Post-commit hooks, called in order after every commit. Defaults to
        the footnote corrector alone; pass ``()`` for a bare host.
    """

    def __init__(self, html: str = "", hooks: Optional[Sequence[CommitHook]] = None) -> None:
        config = ConfigManager().get_footnote_config()
        self.context = DocumentContext()
        self._history = UndoService(max_history=int(config["max_history"]))
        self._max_hook_rounds = max(1, int(config["max_hook_rounds"]))
        self._hooks: List[CommitHook] = list((on_committed,) if hooks is None else hooks)
        self._group_depth = 0
        self._group_dirty = False
        self._closed = False
        self.load_html(html)

    # -------------------------------------------------------------------------
    # Tree query
    # -------------------------------------------------------------------------

    @property
    def root(self) -> ET._Element:
        return self.context.root

    @property
    def is_active(self) -> bool:
        return not self._closed and self.context.root is not None

    @property
    def selection(self) -> Optional[Position]:
        return self.context.selection

    @selection.setter
    def selection(self, position: Optional[Position]) -> None:
        self.context.selection = position

    def locate(self, path: Sequence[int]) -> Optional[ET._Element]:
        return locate(self.root, path)

    def path_of(self, element: ET._Element):
        return path_of(element, self.root)

    # -------------------------------------------------------------------------
    # Document I/O (markup only; persistence belongs to callers)
    # -------------------------------------------------------------------------

    def load_html(self, html: str) -> None:
        """Replace the document and reset history to it."""
        self.context.root = deserialize_document(html)
        self.context.selection = None
        self._history.clear()
        self._history.push_snapshot(self.context)
        logger.info("Session: loaded document blocks=%d", len(self.context.root))

    def get_html(self) -> str:
        return serialize_document(self.root)

    def close(self) -> None:
        self._closed = True

    # -------------------------------------------------------------------------
    # Hooks and commits
    # -------------------------------------------------------------------------

    def add_commit_hook(self, hook: CommitHook) -> None:
        self._hooks.append(hook)

    def remove_commit_hook(self, hook: CommitHook) -> None:
        if hook in self._hooks:
            self._hooks.remove(hook)

    def submit(self, batch: BatchMutation) -> OperationResult:
        """Commit *batch* atomically, then let hooks append follow-up batches."""
        logger.info("Edit: submit origin=%s ops=%s", batch.origin, batch.summary())
        if self._closed:
            logger.warning("Edit FAIL: submit session_closed origin=%s", batch.origin)
            return OperationResult(False, "Editor session is closed.", {"origin": batch.origin})
        if batch.is_empty():
            return OperationResult(False, "Nothing to commit.", {"origin": batch.origin})

        before = deepcopy(self.root)
        try:
            batch.apply(self.root)
            follow_ups = self._run_hooks(before)
        except PositionError as exc:
            self.context.root = before
            logger.warning("Edit FAIL: submit origin=%s unresolved=%s", batch.origin, exc)
            return OperationResult(False, f"Batch could not be applied: {exc}", {"origin": batch.origin})
        except (ValueError, TypeError) as exc:
            self.context.root = before
            logger.error("Edit FAIL: submit origin=%s error=%s", batch.origin, exc, exc_info=True)
            return OperationResult(False, "Batch failed and was rolled back.", {"origin": batch.origin, "error": str(exc)})
        except Exception as exc:
            self.context.root = before
            logger.error("Edit FAIL: submit origin=%s hook_error=%r", batch.origin, exc, exc_info=True)
            return OperationResult(False, f"Commit hook failed: {exc!r}", {"origin": batch.origin, "error": repr(exc)})

        self._record_history()
        logger.info("Edit OK: submit origin=%s follow_ups=%d", batch.origin, follow_ups)
        return OperationResult(True, "Committed.", {"origin": batch.origin, "operations": len(batch), "follow_ups": follow_ups})

    def _run_hooks(self, before: ET._Element) -> int:
        """Run hooks until none proposes a batch; return the follow-up count.

        The hook that produced a follow-up is skipped on the round inspecting
        that follow-up, so a hook never reacts to its own output.
        """
        old_tree = before
        producer: Optional[CommitHook] = None
        applied = 0
        for _round in range(self._max_hook_rounds):
            follow_up = None
            for hook in self._hooks:
                if hook is producer:
                    continue
                follow_up = hook(old_tree, self.root)
                if follow_up is not None and not follow_up.is_empty():
                    producer = hook
                    break
                follow_up = None
            if follow_up is None:
                return applied
            old_tree = deepcopy(self.root)
            follow_up.apply(self.root)
            applied += 1
            logger.debug("Hook follow-up applied origin=%s ops=%s", follow_up.origin, follow_up.summary())
        logger.warning("Commit hooks still active after %d rounds", self._max_hook_rounds)
        return applied

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @contextmanager
    def group(self, label: str = "group") -> Iterator["EditorSession"]:
        """Merge every commit made inside the block into one history entry."""
        self._group_depth += 1
        try:
            yield self
        finally:
            self._group_depth -= 1
            if self._group_depth == 0 and self._group_dirty:
                self._group_dirty = False
                self._history.push_snapshot(self.context)
                logger.debug("History: grouped entry '%s' recorded", label)

    def _record_history(self) -> None:
        if self._group_depth:
            self._group_dirty = True
            return
        self._history.push_snapshot(self.context)

    def undo(self) -> bool:
        if self._closed:
            return False
        ok = self._history.undo(self.context)
        logger.info("Edit %s: undo", "OK" if ok else "noop")
        return ok

    def redo(self) -> bool:
        if self._closed:
            return False
        ok = self._history.redo(self.context)
        logger.info("Edit %s: redo", "OK" if ok else "noop")
        return ok

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()
