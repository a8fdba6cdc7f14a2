from __future__ import annotations

"""High-level services: the editor session host, its history, and the
composite footnote insertions built on top of it.
"""

from .undo_service import UndoService  # noqa: F401
from .editor_service import EditorSession, OperationResult  # noqa: F401
from .footnote_service import FootnoteService  # noqa: F401

__all__: list[str] = [
    "UndoService",
    "EditorSession",
    "OperationResult",
    "FootnoteService",
]
