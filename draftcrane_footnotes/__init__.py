"""Top-level package for the DraftCrane footnote engine.

Front-ends (editor hosts, CLI) should only depend on the public API exposed
here rather than importing internal modules directly.
"""

from .core.mutations import BatchMutation, Position
from .core.services import EditorSession, FootnoteService

__all__: list[str] = [
    "BatchMutation",
    "Position",
    "EditorSession",
    "FootnoteService",
]
