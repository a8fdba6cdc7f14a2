from __future__ import annotations

"""Exception types raised by the footnote core.

Expected failures (an out-of-bounds caret, a batch that no longer resolves)
are reported through return values; these exceptions only signal misuse of
the value objects themselves.
"""

__all__ = ["FootnoteError", "MutationError", "PositionError"]


class FootnoteError(Exception):
    """Base class for all footnote core errors."""


class MutationError(FootnoteError, ValueError):
    """Raised when a batch operation is built with invalid arguments."""


class PositionError(FootnoteError, LookupError):
    """Raised when a position cannot be resolved inside a document tree."""
