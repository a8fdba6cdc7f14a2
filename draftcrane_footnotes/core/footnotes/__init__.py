"""Footnote consistency engine: labels, orphan detection and correction."""

from .corrector import compute_correction, normalize, on_committed  # noqa: F401
from .labels import assign_labels, compute_labels, reference_order  # noqa: F401
from .orphans import OrphanReport, detect_orphans  # noqa: F401

__all__: list[str] = [
    "assign_labels",
    "compute_labels",
    "reference_order",
    "OrphanReport",
    "detect_orphans",
    "compute_correction",
    "normalize",
    "on_committed",
]
