from __future__ import annotations

"""Batch mutation value objects.

A :class:`BatchMutation` is an ordered list of node-level operations that the
editor session commits as one atomic step. Operations address nodes by
child-index path (or, for labels, by footnote id and kind) and are resolved
against the tree *before* any of them runs, so earlier operations in the
batch never shift the targets of later ones.

Supported operations:
- :class:`InsertNode`       insert a block element under a parent path
- :class:`InsertInline`     insert an inline element at a caret position
- :class:`DeleteNode`       remove the element at a path (its tail text stays)
- :class:`SetFootnoteLabel` relabel every reference or content with a given id
"""

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from lxml import etree as ET

from draftcrane_footnotes.core import schema
from draftcrane_footnotes.core.exceptions import MutationError, PositionError
from draftcrane_footnotes.core.utils import inline_length, insert_inline, is_ancestor, locate, remove_preserving_tail

__all__ = [
    "NodePath",
    "Position",
    "InsertNode",
    "InsertInline",
    "DeleteNode",
    "SetFootnoteLabel",
    "Operation",
    "BatchMutation",
]

logger = logging.getLogger(__name__)

NodePath = Tuple[int, ...]


@dataclass(frozen=True)
class Position:
    """Caret position: a text block path plus an offset in caret units."""

    path: NodePath
    offset: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(self.path))
        if self.offset < 0:
            raise MutationError(f"Negative caret offset {self.offset}")


@dataclass(frozen=True, eq=False)
class InsertNode:
    """Insert a copy of *element* as child *index* of the node at *parent_path*.

    ``index=None`` appends. Indices are evaluated when the operation runs,
    after the preceding operations of the same batch.
    """

    parent_path: NodePath
    element: ET._Element
    index: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "parent_path", tuple(self.parent_path))
        if self.element is None:
            raise MutationError("InsertNode requires an element")


@dataclass(frozen=True, eq=False)
class InsertInline:
    """Insert a copy of *element* at a caret position inside a text block."""

    position: Position
    element: ET._Element

    def __post_init__(self) -> None:
        if self.element is None:
            raise MutationError("InsertInline requires an element")


@dataclass(frozen=True)
class DeleteNode:
    path: NodePath

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(self.path))
        if not self.path:
            raise MutationError("The document root cannot be deleted")


@dataclass(frozen=True)
class SetFootnoteLabel:
    """Set the label of every node of *kind* whose id is *footnote_id*."""

    kind: str
    footnote_id: str
    label: str

    def __post_init__(self) -> None:
        if self.kind not in (schema.REFERENCE, schema.CONTENT):
            raise MutationError(f"Unknown footnote node kind '{self.kind}'")


Operation = Union[InsertNode, InsertInline, DeleteNode, SetFootnoteLabel]


@dataclass
class BatchMutation:
    """Ordered operations committed as a single step.

    Attributes
    ----------
    operations
        Operations in execution order.
    origin
        Free-form tag naming the producer ("user", "corrector", "insert_footnote"...).
        Used for logging only.
    """

    operations: List[Operation] = field(default_factory=list)
    origin: str = "user"

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def insert_node(self, parent_path, element: ET._Element, index: Optional[int] = None) -> "BatchMutation":
        self.operations.append(InsertNode(tuple(parent_path), element, index))
        return self

    def insert_inline(self, position: Position, element: ET._Element) -> "BatchMutation":
        self.operations.append(InsertInline(position, element))
        return self

    def delete_node(self, path) -> "BatchMutation":
        self.operations.append(DeleteNode(tuple(path)))
        return self

    def set_label(self, kind: str, footnote_id: str, label: str) -> "BatchMutation":
        self.operations.append(SetFootnoteLabel(kind, footnote_id, label))
        return self

    def is_empty(self) -> bool:
        return not self.operations

    def __len__(self) -> int:
        return len(self.operations)

    def summary(self) -> Dict[str, int]:
        """Count operations per type, for log lines."""
        counts: Dict[str, int] = {}
        for op in self.operations:
            name = type(op).__name__
            counts[name] = counts.get(name, 0) + 1
        return counts

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    def apply(self, root: ET._Element) -> None:
        """Apply every operation to *root* in place.

        Raises
        ------
        PositionError
            When a target cannot be resolved in the pre-batch tree. Nothing has
            been modified in that case.
        """
        resolved = [self._resolve(root, op) for op in self.operations]
        for op, target in resolved:
            self._execute(root, op, target)

    @staticmethod
    def _resolve(root: ET._Element, op: Operation) -> Tuple[Operation, Any]:
        if isinstance(op, InsertNode):
            parent = locate(root, op.parent_path)
            if parent is None:
                raise PositionError(f"No node at parent path {list(op.parent_path)}")
            return op, parent
        if isinstance(op, InsertInline):
            block = locate(root, op.position.path)
            if block is None:
                raise PositionError(f"No node at path {list(op.position.path)}")
            if op.position.offset > inline_length(block):
                raise PositionError(f"Offset {op.position.offset} outside block {list(op.position.path)}")
            return op, block
        if isinstance(op, DeleteNode):
            node = locate(root, op.path)
            if node is None:
                raise PositionError(f"No node at path {list(op.path)}")
            return op, node
        if isinstance(op, SetFootnoteLabel):
            if op.kind == schema.REFERENCE:
                candidates = schema.iter_references(root)
            else:
                candidates = schema.iter_contents(root)
            return op, [el for el in candidates if schema.footnote_id(el) == op.footnote_id]
        raise MutationError(f"Unsupported operation {op!r}")

    @staticmethod
    def _execute(root: ET._Element, op: Operation, target: Any) -> None:
        if isinstance(op, InsertNode):
            element = deepcopy(op.element)
            if op.index is None:
                target.append(element)
            else:
                target.insert(op.index, element)
        elif isinstance(op, InsertInline):
            insert_inline(target, op.position.offset, deepcopy(op.element))
        elif isinstance(op, DeleteNode):
            # An ancestor deleted earlier in the batch already took this node away.
            if is_ancestor(root, target):
                remove_preserving_tail(target)
        elif isinstance(op, SetFootnoteLabel):
            for element in target:
                schema.set_label(element, op.label)
