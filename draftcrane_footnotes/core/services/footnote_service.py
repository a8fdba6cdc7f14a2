from __future__ import annotations

"""Composite footnote insertions.

Each public operation stages every node it needs (reference, content, and
when missing the section with its divider, plus a quote block for clips) into
one :class:`BatchMutation` and submits it once inside a history group. The
editor's commit hook, the footnote corrector, assigns the final labels within
the same commit, so one undo removes the whole insertion.

Invalid requests (closed session, caret outside the document body) return
False without touching the document; nothing is raised to the caller.
"""

import logging
from typing import List, Optional

from lxml import etree as ET

from draftcrane_footnotes.config import ConfigManager
from draftcrane_footnotes.core import schema
from draftcrane_footnotes.core.models import FootnoteEntry
from draftcrane_footnotes.core.mutations import BatchMutation, Position
from draftcrane_footnotes.core.services.editor_service import EditorSession
from draftcrane_footnotes.core.utils import (
    generate_footnote_id,
    inline_length,
    locate,
    path_of,
    top_level_block,
)

__all__ = ["FootnoteService"]

logger = logging.getLogger(__name__)


class FootnoteService:
    """Insert and list footnotes in an :class:`EditorSession`.

    Parameters
    ----------
    id_prefix
        Prefix of generated footnote ids; defaults to the configured value.
    """

    def __init__(self, id_prefix: Optional[str] = None) -> None:
        config = ConfigManager().get_footnote_config()
        self._id_prefix = id_prefix or str(config["id_prefix"])

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def insert_footnote(self, session: Optional[EditorSession], target_position: Position, source_label_text: str) -> bool:
        """Insert a reference at *target_position* and its content in the section.

        Returns True when the insertion was committed.
        """
        logger.info("Edit: insert_footnote position=%s", target_position)
        if not self._has_context(session):
            logger.info("Edit noop: insert_footnote no_active_session")
            return False
        if not self._is_body_position(session.root, target_position):
            logger.warning("Edit FAIL: insert_footnote out_of_bounds position=%s", target_position)
            return False

        fid = self._new_id(session.root)
        batch = BatchMutation(origin="insert_footnote")
        batch.insert_inline(target_position, schema.make_reference(fid))
        self._stage_content(batch, session.root, fid, source_label_text)

        with session.group("insert_footnote"):
            result = session.submit(batch)
        if not result.success:
            logger.warning("Edit FAIL: insert_footnote id=%s reason=%s", fid, result.message)
            return False
        session.selection = Position(target_position.path, target_position.offset + 1)
        logger.info("Edit OK: insert_footnote id=%s", fid)
        return True

    def insert_clip_with_footnote(self, session: Optional[EditorSession], quote_text: str, source_label_text: str) -> bool:
        """Insert a quote block followed by a footnote reference at the caret.

        The quote and a paragraph holding the reference go right after the
        top-level block containing the caret. Without a stored caret they go
        at the end of the body, before the footnote section.
        """
        logger.info("Edit: insert_clip_with_footnote")
        if not self._has_context(session):
            logger.info("Edit noop: insert_clip_with_footnote no_active_session")
            return False
        root = session.root
        position = session.selection
        if position is None:
            position = self.end_of_body(root)
        if position is None or not self._is_body_position(root, position):
            logger.warning("Edit FAIL: insert_clip_with_footnote out_of_bounds position=%s", position)
            return False

        anchor = top_level_block(locate(root, position.path), root)
        index = root.index(anchor) + 1

        fid = self._new_id(root)
        holder = schema.make_paragraph()
        holder.append(schema.make_reference(fid))

        batch = BatchMutation(origin="insert_clip_with_footnote")
        batch.insert_node((), schema.make_quote(quote_text), index)
        batch.insert_node((), holder, index + 1)
        self._stage_content(batch, root, fid, source_label_text)

        with session.group("insert_clip_with_footnote"):
            result = session.submit(batch)
        if not result.success:
            logger.warning("Edit FAIL: insert_clip_with_footnote id=%s reason=%s", fid, result.message)
            return False
        session.selection = Position((index + 1,), 1)
        logger.info("Edit OK: insert_clip_with_footnote id=%s", fid)
        return True

    def list_footnotes(self, session: EditorSession) -> List[FootnoteEntry]:
        """Return the footnotes of *session* in label order."""
        contents = {schema.footnote_id(c): c for c in schema.iter_contents(session.root)}
        entries: List[FootnoteEntry] = []
        for ref in schema.iter_references(session.root):
            fid = schema.footnote_id(ref)
            content = contents.get(fid)
            if content is None:
                continue
            text = "".join(schema.content_body(content).itertext()).strip()
            entries.append(FootnoteEntry(int(schema.footnote_label(ref)), fid, text))
        return entries

    @staticmethod
    def end_of_body(root: ET._Element) -> Optional[Position]:
        """Caret at the end of the last text block before the footnote section."""
        for block in reversed(list(root)):
            if schema.is_section(block) or schema.is_divider(block) or not isinstance(block.tag, str):
                continue
            candidates = [el for el in block.iter() if schema.is_textblock(el)]
            if candidates:
                target = candidates[-1]
                return Position(path_of(target, root), inline_length(target))
        return None

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _has_context(session: Optional[EditorSession]) -> bool:
        return session is not None and session.is_active

    @staticmethod
    def _is_body_position(root: ET._Element, position) -> bool:
        """True when *position* addresses a body text block and a valid offset."""
        if not isinstance(position, Position):
            return False
        block = locate(root, position.path)
        if block is None or not schema.is_textblock(block):
            return False
        if any(schema.is_section(a) or schema.is_content(a) for a in block.iterancestors()):
            return False
        return position.offset <= inline_length(block)

    def _new_id(self, root: ET._Element) -> str:
        existing = [schema.footnote_id(el) for el in schema.iter_references(root)]
        existing.extend(schema.footnote_id(el) for el in schema.iter_contents(root))
        return generate_footnote_id(self._id_prefix, existing)

    @staticmethod
    def _stage_content(batch: BatchMutation, root: ET._Element, fid: str, text: str) -> None:
        """Stage the content node, creating divider and section when absent."""
        content = schema.make_content(fid, text)
        section = schema.find_section(root)
        if section is not None:
            batch.insert_node(path_of(section, root), content)
            return
        batch.insert_node((), schema.make_divider())
        batch.insert_node((), schema.make_section(content))
