# -*- coding: utf-8 -*-
"""Command-line access to the footnote engine.

Reads a chapter's HTML, loads it through the markup contract (which
renumbers footnotes and drops orphans) and prints the result to stdout.
Nothing is written back to disk.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from draftcrane_footnotes.core.services import EditorSession, FootnoteService
from draftcrane_footnotes.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="draftcrane-footnotes", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("normalize", "print the normalised HTML"),
        ("list", "print one line per footnote: [N] text"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("input", help="HTML file, or - for stdin")
    return parser


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main(argv: Optional[List[str]] = None) -> int:
    """Configure logging, load the document, and print the requested view."""
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        html = _read_input(args.input)
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.input, exc)
        print(f"error: cannot read {args.input}: {exc}", file=sys.stderr)
        return 1

    session = EditorSession(html)
    if args.command == "normalize":
        print(session.get_html())
    else:
        for entry in FootnoteService().list_footnotes(session):
            print(f"[{entry.label}] {entry.text}")
    return 0
