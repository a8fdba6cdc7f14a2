"""Shared fixtures for the footnote engine tests.

Every test runs against an empty user configuration directory so that a
developer's ``~/.draftcrane`` never leaks into results. Markup builders
produce the serialized footnote contract as plain strings.
"""

import logging
import logging.handlers

import pytest
import lxml.html

from draftcrane_footnotes.config import ConfigManager
from draftcrane_footnotes.core import schema
from draftcrane_footnotes.core.services import EditorSession, FootnoteService


@pytest.fixture(autouse=True)
def config_dir(tmp_path, monkeypatch):
    path = tmp_path / "config"
    path.mkdir()
    monkeypatch.setenv("DRAFTCRANE_CONFIG_DIR", str(path))
    ConfigManager.reset()
    yield path
    ConfigManager.reset()


@pytest.fixture
def restore_logging():
    """Undo global logging changes made by setup_logging()."""
    root = logging.getLogger()
    saved_level = root.level
    yield
    # pytest's own capture handlers are subclasses and stay in place
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.handlers.RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)
    for name in list(logging.Logger.manager.loggerDict):
        if name.startswith("draftcrane_footnotes"):
            package_logger = logging.getLogger(name)
            package_logger.setLevel(logging.NOTSET)
            for handler in package_logger.handlers[:]:
                package_logger.removeHandler(handler)
                handler.close()


def _ref(fid, label="1"):
    return (
        f'<sup class="footnote-ref" data-footnote-id="{fid}" '
        f'data-footnote-label="{label}">[{label}]</sup>'
    )


def _content(fid, text, label="1"):
    return (
        f'<div class="footnote-content" data-footnote-id="{fid}" data-footnote-label="{label}">'
        f'<span class="footnote-label">[{label}]</span>'
        f'<div class="footnote-body">{text}</div></div>'
    )


def _chapter(*ids):
    """One paragraph per id, then the divider and a section holding every content."""
    body = "".join(f"<p>Para {fid}{_ref(fid, str(n))}</p>" for n, fid in enumerate(ids, 1))
    notes = "".join(_content(fid, f"Note {fid}", str(n)) for n, fid in enumerate(ids, 1))
    return f'{body}<hr><div class="footnotes">{notes}</div>'


@pytest.fixture
def ref():
    return _ref


@pytest.fixture
def content():
    return _content


@pytest.fixture
def chapter():
    return _chapter


@pytest.fixture
def parse():
    """Parse a serialized chapter back into a container ``<div>``."""
    def _parse(html):
        return lxml.html.fragment_fromstring(html, create_parent="div")
    return _parse


@pytest.fixture
def ref_labels():
    """[(id, label), ...] of the references in document order."""
    def _labels(root):
        return [(schema.footnote_id(r), schema.footnote_label(r)) for r in schema.iter_references(root)]
    return _labels


@pytest.fixture
def content_labels():
    def _labels(root):
        return [(schema.footnote_id(c), schema.footnote_label(c)) for c in schema.iter_contents(root)]
    return _labels


@pytest.fixture
def service():
    return FootnoteService()


@pytest.fixture
def make_session():
    def _make(html="", **kwargs):
        return EditorSession(html, **kwargs)
    return _make
