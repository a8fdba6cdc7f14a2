import pytest
from lxml import etree as ET

from draftcrane_footnotes.core.models import DocumentContext
from draftcrane_footnotes.core.mutations import Position
from draftcrane_footnotes.core.services.undo_service import UndoService, _Snapshot


def _context(markup):
    return DocumentContext(root=ET.fromstring(markup))


def _view(context):
    html = None if context.root is None else ET.tostring(context.root, encoding="unicode")
    return html, context.selection, dict(context.metadata)


@pytest.fixture
def context():
    return _context("<div><p>v1</p></div>")


@pytest.fixture
def service():
    return UndoService(max_history=3)


def test_push_snapshot_clears_redo_and_enforces_max_history(context, service):
    service.push_snapshot(context)  # 1
    for version in ("v2", "v3", "v4"):
        context.root[0].text = version
        service.push_snapshot(context)  # 4th push trims to 3

    assert service.can_undo() is True
    assert service.can_redo() is False

    # Two undos reach the oldest kept snapshot; the third has nothing below it.
    assert service.undo(context) is True
    assert service.undo(context) is True
    assert context.root[0].text == "v2"
    assert service.undo(context) is False


def test_undo_redo_roundtrip_restores_state(context, service):
    service.push_snapshot(context)
    baseline = _view(context)

    context.root.append(ET.Element("hr"))
    context.root[0].text = "changed"
    context.selection = Position((0,), 3)
    context.metadata["title"] = "Chapter 1"
    service.push_snapshot(context)
    mutated = _view(context)

    assert service.undo(context) is True
    assert _view(context) == baseline

    assert service.redo(context) is True
    assert _view(context) == mutated


def test_can_undo_can_redo_transitions(context, service):
    assert service.can_undo() is False
    assert service.can_redo() is False

    # A lone baseline cannot be undone.
    service.push_snapshot(context)
    assert service.can_undo() is False

    context.root[0].text = "v2"
    service.push_snapshot(context)
    assert service.can_undo() is True
    assert service.can_redo() is False

    assert service.undo(context) is True
    assert service.can_undo() is False
    assert service.can_redo() is True

    assert service.redo(context) is True
    assert service.can_undo() is True
    assert service.can_redo() is False

    # A new snapshot after an undo drops the redo branch.
    service.undo(context)
    context.root[0].text = "branch"
    service.push_snapshot(context)
    assert service.can_redo() is False


def test_undo_on_empty_stack_returns_false(context, service):
    assert service.undo(context) is False


def test_redo_on_empty_stack_returns_false(context, service):
    assert service.redo(context) is False


def test_clear(context, service):
    service.push_snapshot(context)
    service.push_snapshot(context)
    service.clear()
    assert service.can_undo() is False
    assert service.can_redo() is False


def test_missing_root_is_restored_as_none(service):
    context = DocumentContext()
    service.push_snapshot(context)
    context.root = ET.fromstring("<div><p>new</p></div>")
    service.push_snapshot(context)
    assert service.undo(context) is True
    assert context.root is None


def test_corrupted_snapshot_is_skipped_gracefully(context, service):
    service.push_snapshot(context)
    service._undo_stack.append(_Snapshot(b"leading text<p>x</p>", None, {}))  # type: ignore[attr-defined]
    context.root[0].text = "current"
    service.push_snapshot(context)
    before = _view(context)

    # Undo should return False and not raise; context remains unchanged
    assert service.undo(context) is False
    assert _view(context) == before
    assert service.can_undo() is True


def test_max_history_is_at_least_one(context):
    service = UndoService(max_history=0)
    service.push_snapshot(context)
    service.push_snapshot(context)
    assert service.can_undo() is False
