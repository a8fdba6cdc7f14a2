import pytest
from lxml import etree as ET

from draftcrane_footnotes.core import schema
from draftcrane_footnotes.core.exceptions import MutationError, PositionError
from draftcrane_footnotes.core.mutations import (
    BatchMutation,
    DeleteNode,
    InsertNode,
    Position,
    SetFootnoteLabel,
)


@pytest.fixture
def root():
    return ET.fromstring("<div><p>zero</p><p>one</p><p>two</p></div>")


def _texts(root):
    return [child.text for child in root]


class TestValueObjects:
    def test_negative_offset_rejected(self):
        with pytest.raises(MutationError):
            Position((0,), -1)

    def test_position_path_is_tuple(self):
        assert Position([1, 2], 0).path == (1, 2)

    def test_mutation_error_is_value_error(self):
        with pytest.raises(ValueError):
            DeleteNode(())

    def test_unknown_label_kind(self):
        with pytest.raises(MutationError):
            SetFootnoteLabel("section", "fn-1", "1")

    def test_insert_node_requires_element(self):
        with pytest.raises(MutationError):
            InsertNode((), None)

    def test_builders_chain_and_summarise(self):
        batch = (
            BatchMutation(origin="test")
            .insert_node((), schema.make_paragraph("x"))
            .delete_node((0,))
            .delete_node((1,))
            .set_label(schema.REFERENCE, "fn-1", "1")
        )
        assert len(batch) == 4
        assert not batch.is_empty()
        assert batch.summary() == {"InsertNode": 1, "DeleteNode": 2, "SetFootnoteLabel": 1}
        assert BatchMutation().is_empty()


class TestApply:
    def test_targets_resolve_against_pre_batch_tree(self, root):
        BatchMutation().delete_node((0,)).delete_node((1,)).apply(root)
        assert _texts(root) == ["two"]

    def test_insert_node_index_and_append(self, root):
        batch = BatchMutation()
        batch.insert_node((), schema.make_paragraph("first"), 0)
        batch.insert_node((), schema.make_paragraph("last"))
        batch.apply(root)
        assert _texts(root) == ["first", "zero", "one", "two", "last"]

    def test_inserted_element_is_a_copy(self, root):
        para = schema.make_paragraph("again")
        batch = BatchMutation().insert_node((), para)
        batch.apply(root)
        batch.apply(root)
        assert _texts(root)[-2:] == ["again", "again"]
        assert para.getparent() is None

    def test_insert_inline(self, root):
        BatchMutation().insert_inline(Position((1,), 2), schema.make_reference("fn-1")).apply(root)
        p = root[1]
        assert p.text == "on"
        assert schema.is_reference(p[0])
        assert p[0].tail == "e"

    def test_delete_keeps_tail_text(self):
        root = ET.fromstring("<div><p>a<sup data-footnote-id='x'>[1]</sup>b</p></div>")
        BatchMutation().delete_node((0, 0)).apply(root)
        assert ET.tostring(root[0], encoding="unicode") == "<p>ab</p>"

    def test_delete_inside_deleted_ancestor(self):
        root = ET.fromstring("<div><blockquote><p>a</p></blockquote><p>b</p></div>")
        BatchMutation().delete_node((0,)).delete_node((0, 0)).apply(root)
        assert [child.tag for child in root] == ["p"]
        assert root[0].text == "b"

    def test_set_label_updates_every_match(self):
        root = ET.Element("div")
        p = ET.SubElement(root, "p")
        p.append(schema.make_reference("fn-1"))
        root.append(schema.make_section(schema.make_content("fn-1", "Note")))
        BatchMutation().set_label(schema.REFERENCE, "fn-1", "3").set_label(schema.CONTENT, "fn-1", "3").apply(root)
        ref = next(schema.iter_references(root))
        content = next(schema.iter_contents(root))
        assert (schema.footnote_label(ref), ref.text) == ("3", "[3]")
        assert schema.footnote_label(content) == "3"
        assert content[0].text == "[3]"

    def test_set_label_without_match_is_noop(self, root):
        before = ET.tostring(root)
        BatchMutation().set_label(schema.CONTENT, "missing", "1").apply(root)
        assert ET.tostring(root) == before

    @pytest.mark.parametrize(
        "batch",
        [
            BatchMutation().delete_node((7,)),
            BatchMutation().insert_node((0, 4), ET.Element("b")),
            BatchMutation().insert_inline(Position((0,), 99), ET.Element("b")),
            BatchMutation().insert_inline(Position((5,), 0), ET.Element("b")),
        ],
    )
    def test_unresolvable_target_leaves_tree_untouched(self, root, batch):
        batch.operations.insert(0, InsertNode((), schema.make_paragraph("new"), 0))
        before = ET.tostring(root)
        with pytest.raises(PositionError):
            batch.apply(root)
        assert ET.tostring(root) == before
