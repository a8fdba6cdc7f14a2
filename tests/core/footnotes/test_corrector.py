import logging

from lxml import etree as ET

from draftcrane_footnotes.core import schema
from draftcrane_footnotes.core.footnotes import compute_correction, normalize, on_committed
from draftcrane_footnotes.core.footnotes.corrector import CORRECTOR_ORIGIN


def _assert_consistent(root):
    ref_ids = [schema.footnote_id(r) for r in schema.iter_references(root)]
    content_ids = [schema.footnote_id(c) for c in schema.iter_contents(root)]
    assert set(ref_ids) == set(content_ids)
    labels = [schema.footnote_label(r) for r in schema.iter_references(root)]
    assert labels == [str(n) for n in range(1, len(labels) + 1)]


def test_consistent_tree_needs_no_correction(parse, chapter):
    assert compute_correction(parse(chapter("a", "b", "c"))) is None


def test_relabels_in_reference_order(parse, ref, content, ref_labels, content_labels):
    root = parse(
        f"<p>x{ref('b', '7')}</p><p>y{ref('a', '3')}</p>"
        f'<hr><div class="footnotes">{content("a", "A", "3")}{content("b", "B", "7")}</div>'
    )
    batch = compute_correction(root)
    assert batch.origin == CORRECTOR_ORIGIN
    batch.apply(root)
    assert ref_labels(root) == [("b", "1"), ("a", "2")]
    assert sorted(content_labels(root)) == [("a", "2"), ("b", "1")]
    assert next(schema.iter_references(root)).text == "[1]"


def test_stale_display_text_is_rewritten(parse, content):
    root = parse(
        '<p><sup class="footnote-ref" data-footnote-id="a" data-footnote-label="1">[9]</sup></p>'
        f'<hr><div class="footnotes">{content("a", "A")}</div>'
    )
    assert normalize(root)
    assert next(schema.iter_references(root)).text == "[1]"


def test_orphans_are_deleted_and_text_kept(parse, ref, content):
    root = parse(
        f"<p>keep{ref('a', '2')} this</p><p>drop{ref('gone', '1')} me</p>"
        f'<hr><div class="footnotes">{content("a", "A", "2")}{content("stray", "S", "3")}</div>'
    )
    assert normalize(root)
    _assert_consistent(root)
    assert root[1].text == "drop me"
    assert [schema.footnote_id(c) for c in schema.iter_contents(root)] == ["a"]


def test_last_content_removes_section_and_divider(parse, ref, content):
    root = parse(f'<p>body{ref("a")}</p><hr><div class="footnotes">{content("b", "B")}</div>')
    assert normalize(root)
    assert [child.tag for child in root] == ["p"]
    assert root[0].text == "body"


def test_unrelated_divider_is_kept(parse, content):
    root = parse(f'<p>a</p><hr><p>b</p><div class="footnotes">{content("x", "X")}</div>')
    assert normalize(root)
    assert [child.tag for child in root] == ["p", "hr", "p"]


def test_correction_reaches_fixed_point_in_one_pass(parse, ref, content):
    nested = "see " + ref("a")
    root = parse(
        f"<p>{ref('a', '5')}{ref('a', '5')}{ref('', '2')}</p>"
        f"<ul><li>{ref('b', '1')}</li></ul>"
        f'<hr><div class="footnotes">{content("b", nested, "4")}'
        f'{content("a", "A", "9")}{content("a", "dup", "9")}{content("c", "C")}</div>'
    )
    assert normalize(root)
    _assert_consistent(root)
    snapshot = ET.tostring(root)
    assert compute_correction(root) is None
    assert not normalize(root)
    assert ET.tostring(root) == snapshot


def test_on_committed_logs_removed_ids(parse, chapter, caplog):
    old = parse(chapter("a", "b"))
    new = parse(chapter("a", "b"))
    ref_b = list(schema.iter_references(new))[1]
    ref_b.getparent().remove(ref_b)
    with caplog.at_level(logging.DEBUG, logger="draftcrane_footnotes.core.footnotes.corrector"):
        batch = on_committed(old, new)
    assert batch is not None
    assert "Commit removed refs=['b']" in caplog.text
    assert "Footnotes corrected" in caplog.text


def test_on_committed_accepts_missing_old_tree(parse, chapter):
    assert on_committed(None, parse(chapter("a"))) is None


def test_every_empty_section_is_removed(parse):
    root = parse(
        '<p>a</p><hr><div class="footnotes"></div>'
        '<p>b</p><hr><div class="footnotes"></div>'
    )
    assert normalize(root)
    assert [child.tag for child in root] == ["p", "p"]
    assert schema.find_section(root) is None
    assert compute_correction(root) is None


def test_empty_section_beside_surviving_contents(parse, chapter):
    root = parse(chapter("a") + '<hr><div class="footnotes"></div>')
    assert normalize(root)
    assert [child.tag for child in root] == ["p", "hr", "div"]
    assert [schema.footnote_id(c) for c in schema.iter_contents(root)] == ["a"]
    assert compute_correction(root) is None


def test_section_of_orphans_removed_while_other_survives(parse, ref, content):
    root = parse(
        f'<p>x{ref("a")}</p>'
        f'<hr><div class="footnotes">{content("gone", "G")}</div>'
        f'<hr><div class="footnotes">{content("a", "A")}</div>'
    )
    assert normalize(root)
    assert [child.tag for child in root] == ["p", "hr", "div"]
    assert [schema.footnote_id(c) for c in schema.iter_contents(root)] == ["a"]
    assert compute_correction(root) is None
