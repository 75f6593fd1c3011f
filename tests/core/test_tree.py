import pytest

from formbuilder.core import tree
from formbuilder.core.exceptions import PlacementError
from formbuilder.core.ids import SequentialIdGenerator
from formbuilder.core.models import NodeType
from formbuilder.core.models.grammar import ROOT

from builders import clinical, column, field, make_node, page, question, questionnaire


def test_insert_rebuilds_only_the_ancestor_chain(sample_doc):
    new_doc = tree.insert_child(sample_doc, "t1", column("c3", "Dose"))

    assert new_doc is not sample_doc
    assert new_doc.roots[0] is not sample_doc.roots[0]
    # Untouched subtrees are shared
    assert new_doc.roots[1] is sample_doc.roots[1]
    assert new_doc.find("q1") is sample_doc.find("q1")
    assert [c.id for c in new_doc.find("t1").children] == ["c1", "c2", "c3"]


def test_insert_index_is_clamped(sample_doc):
    new_doc = tree.insert_child(sample_doc, ROOT, page("p3"), index=99)
    assert new_doc.roots[-1].id == "p3"
    new_doc = tree.insert_child(sample_doc, ROOT, page("p3"), index=-5)
    assert new_doc.roots[0].id == "p3"


def test_insert_under_unknown_parent_raises(sample_doc):
    with pytest.raises(PlacementError) as excinfo:
        tree.insert_child(sample_doc, "ghost", field("f9"))
    assert excinfo.value.parent_id == "ghost"


def test_insert_question_under_table_raises(sample_doc):
    with pytest.raises(PlacementError):
        tree.insert_child(sample_doc, "t1", question("q9"))


def test_insert_subtree_with_duplicate_ids_raises(sample_doc):
    with pytest.raises(PlacementError):
        tree.insert_child(sample_doc, ROOT, page("p9", children=[field("x"), field("x")]))


def test_remove_node_takes_descendants(sample_doc):
    new_doc = tree.remove_node(sample_doc, "p1")
    assert new_doc.ids() == ("p2", "i1")


def test_move_node_never_duplicates(sample_doc):
    new_doc = tree.move_node(sample_doc, "t1", "p2", 0)
    assert new_doc.ids().count("t1") == 1
    assert new_doc.ids().count("c1") == 1
    assert new_doc.parent_of("t1").id == "p2"


def test_move_into_own_descendant_raises(sample_doc):
    with pytest.raises(PlacementError):
        tree.move_node(sample_doc, "t1", "c1")
    with pytest.raises(PlacementError):
        tree.move_node(sample_doc, "t1", "t1")


def test_move_clinical_group_into_panel():
    doc = clinical(
        make_node("g1", NodeType.CF_GROUP, [make_node("tb1", NodeType.CF_TEXTBOX)]),
        make_node("pn1", NodeType.CF_PANEL),
    )
    new_doc = tree.move_node(doc, "g1", "pn1")
    assert [r.id for r in new_doc.roots] == ["pn1"]
    assert new_doc.path_to("tb1") == ("pn1", "g1", "tb1")


def test_reorder_same_index_returns_input(sample_doc):
    assert tree.reorder_siblings(sample_doc, "p1", 1, 1) is sample_doc


def test_reorder_clamps_destination(sample_doc):
    new_doc = tree.reorder_siblings(sample_doc, "p1", 0, 10)
    assert [c.id for c in new_doc.find("p1").children] == ["f1", "t1", "q1"]


def test_clone_subtree_gives_fresh_ids(sample_doc):
    original = sample_doc.find("t1")
    clone = tree.clone_subtree(original, SequentialIdGenerator())
    assert clone == original
    assert set(clone.ids()).isdisjoint(original.ids())
    assert clone.id.startswith("table-")


def test_resolve_drop_container_and_sibling(sample_doc):
    assert tree.resolve_drop(sample_doc, NodeType.FIELD, "p2") == tree.DropTarget("p2", 1)
    assert tree.resolve_drop(sample_doc, NodeType.FIELD, "t1") == tree.DropTarget("p1", 2, True)
    assert tree.resolve_drop(sample_doc, NodeType.PAGE, "p2") == tree.DropTarget(ROOT, 1, True)
    assert tree.resolve_drop(sample_doc, NodeType.PAGE, ROOT) == tree.DropTarget(ROOT, 2)


def test_resolve_drop_rejected(sample_doc):
    with pytest.raises(PlacementError):
        tree.resolve_drop(sample_doc, NodeType.QUESTION, "c1")
    with pytest.raises(PlacementError):
        tree.resolve_drop(sample_doc, NodeType.FIELD, ROOT)


def test_replace_node(sample_doc):
    new_doc = tree.replace_node(sample_doc, "i1", lambda n: n.with_children(()))
    assert new_doc.find("i1") == sample_doc.find("i1")
    with pytest.raises(PlacementError):
        tree.replace_node(sample_doc, "ghost", lambda n: n)
