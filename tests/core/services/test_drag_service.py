import pytest

from formbuilder.core.models import NodeType
from formbuilder.core.models.grammar import ROOT
from formbuilder.core.services.drag_service import DragSession
from formbuilder.core.services.structure_editing_service import StructureEditingService


@pytest.fixture
def drops():
    return []


@pytest.fixture
def session(ids, codes, drops):
    return DragSession(StructureEditingService(), ids, codes, on_drop=drops.append)


def test_drag_start_with_palette_name(session, sample_doc):
    assert session.drag_start(sample_doc, "date-tag") is NodeType.FIELD
    assert session.active is True


def test_drag_start_with_unknown_source_raises(session, sample_doc):
    with pytest.raises(KeyError):
        session.drag_start(sample_doc, "no-such-thing")
    assert session.active is False


def test_drag_over_reports_without_mutation(session, sample_doc, drops):
    session.drag_start(sample_doc, "table-field-tag")

    valid = session.drag_over("t1")
    assert valid.valid is True
    assert valid.target.parent_id == "t1"

    invalid = session.drag_over("p1")
    assert invalid.valid is False
    assert invalid.message

    # Hovering never edits or notifies
    assert drops == []
    assert session.active is True


def test_drag_over_sibling_fallback(session, sample_doc):
    session.drag_start(sample_doc, "information-tag")
    feedback = session.drag_over("f1")
    assert feedback.valid is True
    assert feedback.target.parent_id == "p1"
    assert feedback.target.index == 1
    assert feedback.target.as_sibling is True


def test_drag_existing_node_into_own_subtree_is_invalid(session, sample_doc):
    session.drag_start(sample_doc, "t1")
    assert session.drag_over("c1").valid is False


def test_drag_end_palette_drop_inserts_and_notifies(session, sample_doc, drops):
    session.drag_start(sample_doc, "form-tag")
    result = session.drag_end(ROOT)

    assert result.success is True
    assert len(result.document.roots) == 3
    assert result.document.roots[-1].type is NodeType.PAGE
    assert drops == [result]
    assert session.active is False


def test_drag_end_moves_existing_node(session, sample_doc, drops):
    session.drag_start(sample_doc, "f1")
    result = session.drag_end("p2")

    assert result.success is True
    assert [c.id for c in result.document.find("p2").children] == ["i1", "f1"]
    assert result.document.ids().count("f1") == 1


def test_drag_end_on_invalid_target_fails_quietly(session, sample_doc, drops):
    session.drag_start(sample_doc, "q1")
    result = session.drag_end("c1")

    assert result.success is False
    assert result.document is sample_doc
    assert drops == []
    assert session.active is False


def test_cancel_ends_gesture(session, sample_doc, drops):
    session.drag_start(sample_doc, "form-tag")
    session.cancel()
    assert session.active is False
    assert session.drag_end(ROOT).success is False
    assert drops == []
