import logging

import pytest

from formbuilder.core.exceptions import PlacementError
from formbuilder.core.models import Condition, NodeAttributes, NodeType, Visibility
from formbuilder.core.models.grammar import ROOT
from formbuilder.core.services.structure_editing_service import (
    OperationResult,
    StructureEditingService,
)

from builders import column, field, make_node, page, question, questionnaire


@pytest.fixture
def service():
    return StructureEditingService()


def _child_ids(document, parent_id):
    node = document.find(parent_id)
    return [c.id for c in node.children]


def test_insert_child_appends_and_returns_new_document(service, sample_doc):
    new_field = field("f9", "Notes", "notes")
    result = service.insert_child(sample_doc, "p2", new_field)

    assert isinstance(result, OperationResult)
    assert result.success is True
    assert _child_ids(result.document, "p2") == ["i1", "f9"]
    # Input is untouched
    assert _child_ids(sample_doc, "p2") == ["i1"]


def test_insert_child_at_index(service, sample_doc):
    result = service.insert_child(sample_doc, "p1", field("f9"), index=0)
    assert _child_ids(result.document, "p1")[0] == "f9"


def test_insert_question_under_table_fails_without_change(service, sample_doc):
    result = service.insert_child(sample_doc, "t1", question("q9"))

    assert result.success is False
    assert isinstance(result.error, PlacementError)
    assert result.document is sample_doc
    assert "table-field" in result.message


def test_insert_rejects_wrong_family_at_root(service, sample_doc):
    result = service.insert_child(sample_doc, ROOT, make_node("x", NodeType.CF_TEXTBOX))
    assert result.success is False
    assert "cannot be used in questionnaire mode" in result.message


def test_insert_rejects_existing_id(service, sample_doc):
    result = service.insert_child(sample_doc, "p2", field("f1"))
    assert result.success is False
    assert "already part of the document" in result.message


def test_move_node_between_pages_keeps_identity(service, sample_doc):
    moved = sample_doc.find("f1")
    result = service.move_node(sample_doc, "f1", "p2", 0)

    assert result.success is True
    assert _child_ids(result.document, "p2") == ["f1", "i1"]
    assert "f1" not in _child_ids(result.document, "p1")
    # Never duplicated
    assert result.document.ids().count("f1") == 1
    assert result.document.find("f1") is moved


def test_move_within_same_parent_uses_final_position(service, sample_doc):
    result = service.move_node(sample_doc, "q1", "p1", 2)
    assert _child_ids(result.document, "p1") == ["f1", "t1", "q1"]


def test_move_to_current_position_is_a_noop(service, sample_doc):
    result = service.move_node(sample_doc, "q1", "p1", 0)
    assert result.success is False
    assert result.document is sample_doc
    assert result.error is None


def test_move_into_descendant_is_rejected(service):
    doc = questionnaire(page("p1", "P1", [field("f1")]))
    result = service.move_node(doc, "p1", "f1")
    assert result.success is False
    assert "itself" in result.message


def test_move_column_out_of_table_is_rejected(service, sample_doc):
    result = service.move_node(sample_doc, "c1", "p1")
    assert result.success is False
    assert result.document is sample_doc


def test_remove_node_removes_descendants(service, sample_doc):
    result = service.remove_node(sample_doc, "t1")
    assert result.success is True
    assert result.details["removed"] == 3
    assert not result.document.contains("c1")


def test_remove_unknown_node_fails(service, sample_doc):
    result = service.remove_node(sample_doc, "nope")
    assert result.success is False
    assert result.document is sample_doc


def test_remove_nodes_skips_unknown_ids(service, sample_doc):
    result = service.remove_nodes(sample_doc, ["q1", "ghost", "i1"])
    assert result.success is True
    assert result.details["deleted"] == 2
    assert result.details["skipped"] == 1


def test_reorder_siblings_at_root(service, sample_doc):
    result = service.reorder_siblings(sample_doc, ROOT, 0, 1)
    assert [r.id for r in result.document.roots] == ["p2", "p1"]


def test_reorder_out_of_range_fails(service, sample_doc):
    result = service.reorder_siblings(sample_doc, "p1", 7, 0)
    assert result.success is False


def test_move_step_stops_at_boundary(service, sample_doc):
    up = service.move_step(sample_doc, "q1", -1)
    assert up.success is False
    assert "boundary" in up.message

    down = service.move_step(sample_doc, "q1", 1)
    assert down.success is True
    assert _child_ids(down.document, "p1") == ["f1", "q1", "t1"]


def test_update_node_replaces_attributes_and_visibility(service, sample_doc):
    attrs = NodeAttributes(label="Age", record_key="age", data_type="date")
    visibility = Visibility(conditions=(Condition("smoker", "No"),))
    result = service.update_node(sample_doc, "f1", attrs, visibility)

    node = result.document.find("f1")
    assert node.attributes == attrs
    assert node.visibility == visibility
    # Siblings are shared with the previous document
    assert result.document.find("q1") is sample_doc.find("q1")


def test_update_node_stores_default_datatype_as_empty(service, sample_doc):
    result = service.update_node(sample_doc, "q1", NodeAttributes(label="Smoker?", data_type="list-box"))
    assert result.success is True
    assert result.document.find("q1").attributes.data_type == ""


def test_update_node_clears_visibility_with_none(service, sample_doc):
    result = service.update_node(sample_doc, "f1", visibility=None)
    assert result.document.find("f1").visibility is None
    assert result.document.find("f1").attributes == sample_doc.find("f1").attributes


def test_update_node_rejects_bad_visibility(service, sample_doc):
    result = service.update_node(sample_doc, "f1", visibility="Any")
    assert result.success is False


def test_drop_new_component_on_leaf_goes_before_it(service, sample_doc):
    result = service.drop(sample_doc, "f1", new_child=field("f9"))
    assert result.success is True
    assert result.details["as_sibling"] is True
    assert _child_ids(result.document, "p1") == ["q1", "f9", "f1", "t1"]


def test_drop_on_container_appends(service, sample_doc):
    result = service.drop(sample_doc, "t1", new_child=column("c9"))
    assert result.details["as_sibling"] is False
    assert _child_ids(result.document, "t1") == ["c1", "c2", "c9"]


def test_drop_existing_sibling_before_later_sibling(service, sample_doc):
    result = service.drop(sample_doc, "t1", node_id="q1")
    assert result.success is True
    assert _child_ids(result.document, "p1") == ["f1", "q1", "t1"]


def test_drop_onto_itself_is_rejected(service, sample_doc):
    result = service.drop(sample_doc, "q1", node_id="q1")
    assert result.success is False
    assert result.document is sample_doc


def test_drop_requires_exactly_one_source(service, sample_doc):
    assert service.drop(sample_doc, "p1").success is False
    assert service.drop(sample_doc, "p1", new_child=field("f9"), node_id="q1").success is False


def test_failed_edit_logs_warning(service, sample_doc, caplog):
    with caplog.at_level(logging.INFO, logger="formbuilder.core.services.structure_editing_service"):
        service.insert_child(sample_doc, "t1", question("q9"))
    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("Edit: insert_child") for m in messages)
    assert any(m.startswith("Edit FAIL: insert_child") for m in messages)
