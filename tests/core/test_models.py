from dataclasses import FrozenInstanceError

import pytest

from formbuilder.core.models import (
    CLINICAL_TYPES,
    QUESTIONNAIRE_TYPES,
    Dialect,
    Document,
    NodeAttributes,
    NodeType,
    normalize_attributes,
)

from builders import clinical, field, make_node, page, questionnaire


def test_node_types_split_by_family():
    assert NodeType.PAGE.dialect is Dialect.QUESTIONNAIRE
    assert NodeType.CF_SNOMED_TEXTBOX.dialect is Dialect.CLINICAL
    assert set(QUESTIONNAIRE_TYPES).isdisjoint(CLINICAL_TYPES)
    assert len(QUESTIONNAIRE_TYPES) + len(CLINICAL_TYPES) == len(NodeType)


def test_nodes_are_immutable():
    node = field("f1", "Age", "age")
    with pytest.raises(FrozenInstanceError):
        node.children = ()
    with pytest.raises(FrozenInstanceError):
        node.attributes.label = "Other"


def test_equality_ignores_ids():
    assert field("a", "Age", "age") == field("b", "Age", "age")
    assert field("a", "Age", "age") != field("a", "Age", "years")


def test_new_document_defaults():
    assert Document.new(Dialect.QUESTIONNAIRE).tag == ""
    clinical = Document.new(Dialect.CLINICAL)
    assert clinical.tag == "cons"
    assert clinical.is_empty()


def test_walk_is_preorder_with_ancestors(sample_doc):
    visited = [(node.id, tuple(a.id for a in ancestors)) for node, ancestors in sample_doc.walk()]
    assert visited[:5] == [
        ("p1", ()),
        ("q1", ("p1",)),
        ("f1", ("p1",)),
        ("t1", ("p1",)),
        ("c1", ("p1", "t1")),
    ]
    assert sample_doc.ids() == ("p1", "q1", "f1", "t1", "c1", "c2", "p2", "i1")


def test_lookup_helpers(sample_doc):
    assert sample_doc.find("c2").attributes.data_type == "date"
    assert sample_doc.find(None) is None
    assert sample_doc.parent_of("c2").id == "t1"
    assert sample_doc.parent_of("p1") is None
    assert sample_doc.path_to("c1") == ("p1", "t1", "c1")
    assert sample_doc.path_to("ghost") is None
    assert sample_doc.contains("i1")


def test_with_roots_returns_new_document():
    doc = questionnaire(page("p1"))
    other = doc.with_roots(doc.roots + (page("p2"),))
    assert len(doc.roots) == 1
    assert len(other.roots) == 2
    assert other.dialect is doc.dialect


def test_attributes_default_empty():
    attrs = NodeAttributes()
    assert attrs.options == ()
    assert attrs.required is False
    assert attrs.data_type == ""


@pytest.mark.parametrize(
    "node_type, given, stored",
    [
        (NodeType.QUESTION, "list-box", ""),
        (NodeType.QUESTION, "Choice", "radio"),
        (NodeType.QUESTION, "multi-select", "checkbox"),
        (NodeType.QUESTION, "slider", ""),
        (NodeType.FIELD, "text", ""),
        (NodeType.FIELD, "textarea", "textarea"),
        (NodeType.TABLE_FIELD, "text", ""),
        (NodeType.CF_TABLE_FIELD, "textarea", "textbox"),
        (NodeType.CF_TABLE_FIELD, "check", "checkbox"),
        (NodeType.CF_TABLE_FIELD, "", "textbox"),
    ],
)
def test_data_type_is_stored_in_one_spelling(node_type, given, stored):
    node = make_node("n", node_type, data_type=given)
    assert node.attributes.data_type == stored


def test_normalize_leaves_free_text_alone():
    attrs = NodeAttributes(label=" Consultation ", tag="Consultation", action="Follow Up")
    assert normalize_attributes(NodeType.PAGE, attrs) is attrs
    clinical_attrs = normalize_attributes(NodeType.CF_BUTTON, attrs)
    assert clinical_attrs.label == " Consultation "
    assert clinical_attrs.tag == "cons"
    assert clinical_attrs.action == "FollowUp"


def test_clinical_document_tag_is_stored_as_code():
    assert clinical(tag="Past Medical History").tag == "pmh"
    assert clinical(tag="custom").tag == "custom"
    assert questionnaire(name="Consultation").name == "Consultation"
