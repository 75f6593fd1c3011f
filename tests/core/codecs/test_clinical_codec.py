import logging

from formbuilder.core import codecs
from formbuilder.core.models.vocabulary import action_display, tag_code, tag_display
from formbuilder.core.ids import SequentialIdGenerator
from formbuilder.core.models import Condition, Dialect, NodeType, Option, Visibility

from builders import clinical, make_node

SAMPLE = """<?xml version="1.0" encoding="utf-8"?>
<form tag="pmh">
  <group label="History" tag="pmh">
    <textbox code="1" key="complaint" label="Complaint" required="true"/>
    <list code="2" label="Severity" width="120">
      <item code="3">Mild</item>
      <item code="4">Severe</item>
    </list>
    <check code="5" label="Smoker"/>
  </group>
  <panel class="ClinicalFormColumn" label="Right" width="300">
    <snomedsubtextbox code="6" label="Finding" snomedsub="404684003"/>
    <info>Read carefully</info>
  </panel>
  <table code="7" key="drugs" label="Drugs" global="true">
    <textarea code="8" label="Dose"/>
    <date code="9" label="Started"/>
  </table>
  <button action="Discharge" label="Done" parameters="x=1"/>
  <form_button text="Custom action"/>
  <metafield label="NHS number" field="nhs"/>
  <metafields label="Patient"/>
  <prescriptions/>
  <services/>
</form>
"""


def _decode(text):
    return codecs.decode(text, SequentialIdGenerator())


def test_decode_sample():
    decoded = _decode(SAMPLE)
    doc = decoded.document
    assert decoded.dialect is Dialect.CLINICAL
    assert decoded.unsupported == ()
    assert doc.tag == "pmh"
    assert [r.type for r in doc.roots] == [
        NodeType.CF_GROUP,
        NodeType.CF_PANEL,
        NodeType.CF_TABLE,
        NodeType.CF_BUTTON,
        NodeType.CF_BUTTON,
        NodeType.CF_PATIENT_DATA,
        NodeType.CF_PATIENT_DATA_ALL,
        NodeType.CF_PRESCRIPTION,
        NodeType.CF_PROVIDED_SERVICES,
    ]

    group, panel, table, button, form_button = doc.roots[:5]
    textbox, listbox, checkbox = group.children
    assert textbox.attributes.required is True
    assert textbox.attributes.record_key == "complaint"
    assert listbox.attributes.options == (Option("Mild", "3"), Option("Severe", "4"))
    assert listbox.attributes.width == "120"
    assert checkbox.type is NodeType.CF_CHECKBOX  # <check> alias

    snomed, info = panel.children
    assert snomed.attributes.subset == "404684003"
    assert info.label == "Read carefully"

    assert table.attributes.is_global is True
    assert [c.attributes.data_type for c in table.children] == ["textbox", "date"]
    assert all(c.type is NodeType.CF_TABLE_FIELD for c in table.children)

    assert button.attributes.action == "Discharge"
    assert form_button.attributes.action == "Custom"
    assert form_button.label == "Custom action"


def test_encode_writes_codes_and_skips_empty_attributes(clinical_doc):
    xml = codecs.encode(clinical_doc)
    assert xml.startswith('<?xml version="1.0" encoding="utf-8"?>\n<form tag="cons">')
    assert '<group label="History" tag="pmh">' in xml
    assert '<textbox code="1" key="complaint" label="Complaint"/>' in xml
    assert '<item code="3">Mild</item>' in xml
    assert '<table code="5" label="Drugs">' in xml
    assert '<textbox code="6" label="Dose"/>' in xml


def test_round_trip(clinical_doc):
    assert _decode(codecs.encode(clinical_doc)).document == clinical_doc


def test_round_trip_of_decoded_sample():
    first = _decode(SAMPLE).document
    second = _decode(codecs.encode(first)).document
    assert second == first


def test_display_names_are_stored_and_written_as_codes():
    doc = clinical(
        make_node("g", NodeType.CF_GROUP, label="G", tag="Past Medical History"),
        make_node("b", NodeType.CF_BUTTON, label="Go", action="Follow Up"),
        tag="Consultation",
    )
    group, button = doc.roots
    assert doc.tag == "cons"
    assert group.attributes.tag == "pmh"
    assert button.attributes.action == "FollowUp"

    xml = codecs.encode(doc)
    assert '<form tag="cons">' in xml
    assert 'tag="pmh"' in xml
    assert 'action="FollowUp"' in xml
    assert _decode(xml).document == doc


def test_button_always_writes_required():
    doc = clinical(
        make_node("b1", NodeType.CF_BUTTON, label="Go", action="Discharge"),
        make_node("b2", NodeType.CF_BUTTON, label="Stop", action="CloseCase", required=True),
    )
    xml = codecs.encode(doc)
    assert '<button action="Discharge" required="false" label="Go"/>' in xml
    assert '<button action="CloseCase" required="true" label="Stop"/>' in xml


def test_round_trip_keeps_surrounding_whitespace():
    doc = clinical(
        make_node("i", NodeType.CF_INFO, label="Line one\n"),
        make_node("g", NodeType.CF_GROUP, [
            make_node("tb", NodeType.CF_TEXTBOX, label=" Complaint ", record_key="complaint ", code="1"),
            make_node(
                "l", NodeType.CF_LISTBOX, label="Severity", code="2",
                options=(Option(" Mild", "3"), Option("Severe \t", "4")),
            ),
        ], label="  History", tag=" custom "),
        make_node("b", NodeType.CF_BUTTON, label="Done ", parameters=" x=1"),
        tag="cons",
    )
    assert _decode(codecs.encode(doc)).document == doc


def test_tag_helpers():
    assert tag_display("presalt") == "Prescription (Alternative)"
    assert tag_code("Prescription (Alternative)") == "presalt"
    assert tag_display("custom") == "custom"
    assert action_display("RunTriggersThenDischarge") == "Run Triggers Then Discharge"


def test_visibility_is_dropped_with_warning(caplog):
    node = make_node(
        "tb", NodeType.CF_TEXTBOX, label="T",
        visibility=Visibility(conditions=(Condition("k", "v"),)),
    )
    with caplog.at_level(logging.WARNING):
        xml = codecs.encode(clinical(node))
    assert "Visibility" not in xml
    assert any("no visibility" in r.getMessage() for r in caplog.records)


def test_untyped_table_field_is_a_textbox():
    doc = clinical(make_node(
        "t", NodeType.CF_TABLE, [make_node("tf", NodeType.CF_TABLE_FIELD, label="X")], label="T",
    ))
    assert '<textbox label="X"/>' in codecs.encode(doc)


def test_unknown_elements_reported():
    xml = SAMPLE.replace("<services/>", '<chart id="1"/>').replace(
        '<metafields label="Patient"/>', '<metafields label="Patient" colour="red"/>'
    )
    decoded = _decode(xml)
    assert NodeType.CF_PROVIDED_SERVICES not in [r.type for r in decoded.document.roots]
    assert [(u.element, u.attribute) for u in decoded.unsupported] == [
        ("metafields", "colour"),
        ("chart", None),
    ]
