from __future__ import annotations

"""Palette item factory.

Maps the names of palette entries (what a user drags out of the component
sidebar) to freshly built default nodes. Questionnaire entries use the
historical ``*-tag`` names; clinical entries are named after their node type.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from formbuilder.core.ids import CodeSequence, IdGenerator
from formbuilder.core.models import NodeAttributes, Node, NodeType, Option

__all__ = ["PALETTE", "component_type", "create_component", "palette_names"]


@dataclass(frozen=True)
class _Entry:
    type: NodeType
    build: Callable[["_Builder"], Node]


class _Builder:
    def __init__(self, ids: IdGenerator, codes: Optional[CodeSequence]) -> None:
        self.ids = ids
        self.codes = codes if codes is not None else CodeSequence()

    def node(self, node_type: NodeType, children: Tuple[Node, ...] = (), **attrs) -> Node:
        return Node(
            id=self.ids.new_id(node_type.value),
            type=node_type,
            attributes=NodeAttributes(**attrs),
            children=children,
        )

    def coded(self, node_type: NodeType, label: str, **attrs) -> Node:
        return self.node(node_type, label=label, code=self.codes.next_code(), **attrs)

    def choices(self, node_type: NodeType, label: str) -> Node:
        code = self.codes.next_code()
        option = Option("Option 1", self.codes.next_code())
        return self.node(node_type, label=label, code=code, options=(option,))


def _question(label: str, data_type: str) -> Callable[[_Builder], Node]:
    return lambda b: b.node(
        NodeType.QUESTION, label=label, data_type=data_type, options=(Option("Option 1"),)
    )


def _field(label: str, data_type: str) -> Callable[[_Builder], Node]:
    return lambda b: b.node(NodeType.FIELD, label=label, data_type=data_type)


def _coded(node_type: NodeType, label: str) -> Callable[[_Builder], Node]:
    return lambda b: b.coded(node_type, label)


def _questionnaire_table(b: _Builder) -> Node:
    column = b.node(NodeType.TABLE_FIELD, label="Column 1")
    return b.node(NodeType.TABLE, (column,), label="New Table")


def _clinical_table(b: _Builder) -> Node:
    code = b.codes.next_code()
    column = b.coded(NodeType.CF_TABLE_FIELD, "Column 1", data_type="textbox")
    return b.node(NodeType.CF_TABLE, (column,), label="Table", code=code)


PALETTE: Dict[str, _Entry] = {
    # Questionnaire
    "form-tag": _Entry(NodeType.PAGE, lambda b: b.node(NodeType.PAGE, label="Page")),
    "section-tag": _Entry(NodeType.QUESTION, _question("Question", "")),
    "field-tag": _Entry(NodeType.FIELD, _field("Field", "")),
    "information-tag": _Entry(
        NodeType.INFORMATION, lambda b: b.node(NodeType.INFORMATION, label="New Information")
    ),
    "table-tag": _Entry(NodeType.TABLE, _questionnaire_table),
    "table-field-tag": _Entry(
        NodeType.TABLE_FIELD,
        lambda b: b.node(NodeType.TABLE_FIELD, label="New Table Field"),
    ),
    "list-box-tag": _Entry(NodeType.QUESTION, _question("List Box", "")),
    "multi-select-tag": _Entry(NodeType.QUESTION, _question("Multi Select", "checkbox")),
    "radio-buttons-tag": _Entry(NodeType.QUESTION, _question("Radio Buttons", "radio")),
    "text-box-tag": _Entry(NodeType.FIELD, _field("Text Box", "")),
    "notes-tag": _Entry(NodeType.FIELD, _field("Notes", "textarea")),
    "date-tag": _Entry(NodeType.FIELD, _field("Date", "date")),
    # Clinical form
    "cf-group": _Entry(NodeType.CF_GROUP, lambda b: b.node(NodeType.CF_GROUP, label="Group")),
    "cf-panel": _Entry(NodeType.CF_PANEL, lambda b: b.node(NodeType.CF_PANEL, label="Panel")),
    "cf-table": _Entry(NodeType.CF_TABLE, _clinical_table),
    "cf-table-field": _Entry(
        NodeType.CF_TABLE_FIELD,
        lambda b: b.coded(NodeType.CF_TABLE_FIELD, "Table Field", data_type="textbox"),
    ),
    "cf-textbox": _Entry(NodeType.CF_TEXTBOX, _coded(NodeType.CF_TEXTBOX, "Text Box")),
    "cf-notes": _Entry(NodeType.CF_NOTES, _coded(NodeType.CF_NOTES, "Notes")),
    "cf-notes-history": _Entry(
        NodeType.CF_NOTES_HISTORY, _coded(NodeType.CF_NOTES_HISTORY, "Notes with History")
    ),
    "cf-date": _Entry(NodeType.CF_DATE, _coded(NodeType.CF_DATE, "Date")),
    "cf-future-date": _Entry(NodeType.CF_FUTURE_DATE, _coded(NodeType.CF_FUTURE_DATE, "Future Date")),
    "cf-checkbox": _Entry(NodeType.CF_CHECKBOX, _coded(NodeType.CF_CHECKBOX, "Checkbox")),
    "cf-listbox": _Entry(NodeType.CF_LISTBOX, lambda b: b.choices(NodeType.CF_LISTBOX, "List Box")),
    "cf-radio": _Entry(NodeType.CF_RADIO, lambda b: b.choices(NodeType.CF_RADIO, "Radio Button")),
    "cf-snom-textbox": _Entry(
        NodeType.CF_SNOMED_TEXTBOX, _coded(NodeType.CF_SNOMED_TEXTBOX, "SNOMED Text Box")
    ),
    "cf-button": _Entry(NodeType.CF_BUTTON, lambda b: b.node(NodeType.CF_BUTTON, label="Button")),
    "cf-info": _Entry(NodeType.CF_INFO, lambda b: b.node(NodeType.CF_INFO, label="Information")),
    "cf-patient-data": _Entry(
        NodeType.CF_PATIENT_DATA, lambda b: b.node(NodeType.CF_PATIENT_DATA, label="Patient Data")
    ),
    "cf-patient-data-all": _Entry(
        NodeType.CF_PATIENT_DATA_ALL,
        lambda b: b.node(NodeType.CF_PATIENT_DATA_ALL, label="Patient Data"),
    ),
    # Written as bare elements, so they carry no label.
    "cf-prescription": _Entry(NodeType.CF_PRESCRIPTION, lambda b: b.node(NodeType.CF_PRESCRIPTION)),
    "cf-provided-services": _Entry(
        NodeType.CF_PROVIDED_SERVICES, lambda b: b.node(NodeType.CF_PROVIDED_SERVICES)
    ),
}


def palette_names() -> Tuple[str, ...]:
    return tuple(PALETTE)


def component_type(component_name: str) -> NodeType:
    """Return the node type a palette entry creates, without building it.

    Raises
    ------
    KeyError
        If *component_name* is not a palette entry.
    """
    try:
        return PALETTE[component_name].type
    except KeyError:
        raise KeyError(f"Unknown palette component '{component_name}'") from None


def create_component(
    component_name: str, ids: IdGenerator, codes: Optional[CodeSequence] = None
) -> Node:
    """Build the default node for a palette entry.

    Parameters
    ----------
    component_name
        Palette entry name, e.g. ``"form-tag"`` or ``"cf-textbox"``.
    ids
        Generator for the new node ids.
    codes
        Clinical code sequence; a throwaway sequence is used when omitted.
    """
    component_type(component_name)
    return PALETTE[component_name].build(_Builder(ids, codes))
