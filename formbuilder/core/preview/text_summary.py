from __future__ import annotations

"""Plain-text outline of a document for previews and diffs in review tools.

This module is **read-only** and has *no* GUI dependencies.
"""

from typing import Callable, Dict, List

from formbuilder.core.models import Dialect, Document, Node, NodeType
from formbuilder.core.models.vocabulary import action_display, tag_display

__all__ = ["summarize"]

_TYPE_NAMES: Dict[NodeType, str] = {
    NodeType.PAGE: "Page",
    NodeType.QUESTION: "Question",
    NodeType.FIELD: "Field",
    NodeType.INFORMATION: "Information",
    NodeType.TABLE: "Table",
    NodeType.TABLE_FIELD: "Column",
    NodeType.CF_GROUP: "Group",
    NodeType.CF_PANEL: "Panel",
    NodeType.CF_TABLE: "Table",
    NodeType.CF_TABLE_FIELD: "Table Field",
    NodeType.CF_TEXTBOX: "Text Box",
    NodeType.CF_NOTES: "Notes Field",
    NodeType.CF_NOTES_HISTORY: "Notes with History",
    NodeType.CF_DATE: "Date Field",
    NodeType.CF_FUTURE_DATE: "Future Date Field",
    NodeType.CF_LISTBOX: "List Box",
    NodeType.CF_RADIO: "Radio Button",
    NodeType.CF_CHECKBOX: "Checkbox",
    NodeType.CF_BUTTON: "Button",
    NodeType.CF_INFO: "Information",
    NodeType.CF_PATIENT_DATA: "Patient Data",
    NodeType.CF_PATIENT_DATA_ALL: "Patient Data (all)",
    NodeType.CF_PRESCRIPTION: "Prescriptions",
    NodeType.CF_PROVIDED_SERVICES: "Services",
    NodeType.CF_SNOMED_TEXTBOX: "SNOMED Text Box",
}


def _quote(value: str) -> str:
    return '"' + str(value).replace('"', '\\"') + '"'


def _header(node: Node) -> str:
    return node.label.strip() or node.attributes.record_key or _TYPE_NAMES[node.type]


def _describe(node: Node, emit: Callable[[str], None]) -> None:
    attrs = node.attributes
    emit(f"type: {_TYPE_NAMES[node.type]}")
    if attrs.record_key:
        emit(f"record: {_quote(attrs.record_key)}")
    if attrs.code:
        emit(f"code: {_quote(attrs.code)}")
    if node.type not in (NodeType.PAGE, NodeType.INFORMATION, NodeType.CF_INFO):
        if attrs.required:
            emit(f"required: {_quote('true')}")
    if attrs.data_type:
        emit(f"datatype: {_quote(attrs.data_type)}")
    if attrs.tag:
        emit(f"tag: {_quote(attrs.tag)} ({tag_display(attrs.tag)})")
    if attrs.is_global:
        emit(f"global: {_quote('true')}")
    if attrs.width:
        emit(f"width: {_quote(attrs.width)}")
    if attrs.action:
        emit(f"action: {_quote(action_display(attrs.action))}")
    if attrs.field_name:
        emit(f"field: {_quote(attrs.field_name)}")
    if attrs.subset:
        emit(f"snomedsub: {_quote(attrs.subset)}")
    if attrs.options or node.type is NodeType.QUESTION:
        count = len(attrs.options)
        emit(f"Answers ({count} option{'s' if count != 1 else ''}):")
        for index, option in enumerate(attrs.options, start=1):
            emit(f"  {index}. {_quote(option.text)}")
    if node.visibility is not None:
        emit("Visibility Condition:")
        emit(f"  Mode: {node.visibility.combinator.value}")
        for index, condition in enumerate(node.visibility.conditions, start=1):
            emit(f"  Condition {index}:")
            emit(f"    Depends on: {_quote(condition.record_key)}")
            emit(f"    Answer must be: {_quote(condition.expected_answer)}")


def summarize(document: Document) -> str:
    """Return an indented, human-readable outline of *document*."""
    lines: List[str] = []
    if document.dialect is Dialect.CLINICAL:
        lines.append("=== FORM ===")
        lines.append("  type: form")
        if document.tag:
            lines.append(f"  tag: {_quote(document.tag)} ({tag_display(document.tag)})")
        lines.append("")
    elif document.name:
        lines.append(f"=== {document.name} ===")
        lines.append("  type: Questionnaire")
        lines.append("")

    if document.is_empty():
        lines.append("No components.")
        return "\n".join(lines)

    for node, ancestors in document.walk():
        indent = "  " * len(ancestors)
        lines.append(f"{indent}=== {_header(node)} ===")
        _describe(node, lambda text: lines.append(f"{indent}  {text}"))
        lines.append("")

    if lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines)
