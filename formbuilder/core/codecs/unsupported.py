from __future__ import annotations

"""Detection of XML constructs the codecs do not model.

Decoding skips unknown elements and ignores unknown attributes. This module
reports them so a caller can warn the user before the next export drops
them.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Union

from lxml import etree as ET  # type: ignore

from formbuilder.core.codecs.base import child_elements, local_name, parse_xml
from formbuilder.core.models import Dialect

__all__ = ["UnsupportedConstruct", "find_unsupported"]

_XSI = "http://www.w3.org/2001/XMLSchema-instance"


@dataclass(frozen=True)
class UnsupportedConstruct:
    """An element or attribute that will not survive a decode/encode cycle.

    ``attribute`` is None when the whole element is unsupported.
    """

    path: str
    element: str
    attribute: Optional[str] = None

    @property
    def message(self) -> str:
        if self.attribute is None:
            return f"Unsupported element <{self.element}> at {self.path}"
        return f"Unsupported attribute '{self.attribute}' on <{self.element}> at {self.path}"


def _s(*names: str) -> FrozenSet[str]:
    return frozenset(names)


_QUESTIONNAIRE_ATTRS: Dict[str, FrozenSet[str]] = {
    "Questionnaire": _s("name"),
    "Pages": _s(),
    "Page": _s("title"),
    "Question": _s("record", "required", "datatype"),
    "Text": _s("record"),
    "Answers": _s(),
    "Answer": _s("value"),
    "Field": _s("record", "required", "datatype"),
    "Information": _s(),
    "Table": _s("required", "record"),
    "Column": _s("header", "required", "datatype"),
    "Visibility": _s(),
    "Any": _s(),
    "All": _s(),
    "Condition": _s("record", "answer"),
}

_QUESTIONNAIRE_CHILDREN: Dict[str, FrozenSet[str]] = {
    "Questionnaire": _s("Pages"),
    "Pages": _s("Page"),
    "Page": _s("Question", "Field", "Information", "Table", "Visibility"),
    "Question": _s("Text", "Answers", "Visibility"),
    "Answers": _s("Answer"),
    "Field": _s("Visibility"),
    "Information": _s("Visibility"),
    "Table": _s("Text", "Column", "Visibility"),
    "Column": _s("Visibility"),
    "Visibility": _s("Any", "All"),
    "Any": _s("Condition"),
    "All": _s("Condition"),
}

_FIELD_ATTRS = _s("code", "key", "label", "required", "tag", "global", "width")
_TABLE_FIELDS = _s(
    "textbox", "textarea", "notes", "date", "future_date", "checkbox", "check",
    "list", "radio", "snomedsubtextbox",
)
_COMPONENTS = _TABLE_FIELDS | _s(
    "group", "panel", "table", "notes_with_history", "button", "form_button",
    "info", "metafield", "metafields", "prescriptions", "services",
)

_CLINICAL_ATTRS: Dict[str, FrozenSet[str]] = {
    "form": _s("tag"),
    "group": _s("label", "tag"),
    "panel": _s("class", "label", "tag", "width"),
    "table": _s("code", "key", "label", "required", "tag", "global"),
    "item": _s("code"),
    "button": _s("action", "required", "label", "parameters"),
    "form_button": _s("label", "text", "required"),
    "info": _s(),
    "metafield": _s("label", "field", "required"),
    "metafields": _s("label"),
    "prescriptions": _s(),
    "services": _s(),
    "snomedsubtextbox": _FIELD_ATTRS | _s("snomedsub"),
}
for _name in _TABLE_FIELDS | _s("notes_with_history"):
    _CLINICAL_ATTRS.setdefault(_name, _FIELD_ATTRS)

_CLINICAL_CHILDREN: Dict[str, FrozenSet[str]] = {
    "form": _COMPONENTS,
    "group": _COMPONENTS,
    "panel": _COMPONENTS,
    "table": _TABLE_FIELDS,
    "list": _s("item"),
    "radio": _s("item"),
}

_VOCABULARY = {
    Dialect.QUESTIONNAIRE: (_QUESTIONNAIRE_ATTRS, _QUESTIONNAIRE_CHILDREN),
    Dialect.CLINICAL: (_CLINICAL_ATTRS, _CLINICAL_CHILDREN),
}


def find_unsupported(
    xml: Union[str, ET._Element], dialect: Dialect
) -> List[UnsupportedConstruct]:
    """Return the unsupported elements and attributes of *xml* in document order.

    *xml* may be raw text or an already parsed root element. Children of an
    unsupported element are not reported separately.
    """
    root = parse_xml(xml) if isinstance(xml, str) else xml
    known_attrs, known_children = _VOCABULARY[Dialect(dialect)]
    found: List[UnsupportedConstruct] = []

    def visit(element: ET._Element, path: str) -> None:
        name = local_name(element)
        allowed = known_attrs.get(name, frozenset())
        for attr in element.attrib:
            qname = ET.QName(attr)
            if qname.namespace == _XSI:
                continue
            if qname.localname not in allowed or qname.namespace:
                found.append(UnsupportedConstruct(path, name, qname.localname))
        accepted = known_children.get(name, frozenset())
        counts: Dict[str, int] = {}
        for child in child_elements(element):
            child_name = local_name(child)
            counts[child_name] = counts.get(child_name, 0) + 1
            child_path = f"{path}/{child_name}[{counts[child_name]}]"
            if child_name not in accepted:
                found.append(UnsupportedConstruct(child_path, child_name))
                continue
            visit(child, child_path)

    visit(root, local_name(root))
    return found
