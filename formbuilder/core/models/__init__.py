from __future__ import annotations

"""Shared data structures used across the Form Builder core.

This package exposes the immutable tree model (nodes, documents and their
value objects). It is intentionally free of UI / I/O code so that the
contained objects can be reused in any context (unit-tests, CLI, GUI, etc.).

Every class here is a frozen dataclass whose collections are tuples. Edits
never mutate a value in place; they build a new :class:`Document` that shares
untouched subtrees with the previous one.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, Optional, Tuple

from formbuilder.core.models.vocabulary import (
    CLINICAL_ELEMENT_ALIASES,
    CLINICAL_TABLE_FIELD_ELEMENTS,
    COLUMN_DATA_TYPES,
    FIELD_DATA_TYPES,
    QUESTION_DATA_TYPES,
    action_code,
    tag_code,
)

__all__ = [
    "Dialect",
    "NodeType",
    "Combinator",
    "Option",
    "Condition",
    "Visibility",
    "NodeAttributes",
    "Node",
    "Document",
    "QUESTIONNAIRE_TYPES",
    "CLINICAL_TYPES",
    "normalize_attributes",
]


class Dialect(str, Enum):
    """The two mutually exclusive document families."""

    QUESTIONNAIRE = "questionnaire"
    CLINICAL = "clinical"


class NodeType(str, Enum):
    """Closed set of node types, one family per dialect."""

    # Questionnaire family
    PAGE = "page"
    QUESTION = "question"
    FIELD = "field"
    INFORMATION = "information"
    TABLE = "table"
    TABLE_FIELD = "table-field"

    # Clinical form family
    CF_GROUP = "cf-group"
    CF_PANEL = "cf-panel"
    CF_TABLE = "cf-table"
    CF_TEXTBOX = "cf-textbox"
    CF_NOTES = "cf-notes"
    CF_NOTES_HISTORY = "cf-notes-history"
    CF_DATE = "cf-date"
    CF_FUTURE_DATE = "cf-future-date"
    CF_LISTBOX = "cf-listbox"
    CF_RADIO = "cf-radio"
    CF_CHECKBOX = "cf-checkbox"
    CF_BUTTON = "cf-button"
    CF_INFO = "cf-info"
    CF_PATIENT_DATA = "cf-patient-data"
    CF_PATIENT_DATA_ALL = "cf-patient-data-all"
    CF_PRESCRIPTION = "cf-prescription"
    CF_PROVIDED_SERVICES = "cf-provided-services"
    CF_SNOMED_TEXTBOX = "cf-snom-textbox"
    CF_TABLE_FIELD = "cf-table-field"

    @property
    def dialect(self) -> Dialect:
        """Return the family this node type belongs to."""
        if self.value.startswith("cf-"):
            return Dialect.CLINICAL
        return Dialect.QUESTIONNAIRE


QUESTIONNAIRE_TYPES: Tuple[NodeType, ...] = tuple(
    t for t in NodeType if t.dialect is Dialect.QUESTIONNAIRE
)
CLINICAL_TYPES: Tuple[NodeType, ...] = tuple(t for t in NodeType if t.dialect is Dialect.CLINICAL)


class Combinator(str, Enum):
    """How the conditions of a visibility block are combined."""

    ANY = "Any"
    ALL = "All"


@dataclass(frozen=True)
class Option:
    """An ordered choice record carried by choice-type nodes (not a child node)."""

    text: str
    value: str = ""


@dataclass(frozen=True)
class Condition:
    """Visibility condition referencing another node's record key."""

    record_key: str
    expected_answer: str = ""


@dataclass(frozen=True)
class Visibility:
    """Structural visibility block. Not evaluated by the engine."""

    combinator: Combinator = Combinator.ANY
    conditions: Tuple[Condition, ...] = ()


@dataclass(frozen=True)
class NodeAttributes:
    """Type-dependent node fields.

    Attributes
    ----------
    label
        Label text; the title for pages, the text body for information blocks.
    record_key
        Human-entered identifier used for cross references and export
        (``record`` in questionnaires, ``key`` in clinical forms).
    required
        Required flag.
    data_type
        Data subtype: ``radio``/``checkbox`` for questions, ``date``/``textarea``
        for fields, ``date`` for table fields, or the element name a clinical
        table field is written as. The empty string is the questionnaire
        default (list box, plain text); see :func:`normalize_attributes`.
    width
        Optional pixel width (clinical forms).
    tag
        Free-form category (clinical forms), stored as the XML code.
    action
        Clinical button action, stored as the XML code.
    is_global
        Clinical ``global`` flag.
    code
        Numeric clinical component code, kept as text.
    options
        Ordered option records of choice-type nodes.
    parameters, field_name, subset
        Clinical extras for buttons, patient data fields and SNOMED boxes.
    """

    label: str = ""
    record_key: str = ""
    required: bool = False
    data_type: str = ""
    width: str = ""
    tag: str = ""
    is_global: bool = False
    code: str = ""
    options: Tuple[Option, ...] = ()
    action: str = ""
    parameters: str = ""
    field_name: str = ""
    subset: str = ""


_DATA_TYPE_TABLES = {
    NodeType.QUESTION: QUESTION_DATA_TYPES,
    NodeType.FIELD: FIELD_DATA_TYPES,
    NodeType.TABLE_FIELD: COLUMN_DATA_TYPES,
}


def _clinical_table_field_type(value: str) -> str:
    name = CLINICAL_ELEMENT_ALIASES.get(value, value)
    return name if name in CLINICAL_TABLE_FIELD_ELEMENTS else "textbox"


def normalize_attributes(node_type: NodeType, attributes: NodeAttributes) -> NodeAttributes:
    """Return *attributes* with every closed-set field in its stored spelling.

    Questionnaire data types collapse to their canonical name (``list-box``
    and ``text`` become the empty default, unknown names too); clinical table
    fields fall back to ``textbox``. Clinical categories and button actions
    given as display names become their XML codes. Free text is never touched.
    """
    changes = {}
    table = _DATA_TYPE_TABLES.get(node_type)
    if table is not None:
        data_type = table.get(attributes.data_type.strip().lower(), "")
    elif node_type is NodeType.CF_TABLE_FIELD:
        data_type = _clinical_table_field_type(attributes.data_type.strip().lower())
    else:
        data_type = attributes.data_type
    if data_type != attributes.data_type:
        changes["data_type"] = data_type
    if node_type.dialect is Dialect.CLINICAL:
        if tag_code(attributes.tag) != attributes.tag:
            changes["tag"] = tag_code(attributes.tag)
        if action_code(attributes.action) != attributes.action:
            changes["action"] = action_code(attributes.action)
    return replace(attributes, **changes) if changes else attributes


@dataclass(frozen=True)
class Node:
    """Atomic document unit.

    ``id`` is excluded from equality: two nodes compare equal when their type,
    attributes, visibility and children are equal. Identity questions are
    answered with :meth:`Document.ids`.
    """

    id: str = field(compare=False)
    type: NodeType
    attributes: NodeAttributes = field(default_factory=NodeAttributes)
    visibility: Optional[Visibility] = None
    children: Tuple["Node", ...] = ()

    def __post_init__(self) -> None:
        attributes = normalize_attributes(self.type, self.attributes)
        if attributes is not self.attributes:
            object.__setattr__(self, "attributes", attributes)

    @property
    def label(self) -> str:
        return self.attributes.label

    def with_children(self, children) -> "Node":
        return replace(self, children=tuple(children))

    def walk(self) -> Iterator["Node"]:
        """Yield this node and all descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def ids(self) -> Tuple[str, ...]:
        return tuple(n.id for n in self.walk())


@dataclass(frozen=True)
class Document:
    """Ordered forest of root nodes plus the active dialect.

    Attributes
    ----------
    dialect
        Active node family.
    roots
        Ordered root nodes.
    name
        Questionnaire ``name`` attribute (questionnaire dialect).
    tag
        Form category written on the clinical ``<form>`` root.
    """

    dialect: Dialect
    roots: Tuple[Node, ...] = ()
    name: str = ""
    tag: str = ""

    def __post_init__(self) -> None:
        if self.dialect is Dialect.CLINICAL and tag_code(self.tag) != self.tag:
            object.__setattr__(self, "tag", tag_code(self.tag))

    @classmethod
    def new(cls, dialect: Dialect, default_form_tag: str = "cons") -> "Document":
        """Return an empty document for *dialect*."""
        if dialect is Dialect.CLINICAL:
            return cls(dialect=dialect, tag=default_form_tag)
        return cls(dialect=dialect)

    def with_roots(self, roots) -> "Document":
        return replace(self, roots=tuple(roots))

    def is_empty(self) -> bool:
        return not self.roots

    # ------------------------------------------------------------- traversal

    def walk(self) -> Iterator[Tuple[Node, Tuple[Node, ...]]]:
        """Yield ``(node, ancestors)`` pairs in document (pre-)order."""
        stack = [(node, ()) for node in reversed(self.roots)]
        while stack:
            node, ancestors = stack.pop()
            yield node, ancestors
            lineage = ancestors + (node,)
            stack.extend((child, lineage) for child in reversed(node.children))

    def ids(self) -> Tuple[str, ...]:
        return tuple(node.id for node, _ in self.walk())

    def find(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        for node, _ in self.walk():
            if node.id == node_id:
                return node
        return None

    def ancestors_of(self, node_id: str) -> Optional[Tuple[Node, ...]]:
        """Return the ancestor chain (root first) or None if *node_id* is absent."""
        for node, ancestors in self.walk():
            if node.id == node_id:
                return ancestors
        return None

    def parent_of(self, node_id: str) -> Optional[Node]:
        """Return the parent node, or None for roots and unknown ids."""
        ancestors = self.ancestors_of(node_id)
        if not ancestors:
            return None
        return ancestors[-1]

    def path_to(self, node_id: str) -> Optional[Tuple[str, ...]]:
        """Return ancestor ids ending with *node_id*, or None if absent."""
        ancestors = self.ancestors_of(node_id)
        if ancestors is None:
            return None
        return tuple(a.id for a in ancestors) + (node_id,)

    def contains(self, node_id: str) -> bool:
        return self.find(node_id) is not None
