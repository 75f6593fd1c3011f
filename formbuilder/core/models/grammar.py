from __future__ import annotations

"""Placement grammar: which node types may contain which child types.

The grammar is a static table per dialect. ``ROOT`` (``None``) stands for the
document's root list.
"""

from typing import Dict, FrozenSet, Optional

from formbuilder.core.models import CLINICAL_TYPES, Dialect, NodeType

__all__ = [
    "ROOT",
    "child_type_allowed",
    "is_container",
    "root_types",
    "allowed_children",
    "describe_rejection",
]

ROOT = None

_CLINICAL_ALL: FrozenSet[NodeType] = frozenset(CLINICAL_TYPES)
_CLINICAL_TOP_LEVEL: FrozenSet[NodeType] = _CLINICAL_ALL - {NodeType.CF_TABLE_FIELD}

_QUESTIONNAIRE_RULES: Dict[Optional[NodeType], FrozenSet[NodeType]] = {
    ROOT: frozenset({NodeType.PAGE}),
    NodeType.PAGE: frozenset(
        {NodeType.QUESTION, NodeType.FIELD, NodeType.INFORMATION, NodeType.TABLE}
    ),
    NodeType.TABLE: frozenset({NodeType.TABLE_FIELD}),
}

_CLINICAL_RULES: Dict[Optional[NodeType], FrozenSet[NodeType]] = {
    ROOT: _CLINICAL_TOP_LEVEL,
    NodeType.CF_GROUP: _CLINICAL_ALL,
    NodeType.CF_PANEL: _CLINICAL_ALL,
    NodeType.CF_TABLE: frozenset({NodeType.CF_TABLE_FIELD}),
}

_RULES = {
    Dialect.QUESTIONNAIRE: _QUESTIONNAIRE_RULES,
    Dialect.CLINICAL: _CLINICAL_RULES,
}


def allowed_children(parent_type: Optional[NodeType], dialect: Dialect) -> FrozenSet[NodeType]:
    """Return the child types *parent_type* accepts; leaves accept nothing."""
    rules = _RULES[Dialect(dialect)]
    if parent_type is not ROOT and NodeType(parent_type).dialect is not Dialect(dialect):
        return frozenset()
    return rules.get(parent_type, frozenset())


def child_type_allowed(
    parent_type: Optional[NodeType], child_type: NodeType, dialect: Dialect
) -> bool:
    """Return True when *child_type* may be placed under *parent_type*."""
    return NodeType(child_type) in allowed_children(parent_type, dialect)


def is_container(node_type: NodeType, dialect: Dialect) -> bool:
    return bool(allowed_children(node_type, dialect))


def root_types(dialect: Dialect) -> FrozenSet[NodeType]:
    return allowed_children(ROOT, dialect)


def describe_rejection(
    parent_type: Optional[NodeType], child_type: NodeType, dialect: Dialect
) -> str:
    """Return a user-facing explanation of why *child_type* cannot go there."""
    dialect = Dialect(dialect)
    child_type = NodeType(child_type)
    if child_type.dialect is not dialect:
        return f"'{child_type.value}' components cannot be used in {dialect.value} mode"
    accepted = allowed_children(parent_type, dialect)
    if parent_type is ROOT:
        names = ", ".join(sorted(t.value for t in accepted))
        return f"Only {names} can be placed at the root level in {dialect.value} mode"
    parent_type = NodeType(parent_type)
    if not accepted:
        return f"'{parent_type.value}' components cannot contain other items"
    names = ", ".join(sorted(t.value for t in accepted))
    return f"Only {names} can be dropped into '{parent_type.value}'"
