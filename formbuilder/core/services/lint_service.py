from __future__ import annotations

"""Structural lint for form documents.

Diagnostics are advisory: they are meant for an errors panel with
navigation and never block an edit or an export. Each diagnostic carries the
id path and the label breadcrumb of the offending node.
"""

from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
import logging
import re
from typing import Dict, List, Optional, Tuple

from formbuilder.core.models import Dialect, Document, Node, NodeType


__all__ = ["DiagnosticKind", "Severity", "Diagnostic", "LintService", "lint"]

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")

_KEYED_TYPES = frozenset({NodeType.QUESTION, NodeType.FIELD, NodeType.TABLE})
_TABLE_TYPES = frozenset({NodeType.TABLE, NodeType.CF_TABLE})
_CHOICE_TYPES = frozenset({NodeType.QUESTION, NodeType.CF_LISTBOX, NodeType.CF_RADIO})


class DiagnosticKind(str, Enum):
    MISSING_IDENTIFIER = "MissingIdentifier"
    DUPLICATE_IDENTIFIER = "DuplicateIdentifier"
    INVALID_IDENTIFIER_FORMAT = "InvalidIdentifierFormat"
    MISSING_CONTAINER_TITLE = "MissingContainerTitle"
    EMPTY_CONTAINER = "EmptyContainer"
    EMPTY_CHOICE_SET = "EmptyChoiceSet"
    BLANK_CONDITION_REFERENCE = "BlankConditionReference"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    ADVISORY = "advisory"


@dataclass(frozen=True)
class Diagnostic:
    """One lint finding.

    Attributes
    ----------
    kind
        What is wrong.
    node_id
        Offending node.
    path
        Ancestor ids, root first, ending with ``node_id``.
    breadcrumb
        Labels matching ``path`` (type names stand in for empty labels).
    record_key
        Record key involved, trimmed; empty when not applicable.
    message
        Display text, e.g. ``"P1 -> Age : Duplicate Key (age)"``.
    severity
        Display severity.
    """

    kind: DiagnosticKind
    node_id: str
    path: Tuple[str, ...]
    breadcrumb: Tuple[str, ...]
    record_key: str = ""
    message: str = ""
    severity: Severity = Severity.ERROR


def _crumb(node: Node) -> str:
    return node.label.strip() or node.type.value


def _has_key(node: Node, dialect: Dialect) -> bool:
    if dialect is Dialect.QUESTIONNAIRE:
        return node.type in _KEYED_TYPES
    return bool(node.attributes.record_key.strip())


def lint(document: Document) -> List[Diagnostic]:
    """Return all structural diagnostics for *document* in document order.

    Per-node findings come first; duplicate identifiers follow, grouped by key
    in order of first appearance.
    """
    diagnostics: List[Diagnostic] = []
    by_key: Dict[str, List[Tuple[Node, Tuple[Node, ...]]]] = OrderedDict()

    def report(kind, node, ancestors, text, key="", severity=Severity.ERROR):
        chain = ancestors + (node,)
        breadcrumb = tuple(_crumb(n) for n in chain)
        diagnostics.append(Diagnostic(
            kind=kind,
            node_id=node.id,
            path=tuple(n.id for n in chain),
            breadcrumb=breadcrumb,
            record_key=key,
            message=f"{' -> '.join(breadcrumb)} : {text}",
            severity=severity,
        ))

    for node, ancestors in document.walk():
        attrs = node.attributes
        if _has_key(node, document.dialect):
            key = attrs.record_key.strip()
            if not key:
                report(DiagnosticKind.MISSING_IDENTIFIER, node, ancestors, "Key Missing")
            else:
                by_key.setdefault(key, []).append((node, ancestors))
                if not _KEY_PATTERN.match(key):
                    report(
                        DiagnosticKind.INVALID_IDENTIFIER_FORMAT, node, ancestors,
                        f"Invalid Key ({key}), use letters, digits and '-' only", key,
                    )

        if node.type is NodeType.PAGE and not attrs.label.strip():
            report(DiagnosticKind.MISSING_CONTAINER_TITLE, node, ancestors, "Title Missing")

        if node.type in _TABLE_TYPES and not node.children:
            report(DiagnosticKind.EMPTY_CONTAINER, node, ancestors, "Table has no fields",
                   severity=Severity.WARNING)

        if node.type in _CHOICE_TYPES and not attrs.options:
            report(DiagnosticKind.EMPTY_CHOICE_SET, node, ancestors, "No answers configured",
                   severity=Severity.ADVISORY)

        if node.visibility is not None:
            for condition in node.visibility.conditions:
                if not condition.record_key.strip():
                    report(DiagnosticKind.BLANK_CONDITION_REFERENCE, node, ancestors,
                           "Visibility condition has no key", severity=Severity.WARNING)

    for key, entries in by_key.items():
        if len(entries) < 2:
            continue
        for node, ancestors in entries:
            report(DiagnosticKind.DUPLICATE_IDENTIFIER, node, ancestors, f"Duplicate Key ({key})", key)

    return diagnostics


class LintService:
    """Thin stateful wrapper over :func:`lint` for UI callers."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(f"{__name__}.LintService")
        self._last: List[Diagnostic] = []

    @property
    def last(self) -> List[Diagnostic]:
        return list(self._last)

    def run(self, document: Document) -> List[Diagnostic]:
        self._last = lint(document)
        if self._last:
            self._logger.info("Lint: %d diagnostic(s)", len(self._last))
        return list(self._last)

    def for_node(self, node_id: str, kind: Optional[DiagnosticKind] = None) -> List[Diagnostic]:
        """Diagnostics of the last run concerning *node_id*."""
        return [d for d in self._last if d.node_id == node_id and (kind is None or d.kind is kind)]
