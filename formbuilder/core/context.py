from __future__ import annotations

"""Editor session: the command API a UI drives.

The EditorSession holds the live document, the selection, the clipboard and
the undo history, and wires the editing services together. Each command
that changes the document commits exactly one history snapshot when it
succeeds; failed commands leave document and history untouched.
"""

import logging
from typing import Any, Iterable, List, Optional, Tuple, TYPE_CHECKING

from formbuilder.core import codecs, factory
from formbuilder.core.exceptions import ClipboardRejection
from formbuilder.core.ids import CodeSequence, IdGenerator, SequentialIdGenerator, make_id_generator
from formbuilder.core.models import Dialect, Document, Node, NodeAttributes
from formbuilder.core.models.grammar import ROOT
from formbuilder.core.preview.text_summary import summarize
from formbuilder.core.services.clipboard_service import ClipboardService, normalize_selection
from formbuilder.core.services.drag_service import DragSession
from formbuilder.core.services.lint_service import Diagnostic, LintService
from formbuilder.core.services.structure_editing_service import (
    OperationResult,
    StructureEditingService,
)
from formbuilder.core.services.undo_service import UndoService

if TYPE_CHECKING:
    from formbuilder.config import ConfigManager

logger = logging.getLogger(__name__)

__all__ = ["EditorSession"]

_UNSET: Any = object()


class EditorSession:
    """Stateful facade over the engine services.

    Parameters
    ----------
    dialect
        Dialect of the initial empty document.
    ids
        Id generator shared by decode, copy and palette creation.
    codes
        Clinical code sequence.
    max_history
        Undo depth.
    default_form_tag
        Category of new clinical documents.
    export_indent
        Spaces per indentation level in exported XML.

    Examples
    --------
    >>> session = EditorSession(Dialect.QUESTIONNAIRE)
    >>> session.add_component("form-tag")
    >>> xml = session.export_xml()
    """

    def __init__(
        self,
        dialect: Dialect = Dialect.QUESTIONNAIRE,
        *,
        ids: Optional[IdGenerator] = None,
        codes: Optional[CodeSequence] = None,
        max_history: int = 50,
        default_form_tag: str = "cons",
        export_indent: int = 2,
    ) -> None:
        self._ids = ids if ids is not None else SequentialIdGenerator()
        self._codes = codes if codes is not None else CodeSequence()
        self._default_form_tag = default_form_tag
        self._export_indent = export_indent
        self._editing = StructureEditingService()
        self._clipboard = ClipboardService(self._ids)
        self._history = UndoService(max_history=max_history)
        self._lint = LintService()
        self._selection: Tuple[str, ...] = ()
        self._document = Document.new(Dialect(dialect), default_form_tag)
        self._history.reset(self._document)
        self._logger = logging.getLogger(f"{__name__}.EditorSession")

    @classmethod
    def from_config(
        cls, config: Optional["ConfigManager"] = None, dialect: Dialect = Dialect.QUESTIONNAIRE
    ) -> "EditorSession":
        """Build a session from the ``engine`` configuration section."""
        if config is None:
            from formbuilder.config import ConfigManager

            config = ConfigManager()
        return cls(
            dialect,
            ids=make_id_generator(str(config.get("ids.strategy", "sequence"))),
            max_history=int(config.get("history.max_history", 50)),
            default_form_tag=str(config.get("clinical.default_form_tag", "cons")),
            export_indent=int(config.get("export.indent", 2)),
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def document(self) -> Document:
        return self._document

    @property
    def dialect(self) -> Dialect:
        return self._document.dialect

    @property
    def selection(self) -> Tuple[str, ...]:
        return self._selection

    @property
    def history(self) -> UndoService:
        return self._history

    @property
    def clipboard(self) -> ClipboardService:
        return self._clipboard

    @property
    def codes(self) -> CodeSequence:
        return self._codes

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    # -------------------------------------------------------------------------
    # Document lifecycle
    # -------------------------------------------------------------------------

    def new_document(self, dialect: Optional[Dialect] = None) -> Document:
        """Start over with an empty document and an empty history."""
        dialect = Dialect(dialect) if dialect is not None else self.dialect
        self._document = Document.new(dialect, self._default_form_tag)
        self._history.reset(self._document)
        self._clipboard.clear()
        self._selection = ()
        self._codes.reset()
        self._logger.info("New %s document", dialect.value)
        return self._document

    def load_xml(self, xml_text: str) -> codecs.DecodedDocument:
        """Replace the document with decoded *xml_text* (one undo step).

        Raises
        ------
        ParseError
            If the text cannot be decoded; the session is left unchanged.
        """
        decoded = codecs.decode(xml_text, self._ids, dialect_hint=self.dialect)
        self._document = decoded.document
        self._history.commit(self._document)
        self._selection = ()
        self._codes.sync(self._document)
        self._logger.info(
            "Loaded %s document with %d root(s)", decoded.dialect.value, len(decoded.document.roots)
        )
        return decoded

    def export_xml(self) -> str:
        return codecs.encode(self._document, self._export_indent)

    def lint(self) -> List[Diagnostic]:
        return self._lint.run(self._document)

    def summary(self) -> str:
        return summarize(self._document)

    # -------------------------------------------------------------------------
    # Structural commands
    # -------------------------------------------------------------------------

    def add_component(self, component_name: str, target_id: Optional[str] = ROOT) -> OperationResult:
        """Create a palette component and drop it on *target_id*."""
        try:
            node = factory.create_component(component_name, self._ids, self._codes)
        except KeyError as e:
            return OperationResult(False, str(e.args[0]), None, self._document, e)
        result = self._editing.drop(self._document, target_id, new_child=node)
        if result.success:
            self._selection = (node.id,)
        return self._apply(result)

    def insert_child(self, parent_id: Optional[str], node: Node, index: Optional[int] = None) -> OperationResult:
        result = self._editing.insert_child(self._document, parent_id, node, index)
        if result.success:
            self._ids.reserve(node.ids())
        return self._apply(result)

    def move_node(self, node_id: str, new_parent_id: Optional[str], index: Optional[int] = None) -> OperationResult:
        return self._apply(self._editing.move_node(self._document, node_id, new_parent_id, index))

    def remove_node(self, node_id: str) -> OperationResult:
        return self._apply(self._editing.remove_node(self._document, node_id))

    def remove_selection(self) -> OperationResult:
        """Remove every selected node in one undo step."""
        return self._apply(self._editing.remove_nodes(self._document, self._selection))

    def reorder_siblings(self, parent_id: Optional[str], from_index: int, to_index: int) -> OperationResult:
        return self._apply(self._editing.reorder_siblings(self._document, parent_id, from_index, to_index))

    def update_node(
        self,
        node_id: str,
        attributes: Optional[NodeAttributes] = None,
        visibility: Any = _UNSET,
    ) -> OperationResult:
        """Edit-save: replace attributes and/or visibility of one node."""
        if visibility is _UNSET:
            result = self._editing.update_node(self._document, node_id, attributes)
        else:
            result = self._editing.update_node(self._document, node_id, attributes, visibility)
        return self._apply(result)

    def start_drag(self, source: str) -> DragSession:
        """Start a drag gesture for a node id or palette entry name.

        The drop commits one history entry; hovering never does.
        """
        session = DragSession(self._editing, self._ids, self._codes, on_drop=self._apply)
        session.drag_start(self._document, source)
        return session

    # -------------------------------------------------------------------------
    # Selection & clipboard
    # -------------------------------------------------------------------------

    def select(self, node_ids: Iterable[str], additive: bool = False) -> Tuple[str, ...]:
        """Set (or extend) the selection; nested and unknown ids are dropped."""
        wanted = list(node_ids or ())
        if additive:
            wanted = list(self._selection) + wanted
        self._selection = normalize_selection(self._document, wanted)
        return self._selection

    def copy(self, selection: Optional[Iterable[str]] = None) -> OperationResult:
        ids = self._selection if selection is None else selection
        return self._clipboard.copy(self._document, ids)

    def cut(self, selection: Optional[Iterable[str]] = None) -> OperationResult:
        ids = self._selection if selection is None else selection
        return self._apply(self._clipboard.cut(self._document, ids))

    def paste(self, focus_id: Optional[str] = None) -> OperationResult:
        """Paste the clipboard; rejected pastes come back as failed results."""
        try:
            pasted = self._clipboard.paste(self._document, focus_id)
        except ClipboardRejection as e:
            self._logger.info("Paste rejected: %s (skipped=%d)", e, e.skipped)
            return OperationResult(False, str(e), {"skipped": e.skipped}, self._document, e)
        result = OperationResult(
            True,
            f"Pasted {pasted.pasted} item(s), skipped {pasted.skipped}.",
            {"pasted": pasted.pasted, "skipped": pasted.skipped, "ids": pasted.selection},
            pasted.document,
        )
        self._apply(result)
        self._selection = pasted.selection
        return result

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def undo(self) -> Optional[Document]:
        document = self._history.undo()
        if document is not None:
            self._restore(document)
        return document

    def redo(self) -> Optional[Document]:
        document = self._history.redo()
        if document is not None:
            self._restore(document)
        return document

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _apply(self, result: OperationResult) -> OperationResult:
        if result.success and result.document is not None:
            self._document = result.document
            self._history.commit(result.document)
            self._prune_selection()
        return result

    def _restore(self, document: Document) -> None:
        self._document = document
        self._prune_selection()

    def _prune_selection(self) -> None:
        self._selection = normalize_selection(self._document, self._selection)
