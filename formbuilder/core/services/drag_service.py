from __future__ import annotations

"""Drag gesture sessions.

A gesture is a sequence of discrete events: ``drag_start``, any number of
``drag_over`` and finally ``drag_end`` or ``cancel``. Hover events only
compute transient feedback with the same placement rules the real edit
uses; only ``drag_end`` edits the document.
"""

from dataclasses import dataclass
import logging
from typing import Callable, Optional

from formbuilder.core import factory, tree
from formbuilder.core.exceptions import PlacementError
from formbuilder.core.ids import CodeSequence, IdGenerator
from formbuilder.core.models import Document, NodeType
from formbuilder.core.services.structure_editing_service import (
    OperationResult,
    StructureEditingService,
)


__all__ = ["DropFeedback", "DragSession"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DropFeedback:
    """Transient hover feedback; never stored in history."""

    valid: bool
    message: str = ""
    target: Optional[tree.DropTarget] = None


class DragSession:
    """State of a single drag gesture.

    Parameters
    ----------
    editing
        Service performing the final insert or move.
    ids, codes
        Sequences used to build a palette component on drop.
    on_drop
        Called with the result of a successful drop, e.g. to commit history.
    """

    def __init__(
        self,
        editing: StructureEditingService,
        ids: IdGenerator,
        codes: Optional[CodeSequence] = None,
        on_drop: Optional[Callable[[OperationResult], None]] = None,
    ) -> None:
        self._editing = editing
        self._ids = ids
        self._codes = codes
        self._on_drop = on_drop
        self._document: Optional[Document] = None
        self._source: Optional[str] = None
        self._node_id: Optional[str] = None
        self._dragged_type: Optional[NodeType] = None

    @property
    def active(self) -> bool:
        return self._document is not None

    @property
    def dragged_type(self) -> Optional[NodeType]:
        return self._dragged_type

    def drag_start(self, document: Document, source: str) -> NodeType:
        """Begin dragging *source*: an existing node id or a palette entry name.

        Raises
        ------
        KeyError
            If *source* is neither a node of *document* nor a palette entry.
        """
        node = document.find(source)
        if node is not None:
            self._node_id = node.id
            self._dragged_type = node.type
        else:
            self._node_id = None
            self._dragged_type = factory.component_type(source)
        self._document = document
        self._source = source
        logger.debug("Drag start: source=%s type=%s", source, self._dragged_type.value)
        return self._dragged_type

    def drag_over(self, target_id: Optional[str]) -> DropFeedback:
        """Report whether dropping on *target_id* would be accepted."""
        if not self.active:
            return DropFeedback(False, "No drag in progress.")
        document = self._document
        if self._node_id is not None:
            node = document.find(self._node_id)
            if target_id is not None and target_id in node.ids():
                return DropFeedback(False, "Cannot drop a component into itself.")
        try:
            target = tree.resolve_drop(document, self._dragged_type, target_id)
        except PlacementError as e:
            return DropFeedback(False, str(e))
        return DropFeedback(True, "", target)

    def drag_end(self, target_id: Optional[str]) -> OperationResult:
        """Finish the gesture over *target_id* and perform the edit."""
        if not self.active:
            return OperationResult(False, "No drag in progress.")
        document = self._document
        try:
            feedback = self.drag_over(target_id)
            if not feedback.valid:
                logger.info("Drag end: rejected source=%s target=%s", self._source, target_id)
                return OperationResult(False, feedback.message, {"target_id": target_id}, document)
            if self._node_id is not None:
                result = self._editing.drop(document, target_id, node_id=self._node_id)
            else:
                new_child = factory.create_component(self._source, self._ids, self._codes)
                result = self._editing.drop(document, target_id, new_child=new_child)
        finally:
            self._reset()
        if result.success and self._on_drop is not None:
            self._on_drop(result)
        return result

    def cancel(self) -> None:
        """Abandon the gesture without touching the document."""
        if self.active:
            logger.debug("Drag cancelled: source=%s", self._source)
        self._reset()

    def _reset(self) -> None:
        self._document = None
        self._source = None
        self._node_id = None
        self._dragged_type = None
