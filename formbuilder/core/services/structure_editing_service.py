from __future__ import annotations

"""Service layer for structural edits on a form document.

This module provides a UI-agnostic, testable service that encapsulates the
grammar-constrained mutations of the document tree (insert, move, reorder,
remove, edit-save).

Scope and guarantees:
- Operates purely in-memory on immutable Document values, no file I/O nor UI
  imports.
- Conservative behavior with boundary checks; invalid operations return
  OperationResult(success=False, ...) with clear messaging, never raise.
- A failed operation returns the input document unchanged.

Examples
--------
Basic usage:

    service = StructureEditingService()
    result = service.insert_child(doc, ROOT, page)
    if not result.success:
        print(result.message)
    doc = result.document

"""

from dataclasses import dataclass, replace
import logging
from typing import Any, Dict, Iterable, List, Optional

from formbuilder.core import tree
from formbuilder.core.exceptions import PlacementError
from formbuilder.core.models import Document, Node, NodeAttributes, NodeType, Visibility
from formbuilder.core.models.grammar import ROOT


__all__ = ["OperationResult", "StructureEditingService"]

logger = logging.getLogger(__name__)

_UNSET: Any = object()


@dataclass(frozen=True)
class OperationResult:
    """Result of a structural editing operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    document
        The resulting document. On failure this is the unchanged input.
    error
        The error that blocked the operation, if any.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None
    document: Optional[Document] = None
    error: Optional[Exception] = None


class StructureEditingService:
    """Encapsulates structural edit operations on a form document.

    Design principles:
    - No UI dependencies, no disk I/O.
    - No exceptions for expected invalid actions; return OperationResult.
    - Every operation is validated against the placement grammar of the
      document's dialect before anything changes.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(f"{__name__}.StructureEditingService")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def insert_child(
        self,
        document: Document,
        parent_id: Optional[str],
        new_child: Node,
        index: Optional[int] = None,
    ) -> OperationResult:
        """Insert *new_child* under *parent_id* (``ROOT`` for the root list)."""
        logger.info("Edit: insert_child type=%s parent=%s index=%s", new_child.type.value, parent_id, index)
        try:
            new_doc = tree.insert_child(document, parent_id, new_child, index)
        except PlacementError as e:
            return self._fail("insert_child", document, e, {"node_id": new_child.id, "parent_id": parent_id})
        logger.info("Edit OK: insert_child node=%s parent=%s", new_child.id, parent_id)
        return OperationResult(
            True,
            f"Inserted {new_child.type.value}.",
            {"node_id": new_child.id, "parent_id": parent_id},
            new_doc,
        )

    def move_node(
        self,
        document: Document,
        node_id: str,
        new_parent_id: Optional[str],
        index: Optional[int] = None,
    ) -> OperationResult:
        """Move the subtree rooted at *node_id* under *new_parent_id*.

        A move to the current parent is a sibling reorder and *index* is the
        final position. The node is detached and re-attached, never copied.
        """
        logger.info("Edit: move_node node=%s dest=%s index=%s", node_id, new_parent_id, index)
        try:
            new_doc = tree.move_node(document, node_id, new_parent_id, index)
        except PlacementError as e:
            return self._fail("move_node", document, e, {"node_id": node_id, "parent_id": new_parent_id})
        if new_doc is document:
            logger.info("Edit noop: move_node node=%s already in place", node_id)
            return OperationResult(False, "Component is already in place.", {"node_id": node_id}, document)
        logger.info("Edit OK: move_node node=%s dest=%s", node_id, new_parent_id)
        return OperationResult(True, "Moved component.", {"node_id": node_id, "parent_id": new_parent_id}, new_doc)

    def remove_node(self, document: Document, node_id: str) -> OperationResult:
        """Remove *node_id* and all of its descendants."""
        logger.info("Edit: remove_node node=%s", node_id)
        try:
            node = document.find(node_id)
            new_doc = tree.remove_node(document, node_id)
        except PlacementError as e:
            return self._fail("remove_node", document, e, {"node_id": node_id})
        removed = len(node.ids()) if node is not None else 0
        logger.info("Edit OK: remove_node node=%s removed=%d", node_id, removed)
        return OperationResult(True, "Removed component.", {"node_id": node_id, "removed": removed}, new_doc)

    def remove_nodes(self, document: Document, node_ids: Iterable[str]) -> OperationResult:
        """Remove several nodes in one operation; unknown ids are skipped."""
        requested = list(node_ids or [])
        logger.info("Edit: remove_nodes count=%d", len(requested))
        current = document
        deleted: List[str] = []
        for node_id in requested:
            if not current.contains(node_id):
                continue
            current = tree.remove_node(current, node_id)
            deleted.append(node_id)
        details = {"requested": requested, "deleted": len(deleted), "skipped": len(requested) - len(deleted)}
        if not deleted:
            logger.info("Edit noop: remove_nodes deleted=0")
            return OperationResult(False, "No components removed.", details, document)
        logger.info("Edit OK: remove_nodes deleted=%d skipped=%d", details["deleted"], details["skipped"])
        return OperationResult(True, "Removed components.", details, current)

    def reorder_siblings(
        self,
        document: Document,
        parent_id: Optional[str],
        from_index: int,
        to_index: int,
    ) -> OperationResult:
        """Move a sibling from *from_index* to *to_index* within one list."""
        logger.info("Edit: reorder_siblings parent=%s from=%d to=%d", parent_id, from_index, to_index)
        try:
            new_doc = tree.reorder_siblings(document, parent_id, from_index, to_index)
        except PlacementError as e:
            return self._fail("reorder_siblings", document, e, {"parent_id": parent_id})
        if new_doc is document:
            logger.info("Edit noop: reorder_siblings parent=%s index=%d", parent_id, from_index)
            return OperationResult(False, "Component is already in place.", {"parent_id": parent_id}, document)
        logger.info("Edit OK: reorder_siblings parent=%s from=%d to=%d", parent_id, from_index, to_index)
        return OperationResult(
            True,
            "Reordered components.",
            {"parent_id": parent_id, "from_index": from_index, "to_index": to_index},
            new_doc,
        )

    def move_step(self, document: Document, node_id: str, delta: int) -> OperationResult:
        """Move *node_id* up (negative) or down (positive) among its siblings."""
        parent = document.parent_of(node_id)
        parent_id = parent.id if parent is not None else ROOT
        try:
            current = tree.siblings(document, parent_id)
        except PlacementError as e:
            return self._fail("move_step", document, e, {"node_id": node_id})
        index = next((i for i, c in enumerate(current) if c.id == node_id), None)
        if index is None:
            return self._fail("move_step", document, PlacementError(f"Node '{node_id}' not found.", node_id), {})
        target = index + delta
        if target < 0 or target >= len(current):
            direction = "up" if delta < 0 else "down"
            logger.info("Edit noop: move_step boundary node=%s", node_id)
            return OperationResult(False, f"Cannot move {direction} (at boundary).", {"node_id": node_id}, document)
        return self.reorder_siblings(document, parent_id, index, target)

    def update_node(
        self,
        document: Document,
        node_id: str,
        attributes: Optional[NodeAttributes] = None,
        visibility: Any = _UNSET,
    ) -> OperationResult:
        """Replace the attributes and/or visibility of *node_id* (edit-save).

        Pass ``visibility=None`` to clear an existing visibility block.
        """
        logger.info("Edit: update_node node=%s", node_id)
        changes: Dict[str, Any] = {}
        if attributes is not None:
            changes["attributes"] = attributes
        if visibility is not _UNSET:
            if visibility is not None and not isinstance(visibility, Visibility):
                return OperationResult(False, "Invalid visibility block.", {"node_id": node_id}, document)
            changes["visibility"] = visibility
        try:
            new_doc = tree.replace_node(document, node_id, lambda node: replace(node, **changes))
        except PlacementError as e:
            return self._fail("update_node", document, e, {"node_id": node_id})
        logger.info("Edit OK: update_node node=%s fields=%s", node_id, sorted(changes))
        return OperationResult(True, "Updated component.", {"node_id": node_id}, new_doc)

    def drop(
        self,
        document: Document,
        target_id: Optional[str],
        new_child: Optional[Node] = None,
        node_id: Optional[str] = None,
    ) -> OperationResult:
        """Drop a new component or an existing node onto *target_id*.

        Exactly one of *new_child* (palette drop) and *node_id* (move drop)
        must be given. Non-container targets fall back to inserting the item
        as a sibling directly before the target.
        """
        if (new_child is None) == (node_id is None):
            return OperationResult(False, "Nothing to drop.", None, document)
        if node_id is not None:
            if node_id == target_id:
                return OperationResult(False, "Dropped onto itself.", {"node_id": node_id}, document)
            node = document.find(node_id)
            if node is None:
                return self._fail("drop", document, PlacementError(f"Node '{node_id}' not found.", node_id), {})
            dragged_type: NodeType = node.type
        else:
            dragged_type = new_child.type

        try:
            target = tree.resolve_drop(document, dragged_type, target_id)
        except PlacementError as e:
            return self._fail("drop", document, e, {"target_id": target_id})

        if new_child is not None:
            result = self.insert_child(document, target.parent_id, new_child, target.index)
        else:
            index = target.index
            parent = document.parent_of(node_id)
            parent_id = parent.id if parent is not None else ROOT
            if target.as_sibling and parent_id == target.parent_id:
                current = tree.siblings(document, parent_id)
                from_index = next(i for i, c in enumerate(current) if c.id == node_id)
                if from_index < index:
                    index -= 1
            result = self.move_node(document, node_id, target.parent_id, index)

        if result.success:
            details = dict(result.details or {})
            details["as_sibling"] = target.as_sibling
            return replace(result, details=details)
        return result

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _fail(self, operation: str, document: Document, error: PlacementError,
              details: Optional[Dict[str, Any]]) -> OperationResult:
        logger.warning("Edit FAIL: %s reason=%s", operation, error)
        return OperationResult(False, str(error), details, document, error)
