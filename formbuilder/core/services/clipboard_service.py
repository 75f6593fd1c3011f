from __future__ import annotations

"""Selection normalisation and copy / cut / paste of subtrees.

The clipboard is engine state, not the OS clipboard. A COPY clipboard holds
clones and can be pasted any number of times (each paste clones again with
fresh ids). A CUT clipboard holds the original subtrees, ids included, and is
consumed by the next successful paste.
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Iterable, List, Optional, Tuple

from formbuilder.core import tree
from formbuilder.core.exceptions import ClipboardRejection, PlacementError
from formbuilder.core.ids import IdGenerator
from formbuilder.core.models import Document, Node
from formbuilder.core.models.grammar import ROOT, child_type_allowed
from formbuilder.core.services.structure_editing_service import OperationResult


__all__ = [
    "ClipboardMode",
    "Clipboard",
    "PasteResult",
    "ClipboardService",
    "normalize_selection",
]

logger = logging.getLogger(__name__)


class ClipboardMode(str, Enum):
    COPY = "copy"
    CUT = "cut"


@dataclass(frozen=True)
class Clipboard:
    items: Tuple[Node, ...]
    mode: ClipboardMode


@dataclass(frozen=True)
class PasteResult:
    """Outcome of a paste.

    Attributes
    ----------
    document
        Document after the paste.
    selection
        Ids of the pasted top-level nodes, in insertion order.
    pasted
        Number of clipboard items inserted.
    skipped
        Number of clipboard items the target rejected.
    """

    document: Document
    selection: Tuple[str, ...]
    pasted: int
    skipped: int = 0


def normalize_selection(document: Document, node_ids: Iterable[str]) -> Tuple[str, ...]:
    """Return the selected ids in document order without nested duplicates.

    Unknown ids are dropped, as is any id whose ancestor is also selected.
    """
    wanted = set(node_ids or ())
    result: List[str] = []
    for node, ancestors in document.walk():
        if node.id not in wanted:
            continue
        if any(a.id in wanted for a in ancestors):
            continue
        result.append(node.id)
    return tuple(result)


class ClipboardService:
    """Copy, cut and paste subtrees of a :class:`Document`.

    Parameters
    ----------
    ids
        Generator used to mint fresh ids for copied nodes.
    """

    def __init__(self, ids: IdGenerator) -> None:
        self._ids = ids
        self._clipboard: Optional[Clipboard] = None
        self._logger = logging.getLogger(f"{__name__}.ClipboardService")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def clipboard(self) -> Optional[Clipboard]:
        return self._clipboard

    def has_items(self) -> bool:
        return self._clipboard is not None and bool(self._clipboard.items)

    def clear(self) -> None:
        self._clipboard = None

    def copy(self, document: Document, selection: Iterable[str]) -> OperationResult:
        """Store fresh-id clones of the selected subtrees; the document is untouched."""
        roots = normalize_selection(document, selection)
        if not roots:
            return OperationResult(False, "Nothing selected to copy.", None, document)
        clones = tuple(tree.clone_subtree(document.find(i), self._ids) for i in roots)
        self._clipboard = Clipboard(clones, ClipboardMode.COPY)
        logger.info("Clipboard: copied %d item(s)", len(clones))
        return OperationResult(True, f"Copied {len(clones)} item(s).", {"count": len(clones)}, document)

    def cut(self, document: Document, selection: Iterable[str]) -> OperationResult:
        """Move the selected subtrees into the clipboard, ids preserved."""
        roots = normalize_selection(document, selection)
        if not roots:
            return OperationResult(False, "Nothing selected to cut.", None, document)
        current = document
        items: List[Node] = []
        for node_id in roots:
            current, node = tree.detach(current, node_id)
            items.append(node)
        self._clipboard = Clipboard(tuple(items), ClipboardMode.CUT)
        logger.info("Clipboard: cut %d item(s)", len(items))
        return OperationResult(True, f"Cut {len(items)} item(s).", {"count": len(items), "ids": roots}, current)

    def paste(self, document: Document, focus_id: Optional[str] = None) -> PasteResult:
        """Insert the clipboard items relative to *focus_id*.

        Without a focus node every item must be valid at the root, otherwise
        nothing is pasted. A container focus that accepts at least one item
        receives the accepted items as trailing children; any other focus
        gets them as siblings right after it. Rejected items are skipped and
        counted.

        Raises
        ------
        ClipboardRejection
            If the clipboard is empty or no item is accepted at the target.
        """
        if not self.has_items():
            raise ClipboardRejection("Clipboard is empty.")
        clipboard = self._clipboard
        items = self._prepare_items(document, clipboard)
        dialect = document.dialect

        focus = document.find(focus_id) if focus_id is not None else None
        if focus_id is not None and focus is None:
            logger.debug("Clipboard: focus %s not in document, pasting at root", focus_id)

        if focus is None:
            parent_id: Optional[str] = ROOT
            rejected = [n for n in items if not child_type_allowed(ROOT, n.type, dialect)]
            if rejected:
                logger.warning("Clipboard: root paste refused, %d item(s) invalid at root", len(rejected))
                raise ClipboardRejection(
                    f"{len(rejected)} item(s) cannot be placed at the root level.",
                    skipped=len(items),
                )
            index = len(document.roots)
        elif any(child_type_allowed(focus.type, n.type, dialect) for n in items):
            parent_id = focus.id
            index = len(focus.children)
        else:
            parent = document.parent_of(focus.id)
            parent_id = parent.id if parent is not None else ROOT
            position = next(i for i, c in enumerate(tree.siblings(document, parent_id)) if c.id == focus.id)
            index = position + 1

        parent_type = ROOT if parent_id is ROOT else document.find(parent_id).type
        current = document
        pasted: List[str] = []
        skipped = 0
        for node in items:
            if not child_type_allowed(parent_type, node.type, dialect):
                skipped += 1
                continue
            try:
                current = tree.insert_child(current, parent_id, node, index)
            except PlacementError as e:
                logger.warning("Clipboard: skipped %s (%s)", node.id, e)
                skipped += 1
                continue
            pasted.append(node.id)
            index += 1

        if not pasted:
            raise ClipboardRejection(
                f"The target accepts none of the {len(items)} clipboard item(s).", skipped=skipped
            )
        if clipboard.mode is ClipboardMode.CUT:
            self._clipboard = None
        logger.info("Clipboard: pasted %d item(s), skipped %d", len(pasted), skipped)
        return PasteResult(current, tuple(pasted), len(pasted), skipped)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _prepare_items(self, document: Document, clipboard: Clipboard) -> Tuple[Node, ...]:
        if clipboard.mode is ClipboardMode.COPY:
            return tuple(tree.clone_subtree(n, self._ids) for n in clipboard.items)
        # A cut whose removal was undone would collide with the live ids.
        present = set(document.ids())
        items = []
        for node in clipboard.items:
            if present.intersection(node.ids()):
                logger.debug("Clipboard: cut item %s already present, pasting a clone", node.id)
                node = tree.clone_subtree(node, self._ids)
            items.append(node)
        return tuple(items)
