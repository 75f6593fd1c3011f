from __future__ import annotations

"""Undo/redo snapshot management for form documents.

This service is UI-agnostic and performs pure in-memory history tracking of
whole :class:`~formbuilder.core.models.Document` values.

Design principles
-----------------
- No UI imports and no I/O (filesystem/console).
- Snapshots are the immutable documents themselves; storing a reference is
  enough because a later edit always produces a new document.
- Redo stack is cleared on every new commit (standard undo/redo behavior).
- Memory usage controlled by a max_history policy (trim oldest).

"""

import logging
from typing import List, Optional

from formbuilder.core.models import Document


__all__ = ["UndoService"]

logger = logging.getLogger(__name__)


class UndoService:
    """Manage undo/redo stacks for :class:`Document` values.

    The service holds the present document plus two stacks: earlier documents
    (undo) and undone documents (redo). Together they are equivalent to an
    ordered snapshot sequence with a pointer.

    Parameters
    ----------
    max_history : int, default=50
        Maximum number of undo steps to keep. Oldest entries are discarded
        when the capacity is exceeded. Must be >= 1; if passed lower, it will be
        coerced to 1.

    Examples
    --------
    >>> svc = UndoService(max_history=10)
    >>> svc.reset(Document.new(Dialect.QUESTIONNAIRE))
    >>> svc.commit(edited)
    >>> previous = svc.undo()   # None at the boundary
    >>> svc.redo() is edited
    True
    """

    def __init__(self, max_history: int = 50) -> None:
        self._max_history: int = max(1, int(max_history))
        self._undo_stack: List[Document] = []
        self._redo_stack: List[Document] = []
        self._present: Optional[Document] = None

    # --------------------------------------------------------------------- API

    @property
    def max_history(self) -> int:
        return self._max_history

    @property
    def current(self) -> Optional[Document]:
        """The present document, or None before the first reset/commit."""
        return self._present

    def reset(self, document: Document) -> None:
        """Make *document* the baseline and forget all history."""
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._present = document

    def commit(self, document: Document) -> None:
        """Record *document* as the result of one logical user action.

        The previous present becomes an undo step, the redo stack is cleared
        and the oldest step is evicted once the cap is exceeded.
        """
        if self._present is not None:
            self._undo_stack.append(self._present)
        self._present = document
        # New user action invalidates redo history
        self._redo_stack.clear()
        if len(self._undo_stack) > self._max_history:
            overflow = len(self._undo_stack) - self._max_history
            del self._undo_stack[0:overflow]
            logger.debug("History trimmed: dropped %d oldest snapshot(s)", overflow)

    def undo(self) -> Optional[Document]:
        """Step back one action and return the restored document.

        Returns None (and changes nothing) when there is nothing to undo.
        """
        if not self._undo_stack:
            return None
        self._redo_stack.append(self._present)
        self._present = self._undo_stack.pop()
        return self._present

    def redo(self) -> Optional[Document]:
        """Re-apply the most recently undone action; None at the boundary."""
        if not self._redo_stack:
            return None
        self._undo_stack.append(self._present)
        self._present = self._redo_stack.pop()
        return self._present

    def can_undo(self) -> bool:
        """Return True if an undo operation is currently possible."""
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        """Return True if a redo operation is currently possible."""
        return bool(self._redo_stack)

    def clear(self) -> None:
        """Clear both undo and redo histories, keeping the present document."""
        self._undo_stack.clear()
        self._redo_stack.clear()

    def __len__(self) -> int:
        return len(self._undo_stack)
