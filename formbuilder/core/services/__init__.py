from __future__ import annotations

"""Editing services (structure edits, clipboard, undo/redo, drag, lint).

Services are instantiated directly; :class:`formbuilder.core.context.EditorSession`
wires them together for UI callers.
"""

from .structure_editing_service import OperationResult, StructureEditingService  # noqa: F401
from .clipboard_service import ClipboardService, ClipboardMode, PasteResult  # noqa: F401
from .undo_service import UndoService  # noqa: F401
from .drag_service import DragSession, DropFeedback  # noqa: F401
from .lint_service import Diagnostic, DiagnosticKind, LintService, lint  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "StructureEditingService",
    "ClipboardService",
    "ClipboardMode",
    "PasteResult",
    "UndoService",
    "DragSession",
    "DropFeedback",
    "Diagnostic",
    "DiagnosticKind",
    "LintService",
    "lint",
]
