from __future__ import annotations

"""Engine exception classes.

Placement and clipboard errors leave the document untouched; parse errors
abort a whole load. All engine exceptions inherit from
:class:`FormBuilderError` so callers can catch them in one place.
"""

from typing import Optional

__all__ = [
    "FormBuilderError",
    "PlacementError",
    "ParseError",
    "ClipboardRejection",
]


class FormBuilderError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class PlacementError(FormBuilderError):
    """Raised when a mutation violates the placement grammar.

    This covers grammar violations, moves that would create a cycle,
    duplicate ids and unknown parent or node ids.
    """

    def __init__(self, message: str, node_id: Optional[str] = None,
                 parent_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.node_id = node_id
        self.parent_id = parent_id


class ParseError(FormBuilderError):
    """Raised when XML text is malformed or has an unrecognised root."""


class ClipboardRejection(FormBuilderError):
    """Raised when a paste target accepts none of the clipboard items."""

    def __init__(self, message: str, skipped: int = 0) -> None:
        super().__init__(message)
        self.skipped = skipped
