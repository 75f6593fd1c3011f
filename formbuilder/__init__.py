"""Top-level package for the Form Builder toolkit.

This package hosts the structural document engine behind the form builder.
Front-ends (e.g. a GUI or a CLI) should only depend on the public API exposed
here rather than importing internal modules directly.
"""

from .core.context import EditorSession  # re-export for convenience
from .core.models import Dialect, Document, Node, NodeType  # noqa: F401

__all__: list[str] = [
    "EditorSession",
    "Dialect",
    "Document",
    "Node",
    "NodeType",
]
