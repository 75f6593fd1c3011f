from __future__ import annotations

"""Pure, grammar-checked tree operations on :class:`Document` values.

Each function takes a document and returns a new one; the input is never
modified. Ancestor chains of the edited node are rebuilt and every other
subtree is shared with the previous document. Failures raise
:class:`~formbuilder.core.exceptions.PlacementError` and leave nothing
half-applied.

:class:`~formbuilder.core.services.structure_editing_service.StructureEditingService`
wraps these helpers with logging and non-raising results.
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Tuple

from formbuilder.core.exceptions import PlacementError
from formbuilder.core.ids import IdGenerator
from formbuilder.core.models import Document, Node, NodeType
from formbuilder.core.models.grammar import ROOT, child_type_allowed, describe_rejection

__all__ = [
    "DropTarget",
    "siblings",
    "check_placement",
    "insert_child",
    "move_node",
    "remove_node",
    "reorder_siblings",
    "replace_node",
    "detach",
    "clone_subtree",
    "resolve_drop",
]

ChildrenFn = Callable[[Tuple[Node, ...]], Sequence[Node]]


@dataclass(frozen=True)
class DropTarget:
    """Where a dragged item lands.

    Attributes
    ----------
    parent_id
        Destination parent id, or ``ROOT``.
    index
        Insertion index in the destination sibling list.
    as_sibling
        True when the drop fell back to "insert before the target" because the
        target itself cannot contain the dragged type.
    """

    parent_id: Optional[str]
    index: int
    as_sibling: bool = False


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

def _require(document: Document, node_id: str) -> Node:
    node = document.find(node_id)
    if node is None:
        raise PlacementError(f"Node '{node_id}' not found.", node_id=node_id)
    return node


def _parent_type(document: Document, parent_id: Optional[str]) -> Optional[NodeType]:
    if parent_id is ROOT:
        return ROOT
    parent = document.find(parent_id)
    if parent is None:
        raise PlacementError(f"Parent '{parent_id}' not found.", parent_id=parent_id)
    return parent.type


def siblings(document: Document, parent_id: Optional[str]) -> Tuple[Node, ...]:
    """Return the children of *parent_id* (the roots for ``ROOT``)."""
    if parent_id is ROOT:
        return document.roots
    parent = document.find(parent_id)
    if parent is None:
        raise PlacementError(f"Parent '{parent_id}' not found.", parent_id=parent_id)
    return parent.children


def check_placement(document: Document, parent_id: Optional[str], child_type: NodeType) -> None:
    """Raise PlacementError unless *child_type* may go under *parent_id*."""
    parent_type = _parent_type(document, parent_id)
    if not child_type_allowed(parent_type, child_type, document.dialect):
        raise PlacementError(
            describe_rejection(parent_type, child_type, document.dialect),
            parent_id=parent_id,
        )


def _clamp(index: Optional[int], upper: int) -> int:
    if index is None:
        return upper
    return max(0, min(int(index), upper))


# ---------------------------------------------------------------------------
# Structural rebuild
# ---------------------------------------------------------------------------

def _update_children(document: Document, parent_id: Optional[str], fn: ChildrenFn) -> Document:
    """Return a copy of *document* where *parent_id*'s children are ``fn(children)``."""
    if parent_id is ROOT:
        return document.with_roots(fn(document.roots))

    found = False

    def rebuild(nodes: Tuple[Node, ...]) -> Tuple[Node, ...]:
        nonlocal found
        out = []
        for node in nodes:
            if found:
                out.append(node)
            elif node.id == parent_id:
                found = True
                out.append(node.with_children(fn(node.children)))
            else:
                new_children = rebuild(node.children)
                out.append(node if new_children is node.children else node.with_children(new_children))
        if any(a is not b for a, b in zip(out, nodes)):
            return tuple(out)
        return nodes

    roots = rebuild(document.roots)
    if not found:
        raise PlacementError(f"Parent '{parent_id}' not found.", parent_id=parent_id)
    return document.with_roots(roots)


def replace_node(document: Document, node_id: str, fn: Callable[[Node], Node]) -> Document:
    """Return a copy of *document* with *node_id* replaced by ``fn(node)``."""
    parent = document.parent_of(node_id)
    _require(document, node_id)
    parent_id = parent.id if parent is not None else ROOT

    def swap(children: Tuple[Node, ...]) -> Tuple[Node, ...]:
        return tuple(fn(c) if c.id == node_id else c for c in children)

    return _update_children(document, parent_id, swap)


def detach(document: Document, node_id: str) -> Tuple[Document, Node]:
    """Remove *node_id* and return ``(new_document, detached_subtree)``."""
    node = _require(document, node_id)
    parent = document.parent_of(node_id)
    parent_id = parent.id if parent is not None else ROOT
    new_doc = _update_children(
        document, parent_id, lambda children: tuple(c for c in children if c.id != node_id)
    )
    return new_doc, node


def _insert_unchecked(document: Document, parent_id: Optional[str], child: Node,
                      index: Optional[int]) -> Document:
    def add(children: Tuple[Node, ...]) -> Tuple[Node, ...]:
        at = _clamp(index, len(children))
        return children[:at] + (child,) + children[at:]

    return _update_children(document, parent_id, add)


# ---------------------------------------------------------------------------
# Public mutations
# ---------------------------------------------------------------------------

def insert_child(document: Document, parent_id: Optional[str], new_child: Node,
                 index: Optional[int] = None) -> Document:
    """Insert *new_child* under *parent_id* (append by default)."""
    check_placement(document, parent_id, new_child.type)
    present = set(document.ids())
    incoming = new_child.ids()
    clashes = [i for i in incoming if i in present]
    if clashes or len(set(incoming)) != len(incoming):
        raise PlacementError(
            f"Node '{new_child.id}' is already part of the document.",
            node_id=new_child.id,
            parent_id=parent_id,
        )
    return _insert_unchecked(document, parent_id, new_child, index)


def remove_node(document: Document, node_id: str) -> Document:
    """Remove *node_id* together with all of its descendants."""
    new_doc, _ = detach(document, node_id)
    return new_doc


def reorder_siblings(document: Document, parent_id: Optional[str], from_index: int,
                     to_index: int) -> Document:
    """Move the sibling at *from_index* so that it ends up at *to_index*."""
    current = siblings(document, parent_id)
    if not 0 <= from_index < len(current):
        raise PlacementError(
            f"Index {from_index} is out of range for {len(current)} siblings.",
            parent_id=parent_id,
        )
    to_index = _clamp(to_index, len(current) - 1)
    if from_index == to_index:
        return document

    def move(children: Tuple[Node, ...]) -> Tuple[Node, ...]:
        items = list(children)
        item = items.pop(from_index)
        items.insert(to_index, item)
        return tuple(items)

    return _update_children(document, parent_id, move)


def move_node(document: Document, node_id: str, new_parent_id: Optional[str],
              index: Optional[int] = None) -> Document:
    """Detach *node_id* and re-insert it under *new_parent_id*.

    When the destination is the current parent the move is a sibling reorder
    and *index* is the final position. Moving a node into itself or one of its
    descendants raises PlacementError. The subtree is moved, never copied.
    """
    node = _require(document, node_id)
    if new_parent_id is not ROOT and new_parent_id in node.ids():
        raise PlacementError(
            "Cannot move a component into itself or one of its descendants.",
            node_id=node_id,
            parent_id=new_parent_id,
        )

    current_parent = document.parent_of(node_id)
    current_parent_id = current_parent.id if current_parent is not None else ROOT
    if current_parent_id == new_parent_id:
        current = siblings(document, current_parent_id)
        from_index = next(i for i, c in enumerate(current) if c.id == node_id)
        to_index = _clamp(index, len(current) - 1)
        return reorder_siblings(document, current_parent_id, from_index, to_index)

    check_placement(document, new_parent_id, node.type)
    detached, subtree = detach(document, node_id)
    return _insert_unchecked(detached, new_parent_id, subtree, index)


def clone_subtree(node: Node, ids: IdGenerator) -> Node:
    """Deep-clone *node* giving every node of the clone a fresh id."""
    return replace(
        node,
        id=ids.new_id(node.type.value),
        children=tuple(clone_subtree(c, ids) for c in node.children),
    )


def resolve_drop(document: Document, dragged_type: NodeType,
                 target_id: Optional[str]) -> DropTarget:
    """Resolve a drop of *dragged_type* onto *target_id*.

    A container target that accepts the type receives it as last child. Any
    other target falls back to inserting directly before it when the target's
    parent accepts the type.
    """
    dialect = document.dialect
    if target_id is ROOT:
        if not child_type_allowed(ROOT, dragged_type, dialect):
            raise PlacementError(describe_rejection(ROOT, dragged_type, dialect))
        return DropTarget(ROOT, len(document.roots))

    target = _require(document, target_id)
    if child_type_allowed(target.type, dragged_type, dialect):
        return DropTarget(target.id, len(target.children))

    parent = document.parent_of(target_id)
    parent_type = parent.type if parent is not None else ROOT
    if child_type_allowed(parent_type, dragged_type, dialect):
        parent_id = parent.id if parent is not None else ROOT
        position = next(i for i, c in enumerate(siblings(document, parent_id)) if c.id == target_id)
        return DropTarget(parent_id, position, as_sibling=True)

    raise PlacementError(
        describe_rejection(target.type, dragged_type, dialect), parent_id=target_id
    )
