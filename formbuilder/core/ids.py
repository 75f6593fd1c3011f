from __future__ import annotations

"""Identifier and clinical code sequences.

Generators are plain objects owned by whoever drives the engine (usually
:class:`formbuilder.core.context.EditorSession`). There is no module-level
counter: two sessions never share state, and tests can start from a known
value.
"""

import itertools
import re
import uuid
from typing import Iterable, Iterator, Optional

from formbuilder.core.models import Document, Node

__all__ = [
    "IdGenerator",
    "SequentialIdGenerator",
    "UuidIdGenerator",
    "CodeSequence",
    "make_id_generator",
]

_CODE_NUMBER = re.compile(r"(\d+)")


class IdGenerator:
    """Mint process-unique opaque node ids."""

    def new_id(self, prefix: str = "id") -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def reserve(self, ids: Iterable[str]) -> None:
        """Make sure ids already in use are never minted again."""


class SequentialIdGenerator(IdGenerator):
    """Monotonic ``<prefix>-<n>`` ids, one counter shared by all prefixes."""

    def __init__(self, start: int = 1) -> None:
        self._counter: Iterator[int] = itertools.count(start)
        self._used: set[str] = set()

    def new_id(self, prefix: str = "id") -> str:
        while True:
            candidate = f"{prefix}-{next(self._counter)}"
            if candidate not in self._used:
                self._used.add(candidate)
                return candidate

    def reserve(self, ids: Iterable[str]) -> None:
        self._used.update(ids)


class UuidIdGenerator(IdGenerator):
    """Random ``<prefix>-<uuid4>`` ids."""

    def new_id(self, prefix: str = "id") -> str:
        return f"{prefix}-{uuid.uuid4()}"


def make_id_generator(strategy: str = "sequence") -> IdGenerator:
    """Return an id generator for a configured strategy name."""
    if strategy == "uuid":
        return UuidIdGenerator()
    if strategy == "sequence":
        return SequentialIdGenerator()
    raise ValueError(f"Unknown id strategy '{strategy}'")


class CodeSequence:
    """Next free numeric code for clinical components.

    ``sync`` scans a document and moves the counter past the highest number
    found in component codes and option values, so freshly created
    components never reuse an existing code.
    """

    def __init__(self, start: int = 1) -> None:
        self._next = max(1, int(start))

    @property
    def current(self) -> int:
        return self._next

    def next_code(self) -> str:
        value = self._next
        self._next += 1
        return str(value)

    def reset(self) -> None:
        self._next = 1

    def sync(self, document: Optional[Document]) -> int:
        """Set the counter to one past the highest code in *document*."""
        highest = 0
        if document is not None:
            for node, _ in document.walk():
                highest = max(highest, _highest_code(node))
        self._next = highest + 1
        return self._next


def _highest_code(node: Node) -> int:
    numbers = [_code_number(node.attributes.code)]
    numbers.extend(_code_number(opt.value) for opt in node.attributes.options)
    return max(numbers)


def _code_number(text: str) -> int:
    match = _CODE_NUMBER.search(text or "")
    return int(match.group(1)) if match else 0
