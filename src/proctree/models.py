"""Data models for proctree."""

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable record of one process taken from a snapshot."""

    pid: int
    parent_pid: int
    name: str


@dataclass(slots=True)
class ProcessNode:
    """A process record together with its direct children, ordered by pid."""

    record: ProcessRecord
    children: list["ProcessNode"] = field(default_factory=list)

    @property
    def pid(self) -> int:
        return self.record.pid

    def walk(self, depth: int = 0) -> Iterator[tuple["ProcessNode", int]]:
        """Yield this node and its descendants in pre-order with their depth."""
        stack = [(self, depth)]
        while stack:
            node, level = stack.pop()
            yield node, level
            stack.extend((child, level + 1) for child in reversed(node.children))
