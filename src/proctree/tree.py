"""Process hierarchy construction and text rendering."""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TextIO

from proctree.errors import CyclicParentage
from proctree.models import ProcessNode, ProcessRecord

logger = logging.getLogger(__name__)

ROOT_PID = 0
ROOT_NAME = "Root (System)"


@dataclass(slots=True)
class ProcessTreeResult:
    """Top-level nodes below the root plus any cycles found while building."""

    root_id: int
    root_record: ProcessRecord | None
    nodes: list[ProcessNode] = field(default_factory=list)
    cycles: list[CyclicParentage] = field(default_factory=list)

    def __len__(self) -> int:
        return sum(1 for node in self.nodes for _ in node.walk())


@dataclass(slots=True)
class RenderedTree:
    """Rendered output lines, root line first."""

    lines: list[str]
    cycles: list[CyclicParentage]
    visited: int

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def group_by_parent(records: Iterable[ProcessRecord]) -> dict[int, list[ProcessRecord]]:
    """Map each parent pid to its direct children, sorted by pid ascending."""
    children: dict[int, list[ProcessRecord]] = defaultdict(list)
    for record in records:
        children[record.parent_pid].append(record)
    for siblings in children.values():
        siblings.sort(key=lambda r: r.pid)
    return dict(children)


def build_tree(records: Sequence[ProcessRecord], root_id: int = ROOT_PID) -> ProcessTreeResult:
    """
    Build the hierarchy below ``root_id``.

    Records whose parent is never reached (orphans) are left out. A record
    whose pid was already placed in the tree, or that leads back to the root,
    is a cycle: it is recorded and its subtree is not descended into.
    """
    children = group_by_parent(records)
    root_record = next((r for r in records if r.pid == root_id), None)
    result = ProcessTreeResult(root_id=root_id, root_record=root_record)

    # Children are pushed in reverse so records are popped, and marked
    # visited, in the same pre-order the tree is rendered in.
    visited = {root_id}
    stack: list[tuple[ProcessRecord, list[ProcessNode]]] = [
        (record, result.nodes) for record in reversed(children.get(root_id, []))
    ]
    while stack:
        record, siblings = stack.pop()
        if record.pid == root_id and record.parent_pid == root_id:
            # The root describing itself, e.g. pid 0 with ppid 0.
            continue
        if record.pid in visited:
            cycle = CyclicParentage(record.pid, record.parent_pid)
            logger.warning("%s; truncating subtree", cycle)
            result.cycles.append(cycle)
            continue
        visited.add(record.pid)
        node = ProcessNode(record)
        siblings.append(node)
        stack.extend((child, node.children) for child in reversed(children.get(record.pid, [])))

    return result


class ProcessTreeRenderer:
    """
    Render a flat process snapshot as an indented text tree.

    Output starts with one root line, followed by one line per reachable
    process in depth-first order, siblings ordered by pid::

        Root (System) (PID: 0, PPID: 0)
        +-- init (PID: 1, PPID: 0)
          +-- shell (PID: 2, PPID: 1)
    """

    def __init__(self, indent: str = "  ", marker: str = "+-- ") -> None:
        self.indent = indent
        self.marker = marker

    def root_line(self, root_id: int, root_record: ProcessRecord | None = None) -> str:
        if root_id == ROOT_PID or root_record is None:
            return f"{ROOT_NAME} (PID: {root_id}, PPID: 0)"
        return f"{root_record.name} (PID: {root_record.pid}, PPID: {root_record.parent_pid})"

    def format_line(self, record: ProcessRecord, depth: int) -> str:
        return (
            f"{self.indent * depth}{self.marker}{record.name} "
            f"(PID: {record.pid}, PPID: {record.parent_pid})"
        )

    def render_lines(self, records: Sequence[ProcessRecord], root_id: int = ROOT_PID) -> RenderedTree:
        tree = build_tree(records, root_id)
        lines = [self.root_line(root_id, tree.root_record)]
        for top in tree.nodes:
            for node, depth in top.walk():
                lines.append(self.format_line(node.record, depth))
        return RenderedTree(lines=lines, cycles=tree.cycles, visited=len(lines) - 1)

    def render(
        self,
        records: Sequence[ProcessRecord],
        root_id: int = ROOT_PID,
        strict: bool = False,
    ) -> str:
        """
        Render ``records`` to a single string.

        Args:
            records: Flat process snapshot.
            root_id: Pid whose descendants are rendered. Default 0.
            strict: Raise the first detected CyclicParentage instead of
                only truncating the offending subtree.
        """
        rendered = self.render_lines(records, root_id)
        if strict and rendered.cycles:
            raise rendered.cycles[0]
        return rendered.text

    def write(
        self,
        records: Sequence[ProcessRecord],
        stream: TextIO,
        root_id: int = ROOT_PID,
    ) -> RenderedTree:
        """Write the rendered tree to ``stream``, one line per process."""
        rendered = self.render_lines(records, root_id)
        for line in rendered.lines:
            stream.write(line + "\n")
        return rendered


def render(records: Sequence[ProcessRecord], root_id: int = ROOT_PID) -> str:
    """Render ``records`` with the default indentation and marker."""
    return ProcessTreeRenderer().render(records, root_id)
