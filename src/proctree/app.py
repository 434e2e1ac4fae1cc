"""proctree - interactive Textual process tree viewer."""

import threading
from queue import Empty, Queue

import psutil
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Static, Tree
from textual.widgets.tree import TreeNode

from proctree.config import Settings
from proctree.errors import ProcTreeError, SourceUnavailable
from proctree.models import ProcessNode
from proctree.source import ProcessRecordSource, make_source, snapshot
from proctree.tree import ProcessTreeRenderer, ProcessTreeResult, build_tree

TreeUpdate = ProcessTreeResult | ProcTreeError


class StatusBar(Static):
    """Single line summary of the last snapshot."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__("Gathering process information...", *args, **kwargs)
        self._process_count: int = 0
        self._cycle_pids: list[int] = []

    @property
    def process_count(self) -> int:
        return self._process_count

    def update_summary(self, result: ProcessTreeResult) -> None:
        """Show the process count and any cycles from ``result``."""
        self._process_count = len(result)
        self._cycle_pids = [cycle.pid for cycle in result.cycles]
        summary = f"{self._process_count} processes below PID {result.root_id}"
        if self._cycle_pids:
            pids = ", ".join(str(pid) for pid in self._cycle_pids)
            summary += f"  [red]cycles truncated at PID {pids}[/red]"
        self.update(summary)


class ProcessTreeView(Container):
    """Container for the process tree widget."""

    DEFAULT_CSS = """
    ProcessTreeView {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._formatter = ProcessTreeRenderer()
        self._current_pids: set[int] = set()

    def compose(self) -> ComposeResult:
        yield Tree(self._formatter.root_line(0), id="process-tree")

    @property
    def pids(self) -> set[int]:
        """Pids currently shown in the tree."""
        return set(self._current_pids)

    @property
    def tree_widget(self) -> Tree[int]:
        return self.query_one("#process-tree", Tree)

    def update_tree(self, result: ProcessTreeResult) -> None:
        """
        Replace the tree contents with ``result``.

        Nodes are added iteratively so deep hierarchies do not recurse.
        """
        tree = self.tree_widget
        tree.reset(Text(self._formatter.root_line(result.root_id, result.root_record)), data=result.root_id)
        tree.root.expand()

        pids: set[int] = set()
        stack: list[tuple[TreeNode[int], ProcessNode]] = [(tree.root, node) for node in reversed(result.nodes)]
        while stack:
            parent, node = stack.pop()
            label = Text(self._formatter.format_line(node.record, 0).removeprefix(self._formatter.marker))
            if node.children:
                branch = parent.add(label, data=node.pid, expand=True)
                stack.extend((branch, child) for child in reversed(node.children))
            else:
                parent.add_leaf(label, data=node.pid)
            pids.add(node.pid)

        self._current_pids = pids

    def expand_all(self) -> None:
        self.tree_widget.root.expand_all()

    def collapse_all(self) -> None:
        for child in self.tree_widget.root.children:
            child.collapse_all()


class ProcessTreeApp(App):
    """Interactive process tree viewer."""

    TITLE = "proctree"
    SUB_TITLE = "Process Hierarchy"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("e", "expand_all", "Expand"),
        ("c", "collapse_all", "Collapse"),
    ]

    def __init__(
        self,
        settings: Settings | None = None,
        source: ProcessRecordSource | None = None,
    ) -> None:
        super().__init__()
        self._settings = settings or Settings()
        self._source = source or make_source(self._settings.source, self._settings.proc_root)
        self._update_queue: Queue[TreeUpdate] = Queue()
        self._collector: threading.Thread | None = None

    @property
    def is_collecting(self) -> bool:
        return self._collector is not None and self._collector.is_alive()

    def compose(self) -> ComposeResult:
        yield StatusBar(id="status-bar")
        yield ProcessTreeView()
        yield Footer()

    def on_mount(self) -> None:
        """Take the first snapshot and start polling for results."""
        self.action_refresh()
        self.set_interval(0.2, self._check_for_updates)

    def _collect(self) -> None:
        """Collect a snapshot and build its tree off the UI thread."""
        try:
            records = snapshot(self._source)
            self._update_queue.put(build_tree(records, self._settings.root_pid))
        except ProcTreeError as exc:
            self._update_queue.put(exc)
        except psutil.Error as exc:
            self._update_queue.put(SourceUnavailable(str(exc) or repr(exc)))

    def _check_for_updates(self) -> None:
        """Apply the most recent result waiting in the queue."""
        update = None
        while True:
            try:
                update = self._update_queue.get_nowait()
            except Empty:
                break

        if update is None:
            return
        if isinstance(update, ProcTreeError):
            self.notify(str(update), severity="error")
            return

        self.query_one("#status-bar", StatusBar).update_summary(update)
        self.query_one(ProcessTreeView).update_tree(update)

    def action_refresh(self) -> None:
        """Start a new snapshot unless one is already being collected."""
        if self.is_collecting:
            return
        self._collector = threading.Thread(target=self._collect, daemon=True, name="ProcessCollector")
        self._collector.start()

    def action_expand_all(self) -> None:
        self.query_one(ProcessTreeView).expand_all()

    def action_collapse_all(self) -> None:
        self.query_one(ProcessTreeView).collapse_all()


def main() -> None:
    """Entry point for the interactive viewer."""
    app = ProcessTreeApp(Settings.from_env())
    app.run()


if __name__ == "__main__":
    main()
