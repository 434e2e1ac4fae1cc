"""Tests for the proctree Textual viewer."""

import psutil
import pytest

from proctree.app import ProcessTreeApp, ProcessTreeView, StatusBar
from proctree.config import Settings
from proctree.errors import SourceUnavailable
from proctree.models import ProcessRecord
from proctree.source import StaticRecordSource
from proctree.tree import build_tree


@pytest.mark.asyncio
async def test_app_creation(sample_records):
    """Test ProcessTreeApp can be instantiated."""
    app = ProcessTreeApp(source=StaticRecordSource(sample_records))
    assert app.title == "proctree"
    assert app.sub_title == "Process Hierarchy"
    assert not app.is_collecting


@pytest.mark.asyncio
async def test_app_defaults_to_settings_source():
    """Test the app builds its source from settings when none is given."""
    app = ProcessTreeApp(Settings(source="procfs", proc_root="/nonexistent"))
    assert app._source.proc_root.name == "nonexistent"


@pytest.mark.asyncio
async def test_app_compose(sample_records):
    """Test ProcessTreeApp composes correctly."""
    app = ProcessTreeApp(source=StaticRecordSource(sample_records))
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#status-bar") is not None
        assert pilot.app.query_one("#process-tree") is not None


@pytest.mark.asyncio
async def test_app_loads_snapshot(sample_records):
    """Test the first snapshot is shown after mounting."""
    app = ProcessTreeApp(source=StaticRecordSource(sample_records))
    async with app.run_test() as pilot:
        await pilot.pause(0.5)

        view = pilot.app.query_one(ProcessTreeView)
        assert view.pids == {1, 2, 3, 4}

        status = pilot.app.query_one("#status-bar", StatusBar)
        assert status.process_count == 4

        init = view.tree_widget.root.children[0]
        assert str(init.label) == "init (PID: 1, PPID: 0)"
        assert [child.data for child in init.children] == [2, 3]


@pytest.mark.asyncio
async def test_app_root_pid(sample_records):
    """Test the configured root pid limits the tree."""
    app = ProcessTreeApp(Settings(root_pid=2), source=StaticRecordSource(sample_records))
    async with app.run_test() as pilot:
        await pilot.pause(0.5)

        view = pilot.app.query_one(ProcessTreeView)
        assert view.pids == {4}
        assert str(view.tree_widget.root.label) == "shell (PID: 2, PPID: 1)"


@pytest.mark.asyncio
async def test_app_reports_cycles(cyclic_records):
    """Test cycles are truncated in the tree and counted in the status bar."""
    app = ProcessTreeApp(Settings(root_pid=5), source=StaticRecordSource(cyclic_records))
    async with app.run_test() as pilot:
        await pilot.pause(0.5)

        view = pilot.app.query_one(ProcessTreeView)
        assert view.pids == {6}
        status = pilot.app.query_one("#status-bar", StatusBar)
        assert status._cycle_pids == [5]


@pytest.mark.asyncio
async def test_app_survives_empty_snapshot():
    """Test an empty snapshot is reported without crashing the app."""
    app = ProcessTreeApp(source=StaticRecordSource([]))
    async with app.run_test() as pilot:
        await pilot.pause(0.5)

        view = pilot.app.query_one(ProcessTreeView)
        assert view.pids == set()
        assert pilot.app.is_running


@pytest.mark.asyncio
async def test_app_survives_unavailable_source(tmp_path):
    """Test an unreadable process table is reported without crashing the app."""
    app = ProcessTreeApp(Settings(source="procfs", proc_root=str(tmp_path / "missing")))
    async with app.run_test() as pilot:
        await pilot.pause(0.5)
        assert pilot.app.is_running


class FailingSource:
    """Source whose enumeration fails with a generic psutil error."""

    def fetch_all(self):
        raise psutil.Error()


def test_collector_reports_psutil_errors():
    """Test an unexpected psutil error reaches the UI as SourceUnavailable."""
    app = ProcessTreeApp(source=FailingSource())

    app._collect()

    update = app._update_queue.get_nowait()
    assert isinstance(update, SourceUnavailable)


@pytest.mark.asyncio
async def test_app_notifies_on_psutil_error():
    """Test the app keeps running when the collector hits a psutil error."""
    app = ProcessTreeApp(source=FailingSource())
    async with app.run_test() as pilot:
        await pilot.pause(0.5)

        assert pilot.app.is_running
        assert pilot.app.query_one(ProcessTreeView).pids == set()


@pytest.mark.asyncio
async def test_app_refresh_binding(sample_records):
    """Test that 'r' picks up a changed process table."""
    records = list(sample_records)
    source = StaticRecordSource(records)
    app = ProcessTreeApp(source=source)
    async with app.run_test() as pilot:
        await pilot.pause(0.5)
        assert 5 not in pilot.app.query_one(ProcessTreeView).pids

        source._records.append(ProcessRecord(pid=5, parent_pid=1, name="new"))
        await pilot.press("r")
        await pilot.pause(0.5)

        assert 5 in pilot.app.query_one(ProcessTreeView).pids


@pytest.mark.asyncio
async def test_app_expand_collapse_bindings(sample_records):
    """Test 'c' collapses and 'e' expands the tree."""
    app = ProcessTreeApp(source=StaticRecordSource(sample_records))
    async with app.run_test() as pilot:
        await pilot.pause(0.5)
        init = pilot.app.query_one(ProcessTreeView).tree_widget.root.children[0]
        assert init.is_expanded

        await pilot.press("c")
        assert not init.is_expanded

        await pilot.press("e")
        assert init.is_expanded


@pytest.mark.asyncio
async def test_app_quit_binding(sample_records):
    """Test that 'q' binding triggers quit."""
    app = ProcessTreeApp(source=StaticRecordSource(sample_records))
    async with app.run_test() as pilot:
        await pilot.press("q")
        # App should be exiting
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_update_tree_directly(sample_records):
    """Test ProcessTreeView replaces its contents on each update."""
    app = ProcessTreeApp(source=StaticRecordSource(sample_records))
    async with app.run_test() as pilot:
        view = pilot.app.query_one(ProcessTreeView)

        view.update_tree(build_tree(sample_records))
        assert view.pids == {1, 2, 3, 4}

        view.update_tree(build_tree(sample_records[:1]))
        assert view.pids == {1}
        assert len(view.tree_widget.root.children) == 1
