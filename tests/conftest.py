"""Shared fixtures for proctree tests."""

import pytest

from proctree.models import ProcessRecord


@pytest.fixture
def sample_records() -> list[ProcessRecord]:
    """A small acyclic hierarchy: init -> (shell -> child), editor."""
    return [
        ProcessRecord(pid=1, parent_pid=0, name="init"),
        ProcessRecord(pid=2, parent_pid=1, name="shell"),
        ProcessRecord(pid=3, parent_pid=1, name="editor"),
        ProcessRecord(pid=4, parent_pid=2, name="child"),
    ]


@pytest.fixture
def cyclic_records() -> list[ProcessRecord]:
    """Two processes that name each other as parent."""
    return [
        ProcessRecord(pid=5, parent_pid=6, name="a"),
        ProcessRecord(pid=6, parent_pid=5, name="b"),
    ]
