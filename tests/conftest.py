# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from taskwarden.tasks.channel import SchedulingPort
from taskwarden.tasks.coordinator import TaskCoordinator
from taskwarden.tasks.task_store import TaskStore

from .fakes import FakeSchedulingChannel

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def store(tmp_path: Path) -> TaskStore:
    """
    Real SQLite store in a per-test directory.

    We keep real SQLite here because its correctness is part of what we want to test.
    """
    return TaskStore(tmp_path / "tasks.sqlite3")


@pytest.fixture()
def channel() -> FakeSchedulingChannel:
    return FakeSchedulingChannel()


@pytest.fixture()
def coordinator(channel: FakeSchedulingChannel, store: TaskStore) -> TaskCoordinator:
    return TaskCoordinator(SchedulingPort(channel), store, clock=lambda: FIXED_NOW)
