# src/taskwarden/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite store and a scheduler channel into a TaskCoordinator.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.ports import SchedulingChannel
from ..tasks.channel import SchedulingPort
from ..tasks.coordinator import TaskCoordinator
from ..tasks.local_scheduler import LocalSchedulerChannel
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_coordinator(
    *,
    settings: Settings | None = None,
    channel: SchedulingChannel | None = None,
) -> TaskCoordinator:
    """
    Build a TaskCoordinator from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings(). Without a channel, an
    in-process LocalSchedulerChannel is used.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if channel is None:
        channel = LocalSchedulerChannel(retry_backoff_seconds=settings.retry_backoff_seconds)

    store = TaskStore(settings.tasks_db_path, cleanup_interval=settings.cleanup_interval)
    coordinator = TaskCoordinator(
        SchedulingPort(channel),
        store,
        cleanup_max_age=settings.cleanup_max_age,
    )
    logger.debug("Coordinator wired db=%s channel=%s", settings.tasks_db_path, type(channel).__name__)
    return coordinator
