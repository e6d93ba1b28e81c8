# src/taskwarden/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the coordinator on top of the in-process
scheduler, schedules a periodic heartbeat task and runs the scheduler
polling loop until SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from datetime import timedelta

from ..cli.bootstrap import create_coordinator
from ..config import get_settings
from ..logging_setup import level_from_name, setup_logging
from ..tasks.local_scheduler import LocalSchedulerChannel
from ..tasks.task_models import TaskData, TaskOptions

logger = logging.getLogger(__name__)

HEARTBEAT_TASK_ID = "heartbeat"


async def _heartbeat(task_id: str, data: TaskData | None) -> None:
    logger.info("Heartbeat task_id=%s data=%s", task_id, data)


async def _run() -> None:
    settings = get_settings()
    channel = LocalSchedulerChannel(retry_backoff_seconds=settings.retry_backoff_seconds)
    coordinator = create_coordinator(settings=settings, channel=channel)

    coordinator.register_task(HEARTBEAT_TASK_ID, _heartbeat)
    await coordinator.initialize()
    await coordinator.schedule_task(
        TaskOptions(
            id=HEARTBEAT_TASK_ID,
            periodic=True,
            frequency=timedelta(minutes=15),
            data={"app": settings.app_name},
        )
    )
    logger.info("Storage stats: %s", await coordinator.get_storage_stats())

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms (Windows) do not support signal handlers in the loop.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    runner = asyncio.create_task(channel.run(interval_seconds=settings.scheduler_interval_seconds))
    try:
        await stop.wait()
    finally:
        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner
        coordinator.reset()


def main() -> None:
    settings = get_settings()

    execution_level = (
        level_from_name(settings.execution_log_level) if settings.execution_log_level else None
    )
    setup_logging(
        log_dir=settings.log_dir,
        console_level=level_from_name(settings.log_level),
        execution_level=execution_level,
    )

    logger.info("Starting %s...", settings.app_name)
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
