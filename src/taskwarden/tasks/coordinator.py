# tasks/coordinator.py

from __future__ import annotations

"""
Task lifecycle coordinator.

Owns the logical side of background tasks:
- validates options before anything leaves the process,
- submits/cancels jobs through the scheduling port,
- mirrors scheduled jobs in the persistent store and an in-memory cache,
- routes inbound executeTask calls to registered handlers (ExecutionRouter).

State machine: Uninitialized -> Ready (initialize); reset() goes back.
Everything that talks to the scheduler or the cache requires Ready.

Known gap: schedule_task submits to the scheduler before writing the store.
If the store write fails, the job exists on the scheduler side but not in
get_scheduled_tasks()/is_task_scheduled(). This is not reconciled here.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any, TypeVar

from ..core.errors import TaskError
from ..core.ports import TaskHandler, TaskRepo
from .channel import SchedulingPort
from .events import ExecutionEventBus
from .registry import TaskRegistry, as_task_handler
from .router import ExecutionRouter
from .task_models import ScheduledTaskInfo, TaskData, TaskOptions, utc_now
from .validator import validate_options

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CLEANUP_MAX_AGE = timedelta(days=30)


class TaskCoordinator:
    def __init__(
        self,
        port: SchedulingPort,
        store: TaskRepo,
        *,
        cleanup_max_age: timedelta = DEFAULT_CLEANUP_MAX_AGE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._port = port
        self._store = store
        self._cleanup_max_age = cleanup_max_age
        self._clock = clock

        self._initialized = False
        self._registry = TaskRegistry()
        self._scheduled: dict[str, ScheduledTaskInfo] = {}
        self._events: ExecutionEventBus | None = None
        self._router = ExecutionRouter(
            self._registry,
            store,
            on_executed=self._publish_execution,
            clock=clock,
        )

    # ---- state ----

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def registered_task_count(self) -> int:
        return self._registry.count()

    @property
    def scheduled_task_count(self) -> int:
        return len(self._scheduled)

    @property
    def router(self) -> ExecutionRouter:
        return self._router

    @property
    def execution_events(self) -> ExecutionEventBus:
        """Bus of executed task ids; created on first access, closed by reset()."""
        if self._events is None:
            self._events = ExecutionEventBus()
        return self._events

    def _publish_execution(self, task_id: str) -> None:
        if self._events is not None:
            self._events.publish(task_id)

    def _require_ready(self) -> None:
        if not self._initialized:
            raise TaskError.not_initialized()

    @staticmethod
    async def _native(operation: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except TaskError:
            raise
        except Exception as exc:
            raise TaskError.native_operation(operation, str(exc)) from exc

    # ---- lifecycle ----

    async def initialize(self) -> None:
        if self._initialized:
            return

        await self._native("initialize", self._port.initialize())
        self._port.set_method_call_handler(self._router.handle_call)

        try:
            records = self._store.load_all_tasks()
        except TaskError:
            self._port.remove_method_call_handler()
            raise

        self._scheduled = {info.id: info for info in records if info.is_active}

        try:
            self._store.cleanup_old_tasks(max_age=self._cleanup_max_age, now=self._clock())
        except TaskError as exc:
            logger.warning("Stale task cleanup failed; continuing: %s", exc)

        self._initialized = True
        logger.info("TaskCoordinator initialized active_tasks=%d", len(self._scheduled))

    def reset(self) -> None:
        """Forget everything held in memory and detach from the scheduler channel."""
        self._initialized = False
        self._registry.clear()
        self._scheduled.clear()
        if self._events is not None:
            self._events.close()
            self._events = None
        self._port.remove_method_call_handler()
        logger.debug("TaskCoordinator reset")

    # ---- registration ----

    def register_task(
        self,
        task_id: str,
        handler: TaskHandler | Callable[[str, TaskData | None], Any],
    ) -> None:
        self._registry.register(task_id, as_task_handler(handler))
        logger.debug("Task registered id=%s", task_id)

    def unregister_task(self, task_id: str) -> None:
        self._registry.unregister(task_id)

    # ---- scheduling ----

    async def schedule_task(self, options: TaskOptions) -> ScheduledTaskInfo:
        self._require_ready()
        if options.id not in self._registry:
            raise TaskError.task_not_registered(options.id)
        validate_options(options)

        await self._native("scheduleTask", self._port.schedule_task(options))

        info = ScheduledTaskInfo(
            id=options.id,
            options=options,
            is_active=True,
            execution_count=0,
            failure_count=0,
            scheduled_at=self._clock(),
        )
        self._store.save_task(info)
        self._scheduled[options.id] = info

        logger.info(
            "Task scheduled id=%s periodic=%s frequency=%s initial_delay=%s",
            options.id,
            options.periodic,
            options.frequency,
            options.initial_delay,
        )
        return info

    async def cancel_task(self, task_id: str) -> None:
        self._require_ready()
        await self._native("cancelTask", self._port.cancel_task(task_id))
        self._store.update_task_status(task_id, False)
        self._scheduled.pop(task_id, None)
        logger.info("Task cancelled id=%s", task_id)

    async def cancel_all_tasks(self) -> None:
        self._require_ready()
        await self._native("cancelAllTasks", self._port.cancel_all_tasks())
        self._store.clear_all_tasks()
        self._scheduled.clear()
        logger.info("All tasks cancelled")

    async def get_scheduled_tasks(self) -> list[ScheduledTaskInfo]:
        """Local view of scheduled tasks (does not query the scheduler)."""
        self._require_ready()
        return list(self._scheduled.values())

    async def is_task_scheduled(self, task_id: str) -> bool:
        self._require_ready()
        info = self._scheduled.get(task_id)
        return info is not None and info.is_active

    async def execute_task_now(self, task_id: str) -> None:
        self._require_ready()
        if task_id not in self._registry:
            raise TaskError.task_not_registered(task_id)
        await self._native("executeTaskNow", self._port.execute_task_now(task_id))

    # ---- results / diagnostics ----

    async def get_task_results(self) -> dict[str, str]:
        self._require_ready()
        return await self._native("getTaskResults", self._port.get_task_results())

    async def get_task_result(self, task_id: str) -> str | None:
        self._require_ready()
        return await self._native("getTaskResult", self._port.get_task_result(task_id))

    async def clear_task_results(self) -> None:
        self._require_ready()
        await self._native("clearTaskResults", self._port.clear_task_results())

    async def get_storage_stats(self) -> dict[str, Any]:
        self._require_ready()
        return self._store.get_storage_stats()
