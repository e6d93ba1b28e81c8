# tasks/router.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..core.errors import TaskError
from ..core.ports import TaskRepo
from .registry import TaskRegistry
from .task_models import TaskData, utc_now

logger = logging.getLogger(__name__)

EXECUTE_TASK = "executeTask"


class ExecutionRouter:
    """
    Inbound side of the scheduler channel.

    The scheduler calls executeTask {taskId, data} whenever a job is due
    (including executeTaskNow dispatch). The router runs the registered
    handler and keeps the stored counters in step:

    - execution_count / last_executed are bumped before the handler runs,
      so a crash mid-run still counts as an attempt;
    - on handler failure failure_count is bumped and the error is re-raised
      so the scheduler can apply its retry/backoff.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        store: TaskRepo,
        *,
        on_executed: Callable[[str], None] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._registry = registry
        self._store = store
        self._on_executed = on_executed
        self._clock = clock

    async def handle_call(self, method: str, arguments: dict[str, Any] | None) -> Any:
        if method == EXECUTE_TASK:
            args = arguments or {}
            task_id = args.get("taskId")
            if not isinstance(task_id, str):
                raise TaskError.native_operation(method, f"missing taskId in {args!r}")
            data = args.get("data")
            return await self.execute_task(task_id, data if isinstance(data, dict) else None)
        raise TaskError.native_operation(method, f"Unknown method: {method}")

    async def execute_task(self, task_id: str, data: TaskData | None = None) -> dict[str, Any]:
        handler = self._registry.lookup(task_id)
        if handler is None:
            logger.warning("Execution requested for unregistered task_id=%s", task_id)
            raise TaskError.task_not_registered(task_id)

        self._store.update_task_execution(task_id, now=self._clock())

        try:
            await handler.run(task_id, data)
        except Exception:
            logger.exception("Task handler failed task_id=%s", task_id)
            try:
                self._store.update_task_failure(task_id)
            except TaskError as store_exc:
                # The handler's error is what the scheduler retries on.
                logger.warning("Failure count not recorded task_id=%s: %s", task_id, store_exc)
            raise

        logger.info("Task executed task_id=%s", task_id)
        if self._on_executed is not None:
            self._on_executed(task_id)
        return {"success": True}
