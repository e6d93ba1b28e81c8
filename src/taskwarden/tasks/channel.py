# tasks/channel.py

from __future__ import annotations

"""
Scheduling port.

Typed wrapper over a SchedulingChannel: turns TaskOptions into the wire map,
names each operation, and converts ChannelError into
TaskError(NATIVE_OPERATION_FAILED) carrying that operation name.
"""

import logging
from typing import Any

from ..core.errors import TaskError
from ..core.ports import MethodCallHandler, SchedulingChannel
from .task_models import ScheduledTaskInfo, TaskOptions

logger = logging.getLogger(__name__)


class ChannelError(Exception):
    """Failure reported by the scheduler side of a SchedulingChannel."""

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message


class SchedulingPort:
    def __init__(self, channel: SchedulingChannel) -> None:
        self._channel = channel

    @property
    def channel(self) -> SchedulingChannel:
        return self._channel

    async def _invoke(self, method: str, arguments: dict[str, Any] | None = None) -> Any:
        try:
            return await self._channel.invoke_method(method, arguments)
        except ChannelError as exc:
            logger.warning("Scheduler call %s failed code=%s: %s", method, exc.code, exc.message)
            raise TaskError.native_operation(method, exc.message or "Unknown error") from exc

    async def initialize(self) -> None:
        await self._invoke("initialize")

    async def schedule_task(self, options: TaskOptions) -> None:
        await self._invoke("scheduleTask", options.to_map())

    async def cancel_task(self, task_id: str) -> None:
        await self._invoke("cancelTask", {"taskId": task_id})

    async def cancel_all_tasks(self) -> None:
        await self._invoke("cancelAllTasks")

    async def get_scheduled_tasks(self) -> list[ScheduledTaskInfo]:
        """Scheduler-side view; may be empty if the scheduler does not track state."""
        result = await self._invoke("getScheduledTasks")
        return [ScheduledTaskInfo.from_map(item) for item in (result or [])]

    async def is_task_scheduled(self, task_id: str) -> bool:
        return bool(await self._invoke("isTaskScheduled", {"taskId": task_id}))

    async def execute_task_now(self, task_id: str) -> None:
        await self._invoke("executeTaskNow", {"taskId": task_id})

    async def get_task_results(self) -> dict[str, str]:
        result = await self._invoke("getTaskResults")
        return {str(k): str(v) for k, v in (result or {}).items()}

    async def get_task_result(self, task_id: str) -> str | None:
        result = await self._invoke("getTaskResult", {"taskId": task_id})
        return None if result is None else str(result)

    async def clear_task_results(self) -> None:
        await self._invoke("clearTaskResults")

    def set_method_call_handler(self, handler: MethodCallHandler) -> None:
        self._channel.set_method_call_handler(handler)

    def remove_method_call_handler(self) -> None:
        self._channel.set_method_call_handler(None)

    async def is_available(self) -> bool:
        """Liveness probe: True when the scheduler answers ping."""
        try:
            await self._channel.invoke_method("ping")
        except Exception:
            logger.debug("Scheduler ping failed", exc_info=True)
            return False
        return True

    async def get_version(self) -> str | None:
        try:
            result = await self._channel.invoke_method("getVersion")
        except Exception:
            logger.debug("Scheduler getVersion failed", exc_info=True)
            return None
        return None if result is None else str(result)

    async def get_info(self) -> dict[str, Any]:
        result = await self._invoke("getInfo")
        return dict(result or {})
