# src/taskwarden/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the coordinator.

The coordinator depends on Protocols instead of concrete implementations.
This keeps the scheduler transport and the storage backend swappable and
makes testing easier.
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import ScheduledTaskInfo, TaskData

MethodCallHandler = Callable[[str, dict[str, Any] | None], Awaitable[Any]]
# Inbound call from the scheduler: (method, arguments) -> result.


class TaskHandler(Protocol):
    """
    The work behind one registered task id.

    Raising from run() marks the execution as failed; the error is reported
    back to the scheduler so its retry/backoff can apply.
    """

    async def run(self, task_id: str, data: TaskData | None) -> None: ...


class SchedulingChannel(Protocol):
    """
    Request/response transport to the job scheduler.

    invoke_method() raises ChannelError when the scheduler reports a failure.
    The scheduler calls back into the app through the handler installed with
    set_method_call_handler() (None uninstalls it).
    """

    def invoke_method(self, method: str, arguments: dict[str, Any] | None = None) -> Awaitable[Any]: ...

    def set_method_call_handler(self, handler: MethodCallHandler | None) -> None: ...


class TaskRepo(Protocol):
    """Durable map of task id -> ScheduledTaskInfo. All methods raise TaskError(PERSISTENCE_FAILED)."""

    def save_task(self, info: ScheduledTaskInfo) -> None: ...
    def load_task(self, task_id: str) -> ScheduledTaskInfo | None: ...
    def load_all_tasks(self) -> list[ScheduledTaskInfo]: ...
    def remove_task(self, task_id: str) -> None: ...
    def clear_all_tasks(self) -> None: ...

    # Read-modify-write helpers; no-ops when the id is unknown.
    def update_task_execution(self, task_id: str, *, now: datetime | None = None) -> None: ...
    def update_task_failure(self, task_id: str) -> None: ...
    def update_task_status(self, task_id: str, is_active: bool) -> None: ...

    # Housekeeping
    def cleanup_old_tasks(self, *, max_age: timedelta, now: datetime | None = None) -> list[str]: ...
    def get_storage_stats(self) -> dict[str, Any]: ...
