"""taskwarden: lifecycle coordinator for scheduled background tasks."""

from .core.errors import ErrorCategory, ErrorKind, TaskError
from .core.ports import SchedulingChannel, TaskHandler, TaskRepo
from .tasks.channel import ChannelError, SchedulingPort
from .tasks.coordinator import TaskCoordinator
from .tasks.events import ExecutionEventBus, Subscription
from .tasks.local_scheduler import DeviceConditions, LocalSchedulerChannel
from .tasks.registry import FunctionTaskHandler, TaskRegistry
from .tasks.task_models import JsonValue, ScheduledTaskInfo, TaskData, TaskOptions
from .tasks.task_store import TaskStore
from .tasks.validator import validate_options

__all__ = [
    "ChannelError",
    "DeviceConditions",
    "ErrorCategory",
    "ErrorKind",
    "ExecutionEventBus",
    "FunctionTaskHandler",
    "JsonValue",
    "LocalSchedulerChannel",
    "ScheduledTaskInfo",
    "SchedulingChannel",
    "SchedulingPort",
    "Subscription",
    "TaskCoordinator",
    "TaskData",
    "TaskError",
    "TaskHandler",
    "TaskOptions",
    "TaskRegistry",
    "TaskRepo",
    "TaskStore",
    "validate_options",
]
