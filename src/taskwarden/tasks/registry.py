# tasks/registry.py

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from ..core.errors import TaskError
from ..core.ports import TaskHandler
from .task_models import TaskData


class FunctionTaskHandler:
    """
    TaskHandler backed by a plain function.

    The function gets (task_id, data); it may be sync or async.
    """

    __slots__ = ("_fn",)

    def __init__(self, fn: Callable[[str, TaskData | None], Any]) -> None:
        self._fn = fn

    async def run(self, task_id: str, data: TaskData | None) -> None:
        result = self._fn(task_id, data)
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        return f"FunctionTaskHandler({getattr(self._fn, '__name__', self._fn)!r})"


def as_task_handler(handler: TaskHandler | Callable[[str, TaskData | None], Any]) -> TaskHandler:
    if callable(getattr(handler, "run", None)):
        return handler  # type: ignore[return-value]
    if callable(handler):
        return FunctionTaskHandler(handler)
    raise TypeError(f"Not a task handler: {handler!r}")


class TaskRegistry:
    """In-memory table of task id -> handler. Not persisted, not locked."""

    def __init__(self) -> None:
        self._handlers: dict[str, TaskHandler] = {}

    def register(self, task_id: str, handler: TaskHandler) -> None:
        if task_id in self._handlers:
            raise TaskError.duplicate_task_id(task_id)
        self._handlers[task_id] = handler

    def unregister(self, task_id: str) -> None:
        self._handlers.pop(task_id, None)

    def lookup(self, task_id: str) -> TaskHandler | None:
        return self._handlers.get(task_id)

    def count(self) -> int:
        return len(self._handlers)

    def clear(self) -> None:
        self._handlers.clear()

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
