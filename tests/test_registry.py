# tests/test_registry.py

from __future__ import annotations

import pytest

from taskwarden.core.errors import ErrorKind, TaskError
from taskwarden.tasks.registry import FunctionTaskHandler, TaskRegistry, as_task_handler

from .fakes import RecordingHandler


def test_register_lookup_unregister() -> None:
    reg = TaskRegistry()
    h = RecordingHandler()
    reg.register("a", h)

    assert reg.count() == 1
    assert "a" in reg
    assert reg.lookup("a") is h
    assert reg.lookup("missing") is None

    reg.unregister("a")
    reg.unregister("a")  # absent: no error
    assert reg.count() == 0


def test_duplicate_registration_is_rejected() -> None:
    reg = TaskRegistry()
    reg.register("a", RecordingHandler())
    with pytest.raises(TaskError) as ei:
        reg.register("a", RecordingHandler())
    assert ei.value.kind == ErrorKind.DUPLICATE_TASK_ID
    assert reg.count() == 1


@pytest.mark.asyncio
async def test_function_handler_accepts_sync_and_async_functions() -> None:
    seen: list[tuple[str, object]] = []

    def sync_fn(task_id, data):
        seen.append((task_id, data))

    async def async_fn(task_id, data):
        seen.append((task_id, data))

    await FunctionTaskHandler(sync_fn).run("s", None)
    await FunctionTaskHandler(async_fn).run("a", {"k": 1})
    assert seen == [("s", None), ("a", {"k": 1})]


def test_as_task_handler_keeps_handler_objects() -> None:
    h = RecordingHandler()
    assert as_task_handler(h) is h
    assert isinstance(as_task_handler(lambda t, d: None), FunctionTaskHandler)
    with pytest.raises(TypeError):
        as_task_handler(42)  # type: ignore[arg-type]
