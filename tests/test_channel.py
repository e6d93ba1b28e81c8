# tests/test_channel.py

from __future__ import annotations

from datetime import timedelta

import pytest

from taskwarden.core.errors import ErrorKind, TaskError
from taskwarden.tasks.channel import ChannelError, SchedulingPort
from taskwarden.tasks.task_models import ScheduledTaskInfo, TaskOptions

from .conftest import FIXED_NOW
from .fakes import FakeSchedulingChannel


@pytest.fixture()
def port(channel: FakeSchedulingChannel) -> SchedulingPort:
    return SchedulingPort(channel)


@pytest.mark.asyncio
async def test_wire_arguments(port: SchedulingPort, channel: FakeSchedulingChannel) -> None:
    options = TaskOptions(id="sync", periodic=True, frequency=timedelta(hours=1), requires_wifi=True)

    await port.initialize()
    await port.schedule_task(options)
    await port.cancel_task("sync")
    await port.cancel_all_tasks()
    await port.execute_task_now("sync")
    await port.clear_task_results()

    assert [(c.method, c.arguments) for c in channel.calls] == [
        ("initialize", None),
        ("scheduleTask", options.to_map()),
        ("cancelTask", {"taskId": "sync"}),
        ("cancelAllTasks", None),
        ("executeTaskNow", {"taskId": "sync"}),
        ("clearTaskResults", None),
    ]
    assert channel.calls[1].arguments["frequency"] == 3_600_000
    assert channel.calls[1].arguments["requiresWifi"] is True


@pytest.mark.asyncio
async def test_channel_error_becomes_native_operation_failure(
    port: SchedulingPort, channel: FakeSchedulingChannel
) -> None:
    channel.fail("cancelTask", "Failed to cancel task", code="CANCEL_ERROR")

    with pytest.raises(TaskError) as ei:
        await port.cancel_task("x")

    err = ei.value
    assert err.kind == ErrorKind.NATIVE_OPERATION_FAILED
    assert err.operation == "cancelTask"
    assert err.context == "Failed to cancel task"
    assert isinstance(err.__cause__, ChannelError)
    assert "cancelTask" in str(err)


@pytest.mark.asyncio
async def test_channel_error_without_message(port: SchedulingPort, channel: FakeSchedulingChannel) -> None:
    channel.failures["initialize"] = ChannelError("INIT_ERROR")

    with pytest.raises(TaskError) as ei:
        await port.initialize()

    assert ei.value.context == "Unknown error"


@pytest.mark.asyncio
async def test_scheduler_side_queries(port: SchedulingPort, channel: FakeSchedulingChannel) -> None:
    info = ScheduledTaskInfo(id="a", options=TaskOptions(id="a"), is_active=True, scheduled_at=FIXED_NOW)
    channel.responses["getScheduledTasks"] = [info.to_map()]
    channel.responses["isTaskScheduled"] = True
    channel.responses["getTaskResults"] = {"a": "Completed at 5"}
    channel.responses["getTaskResult"] = "Completed at 5"

    assert await port.get_scheduled_tasks() == [info]
    assert await port.is_task_scheduled("a") is True
    assert channel.calls[-1].arguments == {"taskId": "a"}
    assert await port.get_task_results() == {"a": "Completed at 5"}
    assert await port.get_task_result("a") == "Completed at 5"

    channel.responses["getScheduledTasks"] = None
    channel.responses["getTaskResult"] = None
    assert await port.get_scheduled_tasks() == []
    assert await port.get_task_result("a") is None


@pytest.mark.asyncio
async def test_handler_install_and_removal(port: SchedulingPort, channel: FakeSchedulingChannel) -> None:
    async def handler(method, arguments):
        return None

    port.set_method_call_handler(handler)
    assert channel.handler is handler

    port.remove_method_call_handler()
    assert channel.handler is None


@pytest.mark.asyncio
async def test_diagnostics(port: SchedulingPort, channel: FakeSchedulingChannel) -> None:
    assert await port.is_available() is True
    assert await port.get_version() == "1.0.0"
    assert await port.get_info() == {"version": "1.0.0"}

    channel.fail("ping")
    channel.fail("getVersion")
    channel.fail("getInfo", "no info")

    assert await port.is_available() is False
    assert await port.get_version() is None
    with pytest.raises(TaskError) as ei:
        await port.get_info()
    assert ei.value.operation == "getInfo"
