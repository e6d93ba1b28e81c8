# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from taskwarden.core.ports import MethodCallHandler
from taskwarden.tasks.channel import ChannelError


@dataclass(slots=True)
class MethodCall:
    method: str
    arguments: dict[str, Any] | None


class FakeSchedulingChannel:
    """
    Fake SchedulingChannel used by coordinator tests.

    - Captures every outbound call for assertions
    - Returns canned responses per method (default: an ack string)
    - Raises ChannelError for methods listed in `failures`
    """

    def __init__(self) -> None:
        self.calls: list[MethodCall] = []
        self.responses: dict[str, Any] = {
            "getScheduledTasks": [],
            "isTaskScheduled": False,
            "getTaskResults": {},
            "getTaskResult": None,
            "ping": "pong",
            "getVersion": "1.0.0",
            "getInfo": {"version": "1.0.0"},
        }
        self.failures: dict[str, ChannelError] = {}
        self.handler: MethodCallHandler | None = None

    def methods(self) -> list[str]:
        return [c.method for c in self.calls]

    def fail(self, method: str, message: str = "boom", code: str = "ERROR") -> None:
        self.failures[method] = ChannelError(code, message)

    async def invoke_method(self, method: str, arguments: dict[str, Any] | None = None) -> Any:
        self.calls.append(MethodCall(method=method, arguments=arguments))
        if method in self.failures:
            raise self.failures[method]
        return self.responses.get(method, f"{method} ok")

    def set_method_call_handler(self, handler: MethodCallHandler | None) -> None:
        self.handler = handler

    async def deliver(self, task_id: str, data: dict[str, Any] | None = None) -> Any:
        """Simulate the scheduler firing executeTask."""
        assert self.handler is not None, "no method call handler installed"
        return await self.handler("executeTask", {"taskId": task_id, "data": data})


@dataclass(slots=True)
class RecordingHandler:
    """TaskHandler that records its runs and optionally fails."""

    error: Exception | None = None
    runs: list[tuple[str, dict[str, Any] | None]] = field(default_factory=list)

    async def run(self, task_id: str, data: dict[str, Any] | None) -> None:
        self.runs.append((task_id, data))
        if self.error is not None:
            raise self.error
