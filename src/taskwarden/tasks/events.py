# tasks/events.py

from __future__ import annotations

"""
Execution event bus.

Fan-out of executed task ids to every current subscriber. Each subscriber
owns an unbounded asyncio.Queue; publish() never blocks. Late subscribers do
not see earlier events.
"""

import asyncio
import contextlib
import logging

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """One observer's view of the bus. Iterate with `async for`."""

    def __init__(self, bus: ExecutionEventBus) -> None:
        self._bus: ExecutionEventBus | None = bus
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        return self._queue.qsize()

    def unsubscribe(self) -> None:
        if self._bus is not None:
            self._bus._detach(self)
            self._bus = None
        self._close()

    def _deliver(self, task_id: str) -> None:
        if not self._closed:
            self._queue.put_nowait(task_id)

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> str:
        """Wait for the next task id. Raises StopAsyncIteration once the bus is closed."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker so later get() calls also stop.
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> str:
        return await self.get()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class ExecutionEventBus:
    def __init__(self) -> None:
        self._subscribers: list[Subscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        sub = Subscription(self)
        if self._closed:
            sub._close()
        else:
            self._subscribers.append(sub)
        return sub

    def publish(self, task_id: str) -> None:
        if self._closed:
            logger.debug("Event bus closed; dropping execution event task_id=%s", task_id)
            return
        for sub in list(self._subscribers):
            sub._deliver(task_id)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        subs, self._subscribers = self._subscribers, []
        for sub in subs:
            sub._close()

    def _detach(self, sub: Subscription) -> None:
        with contextlib.suppress(ValueError):
            self._subscribers.remove(sub)
