# tests/test_events.py

from __future__ import annotations

import pytest

from taskwarden.tasks.events import ExecutionEventBus


@pytest.mark.asyncio
async def test_fan_out_preserves_order() -> None:
    bus = ExecutionEventBus()
    s1 = bus.subscribe()
    s2 = bus.subscribe()

    for task_id in ("a", "b", "c"):
        bus.publish(task_id)

    assert [await s1.get() for _ in range(3)] == ["a", "b", "c"]
    assert [await s2.get() for _ in range(3)] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_late_subscriber_gets_no_replay() -> None:
    bus = ExecutionEventBus()
    bus.publish("early")
    sub = bus.subscribe()
    bus.publish("late")
    assert await sub.get() == "late"
    assert sub.pending() == 0


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery() -> None:
    bus = ExecutionEventBus()
    sub = bus.subscribe()
    sub.unsubscribe()
    bus.publish("x")

    assert bus.subscriber_count == 0
    assert sub.closed
    assert [item async for item in sub] == []


@pytest.mark.asyncio
async def test_close_ends_iteration_for_all_subscribers() -> None:
    bus = ExecutionEventBus()
    sub = bus.subscribe()
    bus.publish("a")
    bus.close()
    bus.publish("after-close")

    assert [item async for item in sub] == ["a"]
    with pytest.raises(StopAsyncIteration):
        await sub.get()

    late = bus.subscribe()
    assert late.closed


@pytest.mark.asyncio
async def test_context_manager_unsubscribes() -> None:
    bus = ExecutionEventBus()
    async with bus.subscribe() as sub:
        bus.publish("a")
        assert await sub.get() == "a"
    assert bus.subscriber_count == 0
