# tasks/task_models.py

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Any, TypeAlias

JsonValue: TypeAlias = (
    None | bool | int | float | str | list["JsonValue"] | dict[str, "JsonValue"]
)
TaskData: TypeAlias = dict[str, JsonValue]

MIN_PERIODIC_FREQUENCY = timedelta(minutes=15)
DEFAULT_MAX_RETRY_ATTEMPTS = 5

_MS = timedelta(milliseconds=1)
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utc_now() -> datetime:
    """Current UTC time truncated to millisecond precision (the wire precision)."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


def duration_to_ms(value: timedelta) -> int:
    return value // _MS


def ms_to_duration(value: int) -> timedelta:
    return timedelta(milliseconds=int(value))


def datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // _MS


def ms_to_datetime(value: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=int(value))


@dataclass(slots=True, frozen=True)
class TaskOptions:
    """
    Configuration for one task, as submitted to the scheduler.

    `frequency` only matters for periodic tasks. `data` is handed back to the
    task handler on every run and must be a JSON-representable map.
    Durations travel as whole milliseconds; validate() rejects finer values.
    """

    id: str
    periodic: bool = False
    frequency: timedelta | None = None
    initial_delay: timedelta = field(default_factory=timedelta)
    requires_charging: bool = False
    requires_wifi: bool = False
    retry_on_fail: bool = True
    max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS
    data: TaskData | None = None

    def validate(self) -> None:
        from .validator import validate_options

        validate_options(self)

    def copy_with(self, **changes: Any) -> TaskOptions:
        return replace(self, **changes)

    def to_map(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "periodic": self.periodic,
            "frequency": duration_to_ms(self.frequency) if self.frequency is not None else None,
            "initialDelay": duration_to_ms(self.initial_delay),
            "requiresCharging": self.requires_charging,
            "requiresWifi": self.requires_wifi,
            "retryOnFail": self.retry_on_fail,
            "maxRetryAttempts": self.max_retry_attempts,
            "data": self.data,
        }

    @classmethod
    def from_map(cls, raw: dict[str, Any]) -> TaskOptions:
        frequency = raw.get("frequency")
        data = raw.get("data")
        return cls(
            id=str(raw["id"]),
            periodic=bool(raw.get("periodic", False)),
            frequency=ms_to_duration(frequency) if frequency is not None else None,
            initial_delay=ms_to_duration(raw.get("initialDelay") or 0),
            requires_charging=bool(raw.get("requiresCharging", False)),
            requires_wifi=bool(raw.get("requiresWifi", False)),
            retry_on_fail=bool(raw.get("retryOnFail", True)),
            max_retry_attempts=int(raw.get("maxRetryAttempts", DEFAULT_MAX_RETRY_ATTEMPTS)),
            data=dict(data) if data is not None else None,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_map(), ensure_ascii=False)

    @classmethod
    def from_json(cls, source: str) -> TaskOptions:
        return cls.from_map(json.loads(source))


@dataclass(slots=True, frozen=True)
class ScheduledTaskInfo:
    """Persisted record of one scheduled task and its execution history."""

    id: str
    options: TaskOptions
    is_active: bool
    scheduled_at: datetime
    last_executed: datetime | None = None
    execution_count: int = 0
    failure_count: int = 0

    def to_map(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "options": self.options.to_map(),
            "isActive": self.is_active,
            "lastExecuted": (
                datetime_to_ms(self.last_executed) if self.last_executed is not None else None
            ),
            "executionCount": self.execution_count,
            "failureCount": self.failure_count,
            "scheduledAt": datetime_to_ms(self.scheduled_at),
        }

    @classmethod
    def from_map(cls, raw: dict[str, Any]) -> ScheduledTaskInfo:
        last_executed = raw.get("lastExecuted")
        return cls(
            id=str(raw["id"]),
            options=TaskOptions.from_map(raw["options"]),
            is_active=bool(raw["isActive"]),
            last_executed=ms_to_datetime(last_executed) if last_executed is not None else None,
            execution_count=int(raw["executionCount"]),
            failure_count=int(raw["failureCount"]),
            scheduled_at=ms_to_datetime(raw["scheduledAt"]),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_map(), ensure_ascii=False)

    @classmethod
    def from_json(cls, source: str) -> ScheduledTaskInfo:
        return cls.from_map(json.loads(source))
