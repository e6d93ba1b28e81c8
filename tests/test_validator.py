# tests/test_validator.py

from __future__ import annotations

from datetime import timedelta

import pytest

from taskwarden.core.errors import ErrorCategory, ErrorKind, TaskError
from taskwarden.tasks.task_models import TaskOptions
from taskwarden.tasks.validator import validate_options


@pytest.mark.parametrize("task_id", ["", " ", "\t\n"])
def test_blank_id_is_invalid(task_id: str) -> None:
    with pytest.raises(TaskError) as ei:
        validate_options(TaskOptions(id=task_id))
    assert ei.value.kind == ErrorKind.INVALID_OPTIONS
    assert ei.value.category == ErrorCategory.VALIDATION


def test_periodic_without_frequency_is_invalid_options() -> None:
    with pytest.raises(TaskError) as ei:
        validate_options(TaskOptions(id="t", periodic=True))
    assert ei.value.kind == ErrorKind.INVALID_OPTIONS


@pytest.mark.parametrize(
    "frequency",
    [timedelta(0), timedelta(minutes=1), timedelta(minutes=14, seconds=59, milliseconds=999)],
)
def test_periodic_frequency_below_minimum(frequency: timedelta) -> None:
    with pytest.raises(TaskError) as ei:
        validate_options(TaskOptions(id="t", periodic=True, frequency=frequency))
    assert ei.value.kind == ErrorKind.INVALID_FREQUENCY
    assert ei.value.category == ErrorCategory.VALIDATION


def test_frequency_is_ignored_for_one_shot_tasks() -> None:
    validate_options(TaskOptions(id="t", frequency=timedelta(minutes=1)))


def test_minimum_frequency_is_accepted() -> None:
    validate_options(TaskOptions(id="t", periodic=True, frequency=timedelta(minutes=15)))


def test_negative_initial_delay() -> None:
    with pytest.raises(TaskError) as ei:
        validate_options(TaskOptions(id="t", initial_delay=timedelta(seconds=-1)))
    assert ei.value.kind == ErrorKind.INVALID_OPTIONS
    assert "Initial delay" in str(ei.value)


def test_negative_retry_attempts() -> None:
    with pytest.raises(TaskError) as ei:
        validate_options(TaskOptions(id="t", max_retry_attempts=-1))
    assert ei.value.kind == ErrorKind.INVALID_OPTIONS


def test_zero_retry_attempts_is_valid() -> None:
    validate_options(TaskOptions(id="t", max_retry_attempts=0))


def test_checks_short_circuit_in_order() -> None:
    opts = TaskOptions(id=" ", periodic=True, frequency=timedelta(minutes=1), max_retry_attempts=-1)
    with pytest.raises(TaskError) as ei:
        validate_options(opts)
    assert "Task ID cannot be empty" in str(ei.value)


def test_json_data_is_accepted() -> None:
    validate_options(
        TaskOptions(id="t", data={"a": None, "b": True, "c": 1, "d": 1.5, "e": "x", "f": [1, {"g": []}]})
    )


@pytest.mark.parametrize(
    "data",
    [
        {"fn": lambda: None},
        {"obj": object()},
        {"t": (1, 2)},
        {"s": {1, 2}},
        {"nan": float("nan")},
        {"inf": float("inf")},
        {"nested": {1: "int key"}},
        {"deep": [{"x": b"bytes"}]},
    ],
)
def test_non_json_data_is_rejected(data: dict) -> None:
    with pytest.raises(TaskError) as ei:
        validate_options(TaskOptions(id="t", data=data))
    assert ei.value.kind == ErrorKind.INVALID_OPTIONS
    assert "JSON serializable" in str(ei.value)


def test_validate_is_idempotent_and_side_effect_free() -> None:
    opts = TaskOptions(id="t", periodic=True, frequency=timedelta(minutes=20), data={"k": [1]})
    before = opts.to_map()
    opts.validate()
    opts.validate()
    assert opts.to_map() == before


@pytest.mark.parametrize("data", [[1, 2], "payload", 42, (("k", "v"),)])
def test_data_must_be_a_map(data: object) -> None:
    with pytest.raises(TaskError) as ei:
        validate_options(TaskOptions(id="t", data=data))  # type: ignore[arg-type]
    assert ei.value.kind == ErrorKind.INVALID_OPTIONS
    assert "must be a map" in str(ei.value)


def test_circular_data_is_rejected() -> None:
    data: dict = {"k": 1}
    data["self"] = data
    nested: dict = {"items": []}
    nested["items"].append({"parent": nested})

    for payload in (data, nested):
        with pytest.raises(TaskError) as ei:
            validate_options(TaskOptions(id="t", data=payload))
        assert ei.value.kind == ErrorKind.INVALID_OPTIONS
        assert "circular reference" in str(ei.value)


def test_shared_non_circular_values_are_accepted() -> None:
    shared = {"x": [1, 2]}
    validate_options(TaskOptions(id="t", data={"a": shared, "b": shared, "c": [shared, shared]}))


@pytest.mark.parametrize(
    "options",
    [
        TaskOptions(id="t", initial_delay=timedelta(microseconds=1500)),
        TaskOptions(id="t", periodic=True, frequency=timedelta(minutes=15, microseconds=1)),
    ],
)
def test_sub_millisecond_durations_are_rejected(options: TaskOptions) -> None:
    with pytest.raises(TaskError) as ei:
        validate_options(options)
    assert ei.value.kind == ErrorKind.INVALID_OPTIONS
    assert "whole number of milliseconds" in str(ei.value)
