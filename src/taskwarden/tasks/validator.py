# tasks/validator.py

from __future__ import annotations

import math
from datetime import timedelta
from typing import Any

from ..core.errors import TaskError
from .task_models import MIN_PERIODIC_FREQUENCY, TaskOptions

_MS = timedelta(milliseconds=1)


def validate_options(options: TaskOptions) -> None:
    """
    Check options before anything is sent to the scheduler or written to disk.

    Raises TaskError (INVALID_OPTIONS, or INVALID_FREQUENCY for a periodic
    frequency under 15 minutes) at the first violation. No side effects.
    """
    if not options.id or not options.id.strip():
        raise TaskError.invalid_options("Task ID cannot be empty")

    if options.periodic:
        if options.frequency is None:
            raise TaskError.invalid_options("Frequency must be provided for periodic tasks")
        if options.frequency < MIN_PERIODIC_FREQUENCY:
            raise TaskError.invalid_frequency()
        if options.frequency % _MS:
            raise TaskError.invalid_options("Frequency must be a whole number of milliseconds")

    if options.initial_delay < timedelta(0):
        raise TaskError.invalid_options("Initial delay cannot be negative")
    if options.initial_delay % _MS:
        raise TaskError.invalid_options("Initial delay must be a whole number of milliseconds")

    if options.max_retry_attempts < 0:
        raise TaskError.invalid_options("Max retry attempts cannot be negative")

    if options.data is not None:
        if not isinstance(options.data, dict):
            raise TaskError.invalid_options(
                f"Task data must be a map, got {type(options.data).__name__}"
            )
        problem = _json_problem(options.data, path="data", open_containers=set())
        if problem is not None:
            raise TaskError.invalid_options(f"Task data must be JSON serializable: {problem}")


def _json_problem(value: Any, *, path: str, open_containers: set[int]) -> str | None:
    """Return a description of the first non-JSON value found, or None."""
    if value is None or isinstance(value, (bool, int, str)):
        return None
    if isinstance(value, float):
        if math.isfinite(value):
            return None
        return f"{path} is not a finite number ({value!r})"
    if not isinstance(value, (list, dict)):
        return f"{path} has unsupported type {type(value).__name__}"

    # Only containers on the current path count; shared siblings are fine.
    if id(value) in open_containers:
        return f"{path} contains a circular reference"
    open_containers.add(id(value))
    try:
        if isinstance(value, list):
            items = ((f"{path}[{i}]", item) for i, item in enumerate(value))
        else:
            for key in value:
                if not isinstance(key, str):
                    return f"{path} has a non-string key {key!r}"
            items = ((f"{path}.{key}", item) for key, item in value.items())
        for item_path, item in items:
            problem = _json_problem(item, path=item_path, open_containers=open_containers)
            if problem is not None:
                return problem
        return None
    finally:
        open_containers.discard(id(value))
