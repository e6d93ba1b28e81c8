# src/taskwarden/core/errors.py

from __future__ import annotations

"""
Error type shared by every taskwarden component.

There is a single exception class, TaskError, tagged with an ErrorKind.
Callers branch on `err.kind` (or the coarser `err.category`) instead of
catching a hierarchy of subclasses.
"""

from enum import StrEnum


class ErrorCategory(StrEnum):
    VALIDATION = "validation"
    STATE = "state"
    REMOTE = "remote"
    PERSISTENCE = "persistence"


class ErrorKind(StrEnum):
    INVALID_OPTIONS = "invalid_options"
    # Periodic frequency below the scheduler minimum (15 minutes).
    INVALID_FREQUENCY = "invalid_frequency"

    NOT_INITIALIZED = "not_initialized"
    DUPLICATE_TASK_ID = "duplicate_task_id"
    TASK_NOT_REGISTERED = "task_not_registered"

    NATIVE_OPERATION_FAILED = "native_operation_failed"
    PERSISTENCE_FAILED = "persistence_failed"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]


_CATEGORIES: dict[ErrorKind, ErrorCategory] = {
    ErrorKind.INVALID_OPTIONS: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_FREQUENCY: ErrorCategory.VALIDATION,
    ErrorKind.NOT_INITIALIZED: ErrorCategory.STATE,
    ErrorKind.DUPLICATE_TASK_ID: ErrorCategory.STATE,
    ErrorKind.TASK_NOT_REGISTERED: ErrorCategory.STATE,
    ErrorKind.NATIVE_OPERATION_FAILED: ErrorCategory.REMOTE,
    ErrorKind.PERSISTENCE_FAILED: ErrorCategory.PERSISTENCE,
}


class TaskError(Exception):
    """
    Tagged error raised by the coordinator and its collaborators.

    - kind: what went wrong (ErrorKind)
    - operation: the named operation that failed (remote/persistence errors)
    - context: underlying cause as text (e.g. the scheduler's error message)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        operation: str | None = None,
        context: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.operation = operation
        self.context = context

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message

    def __repr__(self) -> str:
        return (
            f"TaskError(kind={self.kind.value!r}, message={self.message!r}, "
            f"operation={self.operation!r}, context={self.context!r})"
        )

    # ---- constructors ----

    @classmethod
    def invalid_options(cls, reason: str) -> TaskError:
        return cls(ErrorKind.INVALID_OPTIONS, f"Invalid task options: {reason}")

    @classmethod
    def invalid_frequency(cls) -> TaskError:
        return cls(
            ErrorKind.INVALID_FREQUENCY,
            "Periodic tasks must have a frequency of at least 15 minutes.",
        )

    @classmethod
    def not_initialized(cls) -> TaskError:
        return cls(
            ErrorKind.NOT_INITIALIZED,
            "TaskCoordinator has not been initialized. Call initialize() first.",
        )

    @classmethod
    def duplicate_task_id(cls, task_id: str) -> TaskError:
        return cls(
            ErrorKind.DUPLICATE_TASK_ID,
            f'Task with ID "{task_id}" is already registered.',
            context=task_id,
        )

    @classmethod
    def task_not_registered(cls, task_id: str) -> TaskError:
        return cls(
            ErrorKind.TASK_NOT_REGISTERED,
            f'Task with ID "{task_id}" has not been registered.',
            context=task_id,
        )

    @classmethod
    def native_operation(cls, operation: str, cause: str) -> TaskError:
        return cls(
            ErrorKind.NATIVE_OPERATION_FAILED,
            f"Scheduler operation failed: {operation}",
            operation=operation,
            context=cause,
        )

    @classmethod
    def persistence(cls, operation: str, cause: str) -> TaskError:
        return cls(
            ErrorKind.PERSISTENCE_FAILED,
            f"Failed to {operation}",
            operation=operation,
            context=cause,
        )
