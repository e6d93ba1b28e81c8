# tasks/local_scheduler.py

from __future__ import annotations

"""
In-process scheduler behind the SchedulingChannel contract.

Stands in for an OS job scheduler when the app runs on a plain host (CLI,
tests). A small polling loop that:
- picks jobs whose run time has come and whose constraints hold,
- calls executeTask on the installed method-call handler,
- reschedules periodic jobs, drops finished one-shot jobs,
- retries failures with exponential backoff up to max_retry_attempts.

Jobs live in memory only; they are gone when the process exits.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..core.ports import MethodCallHandler
from .channel import ChannelError
from .task_models import ScheduledTaskInfo, TaskOptions

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@dataclass(slots=True)
class DeviceConditions:
    """Current device state checked against requires_charging / requires_wifi."""

    charging: bool = True
    on_wifi: bool = True

    def allows(self, options: TaskOptions) -> bool:
        if options.requires_charging and not self.charging:
            return False
        if options.requires_wifi and not self.on_wifi:
            return False
        return True


@dataclass(slots=True)
class _Job:
    options: TaskOptions
    scheduled_at: float
    next_run_at: float
    attempts: int = 0
    executions: int = 0
    failures: int = 0
    last_run_at: float | None = None


class LocalSchedulerChannel:
    def __init__(
        self,
        *,
        conditions: DeviceConditions | None = None,
        retry_backoff_seconds: float = 1.0,
        time_fn: Callable[[], float] = time.time,
    ) -> None:
        self.conditions = conditions or DeviceConditions()
        self._backoff_s = max(0.0, float(retry_backoff_seconds))
        self._time = time_fn

        self._handler: MethodCallHandler | None = None
        self._initialized = False
        self._jobs: dict[str, _Job] = {}
        self._results: dict[str, str] = {}

        self._methods: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            "initialize": self._initialize,
            "scheduleTask": self._schedule_task,
            "cancelTask": self._cancel_task,
            "cancelAllTasks": self._cancel_all_tasks,
            "getScheduledTasks": self._get_scheduled_tasks,
            "isTaskScheduled": self._is_task_scheduled,
            "executeTaskNow": self._execute_task_now,
            "getTaskResults": self._get_task_results,
            "getTaskResult": self._get_task_result,
            "clearTaskResults": self._clear_task_results,
            "ping": self._ping,
            "getVersion": self._get_version,
            "getInfo": self._get_info,
        }

    # ---- SchedulingChannel ----

    def set_method_call_handler(self, handler: MethodCallHandler | None) -> None:
        self._handler = handler

    async def invoke_method(self, method: str, arguments: dict[str, Any] | None = None) -> Any:
        fn = self._methods.get(method)
        if fn is None:
            raise ChannelError("UNKNOWN_METHOD", f"Unknown method: {method}")
        return await fn(arguments or {})

    # ---- introspection ----

    @property
    def job_ids(self) -> list[str]:
        return list(self._jobs)

    def next_run_at(self, task_id: str) -> float | None:
        job = self._jobs.get(task_id)
        return None if job is None else job.next_run_at

    # ---- method implementations ----

    async def _initialize(self, _args: dict[str, Any]) -> str:
        self._initialized = True
        return "Initialized successfully"

    async def _schedule_task(self, args: dict[str, Any]) -> str:
        try:
            options = TaskOptions.from_map(args)
        except (KeyError, TypeError, ValueError) as exc:
            raise ChannelError("SCHEDULE_ERROR", f"Failed to schedule task: {exc}") from exc

        now = self._time()
        self._jobs[options.id] = _Job(
            options=options,
            scheduled_at=now,
            next_run_at=now + options.initial_delay.total_seconds(),
        )
        logger.debug("Local job scheduled id=%s periodic=%s", options.id, options.periodic)
        return "Task scheduled successfully"

    @staticmethod
    def _task_id(args: dict[str, Any]) -> str:
        task_id = args.get("taskId")
        if not isinstance(task_id, str):
            raise ChannelError("BAD_ARGUMENTS", f"taskId is required, got {task_id!r}")
        return task_id

    async def _cancel_task(self, args: dict[str, Any]) -> str:
        self._jobs.pop(self._task_id(args), None)
        return "Task cancelled successfully"

    async def _cancel_all_tasks(self, _args: dict[str, Any]) -> str:
        self._jobs.clear()
        return "All tasks cancelled successfully"

    async def _get_scheduled_tasks(self, _args: dict[str, Any]) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        for job in self._jobs.values():
            info = ScheduledTaskInfo(
                id=job.options.id,
                options=job.options,
                is_active=True,
                scheduled_at=_to_datetime(job.scheduled_at),
                last_executed=_to_datetime(job.last_run_at) if job.last_run_at is not None else None,
                execution_count=job.executions,
                failure_count=job.failures,
            )
            out.append(info.to_map())
        return out

    async def _is_task_scheduled(self, args: dict[str, Any]) -> bool:
        return self._task_id(args) in self._jobs

    async def _execute_task_now(self, args: dict[str, Any]) -> str:
        task_id = self._task_id(args)
        job = self._jobs.get(task_id)
        data = job.options.data if job is not None else None
        await self._dispatch(task_id, data)
        return "Task execution initiated"

    async def _get_task_results(self, _args: dict[str, Any]) -> dict[str, str]:
        return dict(self._results)

    async def _get_task_result(self, args: dict[str, Any]) -> str | None:
        return self._results.get(self._task_id(args))

    async def _clear_task_results(self, _args: dict[str, Any]) -> str:
        self._results.clear()
        return "Task results cleared"

    async def _ping(self, _args: dict[str, Any]) -> str:
        return "pong"

    async def _get_version(self, _args: dict[str, Any]) -> str:
        return VERSION

    async def _get_info(self, _args: dict[str, Any]) -> dict[str, Any]:
        return {
            "version": VERSION,
            "scheduler": "local",
            "initialized": self._initialized,
            "jobs": len(self._jobs),
            "supportsConstraints": True,
        }

    # ---- execution ----

    async def _dispatch(self, task_id: str, data: dict[str, Any] | None) -> bool:
        handler = self._handler
        if handler is None:
            logger.warning("No method call handler installed; job %s not delivered", task_id)
            self._results[task_id] = "Error: no method call handler installed"
            return False

        try:
            await handler("executeTask", {"taskId": task_id, "data": data})
        except Exception as exc:
            logger.warning("Local job failed id=%s: %s", task_id, exc)
            self._results[task_id] = f"Error: {exc}"
            return False

        self._results[task_id] = f"Completed at {int(self._time() * 1000)}"
        return True

    async def run_due_jobs(self, now: float | None = None) -> int:
        """One polling pass. Returns how many jobs were dispatched."""
        now = self._time() if now is None else now
        dispatched = 0

        for job in list(self._jobs.values()):
            if job.next_run_at > now:
                continue
            options = job.options
            if not self.conditions.allows(options):
                logger.debug("Constraints not met for job %s; deferring", options.id)
                continue

            ok = await self._dispatch(options.id, options.data)
            dispatched += 1
            job.last_run_at = now

            if self._jobs.get(options.id) is not job:
                # Cancelled or replaced while running.
                continue

            if ok:
                job.executions += 1
                job.attempts = 0
                self._after_run(job, now)
                continue

            job.failures += 1
            job.attempts += 1
            if options.retry_on_fail and job.attempts <= options.max_retry_attempts:
                delay = self._backoff_s * 2 ** (job.attempts - 1)
                job.next_run_at = now + delay
                logger.info(
                    "Retrying job %s in %.1fs (attempt %d/%d)",
                    options.id,
                    delay,
                    job.attempts,
                    options.max_retry_attempts,
                )
            else:
                logger.error("Job %s failed after %d attempt(s)", options.id, job.attempts)
                job.attempts = 0
                self._after_run(job, now)

        return dispatched

    def _after_run(self, job: _Job, now: float) -> None:
        if job.options.periodic and job.options.frequency is not None:
            job.next_run_at = now + job.options.frequency.total_seconds()
        else:
            self._jobs.pop(job.options.id, None)

    async def run(self, *, interval_seconds: float = 15.0) -> None:
        """
        Polling loop: run_due_jobs() every interval_seconds.

        To stop the scheduler, cancel the coroutine/task.
        """
        sleep_s = max(0.01, float(interval_seconds))
        while True:
            try:
                await self.run_due_jobs()
            except Exception:
                logger.exception("run_due_jobs failed")
            await asyncio.sleep(sleep_s)


def _to_datetime(ts: float) -> datetime:
    dt = datetime.fromtimestamp(ts, UTC)
    return dt.replace(microsecond=dt.microsecond - dt.microsecond % 1000)
