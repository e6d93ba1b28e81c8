# src/taskwarden/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKWARDEN"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    execution_log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    log_dir: Path
    tasks_db_path: Path

    # ---- Store housekeeping ----
    cleanup_max_age_days: int
    cleanup_interval_hours: int

    # ---- Local scheduler ----
    scheduler_interval_seconds: float
    retry_backoff_seconds: float

    @property
    def cleanup_max_age(self) -> timedelta:
        return timedelta(days=self.cleanup_max_age_days)

    @property
    def cleanup_interval(self) -> timedelta:
        return timedelta(hours=self.cleanup_interval_hours)

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskwarden") or "taskwarden"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        execution_log_level = _env(_k("EXECUTION_LOG_LEVEL"), "")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskwarden"))
        log_dir = _env_path(_k("LOG_DIR"), data_dir)
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        cleanup_max_age_days = max(0, _env_int(_k("CLEANUP_MAX_AGE_DAYS"), 30))
        cleanup_interval_hours = max(0, _env_int(_k("CLEANUP_INTERVAL_HOURS"), 24))

        scheduler_interval_seconds = _env_float(_k("SCHEDULER_INTERVAL_SECONDS"), 15.0)
        retry_backoff_seconds = _env_float(_k("RETRY_BACKOFF_SECONDS"), 1.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            execution_log_level=execution_log_level,
            data_dir=data_dir,
            log_dir=log_dir,
            tasks_db_path=tasks_db_path,
            cleanup_max_age_days=cleanup_max_age_days,
            cleanup_interval_hours=cleanup_interval_hours,
            scheduler_interval_seconds=scheduler_interval_seconds,
            retry_backoff_seconds=retry_backoff_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
