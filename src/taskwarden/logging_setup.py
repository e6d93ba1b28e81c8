# src/taskwarden/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Loggers that emit one line per task run (dispatch, success, failure).
EXECUTION_LOGGERS = (
    "taskwarden.tasks.router",
    "taskwarden.tasks.local_scheduler",
)

# Console floor per logger prefix; anything outside taskwarden needs ERROR.
_CONSOLE_FLOORS = {
    "taskwarden.tasks.task_store": logging.INFO,
    "taskwarden.": logging.NOTSET,
}


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """Map 'debug'/'INFO'/... to a logging level; unknown or empty names give default."""
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


class _ConsoleTaskFilter(logging.Filter):
    """
    Console view of the coordinator:
    - lifecycle and execution records pass
    - per-record store chatter (DEBUG) stays in the file
    - third-party and py.warnings records only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, floor in _CONSOLE_FLOORS.items():
            if record.name.startswith(prefix):
                return record.levelno >= floor
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskwarden",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    execution_level: int | None = None,
) -> Path:
    """
    Configure the console handler (filtered) and taskwarden.log (everything
    at file_level). execution_level, when given, caps the per-run loggers in
    EXECUTION_LOGGERS for both handlers, e.g. WARNING to keep only failures.

    Call once at startup. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "taskwarden.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleTaskFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    for name in EXECUTION_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.NOTSET if execution_level is None else execution_level
        )

    logging.captureWarnings(True)
    return log_file
