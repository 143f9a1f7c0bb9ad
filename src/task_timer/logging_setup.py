# src/task_timer/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILENAME = "task-timer.log"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console readable:
    - allow task_timer logs
    - show captured Python warnings ('py.warnings') from WARNING up
    - suppress any third-party noise unless ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("task_timer."):
            return True

        # Python warnings captured into logging.
        if name == "py.warnings":
            return record.levelno >= logging.WARNING

        # Any other 3rd party: only errors to console.
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/task-timer",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    console: bool = True,
) -> Path:
    """
    Configure logging with:
    - Console handler: filtered for interactive use (optional)
    - File handler: full logs for debugging

    Call this ONCE, very early (before first logger.info).
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILENAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setLevel(console_level)
        ch.setFormatter(fmt)
        ch.addFilter(_ConsoleNoiseFilter())
        root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
    return log_file
