# src/task_timer/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Every path is overridable; the default data dir is a local, gitignored folder.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASK_TIMER"

DB_FILENAME = "task-timer.db"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


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
    log_dir: Path
    console_log: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "task-timer").strip() or "task-timer"
        log_level = _env(_k("LOG_LEVEL"), "INFO").strip().upper() or "INFO"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/task-timer"))
        db_path = _env_path(_k("DB_PATH"), data_dir / DB_FILENAME)
        log_dir = _env_path(_k("LOG_DIR"), data_dir)
        console_log = _env_bool(_k("CONSOLE_LOG"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_dir=log_dir,
            console_log=console_log,
            data_dir=data_dir,
            db_path=db_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load .env once and return the process-wide Settings."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
