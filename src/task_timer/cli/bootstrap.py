# src/task_timer/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the concrete TaskStore into AppState.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.state import AppState
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings: Settings | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    Raises StorageError if the database cannot be opened or migrated.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    state = AppState(settings=settings, task_store=TaskStore(settings.db_path))
    logger.debug("AppState created db=%s", settings.db_path)
    return state
