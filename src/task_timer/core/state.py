# src/task_timer/core/state.py

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from ..config import Settings
from ..tasks.task_store import TaskStore
from ..tasks.timer import ActiveTimer


@dataclass
class AppState:
    # Settings are kept on the state so commands can report paths/status.
    settings: Settings
    task_store: TaskStore

    # Console-side timer; at most one task runs at a time.
    active_timer: ActiveTimer | None = None
    clock: Callable[[], float] = time.time
