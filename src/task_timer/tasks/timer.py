# src/task_timer/tasks/timer.py

"""
The one running timer of the front end.

Only one task runs at a time. Running time is not stored: it is folded into
the task's elapsed_time (and saved) when the timer stops.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

WORKDAY_SECONDS = 8 * 3600


@dataclass(slots=True, frozen=True)
class ActiveTimer:
    task_id: int
    started_at: float

    def seconds(self, now: float) -> int:
        """Whole seconds since start (never negative if the clock steps back)."""
        return max(0, math.floor(now - self.started_at))


def workday_reached(total_seconds: int) -> bool:
    return total_seconds >= WORKDAY_SECONDS
