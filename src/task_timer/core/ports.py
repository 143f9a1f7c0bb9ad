# src/task_timer/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the request handlers.

Handlers depend on a Protocol instead of the concrete SQLite store.
This keeps storage swappable and makes failure paths easy to test.
"""

from collections.abc import Iterable
from typing import Protocol

from ..tasks.task_models import Task

TaskPayload = dict[str, object]
# Wire shape exchanged with the front end: {"id", "label", "elapsed_time", "position"}.


class TaskRepo(Protocol):
    def list_all(self) -> list[Task]: ...

    def upsert_one(self, task: Task) -> None: ...

    def upsert_many_with_reorder(self, tasks: Iterable[Task]) -> None: ...

    def delete_one(self, task_id: int) -> None: ...

    def reset_all_timers(self) -> None: ...

    def count_tasks(self) -> int: ...
