# src/task_timer/tasks/task_api.py

"""
Request handlers exposed to the front end.

Each handler wraps exactly one store operation and never raises for
storage or payload problems: failures come back as a CommandResult whose
`error` is a plain, human-readable message the UI can show as-is.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..core.ports import TaskPayload, TaskRepo
from .task_models import Task, parse_int
from .task_store import StorageError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CommandResult:
    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> CommandResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, message: str) -> CommandResult:
        return cls(ok=False, error=message)


def _run(command: str, op: Callable[[], Any]) -> CommandResult:
    try:
        return CommandResult.success(op())
    except StorageError as e:
        logger.info("%s failed: %s", command, e)
        return CommandResult.failure(str(e))
    except ValueError as e:
        logger.info("%s rejected: %s", command, e)
        return CommandResult.failure(f"Invalid request: {e}")


def get_tasks(store: TaskRepo) -> CommandResult:
    return _run("get_tasks", lambda: tasks_payload(store.list_all()))


def save_task(store: TaskRepo, task: Mapping[str, Any]) -> CommandResult:
    return _run("save_task", lambda: store.upsert_one(Task.from_payload(task)))


def save_tasks(store: TaskRepo, tasks: Sequence[Mapping[str, Any]]) -> CommandResult:
    """Replace every stored task; positions are taken from the order of `tasks`."""

    def op() -> None:
        if not isinstance(tasks, Sequence) or isinstance(tasks, (str, bytes)):
            raise ValueError(f"tasks must be a list of task payloads, got {type(tasks).__name__}")
        # Decode everything first so a bad payload never reaches the store.
        decoded = [Task.from_payload(t) for t in tasks]
        store.upsert_many_with_reorder(decoded)

    return _run("save_tasks", op)


def delete_task(store: TaskRepo, task_id: int | str) -> CommandResult:
    return _run("delete_task", lambda: store.delete_one(parse_int(task_id, "id")))


def reset_all_tasks(store: TaskRepo) -> CommandResult:
    return _run("reset_all_tasks", store.reset_all_timers)


HANDLERS: dict[str, Callable[..., CommandResult]] = {
    "get_tasks": get_tasks,
    "save_task": save_task,
    "save_tasks": save_tasks,
    "delete_task": delete_task,
    "reset_all_tasks": reset_all_tasks,
}


def dispatch(store: TaskRepo, command: str, **kwargs: Any) -> CommandResult:
    """Route a front-end request by command name."""
    handler = HANDLERS.get(command)
    if handler is None:
        return CommandResult.failure(f"Unknown command: {command}")
    try:
        inspect.signature(handler).bind(store, **kwargs)
    except TypeError as e:
        logger.info("dispatch %s bad arguments: %s", command, e)
        return CommandResult.failure(f"Invalid arguments for {command}: {e}")
    return handler(store, **kwargs)


def move_task(tasks: list[Task], task_id: int, offset: int) -> list[Task]:
    """
    Swap a task with its neighbour (offset -1 = up, +1 = down).

    Returns a new list; moving past either end leaves the order unchanged.
    The result is meant to be passed to save_tasks.
    """
    out = list(tasks)
    index = next((i for i, t in enumerate(out) if t.id == task_id), -1)
    target = index + offset
    if index < 0 or offset == 0 or target < 0 or target >= len(out):
        return out
    out[index], out[target] = out[target], out[index]
    return out


def tasks_payload(tasks: Iterable[Task]) -> list[TaskPayload]:
    return [t.to_payload() for t in tasks]
