# src/task_timer/cli/commands.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.reports import (
    format_time,
    parse_time_input,
    tasks_to_csv,
    tasks_to_markdown,
    total_elapsed,
)
from ..tasks.task_models import Task, parse_int
from ..tasks.timer import ActiveTimer, workday_reached

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _load_tasks(state: AppState) -> list[Task] | str:
    """Current tasks in display order, or the error message to show."""
    result = task_api.get_tasks(state.task_store)
    if not result.ok:
        return f"Failed to load tasks: {result.error}"
    return [Task.from_payload(p) for p in result.value]


def _find(tasks: list[Task], raw_id: str) -> Task | str:
    try:
        task_id = parse_int(raw_id, "id")
    except ValueError:
        return f"Not a task id: {raw_id}"
    for t in tasks:
        if t.id == task_id:
            return t
    return f"No task with id {task_id}."


def _next_id(tasks: list[Task], now_ms: int | None = None) -> int:
    """Millisecond timestamp, bumped past the current max id when needed."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return max(now_ms, max((t.id for t in tasks), default=0) + 1)


def _reply(result: task_api.CommandResult, ok_text: str) -> str:
    return ok_text if result.ok else f"Error: {result.error}"


def _is_running(state: AppState, task: Task) -> bool:
    return state.active_timer is not None and state.active_timer.task_id == task.id


def _live_tasks(state: AppState, tasks: list[Task]) -> list[Task]:
    """Copies of `tasks` with the running timer's seconds included."""
    active = state.active_timer
    if active is None:
        return list(tasks)
    running = active.seconds(state.clock())
    return [
        replace(t, elapsed_time=t.elapsed_time + running) if t.id == active.task_id else t
        for t in tasks
    ]


def _total_line(tasks: list[Task]) -> str:
    total = total_elapsed(tasks)
    line = f"Total: {format_time(total)}"
    if workday_reached(total):
        line += "  (8 hours reached)"
    return line


def _stop_active(state: AppState, tasks: list[Task]) -> str | None:
    """
    Fold the running timer into its task and save it.

    Returns an error message, or None when stopped (or nothing was running).
    The timer keeps running if the save fails.
    """
    active = state.active_timer
    if active is None:
        return None
    task = next((t for t in tasks if t.id == active.task_id), None)
    if task is None:
        state.active_timer = None
        return None
    task.elapsed_time += active.seconds(state.clock())
    result = task_api.save_task(state.task_store, task.to_payload())
    if not result.ok:
        return f"Error: {result.error}"
    state.active_timer = None
    logger.debug("Timer stopped id=%s elapsed=%s", task.id, task.elapsed_time)
    return None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    live = _live_tasks(state, tasks)
    running = next((t for t in tasks if _is_running(state, t)), None)
    return (
        "Status:\n"
        f"  Database: {state.settings.db_path}\n"
        f"  Tasks: {len(tasks)}\n"
        f"  Running: {f'[{running.id}] {running.label}' if running else '-'}\n"
        f"  {_total_line(live)}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    if not tasks:
        return "No tasks yet. Use /add <label> to create one."
    live = _live_tasks(state, tasks)
    lines = [
        f"  [{t.id}] {format_time(t.elapsed_time)}  {t.label}" + ("  (running)" if _is_running(state, t) else "")
        for t in live
    ]
    lines.append(f"  {_total_line(live)}")
    return "\n".join(lines)


def cmd_start(state: AppState, args: list[str]) -> str:
    """Start a task's timer; any other running timer is stopped first."""
    if len(args) != 1:
        return "Usage: /start <id>"
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    task = _find(tasks, args[0])
    if isinstance(task, str):
        return task
    if _is_running(state, task):
        return f"[{task.id}] {task.label} is already running."
    err = _stop_active(state, tasks)
    if err:
        return err
    state.active_timer = ActiveTimer(task_id=task.id, started_at=state.clock())
    logger.debug("Timer started id=%s", task.id)
    return f"Started [{task.id}] {task.label}"


def cmd_stop(state: AppState, args: list[str]) -> str:
    """
    /stop       -> stop whatever is running
    /stop <id>  -> stop only if that task is the running one
    """
    active = state.active_timer
    if active is None:
        return "No timer is running."
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    if args:
        task = _find(tasks, args[0])
        if isinstance(task, str):
            return task
        if task.id != active.task_id:
            return f"[{task.id}] {task.label} is not running."
    stopped = next((t for t in tasks if t.id == active.task_id), None)
    err = _stop_active(state, tasks)
    if err:
        return err
    if stopped is None:
        return "Timer stopped (task no longer exists)."
    return f"Stopped [{stopped.id}] {stopped.label} at {format_time(stopped.elapsed_time)}"


def cmd_add(state: AppState, args: list[str]) -> str:
    label = " ".join(args).strip()
    if not label:
        return "Usage: /add <label>"
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    task = Task(id=_next_id(tasks), label=label, elapsed_time=0, position=len(tasks))
    return _reply(task_api.save_task(state.task_store, task.to_payload()), f"Added [{task.id}] {label}")


def cmd_rename(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /rename <id> <label>"
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    task = _find(tasks, args[0])
    if isinstance(task, str):
        return task
    task.label = " ".join(args[1:])
    return _reply(task_api.save_task(state.task_store, task.to_payload()), f"Renamed [{task.id}] to {task.label}")


def cmd_time(state: AppState, args: list[str]) -> str:
    """
    /time <id> 01:30:00  -> set elapsed time (HH:MM:SS, MM:SS or SS)
    /time <id> 1.5       -> decimal values are minutes
    """
    if len(args) != 2:
        return "Usage: /time <id> <HH:MM:SS | MM:SS | SS | minutes>"
    seconds = parse_time_input(args[1])
    if seconds is None:
        return f"Invalid time: {args[1]}"
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    task = _find(tasks, args[0])
    if isinstance(task, str):
        return task
    task.elapsed_time = seconds
    result = task_api.save_task(state.task_store, task.to_payload())
    if result.ok and _is_running(state, task):
        # The new value replaces everything counted so far.
        state.active_timer = ActiveTimer(task_id=task.id, started_at=state.clock())
    return _reply(result, f"[{task.id}] {task.label}: {format_time(seconds)}")


def cmd_delete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /delete <id>"
    try:
        task_id = parse_int(args[0], "id")
    except ValueError:
        return f"Not a task id: {args[0]}"
    result = task_api.delete_task(state.task_store, task_id)
    active = state.active_timer
    if result.ok and active is not None and active.task_id == task_id:
        state.active_timer = None
    return _reply(result, f"Deleted {task_id}")


def cmd_reset(state: AppState, args: list[str]) -> str:
    """
    /reset       -> every timer back to zero
    /reset <id>  -> one timer back to zero
    A running timer that gets reset is stopped.
    """
    if not args:
        result = task_api.reset_all_tasks(state.task_store)
        if result.ok:
            state.active_timer = None
        return _reply(result, "All timers reset to 00:00:00.")

    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    task = _find(tasks, args[0])
    if isinstance(task, str):
        return task
    task.elapsed_time = 0
    result = task_api.save_task(state.task_store, task.to_payload())
    if result.ok and _is_running(state, task):
        state.active_timer = None
    return _reply(result, f"Reset [{task.id}] {task.label} to 00:00:00.")


def _move(state: AppState, args: list[str], offset: int) -> str:
    if len(args) != 1:
        return "Usage: /up <id> or /down <id>"
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    task = _find(tasks, args[0])
    if isinstance(task, str):
        return task
    moved = task_api.move_task(tasks, task.id, offset)
    result = task_api.save_tasks(state.task_store, task_api.tasks_payload(moved))
    if not result.ok:
        return f"Error: {result.error}"
    return cmd_list(state, [])


def cmd_up(state: AppState, args: list[str]) -> str:
    return _move(state, args, -1)


def cmd_down(state: AppState, args: list[str]) -> str:
    return _move(state, args, 1)


def cmd_export(state: AppState, args: list[str]) -> str:
    """
    /export csv [path]  -> story points as CSV
    /export md [path]   -> Markdown daily report
    Without a path the export is printed.
    """
    if not args or args[0].lower() not in ("csv", "md"):
        return "Usage: /export csv|md [path]"
    tasks = _load_tasks(state)
    if isinstance(tasks, str):
        return tasks
    if not tasks:
        return "No tasks to export yet."

    tasks = _live_tasks(state, tasks)
    text = tasks_to_csv(tasks) if args[0].lower() == "csv" else tasks_to_markdown(tasks)
    if len(args) < 2:
        return text

    path = Path(" ".join(args[1:])).expanduser()
    try:
        path.write_text(text, "utf-8")
    except OSError as e:
        logger.warning("Export to %s failed: %s", path, e)
        return f"Failed to write {path}: {e}"
    logger.info("Exported %d tasks to %s", len(tasks), path)
    return f"Exported {len(tasks)} tasks to {path}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show database path, task count and total time.")
registry.register("list", cmd_list, help_text="List tasks in display order.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <label>.")
registry.register("rename", cmd_rename, help_text="Rename a task: /rename <id> <label>.")
registry.register("time", cmd_time, help_text="Set elapsed time: /time <id> <HH:MM:SS>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("start", cmd_start, help_text="Start a timer (stops the running one): /start <id>.")
registry.register("stop", cmd_stop, help_text="Stop the running timer: /stop [id].")
registry.register("reset", cmd_reset, help_text="Reset timers to zero: /reset [id].")
registry.register("up", cmd_up, help_text="Move a task up: /up <id>.")
registry.register("down", cmd_down, help_text="Move a task down: /down <id>.")
registry.register("export", cmd_export, help_text="Export tasks: /export csv|md [path].")
