# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from task_timer.config import Settings
from task_timer.core.state import AppState
from task_timer.tasks.task_models import Task
from task_timer.tasks.task_store import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings pointing at a per-test tmp dir.

    Built directly rather than via get_settings(), so a developer's .env
    never leaks into the tests.
    """
    return Settings(
        app_name="task-timer-test",
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        console_log=False,
        data_dir=tmp_path,
        db_path=tmp_path / "task-timer.db",
    )


@pytest.fixture()
def store(settings: Settings):
    """Real SQLite store: its behaviour is what most tests are about."""
    s = TaskStore(settings.db_path)
    yield s
    s.close()


@pytest.fixture()
def state(settings: Settings, store: TaskStore) -> AppState:
    return AppState(settings=settings, task_store=store)


@pytest.fixture()
def two_tasks(store: TaskStore) -> list[Task]:
    tasks = [Task(1, "A", 10, 0), Task(2, "B", 5, 1)]
    for t in tasks:
        store.upsert_one(t)
    return tasks
