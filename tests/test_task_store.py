# tests/test_task_store.py

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

import pytest

from task_timer.tasks.task_models import Task
from task_timer.tasks.task_store import StorageError, TaskStore


def test_empty_store_lists_nothing(store: TaskStore) -> None:
    assert store.list_all() == []
    assert store.count_tasks() == 0


def test_upsert_one_into_empty_store(store: TaskStore) -> None:
    store.upsert_one(Task(id=1, label="Write", elapsed_time=0, position=0))

    assert store.list_all() == [Task(1, "Write", 0, 0)]


def test_upsert_one_last_write_wins(store: TaskStore) -> None:
    store.upsert_one(Task(7, "first", 10, 3))
    store.upsert_one(Task(7, "second", 20, 1))
    store.upsert_one(Task(7, "third", 0, 2))
    # same call twice -> same state
    store.upsert_one(Task(7, "third", 0, 2))

    assert store.list_all() == [Task(7, "third", 0, 2)]


def test_list_all_orders_by_position_then_id(store: TaskStore) -> None:
    for t in [Task(3, "c", 0, 1), Task(5, "e", 0, 0), Task(1, "a", 0, 1), Task(2, "b", 0, 9)]:
        store.upsert_one(t)

    assert [t.id for t in store.list_all()] == [5, 1, 3, 2]


def test_replace_all_reorders_and_ignores_incoming_positions(
    store: TaskStore, two_tasks: list[Task]
) -> None:
    store.upsert_many_with_reorder([Task(2, "B", 5, 99), Task(1, "A", 10, 99)])

    assert store.list_all() == [Task(2, "B", 5, 0), Task(1, "A", 10, 1)]


def test_replace_all_drops_records_not_in_input(store: TaskStore, two_tasks: list[Task]) -> None:
    store.upsert_many_with_reorder([Task(3, "C", 1, 0), Task(2, "B", 5, 0), Task(9, "Z", 2, 0)])

    assert store.list_all() == [Task(3, "C", 1, 0), Task(2, "B", 5, 1), Task(9, "Z", 2, 2)]


def test_replace_all_with_empty_sequence_clears_store(
    store: TaskStore, two_tasks: list[Task]
) -> None:
    store.upsert_many_with_reorder([])

    assert store.list_all() == []


def test_replace_all_is_all_or_nothing_on_duplicate_id(
    store: TaskStore, two_tasks: list[Task]
) -> None:
    before = store.list_all()

    # third insert hits the primary key of the first one
    with pytest.raises(StorageError):
        store.upsert_many_with_reorder([Task(3, "C", 0, 0), Task(4, "D", 0, 0), Task(3, "again", 0, 0)])

    assert store.list_all() == before


def test_replace_all_is_all_or_nothing_on_bad_row(store: TaskStore, two_tasks: list[Task]) -> None:
    before = store.list_all()

    with pytest.raises(StorageError):
        store.upsert_many_with_reorder([Task(3, "C", 0, 0), Task(4, None, 0, 0)])  # type: ignore[arg-type]

    assert store.list_all() == before
    # the store is still usable after the rollback
    store.upsert_one(Task(5, "E", 0, 5))
    assert store.count_tasks() == 3


def test_delete_one_removes_only_that_task(store: TaskStore, two_tasks: list[Task]) -> None:
    store.delete_one(1)

    assert store.list_all() == [Task(2, "B", 5, 1)]


def test_delete_missing_id_is_a_noop(store: TaskStore, two_tasks: list[Task]) -> None:
    before = store.list_all()

    store.delete_one(12345)

    assert store.list_all() == before


def test_reset_all_timers_keeps_label_and_position(store: TaskStore) -> None:
    store.upsert_one(Task(1, "A", 100, 0))
    store.upsert_one(Task(2, "B", 7, 4))

    store.reset_all_timers()

    assert store.list_all() == [Task(1, "A", 0, 0), Task(2, "B", 0, 4)]


def test_reset_all_timers_on_empty_store(store: TaskStore) -> None:
    store.reset_all_timers()
    assert store.list_all() == []


def test_data_survives_reopen(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "task-timer.db"
    with TaskStore(db) as s1:
        s1.upsert_one(Task(1, "Write", 42, 0))

    with TaskStore(db) as s2:
        assert s2.list_all() == [Task(1, "Write", 42, 0)]


def test_legacy_schema_gets_position_column(tmp_path: Path) -> None:
    db = tmp_path / "legacy.db"
    conn = sqlite3.connect(str(db))
    conn.execute(
        "CREATE TABLE tasks (id INTEGER PRIMARY KEY, label TEXT NOT NULL, "
        "elapsed_time INTEGER NOT NULL DEFAULT 0)"
    )
    conn.execute("INSERT INTO tasks(id, label, elapsed_time) VALUES (2, 'old-b', 30)")
    conn.execute("INSERT INTO tasks(id, label, elapsed_time) VALUES (1, 'old-a', 60)")
    conn.commit()
    conn.close()

    with TaskStore(db) as store:
        assert store.list_all() == [Task(1, "old-a", 60, 0), Task(2, "old-b", 30, 0)]

    # second open: column already there, nothing to migrate
    with TaskStore(db) as store:
        store.upsert_one(Task(3, "new", 0, 5))
        assert [t.position for t in store.list_all()] == [0, 0, 5]


def test_undecodable_row_raises_storage_error(store: TaskStore, settings) -> None:
    conn = sqlite3.connect(str(settings.db_path))
    conn.execute("INSERT INTO tasks(id, label, elapsed_time, position) VALUES (1, 'x', 'abc', 0)")
    conn.commit()
    conn.close()

    with pytest.raises(StorageError):
        store.list_all()


def test_unreadable_file_raises_storage_error(tmp_path: Path) -> None:
    db = tmp_path / "garbage.db"
    db.write_bytes(b"this is not a sqlite database at all" * 200)

    with pytest.raises(StorageError):
        TaskStore(db)


def test_closed_store_raises_storage_error(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "t.db")
    store.close()
    store.close()  # idempotent

    with pytest.raises(StorageError, match="closed"):
        store.list_all()
    with pytest.raises(StorageError):
        store.upsert_one(Task(1, "A"))


def test_concurrent_writers_are_serialized(store: TaskStore) -> None:
    errors: list[BaseException] = []

    def writer(base: int) -> None:
        try:
            for i in range(25):
                store.upsert_one(Task(base + i, f"t{base + i}", i, i))
                if i % 5 == 0:
                    store.list_all()
        except BaseException as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(n * 100,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert store.count_tasks() == 100


def test_out_of_range_integer_raises_storage_error(store: TaskStore, two_tasks: list[Task]) -> None:
    with pytest.raises(StorageError, match="upsert_one"):
        store.upsert_one(Task(2**63, "x"))

    with pytest.raises(StorageError):
        store.upsert_many_with_reorder([Task(3, "c"), Task(4, "d", 10**20)])

    assert store.list_all() == two_tasks
    # lock released after the failure
    store.delete_one(1)
    assert [t.id for t in store.list_all()] == [2]
