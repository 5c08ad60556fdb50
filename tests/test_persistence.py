# tests/test_persistence.py

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from todomai.tasks.persistence import (
    TASKS_KEY,
    SQLiteKeyValueStore,
    decode_lists,
    decode_tasks,
    encode_lists,
    encode_tasks,
)
from todomai.tasks.task_models import RGB, Mode, Outcome, Task, TaskList


def test_task_survives_encode_decode_with_all_fields() -> None:
    task = Task(
        text="Physics Lab Report Due",
        list_id="calendar_2025-07-12",
        mode=Mode.SCHOOL,
        is_completed=True,
        due_date=datetime(2025, 7, 12, 14, 0),
        is_recurring=True,
        assigned_to="sam",
        comments=["bring goggles"],
        reward_stars=3,
        has_reminder=True,
        reminder_minutes_before=120,
        created_at=datetime(2025, 7, 1, 8, 0),
    )
    decoded, outcome = decode_tasks(encode_tasks([task]))
    assert outcome is Outcome.OK
    assert decoded == [task]


def test_wire_format_uses_camel_case_keys() -> None:
    payload = json.loads(encode_tasks([Task(text="x", created_at=datetime(2025, 7, 1))]))
    assert {"id", "text", "isCompleted", "createdAt", "listId", "mode", "dueDate"} <= set(payload[0])
    assert payload[0]["dueDate"] is None


def test_decode_reports_missing_and_failures() -> None:
    assert decode_tasks(None) == ([], Outcome.MISSING)
    assert decode_tasks(b"\xff\xfe") == ([], Outcome.DECODE_FAILED)
    assert decode_tasks(b'{"id": "1"}') == ([], Outcome.DECODE_FAILED)
    assert decode_tasks(b'[{"text": "no id"}]') == ([], Outcome.DECODE_FAILED)
    assert decode_lists(b"nope") == ([], Outcome.DECODE_FAILED)


def test_custom_lists_decode_as_custom() -> None:
    lst = TaskList(id="ABC", name="Groceries", color=RGB(1.0, 0.95, 0.95), custom=True)
    decoded, outcome = decode_lists(encode_lists([lst]))
    assert outcome is Outcome.OK
    assert decoded == [lst]


def test_sqlite_store_save_load_overwrite(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "kv.sqlite3"
    kv = SQLiteKeyValueStore(db)

    assert kv.load(TASKS_KEY) is None

    kv.save(TASKS_KEY, b"[]")
    kv.save(TASKS_KEY, b'[{"x": 1}]')
    assert kv.load(TASKS_KEY) == b'[{"x": 1}]'

    # a second instance sees the same file
    assert SQLiteKeyValueStore(db).load(TASKS_KEY) == b'[{"x": 1}]'

