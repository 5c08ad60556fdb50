# src/todomai/tasks/persistence.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path

from .task_models import Outcome, Task, TaskList

logger = logging.getLogger(__name__)

TASKS_KEY = "todomaiTasks"
LISTS_KEY = "todomaiLists"
MODE_KEY = "currentViewMode"


# ---- codec ----


def encode_tasks(tasks: list[Task]) -> bytes:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False).encode("utf-8")


def encode_lists(lists: list[TaskList]) -> bytes:
    return json.dumps([lst.to_dict() for lst in lists], ensure_ascii=False).encode("utf-8")


def decode_tasks(raw: bytes | None) -> tuple[list[Task], Outcome]:
    """
    Decode a persisted task collection.

    Never raises: a missing value yields ([], MISSING), anything undecodable
    yields ([], DECODE_FAILED).
    """
    if raw is None:
        return [], Outcome.MISSING
    try:
        data = json.loads(raw.decode("utf-8"))
        if not isinstance(data, list):
            raise ValueError("expected a JSON array")
        return [Task.from_dict(item) for item in data], Outcome.OK
    except Exception:
        logger.warning("Failed to decode persisted tasks; starting empty.", exc_info=True)
        return [], Outcome.DECODE_FAILED


def decode_lists(raw: bytes | None) -> tuple[list[TaskList], Outcome]:
    if raw is None:
        return [], Outcome.MISSING
    try:
        data = json.loads(raw.decode("utf-8"))
        if not isinstance(data, list):
            raise ValueError("expected a JSON array")
        return [TaskList.from_dict(item) for item in data], Outcome.OK
    except Exception:
        logger.warning("Failed to decode persisted lists; starting empty.", exc_info=True)
        return [], Outcome.DECODE_FAILED


# ---- key-value backends ----


class MemoryKeyValueStore:
    """Process-local blob store (tests, throwaway sessions)."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def save(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def load(self, key: str) -> bytes | None:
        return self._data.get(key)


class SQLiteKeyValueStore:
    """
    SQLite blob store: one row per key.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "todomai.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("KeyValueStore ready db=%s", self._db_path)

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def save(self, key: str, value: bytes) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, sqlite3.Binary(value), time.time()),
            )
            conn.commit()
            logger.debug("kv save key=%s bytes=%d", key, len(value))
        finally:
            conn.close()

    def load(self, key: str) -> bytes | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return bytes(row[0]) if row else None
        finally:
            conn.close()
