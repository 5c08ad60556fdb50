# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from todomai.cli.bootstrap import create_initial_state
from todomai.core.state import AppState
from todomai.tasks.persistence import MemoryKeyValueStore
from todomai.tasks.task_store import TaskStore

from .fakes import FakeTTS, RecordingEvents

# Wednesday; the surrounding Sunday-start week is Jul 13 - Jul 19.
NOW = datetime(2025, 7, 16, 10, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="todomai-test",
        # Paths (tmp per test run)
        data_dir=tmp_path / "data",
        kv_db_path=tmp_path / "data" / "todomai.sqlite3",
        matrix_store_path=tmp_path / "data" / "matrix_store",
        # Behaviour
        default_mode="",
        seed_demo_tasks=False,
        completion_phrase="Task completed",
        # Features
        console_enabled=False,
        matrix_enabled=False,
        matrix_rooms=[],
        tts_mode=False,
    )


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def events() -> RecordingEvents:
    return RecordingEvents()


@pytest.fixture()
def store(kv: MemoryKeyValueStore, events: RecordingEvents) -> TaskStore:
    """Store on a fixed clock, opened on the TODAY list."""
    s = TaskStore(kv, events=events, clock=lambda: NOW)
    s.set_current_list("today")
    return s


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired by the real composition root, with an in-memory blob store
    and a recording TTS double behind the speech notifier.
    """
    st = create_initial_state(settings=settings, kv=MemoryKeyValueStore())
    st.speech.engine = FakeTTS()
    return st
