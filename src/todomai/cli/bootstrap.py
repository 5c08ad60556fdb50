# src/todomai/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/store/TTS/notifications),
- loads persisted tasks over the startup seed.
"""

from __future__ import annotations

import logging
from datetime import date

from ..config import get_settings
from ..core.notifications import EventFanout, SpeechNotifier
from ..core.ports import KeyValueStore
from ..core.state import AppState
from ..tasks.modes import TODAY
from ..tasks.persistence import MODE_KEY, SQLiteKeyValueStore
from ..tasks.seed import demo_tasks
from ..tasks.task_models import Mode
from ..tasks.task_store import TaskStore
from ..tts.engine import TTSEngine

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.kv_db_path.parent.mkdir(parents=True, exist_ok=True)
    if settings.matrix_enabled:
        settings.matrix_store_path.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, kv: KeyValueStore | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the blob store) injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if kv is None:
        kv = SQLiteKeyValueStore(settings.kv_db_path)

    tts = TTSEngine(enabled=settings.tts_mode, settings=settings)
    speech = SpeechNotifier(tts, phrase=getattr(settings, "completion_phrase", "Task completed"))
    events = EventFanout(speech)

    # A saved mode preference wins over the configured default.
    mode = None
    raw_mode = (getattr(settings, "default_mode", "") or "").strip()
    if raw_mode and kv.load(MODE_KEY) is None:
        mode = Mode.from_db(raw_mode)

    seed = demo_tasks(date.today()) if getattr(settings, "seed_demo_tasks", False) else []

    store = TaskStore(kv, events=events, mode=mode, seed=seed)
    store.load()
    # Chat surfaces start inside TODAY instead of the menu.
    store.set_current_list(TODAY)

    return AppState(
        settings=settings,
        task_store=store,
        events=events,
        speech=speech,
        tts_engine=tts,
        tts_enabled=tts.enabled,
    )


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.tts_engine.shutdown()
    except Exception:
        logger.debug("TTS shutdown failed.", exc_info=True)
