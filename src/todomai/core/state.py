# src/todomai/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_store import TaskStore
from .notifications import EventFanout, SpeechNotifier
from .ports import TTSEngine


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    events: EventFanout
    speech: SpeechNotifier
    tts_engine: TTSEngine
    tts_enabled: bool

    # Guards connector-level state (tts swap) shared between console and Matrix threads.
    lock: threading.RLock = field(default_factory=threading.RLock)
