# src/todomai/core/notifications.py

"""
TaskEvents implementations.

The store emits fire-and-forget signals; these classes turn them into
speech, log lines, or chat messages. None of them may raise into the store.
"""

from __future__ import annotations

import logging
from typing import Any

from .ports import HapticIntensity, TaskEvents, TTSEngine

logger = logging.getLogger(__name__)


class SpeechNotifier:
    """Speaks a short phrase when a task gets completed."""

    def __init__(self, engine: TTSEngine, phrase: str = "Task completed") -> None:
        # Reassigned by /tts on|off.
        self.engine = engine
        self.phrase = phrase

    def on_task_completed(self, task: Any) -> None:
        logger.debug("Speaking completion for task id=%s", getattr(task, "id", None))
        self.engine.speak_sentence(self.phrase)

    def on_haptic_feedback(self, intensity: HapticIntensity) -> None:
        # No haptic hardware on this surface.
        logger.debug("Haptic feedback (%s)", intensity)


class EventFanout:
    """Forward every signal to all registered sinks; one failing sink never blocks the rest."""

    def __init__(self, *sinks: TaskEvents) -> None:
        self._sinks: list[TaskEvents] = list(sinks)

    def add(self, sink: TaskEvents) -> None:
        self._sinks.append(sink)

    def remove(self, sink: TaskEvents) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def on_task_completed(self, task: Any) -> None:
        for sink in list(self._sinks):
            try:
                sink.on_task_completed(task)
            except Exception:
                logger.exception("Task-completed sink %r failed.", sink)

    def on_haptic_feedback(self, intensity: HapticIntensity) -> None:
        for sink in list(self._sinks):
            try:
                sink.on_haptic_feedback(intensity)
            except Exception:
                logger.debug("Haptic sink %r failed.", sink, exc_info=True)
