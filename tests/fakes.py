# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from todomai.core.ports import HapticIntensity, OutboundMessenger


@dataclass(slots=True)
class RecordingEvents:
    """TaskEvents sink that records every signal for assertions."""

    completed: list[Any] = field(default_factory=list)
    haptics: list[HapticIntensity] = field(default_factory=list)

    def on_task_completed(self, task: Any) -> None:
        self.completed.append(task)

    def on_haptic_feedback(self, intensity: HapticIntensity) -> None:
        self.haptics.append(intensity)


class ExplodingEvents:
    """Sink that fails on every call; the store must shrug it off."""

    def on_task_completed(self, task: Any) -> None:
        raise RuntimeError("boom")

    def on_haptic_feedback(self, intensity: HapticIntensity) -> None:
        raise RuntimeError("boom")


class FailingKeyValueStore:
    """
    KeyValueStore whose writes always fail.

    Reads return whatever was put in `preloaded`.
    """

    def __init__(self, preloaded: dict[str, bytes] | None = None) -> None:
        self.preloaded = dict(preloaded or {})
        self.save_attempts = 0

    def save(self, key: str, value: bytes) -> None:
        self.save_attempts += 1
        raise OSError("disk full")

    def load(self, key: str) -> bytes | None:
        return self.preloaded.get(key)


class FakeTTS:
    """TTSEngine double that records spoken sentences."""

    def __init__(self) -> None:
        self.spoken: list[str] = []
        self.enabled = True
        self.shut_down = False

    def speak_sentence(self, text: str) -> None:
        self.spoken.append(text)

    def wait_all(self) -> None:
        return None

    def shutdown(self) -> None:
        self.shut_down = True


@dataclass(slots=True)
class SentMessage:
    text: str
    room_id: str | None


@dataclass(slots=True)
class FakeMessenger(OutboundMessenger):
    """
    Fake OutboundMessenger used by connector tests.
    """

    sent: list[SentMessage] = field(default_factory=list)

    async def send_text(self, *, text: str, room_id: str | None = None) -> None:
        self.sent.append(SentMessage(text=text, room_id=room_id))
