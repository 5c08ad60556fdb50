# src/todomai/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on Protocols instead of concrete implementations.
This keeps storage/notification/transport swappable and makes testing easier.
"""

from typing import Any, Awaitable, Literal, Protocol

HapticIntensity = Literal["light", "medium", "heavy"]


class KeyValueStore(Protocol):
    """Blob persistence: one independently loadable value per key."""

    def save(self, key: str, value: bytes) -> None: ...
    def load(self, key: str) -> bytes | None: ...


class TaskEvents(Protocol):
    """
    Fire-and-forget signals emitted by the store towards the surfaces.

    Implementations must not raise; the store ignores return values.
    """

    def on_task_completed(self, task: Any) -> None: ...
    def on_haptic_feedback(self, intensity: HapticIntensity) -> None: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: how services can send text outward.

    The connector decides how to interpret room_id (can be None),
    e.g. Matrix connector may pick a default room if room_id is missing.
    """

    def send_text(self, *, text: str, room_id: str | None = None) -> Awaitable[None]: ...


class TTSEngine(Protocol):
    def speak_sentence(self, text: str) -> None: ...
    def wait_all(self) -> None: ...
    def shutdown(self) -> None: ...
