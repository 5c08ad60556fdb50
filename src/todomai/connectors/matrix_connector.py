# src/todomai/connectors/matrix_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any

from nio import MatrixRoom, RoomMessageText

from ..core.intake import handle_text
from ..core.ports import HapticIntensity, OutboundMessenger
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ms_now() -> int:
    return int(time.time() * 1000)


def _room_allowlist(settings_rooms: list[str]) -> set[str] | None:
    rooms = [r.strip() for r in (settings_rooms or []) if str(r).strip()]
    return set(rooms) if rooms else None


async def _send_text(client, *, room_id: str, text: str) -> None:
    await client.room_send(
        room_id=room_id,
        message_type="m.room.message",
        content={"msgtype": "m.text", "body": text},
        ignore_unverified_devices=True,
    )


class MatrixMessenger:
    """
    OutboundMessenger over a nio client.

    If room_id is missing we pick:
    - the first allowed room,
    - otherwise any joined room.
    """

    def __init__(self, client, allowed_rooms: set[str] | None = None) -> None:
        self._client = client
        self._allowed_rooms = allowed_rooms

    def _default_room(self) -> str | None:
        if self._allowed_rooms:
            return sorted(self._allowed_rooms)[0]
        rooms = getattr(self._client, "rooms", None) or {}
        return next(iter(rooms.keys()), None)

    async def send_text(self, *, text: str, room_id: str | None = None) -> None:
        target = (room_id or "").strip() or self._default_room()
        if not target:
            logger.warning("No room to send to; message dropped.")
            return
        await _send_text(self._client, room_id=target, text=text)


class MatrixAnnouncer:
    """
    TaskEvents sink that posts completions to a room.

    The store calls it from whichever thread mutated it (console or Matrix),
    so sends are scheduled onto the connector's loop and never awaited here.
    """

    def __init__(
        self,
        messenger: OutboundMessenger,
        loop: asyncio.AbstractEventLoop,
        room_id: str | None = None,
    ) -> None:
        self._messenger = messenger
        self._loop = loop
        self._room_id = room_id

    def on_task_completed(self, task: Any) -> None:
        text = f"Task completed: {getattr(task, 'text', '')}".strip()
        if self._loop.is_closed():
            logger.debug("Matrix loop closed; completion not announced.")
            return
        fut = asyncio.run_coroutine_threadsafe(
            self._messenger.send_text(text=text, room_id=self._room_id), self._loop
        )
        fut.add_done_callback(self._log_failure)

    def on_haptic_feedback(self, intensity: HapticIntensity) -> None:
        return None

    @staticmethod
    def _log_failure(fut: Future) -> None:
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            logger.warning("Failed to announce task completion: %r", exc)


async def _run_matrix_bot(state: AppState, stop_event: asyncio.Event) -> None:
    """
    Matrix connector (async):

    init -> announcer -> callbacks -> sync loop

    Shutdown model:
    - main thread sets stop_event via loop.call_soon_threadsafe(stop_event.set)
    - we run a manual sync loop so we can exit promptly.
    """
    # Import lazily so the console-only path never needs nio configured.
    from .matrix_client import create_matrix_client

    settings = state.settings
    if not settings.matrix_enabled:
        logger.info("Matrix connector disabled via settings.")
        return

    startup_ts = _ms_now()
    logger.info("Matrix startup timestamp (ms): %d", startup_ts)

    allowed_rooms = _room_allowlist(getattr(settings, "matrix_rooms", []) or [])
    logger.info("Matrix allowed_rooms=%s", allowed_rooms if allowed_rooms is not None else "ALL")

    client = await create_matrix_client(settings)
    if client is None:
        logger.error("Matrix client creation failed; connector will stop.")
        return

    logger.info(
        "Matrix client started (user=%s, homeserver=%s).",
        settings.matrix_user_id,
        settings.matrix_homeserver,
    )

    messenger = MatrixMessenger(client, allowed_rooms)
    announcer = MatrixAnnouncer(messenger, asyncio.get_running_loop())
    state.events.add(announcer)

    # ---- Message callback ----

    async def message_callback(room: MatrixRoom, event: RoomMessageText) -> None:
        # 1) Ignore messages sent before bot startup.
        ts = getattr(event, "server_timestamp", None)
        if ts is not None and ts <= startup_ts:
            return

        # 2) Ignore own messages.
        if event.sender == client.user_id:
            return

        # 3) Room allowlist filter.
        if allowed_rooms is not None and room.room_id not in allowed_rooms:
            return

        body = (event.body or "").strip()
        if not body:
            return

        logger.info("Matrix <%s> %s: %r", room.display_name, event.sender, body)

        try:
            reply = handle_text(state, body, user_id=event.sender, room_id=room.room_id)
        except Exception:
            logger.exception("Failed to handle Matrix message.")
            reply = "Internal error while handling your message."

        if not reply:
            return

        try:
            await _send_text(client, room_id=room.room_id, text=reply)
            logger.info("Replied in %s (%s).", room.display_name, room.room_id)
        except Exception:
            logger.exception("Failed to send reply.")

    client.add_event_callback(message_callback, RoomMessageText)

    # ---- Sync loop ----

    try:
        logger.info("Matrix initial sync...")
        await client.sync(timeout=30000, full_state=True)
        logger.info("Matrix initial sync done. Joined rooms: %d", len(client.rooms))

        logger.info("Matrix sync loop started.")
        while not stop_event.is_set():
            await client.sync(timeout=30000, full_state=False)

    except asyncio.CancelledError:
        logger.info("Matrix connector cancelled.")
    except Exception:
        logger.exception("Matrix connector crashed.")
    finally:
        state.events.remove(announcer)

        with contextlib.suppress(Exception):
            await client.close()

        logger.info("Matrix connector stopped.")


@dataclass
class MatrixBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal Matrix stop (loop closed).", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_matrix_in_background(state: AppState) -> MatrixBackgroundRunner | None:
    """
    Start Matrix connector in a background thread (so console REPL can run in parallel).

    - console REPL is blocking (input()).
    - Matrix connector is async and wants its own event loop.
    """
    if not state.settings.matrix_enabled:
        logger.info("Matrix connector disabled, not starting.")
        return None

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_matrix_bot(state, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="matrix-connector", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Matrix thread did not initialize properly.")
        return None

    logger.info("Matrix background thread started.")
    return MatrixBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
