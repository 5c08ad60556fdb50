# src/todomai/core/intake.py

"""
Transport-agnostic handling of inbound text.

Connectors pass raw lines with optional (user_id, room_id):
- "/..." lines go to the command registry,
- anything else is dictated task text routed by list keywords.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..cli import render
from ..cli.commands import CommandEmitter
from ..cli.commands import registry as command_registry
from .state import AppState

logger = logging.getLogger(__name__)


def handle_text(
    state: AppState,
    text: str,
    *,
    user_id: str | None = None,
    room_id: str | None = None,
    emit: CommandEmitter | None = None,
) -> str:
    body = (text or "").strip()
    if not body:
        return ""

    with state.lock:
        try:
            reply = command_registry.handle(state, body, user_id=user_id, room_id=room_id, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            return "Internal error while handling a command."

        if reply is not None:
            return reply

        store = state.task_store
        task = store.process_voice_input(body)

    target = next((lst.name for lst in store.lists if lst.id == task.list_id), task.list_id)
    logger.debug("Inbound text from user=%s room=%s added as task %s", user_id, room_id, task.id)
    return f"Added to {target}: {render.format_task(task, datetime.now())}"
