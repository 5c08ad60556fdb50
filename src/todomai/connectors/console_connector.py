# src/todomai/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..core.intake import handle_text
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (mode=%s, tts=%s).", state.task_store.current_mode.value, state.tts_enabled)
    _print_ts("[CONSOLE] Type a task (e.g. 'add buy milk to later'). Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations (e.g., TTS init)
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> You: ").strip()
            sent_ts = _ts_local()
            _rewrite_prev_line(f"[{sent_ts}] >>> You: {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = handle_text(state, user_input, emit=emit)
        except Exception:
            logger.exception("Console input handler crashed.")
            _print_ts("Internal error while handling input.")
            continue

        if reply:
            _print_ts(reply)

        # Let a spoken "Task completed" finish before the next prompt.
        if state.tts_enabled:
            try:
                state.tts_engine.wait_all()
            except Exception:
                logger.debug("TTS wait_all failed.", exc_info=True)

    logger.info("Console connector finished.")
