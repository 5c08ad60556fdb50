# src/todomai/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import cast

from ..core.state import AppState
from ..tasks.modes import mode_config
from ..tasks.task_models import Mode, Outcome
from ..tts.engine import TTSEngine  # concrete engine (not the Protocol)
from . import render

CommandEmitter = Callable[[str], None]
CommandHandler4 = Callable[[AppState, list[str], str | None, str | None], str]
CommandHandler5 = Callable[
    [AppState, list[str], str | None, str | None, CommandEmitter | None], str
]
CommandHandler = CommandHandler4 | CommandHandler5

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry shared by connectors (/help, /tasks, /done, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases or []:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        user_id: str | None = None,
        room_id: str | None = None,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 5

        if nparams >= 5:
            h5 = cast(CommandHandler5, handler)
            return h5(state, args, user_id, room_id, emit)

        h4 = cast(CommandHandler4, handler)
        return h4(state, args, user_id, room_id)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Anything else is added as a task (e.g. 'add call mom to today at 3pm').")
        return "\n".join(lines)


registry = CommandRegistry()


def _positions(args: list[str]) -> list[int] | None:
    """1-based positions from the user -> 0-based view indices."""
    try:
        return [int(a) - 1 for a in args]
    except ValueError:
        return None


def _parse_day(args: list[str]) -> date | None:
    if not args:
        return date.today()
    try:
        return date.fromisoformat(args[0])
    except ValueError:
        return None


def cmd_help(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    store = state.task_store
    cfg = mode_config(store.current_mode)
    current = store.current_list
    list_name = current.name if current else store.current_list_id
    return (
        "Status:\n"
        f"  Mode: {cfg.display_name}\n"
        f"  List: {list_name} ({store.current_list_id})\n"
        f"  Open here: {len(store.current_tasks)}, completed here: {len(store.completed_tasks)}\n"
        f"  TTS: {'ON' if state.tts_enabled else 'OFF'}"
    )


def cmd_mode(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    """
    /mode         -> show current mode
    /mode next    -> cycle life -> work -> school
    /mode <name>  -> switch directly
    """
    store = state.task_store
    if not args:
        return f"Mode: {mode_config(store.current_mode).display_name}. Use /mode next or /mode life|work|school."

    arg = args[0].lower()
    if arg == "next":
        mode = store.cycle_through_modes()
    else:
        try:
            mode = Mode(arg)
        except ValueError:
            return "Usage: /mode next | /mode life | /mode work | /mode school"
        store.set_mode(mode)
    return f"Mode switched to {mode_config(mode).display_name}."


def cmd_lists(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    store = state.task_store
    lines = [f"Lists ({mode_config(store.current_mode).display_name}):"]
    for lst in store.lists:
        marker = "*" if lst.id == store.current_list_id else " "
        lines.append(f" {marker} {lst.name} [{lst.id}]")
    return "\n".join(lines)


def cmd_list(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    store = state.task_store
    if not args:
        return cmd_lists(state, args, user_id, room_id)

    wanted = " ".join(args)
    match = next(
        (lst for lst in store.lists if wanted in (lst.id, lst.name) or wanted.upper() == lst.name),
        None,
    )
    list_id = match.id if match else wanted
    store.set_current_list(list_id)
    return f"Current list: {match.name if match else list_id}."


def cmd_addlist(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    if not args:
        return "Usage: /addlist <name>"
    new_list = state.task_store.add_list(" ".join(args))
    return f"List added: {new_list.name} [{new_list.id}]"


def cmd_tasks(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    store = state.task_store
    now = datetime.now()
    open_part = render.format_task_list(store.current_tasks, now, empty="No open tasks in this list.")
    done = store.completed_tasks
    if not done:
        return open_part
    return open_part + "\nCompleted:\n" + render.format_task_list(done, now)


def _toggle_at(state: AppState, args: list[str], *, completed: bool) -> str:
    store = state.task_store
    positions = _positions(args)
    if not positions:
        return "Usage: /done <n> (position from /tasks)"
    view = store.completed_tasks if completed else store.current_tasks
    replies = []
    for pos in positions:
        if not 0 <= pos < len(view):
            replies.append(f"No task #{pos + 1}.")
            continue
        outcome = store.toggle_task(view[pos])
        if outcome is Outcome.NOT_FOUND:
            replies.append(f"Task #{pos + 1} no longer exists.")
        else:
            state_word = "reopened" if completed else "completed"
            replies.append(f"Task {state_word}: {view[pos].text}")
    return "\n".join(replies)


def cmd_done(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    return _toggle_at(state, args, completed=False)


def cmd_undo(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    return _toggle_at(state, args, completed=True)


def cmd_delete(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    positions = _positions(args)
    if not positions:
        return "Usage: /delete <n> [n ...] (positions from /tasks)"
    removed = state.task_store.delete_task(positions)
    return f"Deleted {removed} task(s)."


def cmd_clear(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    removed = state.task_store.clear_completed()
    return f"Cleared {removed} completed task(s)."


def cmd_today(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    store = state.task_store
    positions = _positions(args)
    if not positions or len(positions) != 1:
        return "Usage: /today <n> (position from /tasks)"
    view = store.current_tasks
    pos = positions[0]
    if not 0 <= pos < len(view):
        return f"No task #{pos + 1}."
    store.move_task_to_today(view[pos])
    return f"Moved to TODAY: {view[pos].text}"


def cmd_stats(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    s = state.task_store.statistics()
    return (
        "Statistics:\n"
        f"  Total: {s.total}\n"
        f"  Completed: {s.completed}\n"
        f"  Pending: {s.pending}\n"
        f"  Today: {s.today}"
    )


def cmd_day(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    day = _parse_day(args)
    if day is None:
        return "Usage: /day [YYYY-MM-DD]"
    store = state.task_store
    store.select_date(day)
    return render.format_day_schedule(store.tasks_for_day(day), day)


def cmd_week(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    day = _parse_day(args)
    if day is None:
        return "Usage: /week [YYYY-MM-DD]"
    return render.format_week(state.task_store.tasks, day)


def cmd_month(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    """
    /month        -> show the displayed month
    /month next   -> go forward one month
    /month prev   -> go back one month
    """
    store = state.task_store
    if args and args[0].lower() in ("next", "+"):
        store.navigate_to_next_month()
    elif args and args[0].lower() in ("prev", "previous", "-"):
        store.navigate_to_previous_month()
    return render.format_month(store.tasks, store.calendar_display_date)


def cmd_cleantest(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    removed = state.task_store.clear_all_test_data()
    return f"Removed {removed} [TEST] task(s)."


def cmd_tts(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    """
    /tts          -> show status
    /tts on       -> speak "Task completed" notifications
    /tts off      -> silent notifications
    """
    if not args:
        return f"TTS is currently {'ON' if state.tts_enabled else 'OFF'}. Use /tts on or /tts off."

    arg = args[0].lower()

    if arg in ("on", "1", "true", "yes"):
        if state.tts_enabled:
            return "TTS is already ON."

        if emit:
            with contextlib.suppress(Exception):
                emit("[TTS] Enabling... importing deps and loading model (may take a while).")

        logger.debug("TTS enable requested (user_id=%s room_id=%s)", user_id, room_id)

        engine = TTSEngine(enabled=True, settings=state.settings)
        if not engine.enabled:
            return "TTS could not be enabled (missing dependencies, see log)."
        state.tts_engine = engine
        state.speech.engine = engine
        state.tts_enabled = True
        return "TTS enabled. Completed tasks will be announced."

    if arg in ("off", "0", "false", "no"):
        if not state.tts_enabled:
            return "TTS is already OFF."

        logger.debug("TTS disable requested (user_id=%s room_id=%s)", user_id, room_id)

        with contextlib.suppress(Exception):
            state.tts_engine.shutdown()

        engine = TTSEngine(enabled=False)
        state.tts_engine = engine
        state.speech.engine = engine
        state.tts_enabled = False
        return "TTS disabled."

    return "Usage: /tts on or /tts off."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show mode, list and TTS state.")
registry.register("mode", cmd_mode, help_text="Show or switch mode: /mode next | life | work | school.")
registry.register("lists", cmd_lists, help_text="Show the lists of the current mode.")
registry.register("list", cmd_list, help_text="Open a list: /list today.")
registry.register("addlist", cmd_addlist, help_text="Create a custom list: /addlist Groceries.")
registry.register("tasks", cmd_tasks, help_text="Show tasks of the current list.", aliases=["ls"])
registry.register("done", cmd_done, help_text="Complete task(s) by position: /done 1 3.")
registry.register("undo", cmd_undo, help_text="Reopen completed task(s) by position: /undo 1.")
registry.register("delete", cmd_delete, help_text="Delete open task(s) by position: /delete 2.", aliases=["rm"])
registry.register("clear", cmd_clear, help_text="Remove completed tasks from the current list.")
registry.register("today", cmd_today, help_text="Move a task to TODAY: /today 2.")
registry.register("stats", cmd_stats, help_text="Task statistics.")
registry.register("day", cmd_day, help_text="Hour-by-hour schedule: /day [YYYY-MM-DD].")
registry.register("week", cmd_week, help_text="Week overview: /week [YYYY-MM-DD].")
registry.register("month", cmd_month, help_text="Month grid: /month [next|prev].")
registry.register("cleantest", cmd_cleantest, help_text="Remove [TEST] tasks.")
registry.register("tts", cmd_tts, help_text="Spoken notifications: /tts on | /tts off.")
