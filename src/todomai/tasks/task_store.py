# src/todomai/tasks/task_store.py

from __future__ import annotations

import logging
import re
import threading
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime

from ..core.ports import HapticIntensity, KeyValueStore, TaskEvents
from . import calendar_math, text_parser
from .modes import CUSTOM_LIST_COLORS, TODAY, lists_for_mode, mode_config
from .persistence import (
    LISTS_KEY,
    MODE_KEY,
    TASKS_KEY,
    decode_lists,
    decode_tasks,
    encode_lists,
    encode_tasks,
)
from .task_models import Mode, Outcome, Task, TaskList

logger = logging.getLogger(__name__)

TEST_MARKER = "[TEST]"
_TEST_PREFIX = "[TEST] "

Subscriber = Callable[["TaskStore"], None]


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    completed: int
    pending: int
    today: int  # pending tasks in the "today" list


class TaskStore:
    """
    Single source of truth for tasks, lists and the active mode.

    - `tasks` is kept newest-first; that order is part of the contract.
    - Derived views (`current_tasks`, `completed_tasks`) are recomputed on
      every read, so they can never lag behind a mutation.
    - Every mutation is written through to the KeyValueStore immediately.
      Write failures are logged and swallowed: in-memory state stays
      authoritative for the session.

    Thread-safety:
    - all reads and writes go through one re-entrant lock (single writer),
      so connectors running on background threads see the latest mutation.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        events: TaskEvents | None = None,
        mode: Mode | None = None,
        seed: Iterable[Task] = (),
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._kv = kv
        self._events = events
        self._clock = clock
        self._lock = threading.RLock()

        self._tasks: list[Task] = []
        self._by_id: dict[str, Task] = {}
        self._issued_ids: set[str] = set()
        self._last_created_at: datetime | None = None

        self._custom_lists: list[TaskList] = []
        self._subscribers: list[Subscriber] = []

        self._mode = mode if mode is not None else self._load_mode()
        self._lists = lists_for_mode(self._mode)

        self.current_list_id = "menu"
        self.selected_calendar_date: date | None = None
        self.calendar_display_date: date = self._clock().date()

        # Seed is visible right away; load() replaces it once persisted data is read.
        for task in seed:
            self._register(task)
            self._tasks.append(task)

    # ---- low-level helpers ----

    def _load_mode(self) -> Mode:
        try:
            raw = self._kv.load(MODE_KEY)
        except Exception:
            logger.exception("Failed to read saved mode; defaulting to life.")
            return Mode.LIFE
        return Mode.from_db(raw.decode("utf-8", "replace") if raw else None)

    def _register(self, task: Task) -> None:
        self._by_id[task.id] = task
        self._issued_ids.add(task.id)

    def _new_id(self) -> str:
        while True:
            candidate = uuid.uuid4().hex
            if candidate not in self._issued_ids:
                return candidate

    def _next_created_at(self, now: datetime) -> datetime:
        # created_at never goes backwards even if the wall clock does
        if self._last_created_at is not None and now < self._last_created_at:
            now = self._last_created_at
        self._last_created_at = now
        return now

    def _filter(self, list_id: str, mode: Mode, completed: bool) -> list[Task]:
        return [
            t
            for t in self._tasks
            if t.list_id == list_id and t.mode == mode and t.is_completed == completed
        ]

    def _rebuild_lists(self) -> None:
        self._lists = lists_for_mode(self._mode) + list(self._custom_lists)

    def _save(self, key: str, payload: Callable[[], bytes]) -> None:
        try:
            self._kv.save(key, payload())
        except Exception:
            logger.exception("Failed to persist %s; keeping in-memory state.", key)

    def _save_tasks(self) -> None:
        self._save(TASKS_KEY, lambda: encode_tasks(self._tasks))

    def _save_lists(self) -> None:
        self._save(LISTS_KEY, lambda: encode_lists(self._custom_lists))

    def _save_mode(self) -> None:
        self._save(MODE_KEY, lambda: self._mode.value.encode("utf-8"))

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                logger.exception("TaskStore subscriber failed.")

    def _emit_completed(self, task: Task) -> None:
        if self._events is None:
            return
        try:
            self._events.on_task_completed(task)
        except Exception:
            logger.exception("on_task_completed handler failed.")

    def _emit_haptic(self, intensity: HapticIntensity) -> None:
        if self._events is None:
            return
        try:
            self._events.on_haptic_feedback(intensity)
        except Exception:
            logger.debug("on_haptic_feedback handler failed.", exc_info=True)

    # ---- subscriptions ----

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback(store)` after every mutation. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    # ---- startup ----

    def load(self) -> Outcome:
        """
        Replace in-memory state with what is persisted.

        Persisted tasks overwrite (never merge with) the seed. A missing or
        undecodable value leaves the current collection as it is.
        Tasks marked [TEST] are dropped afterwards.
        """
        tasks_raw = self._safe_load(TASKS_KEY)
        lists_raw = self._safe_load(LISTS_KEY)

        tasks, outcome = decode_tasks(tasks_raw)
        custom, lists_outcome = decode_lists(lists_raw)

        with self._lock:
            if outcome is Outcome.OK:
                self._tasks = []
                self._by_id = {}
                for task in tasks:
                    if task.id in self._by_id:
                        logger.warning("Duplicate task id %s in persisted data; keeping first.", task.id)
                        continue
                    self._register(task)
                    self._tasks.append(task)
                if self._tasks:
                    self._last_created_at = max(t.created_at for t in self._tasks)

            if lists_outcome is Outcome.OK:
                self._custom_lists = custom
                self._rebuild_lists()

            before = len(self._tasks)
            self._tasks = [t for t in self._tasks if TEST_MARKER not in t.text]
            self._by_id = {t.id: t for t in self._tasks}
            if self._tasks and (outcome is not Outcome.OK or len(self._tasks) != before):
                self._save_tasks()

            logger.info(
                "TaskStore loaded tasks=%d (%s) custom_lists=%d (%s) mode=%s",
                len(self._tasks),
                outcome.value,
                len(self._custom_lists),
                lists_outcome.value,
                self._mode.value,
            )

        self._notify()
        return outcome

    def _safe_load(self, key: str) -> bytes | None:
        try:
            return self._kv.load(key)
        except Exception:
            logger.exception("Failed to read %s from storage.", key)
            return None

    # ---- read API ----

    @property
    def tasks(self) -> list[Task]:
        with self._lock:
            return list(self._tasks)

    @property
    def lists(self) -> list[TaskList]:
        with self._lock:
            return list(self._lists)

    @property
    def current_mode(self) -> Mode:
        return self._mode

    @property
    def current_list(self) -> TaskList | None:
        with self._lock:
            return next((lst for lst in self._lists if lst.id == self.current_list_id), None)

    @property
    def current_tasks(self) -> list[Task]:
        with self._lock:
            return self._filter(self.current_list_id, self._mode, completed=False)

    @property
    def completed_tasks(self) -> list[Task]:
        with self._lock:
            return self._filter(self.current_list_id, self._mode, completed=True)

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            return self._by_id.get(task_id)

    def tasks_for_day(self, day: date | datetime) -> list[Task]:
        with self._lock:
            return calendar_math.tasks_on_day(self._tasks, day)

    def tasks_for_hour(self, day: date | datetime, hour: int) -> list[Task]:
        with self._lock:
            return calendar_math.tasks_in_hour(self._tasks, day, hour)

    def statistics(self) -> TaskStats:
        with self._lock:
            completed = sum(1 for t in self._tasks if t.is_completed)
            today = sum(1 for t in self._tasks if t.list_id == TODAY and not t.is_completed)
            return TaskStats(
                total=len(self._tasks),
                completed=completed,
                pending=len(self._tasks) - completed,
                today=today,
            )

    # ---- mutations ----

    def add_task(self, text: str) -> Task:
        """
        Parse `text` and insert a new task at the front of the collection.

        A task added to "today" without an explicit time is stamped with the
        current moment so it lands in an hour bucket of the day schedule.
        """
        now = self._clock()
        parsed = text_parser.extract(text, now)

        with self._lock:
            due = parsed.due_date
            if due is None and self.current_list_id == TODAY:
                due = now

            task = Task(
                id=self._new_id(),
                text=parsed.display_text,
                list_id=self.current_list_id,
                mode=self._mode,
                due_date=due,
                created_at=self._next_created_at(now),
            )
            self._register(task)
            self._tasks.insert(0, task)
            self._save_tasks()

        logger.info(
            "Task added id=%s list=%s mode=%s due=%s parsed=%s",
            task.id,
            task.list_id,
            task.mode.value,
            task.due_date,
            parsed.outcome.value,
        )
        self._notify()
        return task

    def process_voice_input(self, text: str) -> Task:
        """
        Route dictated text: a list keyword valid for the current mode picks
        the target list and the navigational phrasing is stripped; otherwise
        the text goes unchanged to the current list.
        """
        lowered = text.lower()
        cfg = mode_config(self._mode)

        for keyword, list_id in cfg.voice_keywords.items():
            if not re.search(rf"\b{re.escape(keyword)}\b", lowered):
                continue

            cleaned = text_parser.clean_voice_text(text, keyword)
            logger.debug("Voice keyword %r -> list %s (mode=%s)", keyword, list_id, self._mode.value)
            with self._lock:
                previous = self.current_list_id
                self.current_list_id = list_id
                try:
                    return self.add_task(cleaned)
                finally:
                    self.current_list_id = previous

        return self.add_task(text)

    def toggle_task(self, task: Task | str) -> Outcome:
        task_id = task.id if isinstance(task, Task) else str(task)
        with self._lock:
            found = self._by_id.get(task_id)
            if found is None:
                logger.debug("toggle_task: id %s not found", task_id)
                return Outcome.NOT_FOUND
            found.is_completed = not found.is_completed
            completed = found.is_completed
            self._save_tasks()

        logger.info("Task toggled id=%s completed=%s", task_id, completed)
        self._emit_haptic("light")
        if completed:
            self._emit_completed(found)
        self._notify()
        return Outcome.OK

    def delete_task(self, indices: Iterable[int]) -> int:
        """
        Delete by position in `current_tasks` (not raw storage order).

        Out-of-range positions are ignored. Returns the number removed.
        """
        with self._lock:
            view = self._filter(self.current_list_id, self._mode, completed=False)
            doomed = {view[i].id for i in set(indices) if 0 <= i < len(view)}
            if not doomed:
                return 0
            self._tasks = [t for t in self._tasks if t.id not in doomed]
            for task_id in doomed:
                self._by_id.pop(task_id, None)
            self._save_tasks()

        logger.info("Deleted %d task(s) from list=%s", len(doomed), self.current_list_id)
        self._notify()
        return len(doomed)

    def clear_completed(self) -> int:
        """Remove completed tasks of the current list and mode only."""
        with self._lock:
            keep = [
                t
                for t in self._tasks
                if not (t.is_completed and t.list_id == self.current_list_id and t.mode == self._mode)
            ]
            removed = len(self._tasks) - len(keep)
            if not removed:
                return 0
            self._tasks = keep
            self._by_id = {t.id: t for t in keep}
            self._save_tasks()

        logger.info("Cleared %d completed task(s) from list=%s", removed, self.current_list_id)
        self._emit_haptic("medium")
        self._notify()
        return removed

    def move_task_to_today(self, task: Task | str) -> Outcome:
        task_id = task.id if isinstance(task, Task) else str(task)
        with self._lock:
            found = self._by_id.get(task_id)
            if found is None:
                return Outcome.NOT_FOUND
            found.list_id = TODAY
            self._save_tasks()
        self._notify()
        return Outcome.OK

    def set_mode(self, mode: Mode) -> None:
        with self._lock:
            self._mode = mode
            self._rebuild_lists()
            self._save_mode()
        logger.info("Mode -> %s", mode.value)
        self._emit_haptic("light")
        self._notify()

    def cycle_through_modes(self) -> Mode:
        with self._lock:
            nxt = self._mode.next()
            self.set_mode(nxt)
        return nxt

    def set_current_list(self, list_id: str) -> None:
        with self._lock:
            self.current_list_id = list_id
        self._notify()

    def add_list(self, name: str) -> TaskList:
        with self._lock:
            color = CUSTOM_LIST_COLORS[len(self._lists) % len(CUSTOM_LIST_COLORS)]
            new_list = TaskList(id=str(uuid.uuid4()).upper(), name=name, color=color, custom=True)
            self._custom_lists.append(new_list)
            self._rebuild_lists()
            self._save_lists()
        logger.info("List added id=%s name=%r", new_list.id, name)
        self._notify()
        return new_list

    def remove_test_prefixes(self) -> int:
        with self._lock:
            changed = 0
            for task in self._tasks:
                if task.text.startswith(_TEST_PREFIX):
                    task.text = task.text[len(_TEST_PREFIX) :]
                    changed += 1
            if changed:
                self._save_tasks()
        if changed:
            self._notify()
        return changed

    def clear_all_test_data(self) -> int:
        """Drop every task containing [TEST], then strip leftover prefixes."""
        with self._lock:
            keep = [t for t in self._tasks if TEST_MARKER not in t.text]
            removed = len(self._tasks) - len(keep)
            self._tasks = keep
            self._by_id = {t.id: t for t in keep}
            self.remove_test_prefixes()
            self._save_tasks()
        self._notify()
        return removed

    # ---- calendar cursor ----

    def select_date(self, day: date | None) -> None:
        with self._lock:
            self.selected_calendar_date = day
        self._emit_haptic("light")
        self._notify()

    def navigate_to_next_month(self) -> date:
        with self._lock:
            self.calendar_display_date = calendar_math.add_months(self.calendar_display_date, 1)
        self._notify()
        return self.calendar_display_date

    def navigate_to_previous_month(self) -> date:
        with self._lock:
            self.calendar_display_date = calendar_math.add_months(self.calendar_display_date, -1)
        self._notify()
        return self.calendar_display_date
