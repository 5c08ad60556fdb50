# src/todomai/cli/render.py

"""Plain-text rendering of store slices for the console and chat surfaces."""

from __future__ import annotations

from datetime import date, datetime

from ..tasks import calendar_math
from ..tasks.task_models import Task, Urgency
from ..tasks.text_parser import split_recurring

_URGENCY_MARK = {
    Urgency.OVERDUE: " (!) overdue",
    Urgency.TODAY: " (today)",
    Urgency.THIS_WEEK: " (this week)",
    Urgency.NONE: "",
}


def format_task(task: Task, now: datetime, index: int | None = None) -> str:
    text, recurring_day = split_recurring(task.text)
    box = "[x]" if task.is_completed else "[ ]"
    prefix = f"{index}. " if index is not None else ""

    parts = [f"{prefix}{box} {text}"]
    if task.due_date is not None:
        label = calendar_math.display_time(task.due_date)
        if label:
            parts.append(f"@{label}{'pm' if task.due_date.hour >= 12 else 'am'}")
    if recurring_day:
        parts.append(f"(every {recurring_day})")

    mark = "" if task.is_completed else _URGENCY_MARK[calendar_math.urgency(task, now)]
    return " ".join(parts) + mark


def format_task_list(tasks: list[Task], now: datetime, *, empty: str = "No tasks.") -> str:
    if not tasks:
        return empty
    return "\n".join(format_task(t, now, index=i) for i, t in enumerate(tasks, start=1))


def format_day_schedule(tasks: list[Task], day: date, *, start_hour: int = 5, end_hour: int = 24) -> str:
    buckets = calendar_math.hour_buckets(tasks, day)
    lines = [f"{day:%A, %B} {day.day}".upper()]
    for hour in range(start_hour, min(end_hour, 24)):
        items = buckets[hour]
        label = calendar_math.hour_label(hour).rjust(5)
        if not items:
            lines.append(f"{label} | -")
            continue
        for i, task in enumerate(items):
            lead = label if i == 0 else " " * len(label)
            text, _ = split_recurring(task.text)
            lines.append(f"{lead} | {text}")
    return "\n".join(lines)


def format_week(tasks: list[Task], day: date) -> str:
    lines = [calendar_math.week_range_text(day)]
    for d in calendar_math.week_days(day):
        due = [t for t in calendar_math.tasks_on_day(tasks, d) if not t.is_completed]
        names = ", ".join(split_recurring(t.text)[0] for t in due) or "-"
        lines.append(f"{d:%a} {d.day:>2}: {names}")
    return "\n".join(lines)


def format_month(tasks: list[Task], day: date) -> str:
    """Month grid; days with tasks are marked with '*'."""
    busy = {t.due_date.date() for t in tasks if t.due_date is not None}
    lines = [f"{day:%B %Y}".upper(), " Su  Mo  Tu  We  Th  Fr  Sa"]
    row: list[str] = []
    for cell in calendar_math.month_grid(day):
        if cell is None:
            row.append("    ")
        else:
            row.append(f"{cell.day:>3}{'*' if cell in busy else ' '}")
        if len(row) == 7:
            lines.append("".join(row).rstrip())
            row = []
    return "\n".join(lines)
