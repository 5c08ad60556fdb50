# src/todomai/tasks/calendar_math.py

"""
Date helpers behind the calendar/schedule surfaces.

Weeks start on Sunday, matching the calendar the app was designed around.
Everything works on naive local datetimes.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from .task_models import Task, Urgency

SUNDAY = calendar.SUNDAY
_CAL = calendar.Calendar(firstweekday=SUNDAY)


def as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def start_of_week(day: date | datetime) -> date:
    d = as_date(day)
    # date.weekday(): Monday=0 ... Sunday=6
    return d - timedelta(days=(d.weekday() - SUNDAY) % 7)


def week_days(day: date | datetime) -> list[date]:
    start = start_of_week(day)
    return [start + timedelta(days=i) for i in range(7)]


def month_grid(day: date | datetime) -> list[date | None]:
    """
    Cells of a month view: leading/trailing None pads to whole weeks.
    """
    d = as_date(day)
    return [date(d.year, d.month, n) if n else None for n in _CAL.itermonthdays(d.year, d.month)]


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day (Jan 31 + 1 month -> Feb 28/29)."""
    total = day.year * 12 + (day.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def is_same_day(a: date | datetime, b: date | datetime) -> bool:
    return as_date(a) == as_date(b)


def day_list_id(day: date | datetime, *, recurring: bool = False) -> str:
    """List id used for tasks pinned to a calendar day, e.g. "calendar_2025-07-16"."""
    key = f"calendar_{as_date(day).isoformat()}"
    return f"{key}_recurring" if recurring else key


def tasks_on_day(tasks: Iterable[Task], day: date | datetime) -> list[Task]:
    return [t for t in tasks if t.due_date is not None and is_same_day(t.due_date, day)]


def tasks_in_hour(tasks: Iterable[Task], day: date | datetime, hour: int) -> list[Task]:
    return [t for t in tasks_on_day(tasks, day) if t.due_date is not None and t.due_date.hour == hour]


def hour_buckets(tasks: Iterable[Task], day: date | datetime) -> dict[int, list[Task]]:
    """All 24 hours of a day schedule, each with the tasks due in that hour."""
    buckets: dict[int, list[Task]] = {h: [] for h in range(24)}
    for t in tasks_on_day(tasks, day):
        due = t.due_date
        if due is not None:
            buckets[due.hour].append(t)
    return buckets


def urgency(task: Task, now: datetime) -> Urgency:
    due = task.due_date
    if due is None:
        return Urgency.NONE
    if due < now:
        return Urgency.OVERDUE
    if is_same_day(due, now):
        return Urgency.TODAY
    if start_of_week(due) == start_of_week(now):
        return Urgency.THIS_WEEK
    return Urgency.NONE


def hour_label(hour: int) -> str:
    if hour in (0, 24):
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def display_time(value: datetime) -> str:
    """
    12-hour "H:MM" without AM/PM; empty for exact midnight (date-only tasks).
    """
    if value.hour == 0 and value.minute == 0:
        return ""
    hour = value.hour
    display_hour = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    return f"{display_hour}:{value.minute:02d}"


def week_range_text(day: date | datetime) -> str:
    start = start_of_week(day)
    end = start + timedelta(days=6)
    return f"{start:%b} {start.day} - {end:%b} {end.day}"
