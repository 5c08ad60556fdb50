# src/todomai/tasks/seed.py

"""Demo tasks shown on a fresh install when TODOMAI_SEED_DEMO is on."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from .calendar_math import day_list_id
from .task_models import Mode, Task


def demo_tasks(today: date) -> list[Task]:
    meeting_day = today - timedelta(days=4)

    weekly = Task(
        text="Weekly Team Meeting",
        list_id=day_list_id(meeting_day, recurring=True),
        mode=Mode.LIFE,
        due_date=datetime.combine(meeting_day, time()),
        is_recurring=True,
    )

    weekday = today.strftime("%A")
    standup = Task(
        text=f"Daily Standup Every {weekday}",
        list_id=day_list_id(today, recurring=True),
        mode=Mode.LIFE,
        due_date=datetime.combine(today, time(9, 30)),
        is_recurring=True,
        has_reminder=True,
        reminder_minutes_before=30,
    )

    lab = Task(
        text="Physics Lab Report Due",
        list_id=day_list_id(meeting_day),
        mode=Mode.SCHOOL,
        due_date=datetime.combine(meeting_day, time(14, 0)),
        has_reminder=True,
        reminder_minutes_before=120,
    )

    return [weekly, standup, lab]
