# src/todomai/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class Mode(StrEnum):
    """
    Partition of the task space.

    Order matters: cycling goes life -> work -> school -> life.
    """

    LIFE = "life"
    WORK = "work"
    SCHOOL = "school"

    @classmethod
    def from_db(cls, raw: str | None) -> Mode:
        if not raw:
            return cls.LIFE
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.LIFE

    def next(self) -> Mode:
        members = list(type(self))
        return members[(members.index(self) + 1) % len(members)]


class Outcome(StrEnum):
    """
    Result of a store/parser/persistence call.

    None of these are raised: the store degrades to "nothing happened",
    but callers (and tests) can still tell the cases apart.
    """

    OK = "ok"
    NOT_FOUND = "not_found"  # task id no longer exists
    DECODE_FAILED = "decode_failed"  # persisted bytes could not be decoded
    MISSING = "missing"  # nothing persisted under the key
    NO_MATCH = "no_match"  # no time expression in the text


class Urgency(StrEnum):
    OVERDUE = "overdue"
    TODAY = "today"
    THIS_WEEK = "this_week"
    NONE = "none"


def _new_task_id() -> str:
    return uuid.uuid4().hex


def _parse_dt(raw: Any) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(str(raw))


@dataclass(frozen=True, slots=True)
class RGB:
    red: float
    green: float
    blue: float

    def to_dict(self) -> dict[str, float]:
        return {"red": self.red, "green": self.green, "blue": self.blue}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RGB:
        return cls(
            red=float(data["red"]),
            green=float(data["green"]),
            blue=float(data["blue"]),
        )


@dataclass(slots=True)
class Task:
    """
    One actionable item.

    `id` and `created_at` are fixed at creation. `comments`, `reward_stars`,
    `has_reminder`, `reminder_minutes_before` and `assigned_to` are carried
    for the surfaces and never interpreted by the store.
    """

    text: str
    list_id: str = "today"
    mode: Mode = Mode.LIFE
    is_completed: bool = False
    due_date: datetime | None = None
    is_recurring: bool = False
    assigned_to: str | None = None
    comments: list[str] = field(default_factory=list)
    reward_stars: int = 0
    has_reminder: bool = False
    reminder_minutes_before: int | None = None
    id: str = field(default_factory=_new_task_id)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "isCompleted": self.is_completed,
            "createdAt": self.created_at.isoformat(),
            "listId": self.list_id,
            "mode": self.mode.value,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "assignedTo": self.assigned_to,
            "isRecurring": self.is_recurring,
            "comments": list(self.comments),
            "rewardStars": self.reward_stars,
            "hasReminder": self.has_reminder,
            "reminderMinutesBefore": self.reminder_minutes_before,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Raises KeyError/ValueError/TypeError on malformed records."""
        minutes = data.get("reminderMinutesBefore")
        return cls(
            id=str(data["id"]),
            text=str(data["text"]),
            is_completed=bool(data.get("isCompleted", False)),
            created_at=datetime.fromisoformat(str(data["createdAt"])),
            list_id=str(data.get("listId") or "today"),
            mode=Mode.from_db(data.get("mode")),
            due_date=_parse_dt(data.get("dueDate")),
            assigned_to=data.get("assignedTo"),
            is_recurring=bool(data.get("isRecurring", False)),
            comments=[str(c) for c in data.get("comments") or []],
            reward_stars=int(data.get("rewardStars") or 0),
            has_reminder=bool(data.get("hasReminder", False)),
            reminder_minutes_before=int(minutes) if minutes is not None else None,
        )


@dataclass(slots=True)
class TaskList:
    id: str
    name: str
    color: RGB
    custom: bool = False  # user-created lists are persisted and survive mode changes

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, custom: bool = True) -> TaskList:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            color=RGB.from_dict(data["color"]),
            custom=custom,
        )
