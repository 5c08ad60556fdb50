# src/todomai/tasks/modes.py

"""
Mode configuration table.

Everything that depends on the active mode (list ids, list names, colors,
voice keywords) is looked up here instead of being switched on in every
surface.
"""

from __future__ import annotations

from dataclasses import dataclass

from .task_models import RGB, Mode, TaskList

TODAY = "today"
CALENDAR = "done"

_THIS_WEEK_BLUE = RGB(0.478, 0.686, 0.961)
_SOMEDAY_ORANGE = RGB(1.0, 0.6, 0.0)
_CALENDAR_PASTEL_RED = RGB(1.0, 0.7, 0.7)
_GRAY = RGB(0.5, 0.5, 0.5)

_LIST_NAMES = {
    "today": "TODAY",
    "thisWeek": "THIS WEEK",
    "later": "SOMEDAY",
    "done": "CALENDAR",
    "week": "THIS WEEK",
    "month": "THIS MONTH",
    "assignments": "ASSIGNMENTS",
    "exams": "EXAMS",
}

# Palette cycled through by TaskStore.add_list.
CUSTOM_LIST_COLORS: tuple[RGB, ...] = (
    RGB(1.0, 0.95, 0.95),
    RGB(0.95, 0.95, 1.0),
    RGB(0.95, 1.0, 0.95),
    RGB(1.0, 1.0, 0.95),
    RGB(1.0, 0.95, 1.0),
    RGB(0.95, 1.0, 1.0),
)


@dataclass(frozen=True, slots=True)
class ModeConfig:
    mode: Mode
    display_name: str
    list_ids: tuple[str, ...]
    list_colors: dict[str, RGB]
    # spoken keyword -> list id it routes to
    voice_keywords: dict[str, str]

    def list_name(self, list_id: str) -> str:
        return _LIST_NAMES.get(list_id, list_id.upper())

    def list_color(self, list_id: str) -> RGB:
        return self.list_colors.get(list_id, _GRAY)

    def build_lists(self) -> list[TaskList]:
        return [
            TaskList(id=list_id, name=self.list_name(list_id), color=self.list_color(list_id))
            for list_id in self.list_ids
        ]


MODE_TABLE: dict[Mode, ModeConfig] = {
    Mode.LIFE: ModeConfig(
        mode=Mode.LIFE,
        display_name="LIFE",
        list_ids=("today", "thisWeek", "later", CALENDAR),
        list_colors={
            "today": RGB(0.0, 0.478, 1.0),
            "thisWeek": _THIS_WEEK_BLUE,
            "later": _SOMEDAY_ORANGE,
            CALENDAR: _CALENDAR_PASTEL_RED,
        },
        voice_keywords={"today": "today", "later": "later", "someday": "later", "done": CALENDAR},
    ),
    Mode.WORK: ModeConfig(
        mode=Mode.WORK,
        display_name="WORK",
        list_ids=("today", "week", "month", CALENDAR),
        list_colors={
            "today": RGB(0.0, 0.8, 0.0),
            "week": RGB(1.0, 0.5, 0.0),
            "month": RGB(1.0, 0.7, 0.3),
            CALENDAR: _CALENDAR_PASTEL_RED,
        },
        voice_keywords={"today": "today", "week": "week", "month": "month"},
    ),
    Mode.SCHOOL: ModeConfig(
        mode=Mode.SCHOOL,
        display_name="SCHOOL",
        list_ids=("today", "assignments", "exams", CALENDAR),
        list_colors={
            "today": RGB(0.784, 0.647, 0.949),
            "assignments": RGB(0.5, 0.3, 0.8),
            "exams": RGB(0.7, 0.2, 0.9),
            CALENDAR: _CALENDAR_PASTEL_RED,
        },
        voice_keywords={"today": "today", "assignments": "assignments", "exams": "exams"},
    ),
}


def mode_config(mode: Mode) -> ModeConfig:
    return MODE_TABLE[mode]


def lists_for_mode(mode: Mode) -> list[TaskList]:
    """Fresh list descriptors for a mode (custom lists are not included)."""
    return MODE_TABLE[mode].build_lists()
