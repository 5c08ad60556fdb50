# src/todomai/tasks/text_parser.py

"""
Free-text task parsing.

Pure functions only: given the raw text and a reference `now`, pull out an
optional due time and report a recurring weekday annotation. No store access.

Time rules are tried in a fixed order and the first rule that matches
anywhere in the text wins (rules are never combined):

    1. "at 3:30", "at 3:30pm", "at 15:30"
    2. "3:30pm", "15:30" as a standalone token
    3. "at 3pm", "at 3 pm"
    4. "3pm", "3 pm"

The matched span is removed from the text. The resulting time always lands
on the calendar day of `now`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from .task_models import Outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TimeMatch:
    start: int
    end: int
    hour: int
    minute: int
    meridiem: str | None  # "am" / "pm" / None


@dataclass(frozen=True, slots=True)
class ParsedText:
    display_text: str
    due_date: datetime | None
    recurring_day: str | None
    outcome: Outcome


TimeRule = Callable[[str], TimeMatch | None]


def _regex_rule(pattern: str) -> TimeRule:
    rx = re.compile(pattern, re.IGNORECASE)

    def rule(text: str) -> TimeMatch | None:
        m = rx.search(text)
        if not m:
            return None
        minute = m.group("minute") if "minute" in rx.groupindex else None
        meridiem = m.group("meridiem")
        return TimeMatch(
            start=m.start(),
            end=m.end(),
            hour=int(m.group("hour")),
            minute=int(minute) if minute else 0,
            meridiem=meridiem.lower() if meridiem else None,
        )

    return rule


TIME_RULES: tuple[TimeRule, ...] = (
    _regex_rule(r"\bat\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})(?!\d)(?:\s*(?P<meridiem>am|pm)\b)?"),
    _regex_rule(r"\b(?P<hour>\d{1,2}):(?P<minute>\d{2})(?!\d)(?:\s*(?P<meridiem>am|pm)\b)?"),
    _regex_rule(r"\bat\s+(?P<hour>\d{1,2})\s*(?P<meridiem>am|pm)\b"),
    _regex_rule(r"\b(?P<hour>\d{1,2})\s*(?P<meridiem>am|pm)\b"),
)

_RECURRING_PATTERNS = (
    re.compile(r"\s*\(Every (\w+day)\)", re.IGNORECASE),
    re.compile(r"\s*Every (\w+day)", re.IGNORECASE),
)


def to_24h(hour: int, meridiem: str | None) -> int:
    """12pm stays noon, 12am becomes midnight, other pm hours get +12."""
    if meridiem == "pm" and hour < 12:
        return hour + 12
    if meridiem == "am" and hour == 12:
        return 0
    return hour


def find_time(text: str, rules: tuple[TimeRule, ...] = TIME_RULES) -> TimeMatch | None:
    for rule in rules:
        match = rule(text)
        if match is not None:
            return match
    return None


def _cut(text: str, start: int, end: int) -> str:
    left = text[:start].rstrip()
    right = text[end:].lstrip()
    if left and right:
        return f"{left} {right}"
    return (left or right).strip()


def extract_due_date(text: str, now: datetime) -> tuple[str, datetime | None]:
    """
    Return (text without the time expression, due datetime or None).

    The due time always lands on the calendar day of `now`. A matched
    expression whose hour or minute is outside the clock ("25:00", "9:75")
    yields no date, but its span is still removed from the text.
    """
    match = find_time(text)
    if match is None:
        return text.strip(), None

    cleaned = _cut(text, match.start, match.end)
    hour = to_24h(match.hour, match.meridiem)
    if hour > 23 or match.minute > 59:
        logger.info("Ignoring out-of-range time %02d:%02d in %r", hour, match.minute, text)
        return cleaned, None

    return cleaned, now.replace(hour=hour, minute=match.minute, second=0, microsecond=0)


def split_recurring(text: str) -> tuple[str, str | None]:
    """
    Strip an "Every <Weekday>" annotation for display.

    Returns (display text, capitalized weekday) or (text, None).
    """
    for rx in _RECURRING_PATTERNS:
        m = rx.search(text)
        if m:
            day = m.group(1).capitalize()
            return rx.sub("", text).strip(), day
    return text, None


def extract(text: str, now: datetime) -> ParsedText:
    display_text, due = extract_due_date(text, now)
    _, recurring_day = split_recurring(display_text)
    return ParsedText(
        display_text=display_text,
        due_date=due,
        recurring_day=recurring_day,
        outcome=Outcome.OK if due is not None else Outcome.NO_MATCH,
    )


def clean_voice_text(text: str, keyword: str) -> str:
    """
    Remove navigational phrasing ("add ...", "to my <kw> list") from dictated text.

    Longer phrases go first so "to later list" never leaves a stray "list".
    """
    kw = re.escape(keyword)
    patterns = (
        r"\badd\s+",
        rf"\bto\s+my\s+{kw}\s+list\b",
        rf"\bto\s+the\s+{kw}\s+list\b",
        rf"\bto\s+{kw}\s+list\b",
        rf"\bto\s+{kw}\b",
    )
    cleaned = text
    for pattern in patterns:
        cleaned = re.sub(pattern, " ", cleaned, flags=re.IGNORECASE)
    return " ".join(cleaned.split())
