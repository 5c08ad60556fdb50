# tests/test_text_parser.py

from __future__ import annotations

from datetime import datetime

import pytest

from todomai.tasks.task_models import Outcome
from todomai.tasks.text_parser import (
    clean_voice_text,
    extract,
    extract_due_date,
    split_recurring,
    to_24h,
)

NOW = datetime(2025, 7, 16, 10, 0)


@pytest.mark.parametrize(
    ("text", "expected_text", "hour", "minute"),
    [
        ("Call mom at 3pm", "Call mom", 15, 0),
        ("Call mom at 3 pm", "Call mom", 15, 0),
        ("Meeting at 3:30", "Meeting", 3, 30),
        ("Meeting at 3:30pm", "Meeting", 15, 30),
        ("Standup 15:30 sharp", "Standup sharp", 15, 30),
        ("Lunch 12pm", "Lunch", 12, 0),
        ("Sleep 12am", "Sleep", 0, 0),
        ("Gym 7 AM", "Gym", 7, 0),
    ],
)
def test_extract_due_date_rules(text: str, expected_text: str, hour: int, minute: int) -> None:
    cleaned, due = extract_due_date(text, NOW)
    assert cleaned == expected_text
    assert due == datetime(2025, 7, 16, hour, minute)


def test_first_matching_rule_wins() -> None:
    # "at H:MM" outranks a bare "9am" that appears earlier in the text.
    cleaned, due = extract_due_date("Review 9am report at 4:15pm", NOW)
    assert cleaned == "Review 9am report"
    assert due == datetime(2025, 7, 16, 16, 15)


def test_no_time_yields_no_match() -> None:
    parsed = extract("  Buy milk  ", NOW)
    assert parsed.display_text == "Buy milk"
    assert parsed.due_date is None
    assert parsed.outcome is Outcome.NO_MATCH


def test_out_of_range_time_gives_no_date_but_cleans_text() -> None:
    parsed = extract("Night shift 25:00", NOW)
    assert parsed.display_text == "Night shift"
    assert parsed.due_date is None
    assert parsed.outcome is Outcome.NO_MATCH

    cleaned, due = extract_due_date("Call at 9:75", NOW)
    assert cleaned == "Call"
    assert due is None


def test_parsed_time_stays_on_the_day_of_now() -> None:
    late = datetime(2025, 7, 16, 23, 59, 30)
    _, due = extract_due_date("Wrap up at 11:59pm", late)
    assert due == datetime(2025, 7, 16, 23, 59)


def test_digits_inside_words_are_not_times() -> None:
    _, due = extract_due_date("Buy 3 apples for room 12", NOW)
    assert due is None


@pytest.mark.parametrize(
    ("hour", "meridiem", "expected"),
    [(12, "pm", 12), (12, "am", 0), (1, "pm", 13), (11, "am", 11), (9, None, 9)],
)
def test_to_24h(hour: int, meridiem: str | None, expected: int) -> None:
    assert to_24h(hour, meridiem) == expected


def test_split_recurring_variants() -> None:
    assert split_recurring("Standup (Every monday)") == ("Standup", "Monday")
    assert split_recurring("Gym Every Friday") == ("Gym", "Friday")
    assert split_recurring("Nothing special") == ("Nothing special", None)


def test_extract_keeps_recurring_phrase_in_text() -> None:
    parsed = extract("Gym Every Friday at 7am", NOW)
    assert parsed.display_text == "Gym Every Friday"
    assert parsed.recurring_day == "Friday"
    assert parsed.due_date == datetime(2025, 7, 16, 7, 0)
    assert parsed.outcome is Outcome.OK


@pytest.mark.parametrize(
    ("text", "keyword", "expected"),
    [
        ("Add buy milk to my later list", "later", "buy milk"),
        ("add report to the week list", "week", "report"),
        ("add essay to assignments list", "assignments", "essay"),
        ("add call mom to today at 3pm", "today", "call mom at 3pm"),
        ("paint the fence someday", "someday", "paint the fence someday"),
    ],
)
def test_clean_voice_text(text: str, keyword: str, expected: str) -> None:
    assert clean_voice_text(text, keyword) == expected
