# backend/classbook/core/time_windows.py
"""
Wall-clock helpers for class windows.

Class windows are half-open [start, end) intervals on a 24h clock. A window
whose end is not after its start wrapped past midnight and is treated as
running until 24:00 of its scheduled day.
"""

from datetime import date, time, timedelta
import re
from typing import Callable, Iterator, Tuple

MINUTES_PER_DAY = 24 * 60

HHMM_REGEX = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")

# Injected wherever "today" matters so tests can pin the calendar.
Clock = Callable[[], date]


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour ``HH:MM`` string; raise ValueError when malformed."""
    match = HHMM_REGEX.fullmatch(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time format: {value!r}. Expected HH:MM.")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def time_to_minutes(value: time) -> int:
    """Return minutes since midnight for a time value."""
    return value.hour * 60 + value.minute


def minutes_to_time(value: int) -> time:
    """Convert minutes to a time, wrapping on the 24h clock."""
    value %= MINUTES_PER_DAY
    return time(value // 60, value % 60)


def add_minutes(start: time, minutes: int) -> time:
    """start + minutes with wrapped 24h arithmetic (23:30 + 60 -> 00:30)."""
    return minutes_to_time(time_to_minutes(start) + minutes)


def window_to_minutes(start: time, end: time) -> Tuple[int, int]:
    """Convert a window into minute offsets, clamping wrapped ends to 24:00."""
    start_min = time_to_minutes(start)
    end_min = time_to_minutes(end)
    if end_min <= start_min:
        end_min = MINUTES_PER_DAY
    return start_min, end_min


def windows_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open overlap: touching endpoints do not conflict."""
    s1, e1 = window_to_minutes(start_a, end_a)
    s2, e2 = window_to_minutes(start_b, end_b)
    return s1 < e2 and s2 < e1


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
