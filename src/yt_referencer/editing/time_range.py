"""Minute/second editing of a clip's [start, end) range.

Start and end are whole seconds. Edits come in as raw field text, one unit at
a time; malformed text becomes 0 and the result is clamped so the range never
inverts and never leaves ``[0, max_duration]``. Nothing here raises except
``validate_interval``, the check run right before a save.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class TimeField(str, Enum):
    START = "start_time"
    END = "end_time"


@dataclass(frozen=True)
class ClipInterval:
    start_time: int
    end_time: int

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    def get(self, field: TimeField) -> int:
        return self.start_time if field is TimeField.START else self.end_time


class ClipIntervalError(ValueError):
    """Raised at save time when a range is not strictly increasing."""


def parse_unit(text: str) -> int:
    """Read a leading integer from field text; anything unusable is 0."""
    m = _LEADING_INT.match(text or "")
    if not m:
        return 0
    return max(0, int(m.group(1)))


def _clamp(field: TimeField, total: int, current: ClipInterval, max_duration: int) -> int:
    if field is TimeField.START:
        return max(0, min(total, current.end_time - 1))
    return max(current.start_time + 1, min(total, max_duration))


def set_minutes(
    field: TimeField, minutes_text: str, current: ClipInterval, max_duration: int
) -> ClipInterval:
    """Replace the minutes of one field, keeping its seconds remainder."""
    minutes = parse_unit(minutes_text)
    total = minutes * 60 + current.get(field) % 60
    return replace(current, **{field.value: _clamp(field, total, current, max_duration)})


def set_seconds(
    field: TimeField, seconds_text: str, current: ClipInterval, max_duration: int
) -> ClipInterval:
    """Replace the seconds of one field (clamped to 0..59), keeping its minutes."""
    seconds = min(59, parse_unit(seconds_text))
    total = (current.get(field) // 60) * 60 + seconds
    return replace(current, **{field.value: _clamp(field, total, current, max_duration)})


def progress_percentage(interval: ClipInterval, max_duration: int) -> float:
    if max_duration <= 0:
        return 0.0
    return 100 * interval.duration / max_duration


def format_time(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


def validate_interval(interval: ClipInterval) -> None:
    if interval.start_time < 0:
        raise ClipIntervalError("Start time cannot be negative")
    if interval.end_time <= interval.start_time:
        raise ClipIntervalError("End time must be greater than start time")


class TimeRangeEditor:
    """Holds one editing session's range and its fixed ``max_duration``."""

    def __init__(self, interval: ClipInterval, max_duration: int):
        self.interval = interval
        self.max_duration = max_duration

    @property
    def start_time(self) -> int:
        return self.interval.start_time

    @property
    def end_time(self) -> int:
        return self.interval.end_time

    @property
    def duration(self) -> int:
        return self.interval.duration

    @property
    def progress_percentage(self) -> float:
        return progress_percentage(self.interval, self.max_duration)

    def minutes(self, field: TimeField) -> int:
        return self.interval.get(field) // 60

    def seconds(self, field: TimeField) -> int:
        return self.interval.get(field) % 60

    def set_minutes(self, field: TimeField, minutes_text: str) -> ClipInterval:
        self.interval = set_minutes(field, minutes_text, self.interval, self.max_duration)
        return self.interval

    def set_seconds(self, field: TimeField, seconds_text: str) -> ClipInterval:
        self.interval = set_seconds(field, seconds_text, self.interval, self.max_duration)
        return self.interval
