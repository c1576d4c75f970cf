"""Open-hours table validation utilities."""

import re
from datetime import time
from typing import Any, Iterable

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})$")

Range = tuple[int, int]


class ValidationError(ValueError):
    """Raised when an open-hours table is malformed."""
    pass


def parse_weekday(key: Any) -> int:
    """Resolve a weekday key (0=Monday, or an English day name) to 0-6."""
    if isinstance(key, bool):
        raise ValidationError(f"Invalid weekday: {key!r}")
    if isinstance(key, int):
        if 0 <= key <= 6:
            return key
        raise ValidationError(f"Weekday index must be in 0-6; got {key}")
    if isinstance(key, str):
        name = key.strip().lower()
        for full_name, index in WEEKDAY_NAMES.items():
            if name == full_name or (len(name) >= 3 and full_name.startswith(name)):
                return index
    raise ValidationError(f"Invalid weekday: {key!r}")


def parse_clock(value: Any, is_end: bool = False) -> int:
    """Convert "HH:MM" or a datetime.time to minutes after midnight.

    "24:00" is only accepted as the end of a range.
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise ValidationError(f"Clock time must be 'HH:MM' or datetime.time; got {value!r}")

    match = _CLOCK.match(value.strip())
    if match is None:
        raise ValidationError(f"Clock time must be 'HH:MM'; got {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60:
        raise ValidationError(f"Invalid minutes in {value!r}")
    if hours == 24 and minutes == 0 and is_end:
        return MINUTES_PER_DAY
    if hours >= 24:
        raise ValidationError(f"Invalid hour in {value!r}")
    return hours * 60 + minutes


def validate_ranges(ranges: Iterable[Any], label: str = "ranges") -> tuple[Range, ...]:
    """Validate a list of (start, end) clock pairs for a single day.

    Checks:
    1. Every range has start < end
    2. No two ranges overlap

    Adjacent ranges are merged. Returns sorted (start, end) minute pairs.

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(ranges, (str, bytes)):
        raise ValidationError(f"{label}: expected a list of (start, end) pairs")

    parsed: list[Range] = []
    for item in ranges:
        try:
            start_value, end_value = item
        except (TypeError, ValueError):
            raise ValidationError(
                f"{label}: expected a (start, end) pair; got {item!r}"
            ) from None
        start = parse_clock(start_value)
        end = parse_clock(end_value, is_end=True)
        if start >= end:
            raise ValidationError(
                f"{label}: range start must be before end; "
                f"got {start_value!r}-{end_value!r}"
            )
        parsed.append((start, end))

    parsed.sort()
    merged: list[Range] = []
    for start, end in parsed:
        if merged and start < merged[-1][1]:
            raise ValidationError(f"{label}: overlapping ranges")
        if merged and start == merged[-1][1]:
            merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return tuple(merged)


def validate_hours(hours: dict[Any, Iterable[Any]]) -> dict[int, tuple[Range, ...]]:
    """Validate a weekly open-hours table.

    Args:
        hours: Mapping of weekday (0=Monday or day name) to a list of
            ("HH:MM", "HH:MM") ranges. Missing weekdays are closed all day.

    Returns:
        Mapping of weekday index to merged minute ranges, one entry per weekday.

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(hours, dict):
        raise ValidationError(f"Open hours must be a mapping; got {type(hours).__name__}")

    table: dict[int, tuple[Range, ...]] = {day: () for day in range(7)}
    seen: set[int] = set()
    for key, ranges in hours.items():
        day = parse_weekday(key)
        if day in seen:
            raise ValidationError(f"Weekday {key!r} given more than once")
        seen.add(day)
        table[day] = validate_ranges(ranges, label=f"weekday {key!r}")
    return table
