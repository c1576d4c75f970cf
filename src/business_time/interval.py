"""Interval normalization for business time arithmetic.

Turns the interval a caller supplies (a count plus a unit name, a composite
duration value, or a textual expression) into a canonical Duration and a
direction flag combined with the caller's invert flag.
"""

import math
import numbers
import re
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import numpy as np
import pandas as pd

from business_time.schedule import Direction

MINUTE_UNIT = "minute"
HOUR_UNIT = "hour"

ZERO = pd.Timedelta(0)

FIXED_UNITS: dict[str, pd.Timedelta] = {
    "microsecond": pd.Timedelta(microseconds=1),
    "millisecond": pd.Timedelta(milliseconds=1),
    "second": pd.Timedelta(seconds=1),
    "minute": pd.Timedelta(minutes=1),
    "hour": pd.Timedelta(hours=1),
    "day": pd.Timedelta(days=1),
    "week": pd.Timedelta(weeks=1),
}

# Calendar-relative units, in months.
CALENDAR_UNITS: dict[str, int] = {
    "month": 1,
    "quarter": 3,
    "year": 12,
    "decade": 120,
    "century": 1200,
    "millennium": 12000,
}

UNIT_ALIASES: dict[str, str] = {
    "us": "microsecond",
    "ms": "millisecond",
    "s": "second",
    "sec": "second",
    "secs": "second",
    "min": "minute",
    "mins": "minute",
    "h": "hour",
    "hr": "hour",
    "hrs": "hour",
    "d": "day",
    "w": "week",
    "mo": "month",
    "mos": "month",
    "q": "quarter",
    "y": "year",
    "yr": "year",
    "yrs": "year",
    "centuries": "century",
    "millennia": "millennium",
}

_TIMEDELTA_FIELDS = (
    "weeks",
    "days",
    "hours",
    "minutes",
    "seconds",
    "milliseconds",
    "microseconds",
    "nanoseconds",
)

_TERM = re.compile(r"\s*([+-]?\d+(?:\.\d+)?)\s*([A-Za-z]+)\s*,?")


class InvalidIntervalSpec(ValueError):
    """Raised when an interval/unit combination cannot be normalized."""

    def __init__(self, message: str, interval: Any = None, unit: Any = None):
        super().__init__(message)
        self.interval = interval
        self.unit = unit


def _shift_months(ts: pd.Timestamp, months: int, direction: Direction) -> pd.Timestamp:
    if not months:
        return ts
    return ts + pd.DateOffset(months=months * int(direction))


@dataclass(frozen=True)
class Duration:
    """Non-negative amount of time still to apply.

    Whole calendar months are kept apart from the fixed-length remainder
    because a month has no fixed length. Months are applied first.
    """

    months: int = 0
    delta: pd.Timedelta = field(default=ZERO)

    def __post_init__(self) -> None:
        object.__setattr__(self, "delta", pd.Timedelta(self.delta))
        if self.months < 0 or self.delta < ZERO:
            raise ValueError(f"Duration components must be non-negative; got {self!r}")

    @property
    def is_zero(self) -> bool:
        return self.months == 0 and self.delta == ZERO

    def shift(self, instant: pd.Timestamp, direction: Direction) -> pd.Timestamp:
        """Apply the duration to instant in direction using plain calendar arithmetic."""
        shifted = _shift_months(instant, self.months, direction)
        if direction is Direction.FORWARD:
            return shifted + self.delta
        return shifted - self.delta

    @classmethod
    def between(
        cls,
        origin: pd.Timestamp,
        target: pd.Timestamp,
        direction: Direction,
        calendar: bool = True,
    ) -> "Duration":
        """Duration that moves origin to target in direction.

        With calendar=True the result uses as many whole months as fit,
        otherwise it is a fixed-length duration.
        """
        distance = (target - origin) * int(direction)
        if distance < ZERO:
            raise ValueError(
                f"{target} is not reachable from {origin} going {direction.name}"
            )
        if not calendar:
            return cls(delta=distance)

        if direction is Direction.FORWARD:
            months = (target.year - origin.year) * 12 + target.month - origin.month
        else:
            months = (origin.year - target.year) * 12 + origin.month - target.month
        months = max(months, 0)
        while months > 0:
            overshoot = (_shift_months(origin, months, direction) - target) * int(direction)
            if overshoot <= ZERO:
                break
            months -= 1
        return cls(
            months=months,
            delta=(target - _shift_months(origin, months, direction)) * int(direction),
        )

    def __str__(self) -> str:
        parts = []
        if self.months:
            parts.append(f"{self.months} month{'s' if self.months != 1 else ''}")
        if self.delta != ZERO or not parts:
            parts.append(str(self.delta))
        return " ".join(parts)


class NormalizedInterval(NamedTuple):
    """Canonical duration plus the direction it is applied in."""

    duration: Duration
    backward: bool

    @property
    def direction(self) -> Direction:
        return Direction.BACKWARD if self.backward else Direction.FORWARD


def canonical_unit(unit: Any) -> str:
    """Resolve a unit name or alias to its canonical singular name."""
    if not isinstance(unit, str):
        raise InvalidIntervalSpec(f"Unit must be a string; got {unit!r}", unit=unit)
    key = unit.strip().lower()
    if key in UNIT_ALIASES:
        return UNIT_ALIASES[key]
    if key in FIXED_UNITS or key in CALENDAR_UNITS:
        return key
    if key.endswith("s") and (key[:-1] in FIXED_UNITS or key[:-1] in CALENDAR_UNITS):
        return key[:-1]
    raise InvalidIntervalSpec(f"Unknown unit: {unit!r}", unit=unit)


def _is_count(value: Any) -> bool:
    # numpy registers timedelta64 as a Real.
    return isinstance(value, numbers.Real) and not isinstance(value, (bool, np.timedelta64))


def _count_components(count: float, unit: str) -> tuple[int, pd.Timedelta]:
    """Signed (months, delta) for count units."""
    if not math.isfinite(count):
        raise InvalidIntervalSpec(f"Count must be finite; got {count!r}", count, unit)
    if unit in CALENDAR_UNITS:
        if count != int(count):
            raise InvalidIntervalSpec(
                f"Calendar unit {unit!r} needs a whole count; got {count!r}", count, unit
            )
        return int(count) * CALENDAR_UNITS[unit], ZERO
    return 0, FIXED_UNITS[unit] * count


def _combine(months: int, delta: pd.Timedelta, interval: Any) -> tuple[Duration, bool]:
    if (months > 0 and delta < ZERO) or (months < 0 and delta > ZERO):
        raise InvalidIntervalSpec(f"Interval mixes signs: {interval!r}", interval)
    negative = months < 0 or delta < ZERO
    return Duration(months=abs(months), delta=abs(delta)), negative


def _from_timedelta(value: Any) -> tuple[Duration, bool]:
    try:
        delta = pd.Timedelta(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIntervalSpec(f"Unsupported interval: {value!r}", value) from exc
    if pd.isna(delta):
        raise InvalidIntervalSpec(f"Interval must not be NaT: {value!r}", value)
    return _combine(0, delta, value)


def _from_offset(offset: pd.DateOffset) -> tuple[Duration, bool]:
    if type(offset) is not pd.DateOffset:
        raise InvalidIntervalSpec(f"Anchored offsets are not supported: {offset!r}", offset)

    kwds = dict(offset.kwds)
    unknown = set(kwds) - {"years", "months", *_TIMEDELTA_FIELDS}
    if unknown:
        raise InvalidIntervalSpec(
            f"Absolute offset fields are not supported: {sorted(unknown)}", offset
        )
    months = (int(kwds.pop("years", 0)) * 12 + int(kwds.pop("months", 0))) * offset.n
    delta = pd.Timedelta(**kwds) * offset.n if kwds else ZERO
    return _combine(months, delta, offset)


def _parse_terms(text: str) -> list[tuple[float, str]] | None:
    """Split "1 month 2 days" into terms; None if text is not in that form."""
    terms = []
    pos = 0
    while pos < len(text):
        match = _TERM.match(text, pos)
        if match is None or match.end() == pos:
            return None
        try:
            unit = canonical_unit(match.group(2))
        except InvalidIntervalSpec:
            return None
        terms.append((float(match.group(1)), unit))
        pos = match.end()
    return terms or None


def _from_text(text: str) -> tuple[Duration, bool]:
    if not text.strip():
        raise InvalidIntervalSpec("Interval text must not be empty", text)

    terms = _parse_terms(text)
    if terms is None:
        return _from_timedelta(text)

    months, delta = 0, ZERO
    signs = set()
    for count, unit in terms:
        term_months, term_delta = _count_components(count, unit)
        months += term_months
        delta += term_delta
        if term_months or term_delta != ZERO:
            signs.add(term_months < 0 or term_delta < ZERO)
    if len(signs) > 1:
        raise InvalidIntervalSpec(f"Interval mixes signs: {text!r}", text)
    return _combine(months, delta, text)


def normalize_interval(
    interval: Any,
    unit: str | None = None,
    inverted: bool = False,
) -> NormalizedInterval:
    """Normalize a caller interval into a Duration and direction.

    Args:
        interval: A count (requires unit), a timedelta-like value, a relative
            pandas DateOffset, a Duration, or a text such as "2 hours",
            "1 month 3 days" or "01:30:00".
        unit: Unit name for a count ("minute", "hours", "month", ...).
            Must be None for any other kind of interval.
        inverted: Subtract the interval instead of adding it.

    Returns:
        NormalizedInterval whose backward flag combines the interval's own
        sign with inverted.

    Raises:
        InvalidIntervalSpec: If the interval/unit combination is malformed.
    """
    if unit is not None:
        if not _is_count(interval):
            raise InvalidIntervalSpec(
                f"A unit can only be given with a numeric count; got {interval!r}",
                interval,
                unit,
            )
        months, delta = _count_components(interval, canonical_unit(unit))
        duration, negative = _combine(months, delta, interval)
    elif interval is None:
        raise InvalidIntervalSpec("Interval must not be None", interval)
    elif _is_count(interval):
        raise InvalidIntervalSpec(
            f"A unit is required with a bare count; got {interval!r}", interval
        )
    elif isinstance(interval, Duration):
        duration, negative = interval, False
    elif isinstance(interval, str):
        duration, negative = _from_text(interval)
    elif isinstance(interval, pd.offsets.Tick):
        duration, negative = _from_timedelta(interval)
    elif isinstance(interval, pd.DateOffset):
        duration, negative = _from_offset(interval)
    else:
        duration, negative = _from_timedelta(interval)

    return NormalizedInterval(duration=duration, backward=negative != bool(inverted))
