"""Schedule implementations answering open/closed queries for business time."""

import threading
from abc import ABC, abstractmethod
from datetime import date
from enum import Enum, IntEnum, IntFlag
from typing import Any, Iterable

import pandas as pd
from pandas.tseries.holiday import AbstractHolidayCalendar

from business_time.logging import get_logger
from business_time.utils import _to_timestamp
from business_time.validation import (
    MINUTES_PER_DAY,
    Range,
    validate_hours,
    validate_ranges,
)

ONE_MINUTE = pd.Timedelta(minutes=1)


class Polarity(Enum):
    """Kind of segment an operation accounts against."""

    OPEN = "open"
    CLOSED = "closed"

    @classmethod
    def coerce(cls, value: "Polarity | bool") -> "Polarity":
        """Accept a Polarity or a bool (True = open)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.OPEN if value else cls.CLOSED
        raise TypeError(f"Expected Polarity or bool; got {value!r}")


class Direction(IntEnum):
    FORWARD = 1
    BACKWARD = -1


class Options(IntFlag):
    """Bit flags altering how a schedule classifies time."""

    NONE = 0
    HOLIDAYS_ARE_CLOSED = 1


HOLIDAYS_ARE_CLOSED = Options.HOLIDAYS_ARE_CLOSED


def _wall_time(ts: pd.Timestamp, minutes: int) -> pd.Timestamp:
    """Instant at a wall-clock minute counted from the midnight of ts's date.

    Minutes may run past either end of the day. Days with a DST transition
    are 23 or 25 hours long, so the minute is resolved on the local clock
    and then localized back to ts's timezone.
    """
    if ts.tz is None:
        return ts.normalize() + minutes * ONE_MINUTE
    naive = ts.tz_localize(None).normalize() + minutes * ONE_MINUTE
    return naive.tz_localize(ts.tz, ambiguous=True, nonexistent="shift_forward")


def _wall_offset(ts: pd.Timestamp) -> pd.Timedelta:
    """Wall-clock time of day of ts."""
    wall = ts if ts.tz is None else ts.tz_localize(None)
    return wall - wall.normalize()


def _next_midnight(ts: pd.Timestamp, direction: Direction) -> pd.Timestamp:
    """Nearest midnight strictly beyond ts in direction."""
    direction = Direction(direction)
    if direction is Direction.FORWARD:
        return _wall_time(ts, MINUTES_PER_DAY)
    midnight = _wall_time(ts, 0)
    if midnight < ts:
        return midnight
    return _wall_time(ts, -MINUTES_PER_DAY)


class Schedule(ABC):
    """Abstract base class for business schedules.

    Segments are half-open intervals [start, end): an instant sitting exactly
    on a boundary belongs to the segment that starts there.
    """

    @abstractmethod
    def classify(self, instant: Any, options: Options = Options.NONE) -> Polarity:
        """Return the polarity of the segment containing instant."""
        pass

    @abstractmethod
    def next_boundary(
        self,
        instant: Any,
        direction: Direction,
        options: Options = Options.NONE,
    ) -> pd.Timestamp:
        """Return the nearest segment boundary strictly beyond instant in direction."""
        pass

    def is_open(self, instant: Any, options: Options = Options.NONE) -> bool:
        return self.classify(instant, options) is Polarity.OPEN

    def is_closed(self, instant: Any, options: Options = Options.NONE) -> bool:
        return self.classify(instant, options) is Polarity.CLOSED


class AlwaysOpenSchedule(Schedule):
    """Schedule where every instant is open."""

    def classify(self, instant: Any, options: Options = Options.NONE) -> Polarity:
        return Polarity.OPEN

    def next_boundary(
        self,
        instant: Any,
        direction: Direction,
        options: Options = Options.NONE,
    ) -> pd.Timestamp:
        return _next_midnight(_to_timestamp(instant), direction)


class WeeklySchedule(Schedule):
    """Schedule built from a weekly open-hours table.

    Exceptions override the weekly table for specific dates. Holidays are
    closed all day, but only when Options.HOLIDAYS_ARE_CLOSED is passed;
    otherwise the weekly table (or exception) for that date applies.

    Every midnight is reported as a boundary, so a walk over a schedule with
    no open time still advances one day per query.
    """

    def __init__(
        self,
        hours: dict[Any, Iterable[Any]],
        holidays: Iterable[Any] | AbstractHolidayCalendar | None = None,
        exceptions: dict[Any, Iterable[Any]] | None = None,
    ) -> None:
        """Initialize a WeeklySchedule.

        Args:
            hours: Mapping of weekday (0=Monday, or day name such as "monday"
                or "mon") to a list of ("HH:MM", "HH:MM") open ranges.
                "24:00" is accepted as a range end. Missing days are closed.
            holidays: Iterable of dates, or a pandas AbstractHolidayCalendar
                (e.g. USFederalHolidayCalendar) queried lazily per year.
            exceptions: Mapping of date to the open ranges for that date,
                replacing the weekly table. An empty list closes the date.
        """
        self._hours = validate_hours(hours)
        self._exceptions: dict[date, tuple[Range, ...]] = {
            pd.Timestamp(day).date(): validate_ranges(ranges, label=f"exception {day}")
            for day, ranges in (exceptions or {}).items()
        }

        self._holiday_calendar: AbstractHolidayCalendar | None = None
        self._holidays: frozenset[date] = frozenset()
        if isinstance(holidays, AbstractHolidayCalendar):
            self._holiday_calendar = holidays
        elif holidays is not None:
            self._holidays = frozenset(pd.Timestamp(day).date() for day in holidays)
        self._holiday_years: dict[int, frozenset[date]] = {}
        self._holiday_lock = threading.Lock()

        self._log = get_logger(__name__)
        self._log.debug(
            "schedule_created",
            open_weekdays=[day for day, ranges in self._hours.items() if ranges],
            holidays=len(self._holidays),
            holiday_calendar=type(self._holiday_calendar).__name__
            if self._holiday_calendar is not None
            else None,
            exceptions=len(self._exceptions),
        )

    @classmethod
    def office_hours(
        cls,
        start: str = "09:00",
        end: str = "17:00",
        holidays: Iterable[Any] | AbstractHolidayCalendar | None = None,
    ) -> "WeeklySchedule":
        """Monday to Friday, open from start to end."""
        return cls({day: [(start, end)] for day in range(5)}, holidays=holidays)

    # Holidays

    def _calendar_holidays(self, year: int) -> frozenset[date]:
        with self._holiday_lock:
            cached = self._holiday_years.get(year)
            if cached is None:
                index = self._holiday_calendar.holidays(
                    start=pd.Timestamp(year, 1, 1), end=pd.Timestamp(year, 12, 31)
                )
                cached = frozenset(ts.date() for ts in index)
                self._holiday_years[year] = cached
            return cached

    def is_holiday(self, day: Any) -> bool:
        """Check if a date is a holiday, regardless of options."""
        d = _to_timestamp(day).date()
        if d in self._holidays:
            return True
        if self._holiday_calendar is not None:
            return d in self._calendar_holidays(d.year)
        return False

    # Open ranges

    def open_ranges(self, day: Any, options: Options = Options.NONE) -> tuple[Range, ...]:
        """Open (start, end) minute ranges for the date of day."""
        d = _to_timestamp(day).date()
        if options & Options.HOLIDAYS_ARE_CLOSED and self.is_holiday(d):
            return ()
        if d in self._exceptions:
            return self._exceptions[d]
        return self._hours[d.weekday()]

    def _day_points(self, day: pd.Timestamp, options: Options) -> list[pd.Timestamp]:
        """Sorted boundaries of the date of day, both midnights included."""
        points = {_wall_time(day, 0), _wall_time(day, MINUTES_PER_DAY)}
        for start, end in self.open_ranges(day, options):
            points.add(_wall_time(day, start))
            points.add(_wall_time(day, end))
        return sorted(points)

    # Schedule interface

    def classify(self, instant: Any, options: Options = Options.NONE) -> Polarity:
        ts = _to_timestamp(instant)
        offset = _wall_offset(ts)
        for start, end in self.open_ranges(ts, options):
            if start * ONE_MINUTE <= offset < end * ONE_MINUTE:
                return Polarity.OPEN
        return Polarity.CLOSED

    def next_boundary(
        self,
        instant: Any,
        direction: Direction,
        options: Options = Options.NONE,
    ) -> pd.Timestamp:
        ts = _to_timestamp(instant)
        direction = Direction(direction)
        if direction is Direction.FORWARD:
            return next(p for p in self._day_points(ts, options) if p > ts)

        day = ts
        if _wall_time(ts, 0) >= ts:
            day = _wall_time(ts, -MINUTES_PER_DAY)
        return max(p for p in self._day_points(day, options) if p < ts)

    def __repr__(self) -> str:
        return (
            f"WeeklySchedule(open_weekdays="
            f"{[day for day, ranges in self._hours.items() if ranges]}, "
            f"holidays={len(self._holidays)}, "
            f"exceptions={len(self._exceptions)})"
        )
