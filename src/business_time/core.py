"""Business time facade: open/closed time arithmetic over a schedule."""

from typing import Any, Iterable

import pandas as pd

from business_time.calculator import SegmentCalculator
from business_time.config import (
    MAX_ITERATION,
    get_default_max_iteration,
    validate_max_iteration,
)
from business_time.interval import HOUR_UNIT, MINUTE_UNIT, normalize_interval
from business_time.logging import get_logger, timed_block
from business_time.schedule import Options, Polarity, Schedule, WeeklySchedule
from business_time.utils import Instant, _restore_instant


def apply_interval(
    schedule: Schedule,
    start: Instant,
    inverted: bool,
    polarity: Polarity | bool,
    interval: Any,
    unit: str | None = None,
    options: Options | int = Options.NONE,
    max_iteration: int = MAX_ITERATION,
) -> Instant:
    """Shift start by interval, counting only time of the given polarity.

    Args:
        schedule: Schedule classifying instants as open or closed.
        start: Starting instant (datetime or pandas Timestamp). Not modified.
        inverted: Subtract the interval if True.
        polarity: Polarity.OPEN (or True) to count only open time,
            Polarity.CLOSED (or False) to count only closed time.
        interval: A count of unit, a timedelta-like value, a relative
            pandas DateOffset, or a text such as "2 hours".
        unit: Unit name, required exactly when interval is a count.
        options: Options flags such as Options.HOLIDAYS_ARE_CLOSED.
        max_iteration: Maximum number of schedule segments to visit.

    Returns:
        The resulting instant, of the same type as start.

    Raises:
        InvalidIntervalSpec: If interval and unit do not form a valid interval.
        MaxIterationExceeded: If the schedule cannot supply enough time of
            the requested polarity within max_iteration segments.
    """
    validate_max_iteration(max_iteration)
    normalized = normalize_interval(interval, unit, inverted)
    calculator = SegmentCalculator(schedule, start, normalized, polarity, options)
    return _restore_instant(calculator.calculate(max_iteration), start)


class BusinessTime:
    """Business time arithmetic bound to a schedule.

    Each instance carries its own iteration ceiling, seeded from the library
    default when the instance is created.

    Example:
        bt = BusinessTime(WeeklySchedule.office_hours())
        bt.add_open_hours(datetime(2024, 1, 5, 16), 2)  # Monday 10:00
    """

    def __init__(
        self,
        schedule: Schedule | None = None,
        max_iteration: int | None = None,
    ) -> None:
        """Initialize a BusinessTime.

        Args:
            schedule: Schedule to count against. Defaults to Monday-Friday
                09:00-17:00 office hours.
            max_iteration: Iteration ceiling for this instance. Defaults to
                the configured library default.
        """
        self._schedule = schedule or WeeklySchedule.office_hours()
        if max_iteration is None:
            self._max_iteration = get_default_max_iteration()
        else:
            self._max_iteration = validate_max_iteration(max_iteration)
        self._log = get_logger(__name__, schedule=type(self._schedule).__name__)

    @property
    def schedule(self) -> Schedule:
        return self._schedule

    def get_max_iteration(self) -> int:
        """Maximum loop turns before adding/subtracting open/closed time fails."""
        return self._max_iteration

    def set_max_iteration(self, maximum: int) -> None:
        """Set the maximum loop turns before adding/subtracting open/closed time fails."""
        self._max_iteration = validate_max_iteration(maximum)
        self._log.info("max_iteration_set", max_iteration=maximum)

    # Generic interval application

    def apply_business_interval(
        self,
        start: Instant,
        inverted: bool,
        open_time: bool,
        interval: Any,
        unit: str | None = None,
        options: Options | int = Options.NONE,
    ) -> Instant:
        """Shift start by interval, counting only open (open_time=True) or closed time.

        Args:
            start: Starting instant.
            inverted: Subtract the interval if True.
            open_time: Count only open time if True, only closed time otherwise.
            interval: A count of unit, a timedelta-like value, a relative
                pandas DateOffset, or a text such as "2 hours".
            unit: Unit name, required exactly when interval is a count.
            options: Options flags such as Options.HOLIDAYS_ARE_CLOSED.
        """
        with timed_block(
            self._log, "business_interval_call", inverted=inverted, open_time=open_time
        ):
            return apply_interval(
                self._schedule,
                start,
                inverted,
                open_time,
                interval,
                unit,
                options,
                self._max_iteration,
            )

    def add_business_interval(
        self,
        start: Instant,
        open_time: bool,
        interval: Any,
        unit: str | None = None,
        options: Options | int = Options.NONE,
    ) -> Instant:
        """Add interval counting only open (open_time=True) or closed time."""
        return self.apply_business_interval(start, False, open_time, interval, unit, options)

    def sub_business_interval(
        self,
        start: Instant,
        open_time: bool,
        interval: Any,
        unit: str | None = None,
        options: Options | int = Options.NONE,
    ) -> Instant:
        """Subtract interval counting only open (open_time=True) or closed time."""
        return self.apply_business_interval(start, True, open_time, interval, unit, options)

    # Open / closed time

    def add_open_time(
        self,
        start: Instant,
        interval: Any,
        unit: str | None = None,
        options: Options | int = Options.NONE,
    ) -> Instant:
        return self.add_business_interval(start, True, interval, unit, options)

    def sub_open_time(
        self,
        start: Instant,
        interval: Any,
        unit: str | None = None,
        options: Options | int = Options.NONE,
    ) -> Instant:
        return self.sub_business_interval(start, True, interval, unit, options)

    def add_closed_time(
        self,
        start: Instant,
        interval: Any,
        unit: str | None = None,
        options: Options | int = Options.NONE,
    ) -> Instant:
        return self.add_business_interval(start, False, interval, unit, options)

    def sub_closed_time(
        self,
        start: Instant,
        interval: Any,
        unit: str | None = None,
        options: Options | int = Options.NONE,
    ) -> Instant:
        return self.sub_business_interval(start, False, interval, unit, options)

    # Minutes / hours

    def add_open_minutes(
        self, start: Instant, minutes: int, options: Options | int = Options.NONE
    ) -> Instant:
        return self.add_open_time(start, minutes, MINUTE_UNIT, options)

    def sub_open_minutes(
        self, start: Instant, minutes: int, options: Options | int = Options.NONE
    ) -> Instant:
        return self.sub_open_time(start, minutes, MINUTE_UNIT, options)

    def add_closed_minutes(
        self, start: Instant, minutes: int, options: Options | int = Options.NONE
    ) -> Instant:
        return self.add_closed_time(start, minutes, MINUTE_UNIT, options)

    def sub_closed_minutes(
        self, start: Instant, minutes: int, options: Options | int = Options.NONE
    ) -> Instant:
        return self.sub_closed_time(start, minutes, MINUTE_UNIT, options)

    def add_open_hours(
        self, start: Instant, hours: int, options: Options | int = Options.NONE
    ) -> Instant:
        return self.add_open_time(start, hours, HOUR_UNIT, options)

    def sub_open_hours(
        self, start: Instant, hours: int, options: Options | int = Options.NONE
    ) -> Instant:
        return self.sub_open_time(start, hours, HOUR_UNIT, options)

    def add_closed_hours(
        self, start: Instant, hours: int, options: Options | int = Options.NONE
    ) -> Instant:
        return self.add_closed_time(start, hours, HOUR_UNIT, options)

    def sub_closed_hours(
        self, start: Instant, hours: int, options: Options | int = Options.NONE
    ) -> Instant:
        return self.sub_closed_time(start, hours, HOUR_UNIT, options)

    # Series

    def apply_to_series(
        self,
        starts: "pd.Series | pd.DatetimeIndex | Iterable[Instant]",
        inverted: bool,
        open_time: bool,
        interval: Any,
        unit: str | None = None,
        options: Options | int = Options.NONE,
    ) -> pd.Series:
        """Apply a business interval to every instant of a series.

        The interval is validated once, before any instant is processed.
        NaT entries stay NaT. A Series keeps its index and name.

        Returns:
            pandas Series of resulting Timestamps.
        """
        if isinstance(starts, pd.Series):
            series = starts
        else:
            series = pd.Series(list(starts), dtype=object)
        normalized = normalize_interval(interval, unit, inverted)
        max_iteration = self._max_iteration

        def _apply_one(value: Any) -> pd.Timestamp:
            if pd.isna(value):
                return pd.NaT
            calculator = SegmentCalculator(
                self._schedule, value, normalized, open_time, options
            )
            return calculator.calculate(max_iteration)

        with timed_block(self._log, "business_interval_series_applied", size=len(series)):
            result = series.apply(_apply_one)
        if result.empty:
            return result
        return pd.to_datetime(result)

    def __repr__(self) -> str:
        return (
            f"BusinessTime(schedule={self._schedule!r}, "
            f"max_iteration={self._max_iteration})"
        )
