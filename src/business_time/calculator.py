"""Segment calculator: walks a schedule consuming open or closed time."""

from enum import Enum
from typing import Any

import pandas as pd

from business_time.interval import Duration, NormalizedInterval
from business_time.logging import get_logger
from business_time.schedule import Direction, Options, Polarity, Schedule
from business_time.utils import _to_timestamp


class CalculatorState(Enum):
    RUNNING = "running"
    EXHAUSTED = "exhausted"
    ITERATION_EXCEEDED = "iteration_exceeded"


class MaxIterationExceeded(RuntimeError):
    """Raised when a calculation does not finish within its iteration ceiling.

    Usually means the schedule has no (or too little) time of the requested
    polarity, e.g. asking for open time on an always-closed schedule.
    """

    def __init__(
        self,
        max_iteration: int,
        cursor: pd.Timestamp,
        remaining: Duration,
        iterations: int,
    ):
        super().__init__(
            f"Maximum iteration ({max_iteration}) has been reached "
            f"with {remaining} still to apply at {cursor}."
        )
        self.max_iteration = max_iteration
        self.cursor = cursor
        self.remaining = remaining
        self.iterations = iterations


class SegmentCalculator:
    """Consume a normalized interval segment by segment.

    Each turn asks the schedule for the segment the cursor travels through.
    Segments of the other polarity are skipped whole; segments of the
    requested polarity consume the remaining duration up to their boundary.
    The calculation ends when nothing remains (EXHAUSTED) or the iteration
    ceiling is hit (ITERATION_EXCEEDED).

    A calculator runs once; create a new one per calculation.
    """

    def __init__(
        self,
        schedule: Schedule,
        start: Any,
        interval: NormalizedInterval,
        polarity: Polarity | bool,
        options: Options | int = Options.NONE,
    ) -> None:
        self._schedule = schedule
        self._start = _to_timestamp(start)
        self._direction = interval.direction
        self._polarity = Polarity.coerce(polarity)
        # Only the holiday flag is meaningful to schedules.
        self._options = Options(int(options) & Options.HOLIDAYS_ARE_CLOSED)
        self._calendar = interval.duration.months != 0

        self._cursor = self._start
        self._remaining = interval.duration
        self._iterations = 0
        self._state = CalculatorState.RUNNING
        self._log = get_logger(__name__)

    @property
    def state(self) -> CalculatorState:
        return self._state

    @property
    def cursor(self) -> pd.Timestamp:
        return self._cursor

    @property
    def remaining(self) -> Duration:
        return self._remaining

    @property
    def iterations(self) -> int:
        return self._iterations

    def _segment(self) -> tuple[Polarity, pd.Timestamp]:
        """Polarity and far boundary of the segment the cursor travels through.

        Going backward, the stretch [boundary, cursor) is uniform, so the
        boundary itself is classified.
        """
        cursor = self._cursor
        boundary = _to_timestamp(
            self._schedule.next_boundary(cursor, self._direction, self._options)
        )
        if (boundary - cursor) * int(self._direction) <= pd.Timedelta(0):
            raise ValueError(
                f"Schedule boundary {boundary} is not beyond {cursor} "
                f"going {self._direction.name}"
            )
        if self._direction is Direction.FORWARD:
            polarity = self._schedule.classify(cursor, self._options)
        else:
            polarity = self._schedule.classify(boundary, self._options)
        return polarity, boundary

    def _step(self) -> None:
        polarity, boundary = self._segment()
        if polarity is not self._polarity:
            self._cursor = boundary
            return

        target = self._remaining.shift(self._cursor, self._direction)
        if (boundary - target) * int(self._direction) >= pd.Timedelta(0):
            self._cursor = target
            self._remaining = Duration()
            return

        self._remaining = Duration.between(
            boundary, target, self._direction, calendar=self._calendar
        )
        self._cursor = boundary

    def calculate(self, max_iteration: int) -> pd.Timestamp:
        """Run the calculation.

        Args:
            max_iteration: Maximum number of schedule segments to visit.

        Returns:
            The instant reached once the whole duration has been consumed.

        Raises:
            MaxIterationExceeded: If max_iteration segments were visited
                without consuming the whole duration.
        """
        if self._state is not CalculatorState.RUNNING:
            raise RuntimeError(f"Calculator already finished ({self._state.value})")

        while not self._remaining.is_zero:
            if self._iterations >= max_iteration:
                self._state = CalculatorState.ITERATION_EXCEEDED
                self._log.warning(
                    "max_iteration_exceeded",
                    max_iteration=max_iteration,
                    start=str(self._start),
                    cursor=str(self._cursor),
                    remaining=str(self._remaining),
                    polarity=self._polarity.value,
                )
                raise MaxIterationExceeded(
                    max_iteration, self._cursor, self._remaining, self._iterations
                )
            self._step()
            self._iterations += 1

        self._state = CalculatorState.EXHAUSTED
        self._log.debug(
            "business_interval_applied",
            start=str(self._start),
            result=str(self._cursor),
            direction=self._direction.name,
            polarity=self._polarity.value,
            iterations=self._iterations,
        )
        return self._cursor
