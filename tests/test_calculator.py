"""Tests for the segment calculator."""

from datetime import datetime

import pandas as pd
import pytest
from structlog.testing import capture_logs

from business_time import (
    AlwaysOpenSchedule,
    CalculatorState,
    Duration,
    MaxIterationExceeded,
    Options,
    Polarity,
    Schedule,
    SegmentCalculator,
    WeeklySchedule,
    normalize_interval,
)


class AlwaysClosedSchedule(Schedule):
    """Every instant closed, boundaries every hour."""

    def classify(self, instant, options=Options.NONE):
        return Polarity.CLOSED

    def next_boundary(self, instant, direction, options=Options.NONE):
        return pd.Timestamp(instant) + pd.Timedelta(hours=1) * int(direction)


class UnreachableSchedule(Schedule):
    """Fails the test if queried."""

    def classify(self, instant, options=Options.NONE):
        raise AssertionError("schedule must not be queried")

    def next_boundary(self, instant, direction, options=Options.NONE):
        raise AssertionError("schedule must not be queried")


class SpySchedule(Schedule):
    """Records every query made to a wrapped schedule."""

    def __init__(self, inner):
        self.inner = inner
        self.cursors = []
        self.options = []

    def classify(self, instant, options=Options.NONE):
        self.options.append(options)
        return self.inner.classify(instant, options)

    def next_boundary(self, instant, direction, options=Options.NONE):
        self.cursors.append(pd.Timestamp(instant))
        self.options.append(options)
        return self.inner.next_boundary(instant, direction, options)


class StuckSchedule(Schedule):
    """Returns the queried instant as its own boundary."""

    def classify(self, instant, options=Options.NONE):
        return Polarity.OPEN

    def next_boundary(self, instant, direction, options=Options.NONE):
        return pd.Timestamp(instant)


@pytest.fixture
def office():
    return WeeklySchedule.office_hours()


def calculator(schedule, start, interval, unit=None, polarity=Polarity.OPEN,
               inverted=False, options=Options.NONE):
    return SegmentCalculator(
        schedule,
        start,
        normalize_interval(interval, unit, inverted),
        polarity,
        options,
    )


class TestOpenTime:
    """Test consuming open time."""

    def test_friday_afternoon_to_monday(self, office):
        """Two open hours from Friday 16:00 skip the weekend."""
        # Jan 5, 2024 is a Friday
        calc = calculator(office, datetime(2024, 1, 5, 16, 0), 2, "hours")

        result = calc.calculate(100)

        assert result == pd.Timestamp("2024-01-08 10:00")
        assert calc.state is CalculatorState.EXHAUSTED
        assert calc.remaining.is_zero

    def test_within_one_segment(self, office):
        calc = calculator(office, datetime(2024, 1, 8, 9, 0), 3, "hours")

        assert calc.calculate(100) == pd.Timestamp("2024-01-08 12:00")
        assert calc.iterations == 1

    def test_ends_exactly_at_closing(self, office):
        calc = calculator(office, datetime(2024, 1, 5, 16, 0), 1, "hour")

        assert calc.calculate(100) == pd.Timestamp("2024-01-05 17:00")

    def test_start_in_closed_time(self, office):
        calc = calculator(office, datetime(2024, 1, 6, 12, 0), 1, "hour")

        assert calc.calculate(100) == pd.Timestamp("2024-01-08 10:00")

    def test_backward_over_weekend(self, office):
        calc = calculator(office, datetime(2024, 1, 8, 10, 0), 2, "hours", inverted=True)

        assert calc.calculate(100) == pd.Timestamp("2024-01-05 16:00")

    def test_backward_from_opening(self, office):
        calc = calculator(office, datetime(2024, 1, 8, 9, 0), 1, "hour", inverted=True)

        assert calc.calculate(100) == pd.Timestamp("2024-01-05 16:00")

    def test_several_days(self, office):
        """Twenty open hours from Monday 09:00 end Wednesday 13:00."""
        calc = calculator(office, datetime(2024, 1, 8, 9, 0), 20, "hours")

        assert calc.calculate(100) == pd.Timestamp("2024-01-10 13:00")

    def test_holidays_closed_option(self):
        schedule = WeeklySchedule.office_hours(holidays=["2024-01-08"])
        start = datetime(2024, 1, 5, 16, 0)

        plain = calculator(schedule, start, 2, "hours").calculate(100)
        closed = calculator(
            schedule, start, 2, "hours", options=Options.HOLIDAYS_ARE_CLOSED
        ).calculate(100)

        assert plain == pd.Timestamp("2024-01-08 10:00")
        assert closed == pd.Timestamp("2024-01-09 10:00")


class TestClosedTime:
    """Test consuming closed time."""

    def test_skips_open_segment(self, office):
        calc = calculator(
            office, datetime(2024, 1, 5, 16, 0), 1, "hour", polarity=Polarity.CLOSED
        )

        assert calc.calculate(100) == pd.Timestamp("2024-01-05 18:00")

    def test_whole_weekend(self, office):
        """Friday 17:00 to Monday 09:00 is 64 closed hours."""
        start = datetime(2024, 1, 5, 17, 0)

        exact = calculator(office, start, 64, "hours", polarity=False).calculate(100)
        beyond = calculator(office, start, 65, "hours", polarity=False).calculate(100)

        assert exact == pd.Timestamp("2024-01-08 09:00")
        assert beyond == pd.Timestamp("2024-01-08 18:00")

    def test_backward(self, office):
        calc = calculator(
            office, datetime(2024, 1, 8, 10, 0), 1, "hour",
            polarity=Polarity.CLOSED, inverted=True,
        )

        assert calc.calculate(100) == pd.Timestamp("2024-01-08 08:00")


class TestCalendarUnits:
    """Test month-based durations."""

    def test_month_on_open_schedule_matches_plain_arithmetic(self):
        start = pd.Timestamp("2024-01-31 10:00")
        calc = calculator(AlwaysOpenSchedule(), start, 1, "month")

        assert calc.calculate(1000) == start + pd.DateOffset(months=1)

    def test_month_backward_on_open_schedule(self):
        start = pd.Timestamp("2024-03-15 10:00")
        calc = calculator(AlwaysOpenSchedule(), start, 2, "months", inverted=True)

        assert calc.calculate(1000) == pd.Timestamp("2024-01-15 10:00")

    def test_quarter_equals_three_months(self, office):
        start = datetime(2024, 1, 8, 10, 0)

        quarter = calculator(office, start, 1, "quarter").calculate(10_000)
        months = calculator(office, start, 3, "months").calculate(10_000)

        assert quarter == months
        assert quarter > pd.Timestamp(start) + pd.DateOffset(months=3)

    def test_month_on_round_the_clock_schedule(self):
        """With no closed time a month is a plain calendar month."""
        schedule = WeeklySchedule({day: [("00:00", "24:00")] for day in range(7)})
        calc = calculator(schedule, datetime(2024, 1, 15, 12, 0), 1, "month")

        assert calc.calculate(1000) == pd.Timestamp("2024-02-15 12:00")


class TestEdgeCases:
    """Test zero durations, ceilings and misbehaving schedules."""

    def test_zero_duration_does_not_query_schedule(self):
        start = datetime(2024, 1, 5, 16, 0)
        calc = calculator(UnreachableSchedule(), start, 0, "day")

        assert calc.calculate(1) == pd.Timestamp(start)
        assert calc.iterations == 0
        assert calc.state is CalculatorState.EXHAUSTED

    def test_all_closed_schedule_exceeds_ceiling(self):
        start = datetime(2024, 1, 1)
        calc = calculator(AlwaysClosedSchedule(), start, 1, "hour")

        with pytest.raises(MaxIterationExceeded) as exc_info:
            calc.calculate(50)

        error = exc_info.value
        assert error.max_iteration == 50
        assert error.iterations == 50
        assert error.cursor == pd.Timestamp(start) + pd.Timedelta(hours=50)
        assert error.remaining == Duration(delta=pd.Timedelta(hours=1))
        assert calc.state is CalculatorState.ITERATION_EXCEEDED

    def test_weekly_schedule_without_open_time_exceeds_ceiling(self):
        calc = calculator(WeeklySchedule({}), datetime(2024, 1, 1), 1, "hour")

        with pytest.raises(MaxIterationExceeded):
            calc.calculate(30)
        assert calc.cursor == pd.Timestamp("2024-01-31")

    def test_ceiling_counts_segments(self, office):
        """Friday 16:00 + 2 open hours visits six segments."""
        start = datetime(2024, 1, 5, 16, 0)

        assert calculator(office, start, 2, "hours").calculate(6) == pd.Timestamp(
            "2024-01-08 10:00"
        )
        with pytest.raises(MaxIterationExceeded) as exc_info:
            calculator(office, start, 2, "hours").calculate(5)
        assert exc_info.value.cursor == pd.Timestamp("2024-01-08 09:00")
        assert exc_info.value.remaining == Duration(delta=pd.Timedelta(hours=1))

    def test_exceeded_is_logged(self):
        calc = calculator(AlwaysClosedSchedule(), datetime(2024, 1, 1), 1, "hour")

        with capture_logs() as logs:
            with pytest.raises(MaxIterationExceeded):
                calc.calculate(3)

        events = [entry for entry in logs if entry["event"] == "max_iteration_exceeded"]
        assert len(events) == 1
        assert events[0]["log_level"] == "warning"
        assert events[0]["max_iteration"] == 3
        assert events[0]["logger"] == "business_time.calculator"

    def test_calculator_runs_once(self, office):
        calc = calculator(office, datetime(2024, 1, 8, 9, 0), 1, "hour")
        calc.calculate(10)

        with pytest.raises(RuntimeError, match="already finished"):
            calc.calculate(10)

    def test_boundary_must_advance(self):
        calc = calculator(StuckSchedule(), datetime(2024, 1, 8, 9, 0), 1, "hour")

        with pytest.raises(ValueError, match="not beyond"):
            calc.calculate(10)

    def test_cursor_never_revisits(self, office):
        spy = SpySchedule(office)
        calculator(spy, datetime(2024, 1, 4, 15, 30), 30, "hours").calculate(1000)

        assert spy.cursors == sorted(spy.cursors)
        assert len(set(spy.cursors)) == len(spy.cursors)

    def test_cursor_never_revisits_backward(self, office):
        spy = SpySchedule(office)
        calculator(
            spy, datetime(2024, 1, 10, 11, 0), 30, "hours", inverted=True
        ).calculate(1000)

        assert spy.cursors == sorted(spy.cursors, reverse=True)
        assert len(set(spy.cursors)) == len(spy.cursors)

    def test_only_holiday_option_reaches_schedule(self, office):
        spy = SpySchedule(office)
        calculator(
            spy, datetime(2024, 1, 8, 9, 0), 1, "hour", options=0b1111
        ).calculate(10)

        assert spy.options
        assert all(opt == Options.HOLIDAYS_ARE_CLOSED for opt in spy.options)

    def test_direction_from_interval_sign(self, office):
        calc = calculator(office, datetime(2024, 1, 8, 10, 0), "-2 hours")

        assert calc.calculate(100) == pd.Timestamp("2024-01-05 16:00")
