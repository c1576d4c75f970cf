"""business_time - Open/closed business time arithmetic over schedules."""

from business_time.calculator import (
    CalculatorState,
    MaxIterationExceeded,
    SegmentCalculator,
)
from business_time.config import (
    MAX_ITERATION,
    BusinessTimeConfig,
    configure_business_time,
    get_business_time_config,
    get_default_max_iteration,
    reset_business_time_config,
)
from business_time.core import BusinessTime, apply_interval
from business_time.interval import (
    HOUR_UNIT,
    MINUTE_UNIT,
    Duration,
    InvalidIntervalSpec,
    NormalizedInterval,
    normalize_interval,
)
from business_time.logging import configure_logging, get_logger
from business_time.schedule import (
    HOLIDAYS_ARE_CLOSED,
    AlwaysOpenSchedule,
    Direction,
    Options,
    Polarity,
    Schedule,
    WeeklySchedule,
)
from business_time.validation import ValidationError

__all__ = [
    # Primary API
    "BusinessTime",
    "apply_interval",
    # Schedules
    "Schedule",
    "AlwaysOpenSchedule",
    "WeeklySchedule",
    "Polarity",
    "Direction",
    "Options",
    "HOLIDAYS_ARE_CLOSED",
    # Intervals
    "Duration",
    "NormalizedInterval",
    "normalize_interval",
    "MINUTE_UNIT",
    "HOUR_UNIT",
    # Engine
    "SegmentCalculator",
    "CalculatorState",
    # Errors
    "InvalidIntervalSpec",
    "MaxIterationExceeded",
    "ValidationError",
    # Logging
    "configure_logging",
    "get_logger",
    # Config
    "MAX_ITERATION",
    "BusinessTimeConfig",
    "configure_business_time",
    "get_business_time_config",
    "get_default_max_iteration",
    "reset_business_time_config",
]
__version__ = "0.1.0"
