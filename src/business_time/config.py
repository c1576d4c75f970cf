"""Module-level configuration for business_time defaults."""

import threading
from dataclasses import dataclass

# Loop turns allowed before a calculation is declared unsatisfiable.
MAX_ITERATION = 8192


@dataclass
class BusinessTimeConfig:
    """Configuration for business_time defaults."""

    default_max_iteration: int = MAX_ITERATION


# Module-level singleton
_business_time_config: BusinessTimeConfig | None = None
_config_lock = threading.Lock()


def validate_max_iteration(value: int) -> int:
    """Check that an iteration ceiling is a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"max_iteration must be an integer; got {value!r}")
    if value < 1:
        raise ValueError(f"max_iteration must be positive; got {value}")
    return value


def get_business_time_config() -> BusinessTimeConfig:
    """Get the global business_time configuration singleton."""
    global _business_time_config
    if _business_time_config is None:
        with _config_lock:
            if _business_time_config is None:
                _business_time_config = BusinessTimeConfig()
    return _business_time_config


def configure_business_time(default_max_iteration: int | None = None) -> None:
    """Configure default business_time settings.

    Args:
        default_max_iteration: Iteration ceiling given to BusinessTime
            instances created from now on. Existing instances keep the
            ceiling they were created with.

    Example:
        from business_time import BusinessTime, configure_business_time

        configure_business_time(default_max_iteration=100_000)

        bt = BusinessTime(schedule)  # bt.get_max_iteration() == 100_000
    """
    config = get_business_time_config()
    with _config_lock:
        if default_max_iteration is not None:
            config.default_max_iteration = validate_max_iteration(default_max_iteration)


def get_default_max_iteration() -> int:
    """Get the default iteration ceiling."""
    return get_business_time_config().default_max_iteration


def reset_business_time_config() -> None:
    """Reset configuration to defaults. Useful for testing."""
    global _business_time_config
    with _config_lock:
        _business_time_config = BusinessTimeConfig()
