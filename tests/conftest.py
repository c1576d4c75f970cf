"""Pytest configuration and shared fixtures."""

import pytest

from business_time.config import reset_business_time_config


@pytest.fixture(autouse=True)
def reset_config_for_all_tests():
    """Reset the configuration before and after each test for isolation.

    The configuration is a module-level singleton that persists across tests.
    This fixture ensures each test starts with the library defaults.
    """
    reset_business_time_config()
    yield
    reset_business_time_config()
