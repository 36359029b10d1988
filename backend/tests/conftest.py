"""Pytest configuration and fixtures."""

import pytest
import inventory_voice.logging_config as logging_config_module
from inventory_voice.logging_config import clear_turn_id, configure_logging


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests.

    This fixture runs once per session and configures structlog for testing.
    cache_logger_on_first_use=False ensures test isolation.
    """
    configure_logging(log_level="DEBUG")


@pytest.fixture(autouse=True)
def reset_logging_config() -> None:
    """Reset logging config state and the bound turn id before each test."""
    logging_config_module._CONFIGURED = False
    clear_turn_id()
