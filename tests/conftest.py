"""Pytest configuration for stockboard tests."""

import logging
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

# Add the repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """
    Set up test environment variables.
    Relays point at an unroutable local port so nothing reaches the network
    unless a test injects its own transport.
    """
    test_env = {
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "ERROR",
        "LOCAL_RELAY_URL": "http://127.0.0.1:9",
        "BATCH_DELAY": "0",
    }
    with patch.dict(os.environ, test_env, clear=False):
        yield


@pytest.fixture(autouse=True)
def configure_structlog_for_tests():
    """Configure structlog for test environment."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.root.setLevel(logging.WARNING)
    yield


@pytest.fixture
def groww_html():
    return (FIXTURES / "groww_tcs.html").read_text(encoding="utf-8")


@pytest.fixture
def yahoo_html():
    return (FIXTURES / "yahoo_tcs.html").read_text(encoding="utf-8")


@pytest.fixture
def settings():
    """Isolated Settings instance; never touches the module singleton."""
    from stockboard.config import Settings

    return Settings(
        LOCAL_RELAY_URL="http://127.0.0.1:9",
        RELAY_TIMEOUT=1.0,
        BATCH_DELAY=0.0,
    )
