"""Tests for Settings loading and normalization."""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from stockboard.config import DEFAULT_TICKER_MAP_PATH, Settings


class TestSettings:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.relay_timeout == 10.0
        assert settings.local_relay_url == "http://localhost:8080"
        assert settings.relay_port == 8080
        assert settings.cache_ttl_seconds == 300.0
        assert settings.cache_max_entries == 100
        assert settings.batch_delay == 2.0
        assert settings.market_suffix == ".NS"
        assert settings.ticker_map_path == DEFAULT_TICKER_MAP_PATH
        assert DEFAULT_TICKER_MAP_PATH.exists()

    def test_environment_overrides(self):
        env = {
            "RELAY_TIMEOUT": "3.5",
            "LOCAL_RELAY_URL": "http://127.0.0.1:9000/",
            "MARKET_SUFFIX": ".BO",
            "GROWW_BASE_URL": "https://example.test/stocks",
        }
        with patch.dict(os.environ, env, clear=False):
            settings = Settings(_env_file=None)

        assert settings.relay_timeout == 3.5
        assert settings.local_relay_url == "http://127.0.0.1:9000"
        assert settings.market_suffix == ".BO"
        assert settings.groww_base_url == "https://example.test/stocks/"

    def test_ticker_map_path_expands_user(self):
        settings = Settings(_env_file=None, TICKER_MAP_PATH="~/map.json")
        assert settings.ticker_map_path == Path("~/map.json").expanduser()

    def test_invalid_timeout_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, RELAY_TIMEOUT=0)

    def test_log_level_applied(self):
        Settings(_env_file=None, LOG_LEVEL="DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        Settings(_env_file=None, LOG_LEVEL="ERROR")
        assert logging.getLogger().level == logging.ERROR
