"""
Configuration module using Pydantic Settings.

Provides validated, type-safe configuration from environment variables
for the fundamentals extractor, the local relay and the CLI.

Notes:
- Logging is configured at import time so that validation errors raised
  while building the Settings singleton are already rendered by structlog.
- Every tunable used by the extractor (relay timeout, cache TTL, batch
  delay, market suffix) lives here rather than as a module constant so
  tests can build an isolated Settings instance.
"""

import logging
import sys
from pathlib import Path

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Logging Setup (must happen before Settings to capture validation errors) ---
logging.basicConfig(
    format="%(asctime)s [%(levelname)-8s] %(message)s",
    stream=sys.stderr,
    level=logging.INFO,
    force=True,
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.KeyValueRenderer(
            key_order=["timestamp", "level", "event"]
        ),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = logging.getLogger(__name__)

DEFAULT_TICKER_MAP_PATH = Path(__file__).parent / "resources" / "ticker_map.json"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """
    Configuration for the stockboard extractor.

    Values come from environment variables (or a local .env file) via the
    validation_alias of each field. Instances are cheap, so tests create
    their own instead of patching the module singleton.
    """

    # --- Logging / Environment ---
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    environment: str = Field(
        default="dev",
        validation_alias="ENVIRONMENT",
        description="Environment (dev, prod, test)",
    )

    # --- Relay Chain ---
    relay_timeout: float = Field(
        default=10.0,
        gt=0,
        validation_alias="RELAY_TIMEOUT",
        description="Per-relay request timeout in seconds",
    )
    local_relay_url: str = Field(
        default="http://localhost:8080",
        validation_alias="LOCAL_RELAY_URL",
        description="Base URL of the local relay (python -m stockboard.relay_server)",
    )
    relay_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        validation_alias="RELAY_PORT",
        description="Port the local relay server listens on",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias="USER_AGENT",
        description="User-Agent header sent to relays and vendors",
    )

    # --- Cache ---
    cache_ttl_seconds: float = Field(
        default=300.0,
        gt=0,
        validation_alias="CACHE_TTL_SECONDS",
        description="Lifetime of cached vendor statistics",
    )
    cache_max_entries: int = Field(
        default=100,
        ge=1,
        validation_alias="CACHE_MAX_ENTRIES",
        description="Cache size that triggers an expired-entry sweep",
    )

    # --- Batch Refresh ---
    batch_delay: float = Field(
        default=2.0,
        ge=0.0,
        validation_alias="BATCH_DELAY",
        description="Pause between symbols when refreshing a whole watchlist",
    )

    # --- Vendors ---
    groww_base_url: str = Field(
        default="https://groww.in/stocks/",
        validation_alias="GROWW_BASE_URL",
        description="Primary vendor stock page prefix",
    )
    yahoo_base_url: str = Field(
        default="https://finance.yahoo.com/quote/",
        validation_alias="YAHOO_BASE_URL",
        description="Secondary vendor quote page prefix",
    )
    market_suffix: str = Field(
        default=".NS",
        validation_alias="MARKET_SUFFIX",
        description="Exchange suffix appended to unmapped Yahoo tickers",
    )
    ticker_map_path: Path = Field(
        default=DEFAULT_TICKER_MAP_PATH,
        validation_alias="TICKER_MAP_PATH",
        description="JSON asset mapping tickers to Yahoo symbols",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=False,
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def setup_environment(self) -> "Settings":
        """Normalise paths/URLs and apply the configured log level."""
        self.ticker_map_path = self.ticker_map_path.expanduser()
        self.local_relay_url = self.local_relay_url.rstrip("/")
        if not self.groww_base_url.endswith("/"):
            self.groww_base_url += "/"
        if not self.yahoo_base_url.endswith("/"):
            self.yahoo_base_url += "/"

        log_level_value = getattr(logging, self.log_level.upper(), logging.INFO)
        logging.getLogger().setLevel(log_level_value)
        for name in logging.root.manager.loggerDict:
            logging.getLogger(name).setLevel(log_level_value)

        return self


# --- Module-level Singleton Instance ---
config = Settings()
