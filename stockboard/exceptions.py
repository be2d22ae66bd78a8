"""
Custom exceptions for the stockboard extractor.

Clean error hierarchy for distinct failure modes.
"""

from __future__ import annotations

RELAY_HINT = "Start the local relay: python -m stockboard.relay_server"


class StockboardError(Exception):
    """Base exception for all stockboard errors."""


class RelayAttemptError(StockboardError):
    """A single relay (or the direct request) did not yield usable HTML."""

    def __init__(self, relay: str, reason: str):
        self.relay = relay
        self.reason = reason
        super().__init__(f"{relay}: {reason}")


class RelayExhaustedError(StockboardError):
    """Every relay and the direct fallback failed for a target URL."""

    def __init__(self, target_url: str, attempts: list[RelayAttemptError]):
        self.target_url = target_url
        self.attempts = attempts
        tried = "; ".join(str(a) for a in attempts) or "none"
        super().__init__(
            f"All fetch attempts failed for {target_url} (tried: {tried}). "
            f"{RELAY_HINT}"
        )


class TickerMapLoadError(StockboardError):
    """The ticker -> vendor symbol JSON asset could not be loaded."""


class DuplicateStockError(StockboardError):
    """A stock with the same symbol (or manual name) is already tracked."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Stock already tracked: {key}")
