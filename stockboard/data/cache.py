"""
TTL cache with in-flight request deduplication.

Keys are resolved vendor URLs. A live entry is returned without touching
the network; concurrent misses for the same key share one asyncio task, so
every caller gets the same result or the same exception.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_ENTRIES = 100

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class RequestCache:
    """
    Per-service cache of vendor statistics.

    Only successful producer results are stored. Once the cache holds more
    than max_entries, expired entries are swept; live entries are never
    evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._pending: dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: str, default: Any = None) -> Any:
        """Return the live cached value for key, or default."""
        value = self._live(key)
        return default if value is _MISSING else value

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def _live(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        if entry.expires_at <= self._clock():
            return _MISSING
        return entry.value

    def _store(self, key: str, value: Any, ttl: float | None) -> None:
        lifetime = self.ttl_seconds if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + lifetime)
        if len(self._entries) > self.max_entries:
            self.sweep_expired()

    def sweep_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("cache_swept", evicted=len(expired), remaining=len(self._entries))
        return len(expired)

    async def _run(
        self, key: str, producer: Callable[[], Awaitable[Any]], ttl: float | None
    ) -> Any:
        try:
            value = await producer()
            self._store(key, value, ttl)
            return value
        finally:
            self._pending.pop(key, None)

    async def get_or_fetch(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl: float | None = None,
        bypass: bool = False,
    ) -> Any:
        """
        Return the cached value for key, or produce it once.

        Args:
            key: Cache key (the resolved vendor URL)
            producer: Zero-argument coroutine function fetching the value
            ttl: Lifetime override in seconds
            bypass: Skip the live-entry check and force a fresh fetch

        Raises:
            Whatever the producer raised, to every concurrent caller
        """
        if not bypass:
            cached = self._live(key)
            if cached is not _MISSING:
                logger.debug("cache_hit", key=key[:80])
                return cached

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, producer, ttl))
            self._pending[key] = task
        else:
            logger.debug("cache_join_pending", key=key[:80])

        # Shielded so one cancelled caller does not cancel the shared fetch.
        return await asyncio.shield(task)

    def clear(self) -> None:
        self._entries.clear()
