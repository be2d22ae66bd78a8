"""
Multi-source statistics extractor.

ExtractorService fetches a stock's Groww and Yahoo Finance pages in
parallel, parses them, merges the canonical values by field ownership and
applies the result to the caller's in-memory record.

Strategy:
1. Resolve both vendor URLs (Groww from a pure slug function, Yahoo Finance
   through the lazily loaded ticker map)
2. Fetch + parse both pages concurrently through the relay chain, cached and
   deduplicated per URL
3. A failing vendor becomes an empty stats object; it never aborts the other
4. Merge through the ownership table, substitute the promoter fallback
5. Update the record, write through (at most once, failure only logged),
   re-render

fetch_stock_data never raises: unexpected errors are reported through the
show_alert callback.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

import structlog

from stockboard.config import Settings, config
from stockboard.data.cache import RequestCache
from stockboard.data.groww import GrowwSource
from stockboard.data.interfaces import VendorSource
from stockboard.data.merge import apply_promoter_fallback, merge
from stockboard.data.normalize import map_to_canonical
from stockboard.data.relay import RelayChainFetcher, default_relays
from stockboard.data.resolver import SymbolResolver, load_ticker_map_file
from stockboard.data.yahoo import YahooSource
from stockboard.models import (
    FetchReport,
    RawValue,
    StockRecord,
    VendorKind,
    VendorStats,
    WriteResult,
)

logger = structlog.get_logger(__name__)

AlertLevel = str  # "info" | "success" | "warning" | "danger"


@dataclass
class ExtractorCallbacks:
    """Hooks supplied by the surrounding application."""

    get_stocks_data: Callable[[], list[StockRecord]] | None = None
    render_table: Callable[[], None] | None = None
    show_alert: Callable[[AlertLevel, str], None] | None = None
    write_through: Callable[[str, dict[str, RawValue]], Awaitable[WriteResult]] | None = None


def contributors_label(contributors: list[VendorKind]) -> str:
    """Human-readable vendor attribution: "Groww only", "Groww + Yahoo Finance"."""
    names = [vendor.display_name for vendor in contributors]
    if len(names) == 1:
        return f"{names[0]} only"
    return " + ".join(names)


class ExtractorService:
    """
    Owns the resolver, relay fetcher, cache and vendor sources for one
    session. Construct once and share; reset() drops cached state.
    """

    def __init__(
        self,
        callbacks: ExtractorCallbacks | None = None,
        settings: Settings | None = None,
        fetcher: RelayChainFetcher | None = None,
        resolver: SymbolResolver | None = None,
        cache: RequestCache | None = None,
        sources: dict[VendorKind, VendorSource] | None = None,
    ):
        self.settings = settings or config
        self.callbacks = callbacks or ExtractorCallbacks()
        self.resolver = resolver or SymbolResolver(
            load_ticker_map_file(self.settings.ticker_map_path),
            market_suffix=self.settings.market_suffix,
        )
        self.fetcher = fetcher or RelayChainFetcher(
            relays=default_relays(self.settings.local_relay_url),
            timeout=self.settings.relay_timeout,
            user_agent=self.settings.user_agent,
        )
        self.cache = cache or RequestCache(
            ttl_seconds=self.settings.cache_ttl_seconds,
            max_entries=self.settings.cache_max_entries,
        )
        self.sources = sources or {
            VendorKind.PRIMARY: GrowwSource(self.settings.groww_base_url),
            VendorKind.SECONDARY: YahooSource(self.resolver, self.settings.yahoo_base_url),
        }

    def _alert(self, level: AlertLevel, message: str) -> None:
        if self.callbacks.show_alert:
            self.callbacks.show_alert(level, message)

    async def fetch_vendor_stats(
        self, vendor: VendorKind, symbol: str, bypass_cache: bool = False
    ) -> VendorStats:
        """
        Cached fetch + parse of one vendor's page for a symbol.

        Raises:
            RelayExhaustedError: no relay (nor the direct request) returned HTML
        """
        source = self.sources[vendor]
        url = await source.build_url(symbol)

        async def _produce() -> VendorStats:
            html = await self.fetcher.fetch_html(url)
            stats = source.parse(html)
            logger.info(
                "vendor_stats_parsed",
                vendor=vendor.value,
                symbol=symbol,
                fields=len(stats.found()),
            )
            return stats

        return await self.cache.get_or_fetch(url, _produce, bypass=bypass_cache)

    async def _gather_vendor_stats(
        self, symbol: str, bypass_cache: bool
    ) -> dict[VendorKind, VendorStats]:
        vendors = list(VendorKind)
        results = await asyncio.gather(
            *(self.fetch_vendor_stats(v, symbol, bypass_cache) for v in vendors),
            return_exceptions=True,
        )

        stats: dict[VendorKind, VendorStats] = {}
        for vendor, result in zip(vendors, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.warning(
                    "vendor_fetch_failed",
                    vendor=vendor.value,
                    symbol=symbol,
                    error=str(result),
                )
                stats[vendor] = VendorStats.empty(vendor)
            else:
                stats[vendor] = result
        return stats

    def _find_record(self, record_id: str) -> StockRecord | None:
        if not self.callbacks.get_stocks_data:
            return None
        for record in self.callbacks.get_stocks_data() or []:
            if record.record_id == record_id:
                return record
        return None

    async def _write_through(self, record_id: str, values: dict[str, RawValue]) -> None:
        if not self.callbacks.write_through:
            return
        try:
            result = await self.callbacks.write_through(record_id, values)
        except Exception as e:
            logger.warning("write_through_failed", record_id=record_id, error=str(e))
            return
        if result is not None and not result.success:
            logger.warning(
                "write_through_failed",
                record_id=record_id,
                error=result.error,
                offline=result.offline,
            )
        else:
            logger.debug("write_through_saved", record_id=record_id)

    async def fetch_stock_data(
        self, symbol: str, record_id: str, bypass_cache: bool = False
    ) -> FetchReport:
        """
        Fetch, merge and apply vendor statistics for one tracked stock.

        Args:
            symbol: User-entered symbol, slug or company name
            record_id: Record to update in get_stocks_data()
            bypass_cache: Force fresh vendor fetches

        Returns:
            FetchReport describing what was updated. Never raises.
        """
        try:
            self._alert("info", f"Fetching data for {symbol}...")
            stats = await self._gather_vendor_stats(symbol, bypass_cache)
            primary = stats[VendorKind.PRIMARY]
            secondary = stats[VendorKind.SECONDARY]

            if primary.is_empty() and secondary.is_empty():
                message = f"No data found for {symbol}. The stock URL might be incorrect."
                logger.warning("no_vendor_data", symbol=symbol)
                self._alert("warning", message)
                return FetchReport(symbol=symbol, status="no_data", message=message)

            merged = merge(map_to_canonical(primary), map_to_canonical(secondary))
            merged = apply_promoter_fallback(merged, primary_ok=not primary.is_empty())
            values = merged.non_null()

            if not values:
                message = f"Could not extract any metrics for {symbol}"
                self._alert("warning", message)
                return FetchReport(symbol=symbol, status="no_data", message=message)

            record = self._find_record(record_id)
            if record is None:
                message = f"Stock {symbol} is no longer tracked"
                logger.warning("record_missing", symbol=symbol, record_id=record_id)
                return FetchReport(
                    symbol=symbol,
                    status="record_missing",
                    contributors=merged.contributors,
                    message=message,
                )

            updated = record.apply_metrics(values)
            await self._write_through(record_id, values)
            if self.callbacks.render_table:
                self.callbacks.render_table()

            label = contributors_label(merged.contributors)
            message = f"Fetched {len(updated)} metrics for {symbol} ({label})"
            logger.info(
                "stock_data_updated",
                symbol=symbol,
                fields=len(updated),
                contributors=[v.value for v in merged.contributors],
                promoter_source=merged.promoter.source if merged.promoter else None,
            )
            self._alert("success", message)
            return FetchReport(
                symbol=symbol,
                status="updated",
                updated_fields=updated,
                contributors=merged.contributors,
                message=message,
            )

        except Exception as e:
            logger.error("fetch_stock_data_failed", symbol=symbol, error=str(e))
            message = f"Error fetching data: {e}"
            self._alert("danger", message)
            return FetchReport(symbol=symbol, status="error", message=message)

    async def refresh_watchlist(
        self,
        symbol_record_pairs: Iterable[tuple[str, str]],
        delay: float | None = None,
        bypass_cache: bool = False,
    ) -> list[FetchReport]:
        """Fetch each (symbol, record_id) in turn, pausing between symbols."""
        pause = self.settings.batch_delay if delay is None else delay
        reports = []
        for index, (symbol, record_id) in enumerate(symbol_record_pairs):
            if index and pause > 0:
                await asyncio.sleep(pause)
            reports.append(await self.fetch_stock_data(symbol, record_id, bypass_cache))
        logger.info(
            "watchlist_refreshed",
            symbols=len(reports),
            updated=sum(1 for r in reports if r.status == "updated"),
        )
        return reports

    def reset(self) -> None:
        """Drop cached statistics and the loaded ticker map."""
        self.cache.clear()
        self.resolver.reset()

    async def close(self) -> None:
        await self.fetcher.close()
