"""
Symbol resolution between user input and vendor identifiers.

Groww addresses a stock by a lowercase slug ("tata-consultancy-services-ltd"),
Yahoo Finance by a market-suffixed ticker ("TCS.NS"). Users type either, or a
company-name fragment, so resolution is a best-effort guess that never fails:
a wrong identifier just produces a page without statistics downstream.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog

from stockboard.exceptions import TickerMapLoadError
from stockboard.models import VendorKind

logger = structlog.get_logger(__name__)

SLUG_SEPARATOR = "-"
LEGAL_SUFFIX = "ltd"

# Used when the ticker map asset cannot be read.
FALLBACK_TICKER_MAP = {"ITC": "ITC.NS"}

MARKET_SUFFIX_RE = re.compile(r"\.[A-Z]{1,3}$")

TICKER_TO_SLUG = {
    "tcs": "tata-consultancy-services-ltd",
    "itc": "itc-ltd",
    "reliance": "reliance-industries-ltd",
    "hdfcbank": "hdfc-bank-ltd",
    "hdfc": "hdfc-bank-ltd",
    "infy": "infosys-ltd",
    "infosys": "infosys-ltd",
    "icicibank": "icici-bank-ltd",
    "wipro": "wipro-ltd",
    "sbin": "state-bank-of-india",
    "kotakbank": "kotak-mahindra-bank-ltd",
    "hcltech": "hcl-technologies-ltd",
    "bhartiartl": "bharti-airtel-ltd",
    "axisbank": "axis-bank-ltd",
    "tatamotors": "tata-motors-ltd",
    "tatasteel": "tata-steel-ltd",
    "sunpharma": "sun-pharmaceutical-industries-ltd",
    "maruti": "maruti-suzuki-india-ltd",
    "hindunilvr": "hindustan-unilever-ltd",
    "asianpaint": "asian-paints-ltd",
    "lt": "larsen-toubro-ltd",
    "bajfinance": "bajaj-finance-ltd",
    "bajajfinsv": "bajaj-finserv-ltd",
    "techm": "tech-mahindra-ltd",
    "ultracemco": "ultratech-cement-ltd",
    "titan": "titan-company-ltd",
    "ongc": "oil-natural-gas-corporation-ltd",
    "ntpc": "ntpc-ltd",
    "powergrid": "power-grid-corporation-of-india-ltd",
    "jswsteel": "jsw-steel-ltd",
    "adaniports": "adani-ports-special-economic-zone-ltd",
    "adanient": "adani-enterprises-ltd",
    "coalindia": "coal-india-ltd",
    "drreddy": "dr-reddys-laboratories-ltd",
    "cipla": "cipla-ltd",
    "divislab": "divis-laboratories-ltd",
    "nestleind": "nestle-india-ltd",
    "britannia": "britannia-industries-ltd",
    "eichermot": "eicher-motors-ltd",
    "m&m": "mahindra-mahindra-ltd",
    "heromotoco": "hero-motocorp-ltd",
    "indusindbk": "indusind-bank-ltd",
    "grasim": "grasim-industries-ltd",
    "upl": "upl-ltd",
    "bpcl": "bharat-petroleum-corporation-ltd",
    "ioc": "indian-oil-corporation-ltd",
    "sbilife": "sbi-life-insurance-company-ltd",
    "hdfclife": "hdfc-life-insurance-company-ltd",
}

SLUG_TO_TICKER = {
    "tata-consultancy-services-ltd": "TCS",
    "itc-ltd": "ITC",
    "reliance-industries-ltd": "RELIANCE",
    "hdfc-bank-ltd": "HDFCBANK",
    "infosys-ltd": "INFY",
    "icici-bank-ltd": "ICICIBANK",
    "wipro-ltd": "WIPRO",
    "state-bank-of-india": "SBIN",
    "kotak-mahindra-bank-ltd": "KOTAKBANK",
    "hcl-technologies-ltd": "HCLTECH",
    "bharti-airtel-ltd": "BHARTIARTL",
    "axis-bank-ltd": "AXISBANK",
    "tata-motors-ltd": "TATAMOTORS",
    "tata-steel-ltd": "TATASTEEL",
    "sun-pharmaceutical-industries-ltd": "SUNPHARMA",
    "maruti-suzuki-india-ltd": "MARUTI",
    "hindustan-unilever-ltd": "HINDUNILVR",
    "asian-paints-ltd": "ASIANPAINT",
    "larsen-toubro-ltd": "LT",
    "bajaj-finance-ltd": "BAJFINANCE",
    "bajaj-finserv-ltd": "BAJAJFINSV",
    "tech-mahindra-ltd": "TECHM",
    "ultratech-cement-ltd": "ULTRACEMCO",
    "titan-company-ltd": "TITAN",
    "oil-natural-gas-corporation-ltd": "ONGC",
    "ntpc-ltd": "NTPC",
    "power-grid-corporation-of-india-ltd": "POWERGRID",
    "jsw-steel-ltd": "JSWSTEEL",
    "adani-ports-special-economic-zone-ltd": "ADANIPORTS",
    "adani-enterprises-ltd": "ADANIENT",
    "coal-india-ltd": "COALINDIA",
    "dr-reddys-laboratories-ltd": "DRREDDY",
    "cipla-ltd": "CIPLA",
    "divis-laboratories-ltd": "DIVISLAB",
    "nestle-india-ltd": "NESTLEIND",
    "britannia-industries-ltd": "BRITANNIA",
    "eicher-motors-ltd": "EICHERMOT",
    "mahindra-mahindra-ltd": "M&M",
    "hero-motocorp-ltd": "HEROMOTOCO",
    "indusind-bank-ltd": "INDUSINDBK",
    "grasim-industries-ltd": "GRASIM",
    "upl-ltd": "UPL",
    "bharat-petroleum-corporation-ltd": "BPCL",
    "indian-oil-corporation-ltd": "IOC",
    "sbi-life-insurance-company-ltd": "SBILIFE",
    "hdfc-life-insurance-company-ltd": "HDFCLIFE",
    "zomato-ltd": "ZOMATO",
    "bharat-electronics-ltd": "BEL",
    "gail-india-ltd": "GAIL",
    "jio-financial-services-ltd": "JIOFIN",
    "vodafone-idea-ltd": "IDEA",
}

TickerMapLoader = Callable[[], Awaitable[dict[str, str]]]


def is_slug(value: str) -> bool:
    """True when value already has Groww slug shape or is a known slug."""
    lowered = value.lower().strip()
    if lowered in SLUG_TO_TICKER:
        return True
    return SLUG_SEPARATOR in lowered and LEGAL_SUFFIX in lowered


def to_primary_slug(raw_symbol: str) -> str:
    """
    Convert a stock symbol, slug or name to a Groww URL slug.

    Examples:
        "TCS" -> "tata-consultancy-services-ltd" (table lookup)
        "tata-consultancy-services-ltd" -> unchanged
        "Acme Widgets" -> "acme-widgets-ltd" (synthesized guess)
    """
    lowered = raw_symbol.lower().strip()
    if is_slug(lowered):
        return lowered

    if lowered in TICKER_TO_SLUG:
        return TICKER_TO_SLUG[lowered]

    return re.sub(r"\s+", SLUG_SEPARATOR, lowered) + SLUG_SEPARATOR + LEGAL_SUFFIX


def load_ticker_map_file(path: Path) -> TickerMapLoader:
    """Build a loader reading the ticker map JSON asset from disk."""

    async def _load() -> dict[str, str]:
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            data = json.loads(text)
        except (OSError, json.JSONDecodeError) as e:
            raise TickerMapLoadError(f"Cannot load ticker map {path}: {e}") from e
        if not isinstance(data, dict):
            raise TickerMapLoadError(f"Ticker map {path} is not a JSON object")
        return {str(k).upper(): str(v) for k, v in data.items()}

    return _load


class SymbolResolver:
    """
    Maps user-supplied identifiers to each vendor's identifier format.

    The Yahoo ticker map is loaded lazily on first use and kept for the
    lifetime of the resolver (one per ExtractorService).
    """

    def __init__(self, loader: TickerMapLoader, market_suffix: str = ".NS"):
        self._loader = loader
        self.market_suffix = market_suffix
        self._ticker_map: dict[str, str] | None = None
        self._lock = asyncio.Lock()

    async def ticker_map(self) -> dict[str, str]:
        if self._ticker_map is not None:
            return self._ticker_map

        async with self._lock:
            if self._ticker_map is None:
                try:
                    self._ticker_map = await self._loader()
                    logger.debug("ticker_map_loaded", entries=len(self._ticker_map))
                except TickerMapLoadError as e:
                    logger.warning("ticker_map_load_failed", error=str(e))
                    self._ticker_map = dict(FALLBACK_TICKER_MAP)
        return self._ticker_map

    def to_primary_slug(self, raw_symbol: str) -> str:
        return to_primary_slug(raw_symbol)

    async def to_secondary_symbol(self, raw_symbol: str) -> str:
        """
        Convert a symbol, slug or name to a Yahoo Finance ticker.

        Order: known slug reverse-mapping, already-suffixed passthrough,
        ticker map lookup, first-token lookup, then default market suffix.
        """
        cleaned = raw_symbol.strip()
        ticker = SLUG_TO_TICKER.get(cleaned.lower(), cleaned.upper())

        if MARKET_SUFFIX_RE.search(ticker):
            return ticker

        mapping = await self.ticker_map()
        if ticker in mapping:
            return mapping[ticker]

        tokens = ticker.split()
        if tokens and tokens[0] in mapping:
            return mapping[tokens[0]]

        return re.sub(r"\s+", "", ticker) + self.market_suffix

    async def resolve_to_vendor_id(self, vendor: VendorKind, raw_symbol: str) -> str:
        if vendor is VendorKind.PRIMARY:
            return self.to_primary_slug(raw_symbol)
        return await self.to_secondary_symbol(raw_symbol)

    def reset(self) -> None:
        self._ticker_map = None
