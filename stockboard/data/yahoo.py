"""
Yahoo Finance key-statistics source.

Each field tries all three layers: tabular lookup, structural proximity
(the statistics page is rendered with a mix of tables and div/span grids),
then a label-anchored regex. Previous-period values come from the next
column of the same table row.
"""

from __future__ import annotations

import re

import structlog
from bs4 import BeautifulSoup

from stockboard.data.interfaces import VendorSource
from stockboard.data.resolver import SymbolResolver
from stockboard.data.strategies import (
    Strategy,
    first_match,
    parse_html,
    proximity_lookup,
    row_values,
    strip_currency,
    table_lookup,
    text_regex,
)
from stockboard.models import VendorKind, VendorStats

logger = structlog.get_logger(__name__)

YAHOO_BASE_URL = "https://finance.yahoo.com/quote/"
STATISTICS_PATH = "/key-statistics"

NUMBER = r"(-?[\d,]*\.?\d+\s*[KMBT%]?)"


def _rx(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def row_column(label: re.Pattern, column: int) -> Strategy:
    """Value in the given column (0 = first value cell) of the label's row."""

    def _lookup(soup: BeautifulSoup) -> str | None:
        values = row_values(soup, label)
        return values[column] if len(values) > column else None

    return _lookup


def _layers(label: str, text_label: str | None = None) -> list[Strategy]:
    pattern = _rx(label)
    regex = _rx((text_label or label.lstrip("^")) + r"[^\d\-]{0,30}?" + NUMBER)
    return [table_lookup(pattern), proximity_lookup(pattern), text_regex(regex)]


FIELD_STRATEGIES = {
    "beta": _layers(r"^Beta\b", r"Beta\s*\(5Y Monthly\)"),
    "return_on_assets": _layers(r"^Return on Assets"),
    "return_on_equity": _layers(r"^Return on Equity"),
    "ebitda": _layers(r"^EBITDA\b", r"(?<!/)EBITDA"),
    "ebitda_previous": [row_column(_rx(r"^EBITDA\b"), 1)],
    "price_to_sales": _layers(r"^Price/Sales"),
    "price_to_sales_previous": [row_column(_rx(r"^Price/Sales"), 1)],
    "trailing_pe": _layers(r"^Trailing P/E"),
    "forward_pe": _layers(r"^Forward P/E"),
    "price_to_book": _layers(r"^Price/Book"),
    "current_ratio": _layers(r"^Current Ratio"),
    "debt_to_equity": _layers(r"^Total Debt/Equity"),
    "dividend_yield": _layers(
        r"^(?:Forward|Trailing) Annual Dividend Yield",
        r"Annual Dividend Yield",
    ),
    "held_by_insiders": _layers(r"^% Held by Insiders", r"% Held by Insiders"),
    "market_cap": _layers(r"^Market Cap"),
}


def parse_yahoo_page(html: str) -> VendorStats:
    """Extract the Yahoo Finance key-statistics field set from a page."""
    stats = VendorStats.empty(VendorKind.SECONDARY)
    soup = parse_html(html)
    for name, strategies in FIELD_STRATEGIES.items():
        stats.data[name] = strip_currency(first_match(strategies, soup))
    return stats


class YahooSource(VendorSource):
    """Secondary vendor: Yahoo Finance key statistics addressed by ticker."""

    kind = VendorKind.SECONDARY

    def __init__(self, resolver: SymbolResolver, base_url: str = YAHOO_BASE_URL):
        self.resolver = resolver
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    async def build_url(self, symbol: str) -> str:
        ticker = await self.resolver.to_secondary_symbol(symbol)
        return f"{self.base_url}{ticker}{STATISTICS_PATH}"

    def parse(self, html: str) -> VendorStats:
        try:
            return parse_yahoo_page(html)
        except Exception as e:
            logger.warning("yahoo_parse_failed", error=str(e))
            return VendorStats.empty(self.kind)
