"""
Groww stock page source.

Fundamentals are read with the tabular lookup first and a label-anchored
regex over the page text second. The price block (price, day change, day
change percent) comes from a single currency-anchored regex, and the
promoter holding has its own five-step routine.
"""

from __future__ import annotations

import re

import structlog
from bs4 import BeautifulSoup, Tag

from stockboard.data.interfaces import VendorSource
from stockboard.data.resolver import to_primary_slug
from stockboard.data.strategies import (
    first_match,
    node_text,
    parse_html,
    strip_currency,
    table_lookup,
    text_regex,
    visible_text,
)
from stockboard.models import VendorKind, VendorStats

logger = structlog.get_logger(__name__)

GROWW_BASE_URL = "https://groww.in/stocks/"


# Captures must contain a digit; a bare "." or "," is not a value.
GROUPED = r"([\d,]*\d(?:\.\d+)?)"
DECIMAL = r"(\d*\.?\d+)"
PERCENT = r"(\d*\.?\d+%?)"
CRORE = r"([\d,]*\d(?:\.\d+)?\s*Cr)"


def _rx(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


FIELD_STRATEGIES = {
    "market_cap": [
        table_lookup(_rx(r"^Market Cap")),
        text_regex(_rx(r"Market Cap[₹\s]*" + CRORE)),
    ],
    "roe": [
        table_lookup(_rx(r"^ROE")),
        text_regex(_rx(r"ROE\s*" + PERCENT)),
    ],
    "pe": [
        table_lookup(_rx(r"^P/E Ratio|^P/E\s*\(TTM\)")),
        text_regex(_rx(r"P/E Ratio\s*(?:\(TTM\))?\s*" + DECIMAL)),
    ],
    "eps": [
        table_lookup(_rx(r"^EPS\s*\(TTM\)")),
        text_regex(_rx(r"EPS\s*\(TTM\)\s*" + DECIMAL)),
    ],
    "pb_ratio": [
        table_lookup(_rx(r"^P/B Ratio")),
        text_regex(_rx(r"P/B Ratio\s*" + DECIMAL)),
    ],
    "dividend_yield": [
        table_lookup(_rx(r"^Dividend Yield")),
        text_regex(_rx(r"Dividend Yield\s*" + PERCENT)),
    ],
    "industry_pe": [
        table_lookup(_rx(r"^Industry P/E")),
        text_regex(_rx(r"Industry P/E\s*" + DECIMAL)),
    ],
    "book_value": [
        table_lookup(_rx(r"^Book Value")),
        text_regex(_rx(r"Book Value\s*" + DECIMAL)),
    ],
    "debt_to_equity": [
        table_lookup(_rx(r"^Debt to Equity")),
        text_regex(_rx(r"Debt to Equity\s*" + DECIMAL)),
    ],
    "face_value": [
        table_lookup(_rx(r"^Face Value")),
        text_regex(_rx(r"Face Value\s*" + DECIMAL)),
    ],
    "today_low": [
        table_lookup(_rx(r"Today[’']s Low")),
        text_regex(_rx(r"Today[’']s Low\s*" + GROUPED)),
    ],
    "today_high": [
        table_lookup(_rx(r"Today[’']s High")),
        text_regex(_rx(r"Today[’']s High\s*" + GROUPED)),
    ],
    "week_52_low": [
        table_lookup(_rx(r"52W Low")),
        text_regex(_rx(r"52W Low\s*" + GROUPED)),
    ],
    "week_52_high": [
        table_lookup(_rx(r"52W High")),
        text_regex(_rx(r"52W High\s*" + GROUPED)),
    ],
    "open": [
        table_lookup(_rx(r"^Open$")),
        text_regex(_rx(r"\bOpen\s*" + GROUPED)),
    ],
    "prev_close": [
        table_lookup(_rx(r"Prev\.?\s*Close")),
        text_regex(_rx(r"Prev\.?\s*Close\s*" + GROUPED)),
    ],
    "volume": [
        table_lookup(_rx(r"^Volume$")),
        text_regex(_rx(r"\bVolume\s*" + GROUPED)),
    ],
    "total_traded_value": [
        table_lookup(_rx(r"Total traded value")),
        text_regex(_rx(r"Total traded value\s*" + CRORE)),
    ],
    "upper_circuit": [
        table_lookup(_rx(r"Upper Circuit")),
        text_regex(_rx(r"Upper Circuit\s*" + GROUPED)),
    ],
    "lower_circuit": [
        table_lookup(_rx(r"Lower Circuit")),
        text_regex(_rx(r"Lower Circuit\s*" + GROUPED)),
    ],
}

PRICE_RE = re.compile(
    r"₹\s*" + GROUPED + r"\s*([+\-][\d,]*\d(?:\.\d+)?)\s*\(\s*" + PERCENT + r"\s*\)"
)

# --- Promoter holding ---
PERCENT_RE = re.compile(r"^(\d{1,3}(?:\.\d+)?)\s*%$")
PROMOTER_LABEL_RE = re.compile(r"^Promoters?(?:\s+Holding)?$", re.IGNORECASE)
PROMOTER_INLINE_RE = re.compile(
    r"Promoters?(?:\s+Holding)?\s*[:\-]?\s*(\d{1,3}(?:\.\d+)?)\s*%", re.IGNORECASE
)
PROMOTER_TEXT_RE = re.compile(
    r"Promoters?(?:\s+Holding)?[^\d%]{0,40}?(\d{1,3}(?:\.\d+)?)\s*%", re.IGNORECASE
)
SHAREHOLDING_HEADING_RE = re.compile(r"Shareholding\s+Pattern", re.IGNORECASE)

# Holder categories that sit next to the promoter row.
OTHER_HOLDERS = (
    "fii",
    "dii",
    "foreign",
    "domestic",
    "mutual fund",
    "insurance",
    "retail",
    "public",
    "other",
)

TEXT_TAGS = ["div", "span", "p", "td", "li"]
HEADING_SCAN_LIMIT = 200
MAX_INLINE_CHARS = 80


def _percent_of(node: Tag) -> str | None:
    match = PERCENT_RE.match(node_text(node))
    if not match:
        return None
    if float(match.group(1)) > 100:
        return None
    return match.group(1)


def _preceding_label(node: Tag) -> str:
    for string in node.find_all_previous(string=True):
        txt = " ".join(string.split())
        if txt:
            return txt.lower()
    return ""


def _percent_after_promoter_label(soup: BeautifulSoup) -> str | None:
    """(a) A percentage element whose nearest preceding label names promoters."""
    for node in soup.find_all(TEXT_TAGS):
        if node.find(TEXT_TAGS) is not None:
            continue
        value = _percent_of(node)
        if value is None:
            continue
        label = _preceding_label(node)
        if "promoter" not in label:
            continue
        if any(other in label for other in OTHER_HOLDERS):
            continue
        return value
    return None


def _sibling_of_promoter_label(soup: BeautifulSoup) -> str | None:
    """(b) A "Promoters" label and a percentage element within the same parent."""
    for node in soup.find_all(TEXT_TAGS):
        if not PROMOTER_LABEL_RE.match(node_text(node)):
            continue
        parent = node.parent
        if parent is None:
            continue
        for candidate in parent.find_all(TEXT_TAGS):
            if candidate is node:
                continue
            value = _percent_of(candidate)
            if value is not None:
                return value
    return None


def _inline_label_percent(soup: BeautifulSoup) -> str | None:
    """(c) Short text nodes carrying both the label and the percentage."""
    for node in soup.find_all(TEXT_TAGS):
        txt = node_text(node)
        if not txt or len(txt) > MAX_INLINE_CHARS:
            continue
        match = PROMOTER_INLINE_RE.search(txt)
        if match:
            return match.group(1)
    return None


def _near_shareholding_heading(soup: BeautifulSoup) -> str | None:
    """(d) Walk forward from a "Shareholding Pattern" heading."""
    heading = soup.find(string=SHAREHOLDING_HEADING_RE)
    if heading is None:
        return None
    seen_label = False
    for string in heading.find_all_next(string=True, limit=HEADING_SCAN_LIMIT):
        txt = " ".join(string.split())
        if not txt:
            continue
        if "promoter" in txt.lower():
            seen_label = True
            inline = PROMOTER_INLINE_RE.search(txt)
            if inline:
                return inline.group(1)
            continue
        if seen_label:
            match = PERCENT_RE.match(txt)
            if match:
                return match.group(1)
    return None


def _promoter_from_text(soup: BeautifulSoup) -> str | None:
    """(e) One regex over the whole visible text."""
    match = PROMOTER_TEXT_RE.search(visible_text(soup))
    return match.group(1) if match else None


PROMOTER_STRATEGIES = [
    _percent_after_promoter_label,
    _sibling_of_promoter_label,
    _inline_label_percent,
    _near_shareholding_heading,
    _promoter_from_text,
]


def extract_promoter_holding(soup: BeautifulSoup) -> str | None:
    """Promoter holding percentage (as text), or None if every step misses."""
    return first_match(PROMOTER_STRATEGIES, soup)


def parse_groww_page(html: str) -> VendorStats:
    """Extract the Groww field set from a stock page."""
    stats = VendorStats.empty(VendorKind.PRIMARY)
    soup = parse_html(html)

    for name, strategies in FIELD_STRATEGIES.items():
        stats.data[name] = strip_currency(first_match(strategies, soup))

    price = PRICE_RE.search(visible_text(soup))
    if price:
        stats.data["current_price"] = price.group(1)
        stats.data["price_change"] = price.group(2)
        stats.data["price_change_percent"] = price.group(3)

    stats.data["promoter_holding"] = extract_promoter_holding(soup)
    return stats


class GrowwSource(VendorSource):
    """Primary vendor: Groww stock pages addressed by slug."""

    kind = VendorKind.PRIMARY

    def __init__(self, base_url: str = GROWW_BASE_URL):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    async def build_url(self, symbol: str) -> str:
        return self.base_url + to_primary_slug(symbol)

    def parse(self, html: str) -> VendorStats:
        try:
            return parse_groww_page(html)
        except Exception as e:
            logger.warning("groww_parse_failed", error=str(e))
            return VendorStats.empty(self.kind)
