"""
Normalization of scraped strings into typed values, and the per-vendor
mapping of raw field names onto the canonical metric schema.
"""

from __future__ import annotations

import re

from stockboard.models import RawValue, VendorKind, VendorStats

NULL_TOKENS = {"", "n/a", "na", "-", "--", "—"}

UNIT_MULTIPLIERS = {
    "K": 1e3,
    "M": 1e6,
    "B": 1e9,
    "T": 1e12,
}

_STRIP_RE = re.compile(r"[₹$€£,%]|(?<![A-Za-z])Cr\b\.?", re.IGNORECASE)
_COMPACT_RE = re.compile(r"^([+-]?\d+(?:\.\d+)?)\s*([KMBT])$", re.IGNORECASE)
_HAS_ALNUM_RE = re.compile(r"[A-Za-z0-9]")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Raw vendor field -> canonical field.
PRIMARY_FIELD_MAP = {
    "current_price": "current_price",
    "price_change": "price_change",
    "price_change_percent": "price_change_percent",
    "today_low": "day_low",
    "today_high": "day_high",
    "week_52_low": "week_52_low",
    "week_52_high": "week_52_high",
    "open": "open_price",
    "prev_close": "prev_close",
    "volume": "volume",
    "market_cap": "market_cap",
    "pe": "pe_ratio",
    "industry_pe": "industry_pe",
    "pb_ratio": "price_to_book",
    "dividend_yield": "dividend_yield",
    "debt_to_equity": "debt_to_equity",
    "roe": "roe",
    "eps": "eps",
    "book_value": "book_value",
    "face_value": "face_value",
    "promoter_holding": "promoter_holdings",
}

SECONDARY_FIELD_MAP = {
    "beta": "beta",
    "return_on_assets": "roa",
    "return_on_equity": "roe",
    "ebitda": "ebitda_current",
    "ebitda_previous": "ebitda_previous",
    "price_to_sales": "price_to_sales",
    "trailing_pe": "pe_ratio",
    "forward_pe": "forward_pe",
    "price_to_book": "price_to_book",
    "current_ratio": "liquidity",
    "debt_to_equity": "debt_to_equity",
    "dividend_yield": "dividend_yield",
    "market_cap": "market_cap",
}

FIELD_MAPS = {
    VendorKind.PRIMARY: PRIMARY_FIELD_MAP,
    VendorKind.SECONDARY: SECONDARY_FIELD_MAP,
}


def normalize(raw: RawValue | int) -> RawValue:
    """
    Clean a scraped value into a number where possible.

    Strips currency symbols, thousands separators, percent signs and the
    "Cr" unit; expands compact K/M/B/T suffixes. Null tokens become None.
    Strings that do not start with a number are returned trimmed, since
    some fields are intentionally textual.

    Examples:
        "₹1,234.50 Cr" -> 1234.5
        "12.3%" -> 12.3
        "2.5B" -> 2500000000.0
        "N/A" -> None
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)

    text = str(raw).strip()
    if text.lower() in NULL_TOKENS:
        return None

    cleaned = _STRIP_RE.sub("", text).strip()
    if cleaned.lower() in NULL_TOKENS or not _HAS_ALNUM_RE.search(cleaned):
        return None

    compact = _COMPACT_RE.match(cleaned)
    if compact:
        return float(compact.group(1)) * UNIT_MULTIPLIERS[compact.group(2).upper()]

    try:
        return float(cleaned)
    except ValueError:
        pass

    leading = _LEADING_NUMBER_RE.match(cleaned.replace(" ", ""))
    if leading:
        return float(leading.group(0))
    return text


def percent_change(current: RawValue, previous: RawValue) -> float | None:
    if not isinstance(current, float) or not isinstance(previous, float):
        return None
    if previous == 0:
        return None
    return round((current - previous) / abs(previous) * 100, 2)


def map_to_canonical(stats: VendorStats, vendor: VendorKind | None = None) -> dict[str, RawValue]:
    """
    Normalize a vendor's raw fields and rename them to canonical keys.

    Fields without a canonical counterpart are dropped. For Yahoo Finance
    the Price/Sales trend is derived from the current and previous-quarter
    columns.
    """
    vendor = vendor or stats.vendor
    field_map = FIELD_MAPS[vendor]
    mapped: dict[str, RawValue] = {}

    for raw_name, canonical in field_map.items():
        mapped[canonical] = normalize(stats.get(raw_name))

    if vendor is VendorKind.SECONDARY:
        mapped["ps_trend"] = percent_change(
            mapped.get("price_to_sales"),
            normalize(stats.get("price_to_sales_previous")),
        )

    return mapped
