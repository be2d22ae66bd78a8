"""
Metric ratings for the watchlist.

Each rated metric maps to Low / Avg / Good by threshold. A record's
performance is the number of metrics rated Good out of the number of
rated metrics in the rule table.
"""

from __future__ import annotations

from typing import Literal

from stockboard.data.normalize import normalize
from stockboard.models import StockRecord

Rating = Literal["Low", "Avg", "Good"]

# (upper bound, rating) pairs checked in order; None means unbounded.
# An upper bound is exclusive unless the metric is listed in INCLUSIVE_UPPER.
RULES: dict[str, list[tuple[float | None, Rating]]] = {
    "liquidity": [(1, "Low"), (2, "Avg"), (None, "Good")],
    "quick_ratio": [(1, "Low"), (None, "Good")],
    "debt_to_equity": [(1, "Low"), (None, "Good")],
    "roe": [(15, "Low"), (20, "Avg"), (None, "Good")],
    "roa": [(5, "Low"), (None, "Good")],
    "dividend_yield": [(1, "Low"), (None, "Good")],
    "price_to_book": [(1, "Low"), (3, "Avg"), (None, "Good")],
    "ps_trend": [(2, "Low"), (None, "Good")],
    "beta": [(1, "Low"), (None, "Good")],
    "promoter_holdings": [(40, "Low"), (70, "Avg"), (None, "Good")],
}

# Avg includes its upper edge: P/B of 3 and promoter holding of 70 are Avg.
INCLUSIVE_UPPER = {("price_to_book", 3), ("promoter_holdings", 70)}


def rate_metric(field: str, value: object) -> Rating | None:
    """
    Rate one metric value.

    Returns None for metrics without a rule and for values that are
    missing, non-numeric or negative.
    """
    rules = RULES.get(field)
    if rules is None:
        return None

    number = normalize(value) if isinstance(value, str) else value
    if isinstance(number, bool) or not isinstance(number, (int, float)):
        return None
    if number < 0:
        return None

    for upper, rating in rules:
        if upper is None:
            return rating
        if number < upper or (number == upper and (field, upper) in INCLUSIVE_UPPER):
            return rating
    return None


def rate_record(record: StockRecord) -> dict[str, Rating | None]:
    return {field: rate_metric(field, record.metrics.get(field)) for field in RULES}


def performance(record: StockRecord) -> tuple[int, int]:
    """(good, total) where total is the number of rated metrics."""
    ratings = rate_record(record)
    good = sum(1 for rating in ratings.values() if rating == "Good")
    return good, len(RULES)
