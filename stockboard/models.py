"""
Pydantic models for the stockboard extractor.

Typed data contracts for vendor statistics, merged metrics, tracked stock
records and portfolio lots.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

# Placeholder stored in a record metric until a value is entered or fetched.
UNSET = "Enter Data"

RawValue = str | float | None


class VendorKind(str, Enum):
    """The two statistics vendors the extractor scrapes."""

    PRIMARY = "groww"
    SECONDARY = "yahoo"

    @property
    def display_name(self) -> str:
        return VENDOR_DISPLAY_NAMES[self]


VENDOR_DISPLAY_NAMES = {
    VendorKind.PRIMARY: "Groww",
    VendorKind.SECONDARY: "Yahoo Finance",
}

PRIMARY_FIELDS = (
    "market_cap",
    "roe",
    "pe",
    "eps",
    "pb_ratio",
    "dividend_yield",
    "industry_pe",
    "book_value",
    "debt_to_equity",
    "face_value",
    "current_price",
    "price_change",
    "price_change_percent",
    "today_low",
    "today_high",
    "week_52_low",
    "week_52_high",
    "open",
    "prev_close",
    "volume",
    "total_traded_value",
    "upper_circuit",
    "lower_circuit",
    "promoter_holding",
)

SECONDARY_FIELDS = (
    "beta",
    "return_on_assets",
    "return_on_equity",
    "ebitda",
    "ebitda_previous",
    "price_to_sales",
    "price_to_sales_previous",
    "trailing_pe",
    "forward_pe",
    "price_to_book",
    "current_ratio",
    "debt_to_equity",
    "dividend_yield",
    "held_by_insiders",
    "market_cap",
)

VENDOR_FIELDS = {
    VendorKind.PRIMARY: PRIMARY_FIELDS,
    VendorKind.SECONDARY: SECONDARY_FIELDS,
}

RECORD_METRIC_FIELDS = (
    "current_price",
    "market_cap",
    "sector",
    "industry",
    "liquidity",
    "quick_ratio",
    "debt_to_equity",
    "roe",
    "investor_growth_ratio",
    "roa",
    "ebitda_current",
    "ebitda_previous",
    "dividend_yield",
    "pe_ratio",
    "forward_pe",
    "industry_pe",
    "price_to_book",
    "price_to_sales",
    "ps_trend",
    "beta",
    "promoter_holdings",
)


class VendorStats(BaseModel):
    """Raw per-fetch statistics scraped from one vendor page."""

    vendor: VendorKind
    data: dict[str, RawValue] = Field(default_factory=dict)

    @classmethod
    def empty(cls, vendor: VendorKind) -> VendorStats:
        return cls(vendor=vendor, data={name: None for name in VENDOR_FIELDS[vendor]})

    def get(self, name: str) -> RawValue:
        return self.data.get(name)

    def is_empty(self) -> bool:
        return all(value is None for value in self.data.values())

    def found(self) -> list[str]:
        """Names of the fields that produced a value."""
        return [name for name, value in self.data.items() if value is not None]


class PromoterHolding(BaseModel):
    """Promoter holding percentage with its provenance."""

    value: float
    source: Literal["extracted", "assumed-zero"]


class MergedMetrics(BaseModel):
    """Canonical metrics after applying the field-ownership table."""

    values: dict[str, RawValue]
    promoter: PromoterHolding | None = None
    contributors: list[VendorKind] = Field(default_factory=list)

    def non_null(self) -> dict[str, float | str]:
        return {k: v for k, v in self.values.items() if v is not None}


class StockRecord(BaseModel):
    """One tracked security in a user's watchlist."""

    record_id: str
    symbol: str
    name: str = ""
    metrics: dict[str, float | str] = Field(
        default_factory=lambda: {name: UNSET for name in RECORD_METRIC_FIELDS}
    )
    is_manual_entry: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def apply_metrics(self, values: dict[str, RawValue]) -> list[str]:
        """Overwrite metrics with every non-null value; returns updated keys."""
        updated = []
        for key, value in values.items():
            if value is None:
                continue
            self.metrics[key] = value
            updated.append(key)
        if updated:
            self.updated_at = datetime.now()
        return updated

    def is_set(self, key: str) -> bool:
        return self.metrics.get(key, UNSET) != UNSET


class PortfolioLot(BaseModel):
    """A buy (and optional sell) transaction in the personal ledger."""

    lot_id: str
    name: str
    quantity: float = Field(gt=0)
    buy_price: float = Field(ge=0)
    sell_price: float | None = None
    buy_brokerage: float = 0.0
    buy_tax_total: float = 0.0
    sell_brokerage: float = 0.0
    sell_tax_total: float = 0.0
    date_added: datetime = Field(default_factory=datetime.now)

    @property
    def is_closed(self) -> bool:
        return self.sell_price is not None

    @property
    def total_cost(self) -> float:
        return self.quantity * self.buy_price + self.buy_brokerage + self.buy_tax_total

    @property
    def total_revenue(self) -> float | None:
        if self.sell_price is None:
            return None
        return (
            self.quantity * self.sell_price
            - self.sell_brokerage
            - self.sell_tax_total
        )

    @property
    def profit_loss(self) -> float | None:
        revenue = self.total_revenue
        if revenue is None:
            return None
        return revenue - self.total_cost


class WriteResult(BaseModel):
    """Outcome of a write against the record-store collaborator."""

    success: bool
    error: str | None = None
    offline: bool = False


class FetchReport(BaseModel):
    """What one orchestrated fetch did to a record."""

    symbol: str
    status: Literal["updated", "no_data", "record_missing", "error"]
    updated_fields: list[str] = Field(default_factory=list)
    contributors: list[VendorKind] = Field(default_factory=list)
    message: str = ""
