"""
Field-ownership merge of the two vendors' canonical partials.

Every canonical field has exactly one owning vendor. The merged value of a
field is the owner's value or None; the other vendor's value for that field
is discarded even when the owner produced nothing.
"""

from __future__ import annotations

from stockboard.models import MergedMetrics, PromoterHolding, RawValue, VendorKind

PROMOTER_FIELD = "promoter_holdings"

FIELD_OWNERS: dict[str, VendorKind] = {
    # Price block and day range
    "current_price": VendorKind.PRIMARY,
    "price_change": VendorKind.PRIMARY,
    "price_change_percent": VendorKind.PRIMARY,
    "day_low": VendorKind.PRIMARY,
    "day_high": VendorKind.PRIMARY,
    "week_52_low": VendorKind.PRIMARY,
    "week_52_high": VendorKind.PRIMARY,
    "open_price": VendorKind.PRIMARY,
    "prev_close": VendorKind.PRIMARY,
    "volume": VendorKind.PRIMARY,
    # Valuation, yield and balance-sheet ratios
    "market_cap": VendorKind.PRIMARY,
    "pe_ratio": VendorKind.PRIMARY,
    "industry_pe": VendorKind.PRIMARY,
    "price_to_book": VendorKind.PRIMARY,
    "dividend_yield": VendorKind.PRIMARY,
    "debt_to_equity": VendorKind.PRIMARY,
    "roe": VendorKind.PRIMARY,
    "eps": VendorKind.PRIMARY,
    "book_value": VendorKind.PRIMARY,
    "face_value": VendorKind.PRIMARY,
    PROMOTER_FIELD: VendorKind.PRIMARY,
    # Groww does not publish these
    "beta": VendorKind.SECONDARY,
    "roa": VendorKind.SECONDARY,
    "ebitda_current": VendorKind.SECONDARY,
    "ebitda_previous": VendorKind.SECONDARY,
    "ps_trend": VendorKind.SECONDARY,
    "price_to_sales": VendorKind.SECONDARY,
    "forward_pe": VendorKind.SECONDARY,
    "liquidity": VendorKind.SECONDARY,
}

CANONICAL_FIELDS = tuple(FIELD_OWNERS)


def owned_fields(vendor: VendorKind) -> list[str]:
    return [name for name, owner in FIELD_OWNERS.items() if owner is vendor]


def merge(
    primary_partial: dict[str, RawValue],
    secondary_partial: dict[str, RawValue],
) -> MergedMetrics:
    """
    Combine both vendors' canonical partials through FIELD_OWNERS.

    Args:
        primary_partial: map_to_canonical output for Groww
        secondary_partial: map_to_canonical output for Yahoo Finance

    Returns:
        MergedMetrics with every canonical key present. contributors lists
        the vendors that supplied at least one owned, non-null field.
    """
    partials = {
        VendorKind.PRIMARY: primary_partial,
        VendorKind.SECONDARY: secondary_partial,
    }
    values: dict[str, RawValue] = dict.fromkeys(CANONICAL_FIELDS)
    contributors: list[VendorKind] = []

    for name, owner in FIELD_OWNERS.items():
        value = partials[owner].get(name)
        if value is None:
            continue
        values[name] = value
        if owner not in contributors:
            contributors.append(owner)

    promoter = None
    if isinstance(values[PROMOTER_FIELD], float):
        promoter = PromoterHolding(value=values[PROMOTER_FIELD], source="extracted")

    contributors.sort(key=list(VendorKind).index)
    return MergedMetrics(values=values, promoter=promoter, contributors=contributors)


def apply_promoter_fallback(merged: MergedMetrics, primary_ok: bool) -> MergedMetrics:
    """
    Substitute 0 for a missing promoter holding when Groww returned a page.

    A page without any visible promoter figure is taken to mean a negligible
    holding. The substituted value is tagged "assumed-zero" so it can be told
    apart from a measured zero.
    """
    if not primary_ok or merged.values.get(PROMOTER_FIELD) is not None:
        return merged

    values = dict(merged.values)
    values[PROMOTER_FIELD] = 0.0
    return merged.model_copy(
        update={
            "values": values,
            "promoter": PromoterHolding(value=0.0, source="assumed-zero"),
        }
    )
