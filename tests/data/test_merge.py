"""Tests for the field-ownership merge and the promoter fallback."""

import pytest

from stockboard.data.merge import (
    CANONICAL_FIELDS,
    FIELD_OWNERS,
    apply_promoter_fallback,
    merge,
    owned_fields,
)
from stockboard.models import VendorKind


def _full_partial(value: float) -> dict:
    return {name: value for name in CANONICAL_FIELDS}


class TestFieldOwners:
    def test_every_field_has_exactly_one_owner(self):
        primary = set(owned_fields(VendorKind.PRIMARY))
        secondary = set(owned_fields(VendorKind.SECONDARY))
        assert primary.isdisjoint(secondary)
        assert primary | secondary == set(CANONICAL_FIELDS)

    @pytest.mark.parametrize(
        "field", ["beta", "roa", "ebitda_current", "ebitda_previous", "ps_trend"]
    )
    def test_secondary_owned(self, field):
        assert FIELD_OWNERS[field] is VendorKind.SECONDARY

    @pytest.mark.parametrize(
        "field",
        ["current_price", "day_low", "pe_ratio", "price_to_book", "dividend_yield",
         "debt_to_equity", "roe", "promoter_holdings"],
    )
    def test_primary_owned(self, field):
        assert FIELD_OWNERS[field] is VendorKind.PRIMARY


class TestMerge:
    def test_skeleton_is_all_null(self):
        merged = merge({}, {})
        assert set(merged.values) == set(CANONICAL_FIELDS)
        assert all(v is None for v in merged.values.values())
        assert merged.contributors == []
        assert merged.promoter is None

    def test_owner_value_wins(self):
        merged = merge(_full_partial(1.0), _full_partial(2.0))
        for name, owner in FIELD_OWNERS.items():
            expected = 1.0 if owner is VendorKind.PRIMARY else 2.0
            assert merged.values[name] == expected

    @pytest.mark.parametrize("field", list(FIELD_OWNERS))
    def test_non_owner_value_does_not_affect_result(self, field):
        """Two inputs differing only in the non-owner's value merge identically."""
        owner = FIELD_OWNERS[field]
        base_primary = _full_partial(1.0)
        base_secondary = _full_partial(2.0)

        if owner is VendorKind.PRIMARY:
            other_secondary = dict(base_secondary, **{field: 999.0})
            a = merge(base_primary, base_secondary)
            b = merge(base_primary, other_secondary)
        else:
            other_primary = dict(base_primary, **{field: 999.0})
            a = merge(base_primary, base_secondary)
            b = merge(other_primary, base_secondary)

        assert a.values == b.values

    def test_no_cross_vendor_fallback_for_missing_owner_value(self):
        merged = merge({"pe_ratio": None}, {"pe_ratio": 30.1})
        assert merged.values["pe_ratio"] is None

    def test_contributors_track_owned_non_null_fields(self):
        merged = merge({"roe": 46.5}, {"roe": 51.2})
        assert merged.contributors == [VendorKind.PRIMARY]

        merged = merge({}, {"beta": 0.45})
        assert merged.contributors == [VendorKind.SECONDARY]

        merged = merge({"roe": 46.5}, {"beta": 0.45})
        assert merged.contributors == [VendorKind.PRIMARY, VendorKind.SECONDARY]

    def test_extracted_promoter_is_tagged(self):
        merged = merge({"promoter_holdings": 72.3}, {})
        assert merged.promoter.value == 72.3
        assert merged.promoter.source == "extracted"


class TestPromoterFallback:
    def test_missing_promoter_becomes_assumed_zero(self):
        merged = apply_promoter_fallback(merge({"roe": 46.5}, {}), primary_ok=True)
        assert merged.values["promoter_holdings"] == 0
        assert merged.promoter.source == "assumed-zero"

    def test_measured_zero_stays_extracted(self):
        merged = apply_promoter_fallback(
            merge({"promoter_holdings": 0.0}, {}), primary_ok=True
        )
        assert merged.values["promoter_holdings"] == 0
        assert merged.promoter.source == "extracted"

    def test_not_applied_when_primary_failed(self):
        merged = apply_promoter_fallback(merge({}, {"beta": 0.45}), primary_ok=False)
        assert merged.values["promoter_holdings"] is None
        assert merged.promoter is None
