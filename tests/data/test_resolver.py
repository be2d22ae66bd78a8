"""Tests for symbol resolution to Groww slugs and Yahoo Finance tickers."""

import json
from unittest.mock import AsyncMock

import pytest

from stockboard.config import DEFAULT_TICKER_MAP_PATH
from stockboard.data.resolver import (
    FALLBACK_TICKER_MAP,
    SymbolResolver,
    is_slug,
    load_ticker_map_file,
    to_primary_slug,
)
from stockboard.exceptions import TickerMapLoadError
from stockboard.models import VendorKind


@pytest.fixture
def resolver():
    loader = AsyncMock(return_value={"TCS": "TCS.NS", "TATA": "TATAMOTORS.NS"})
    return SymbolResolver(loader)


class TestPrimarySlug:
    def test_known_ticker(self):
        assert to_primary_slug("TCS") == "tata-consultancy-services-ltd"
        assert to_primary_slug(" infy ") == "infosys-ltd"

    def test_synthesized_slug_for_unknown_name(self):
        assert to_primary_slug("Acme Widgets") == "acme-widgets-ltd"

    @pytest.mark.parametrize(
        "slug",
        ["tata-consultancy-services-ltd", "state-bank-of-india", "acme-widgets-ltd"],
    )
    def test_slug_is_returned_unchanged(self, slug):
        assert to_primary_slug(slug) == slug
        assert to_primary_slug(to_primary_slug(slug)) == slug

    def test_is_slug(self):
        assert is_slug("itc-ltd")
        assert is_slug("state-bank-of-india")
        assert not is_slug("ITC")
        assert not is_slug("bajaj-auto")


class TestSecondarySymbol:
    @pytest.mark.asyncio
    async def test_mapped_ticker(self, resolver):
        assert await resolver.to_secondary_symbol("tcs") == "TCS.NS"

    @pytest.mark.asyncio
    async def test_known_slug_reverse_maps_to_ticker(self, resolver):
        assert await resolver.to_secondary_symbol("tata-consultancy-services-ltd") == "TCS.NS"

    @pytest.mark.asyncio
    async def test_first_token_lookup(self, resolver):
        assert await resolver.to_secondary_symbol("Tata Motors") == "TATAMOTORS.NS"

    @pytest.mark.asyncio
    async def test_default_suffix(self, resolver):
        assert await resolver.to_secondary_symbol("zomato") == "ZOMATO.NS"
        assert await resolver.to_secondary_symbol("Acme Widgets") == "ACMEWIDGETS.NS"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ticker", ["TCS.NS", "RELIANCE.BO", "AAPL.L"])
    async def test_suffixed_ticker_is_returned_unchanged(self, resolver, ticker):
        assert await resolver.to_secondary_symbol(ticker) == ticker

    @pytest.mark.asyncio
    async def test_custom_market_suffix(self):
        resolver = SymbolResolver(AsyncMock(return_value={}), market_suffix=".BO")
        assert await resolver.to_secondary_symbol("XYZ") == "XYZ.BO"


class TestTickerMapLoading:
    @pytest.mark.asyncio
    async def test_map_is_loaded_once(self, resolver):
        await resolver.to_secondary_symbol("TCS")
        await resolver.to_secondary_symbol("INFY")
        assert resolver._loader.await_count == 1

    @pytest.mark.asyncio
    async def test_reset_reloads(self, resolver):
        await resolver.ticker_map()
        resolver.reset()
        await resolver.ticker_map()
        assert resolver._loader.await_count == 2

    @pytest.mark.asyncio
    async def test_load_failure_uses_fallback_entry(self):
        loader = AsyncMock(side_effect=TickerMapLoadError("missing"))
        resolver = SymbolResolver(loader)

        assert await resolver.ticker_map() == FALLBACK_TICKER_MAP
        assert await resolver.to_secondary_symbol("itc") == "ITC.NS"
        assert await resolver.to_secondary_symbol("wipro") == "WIPRO.NS"

    @pytest.mark.asyncio
    async def test_file_loader_uppercases_keys(self, tmp_path):
        path = tmp_path / "map.json"
        path.write_text(json.dumps({"tcs": "TCS.NS"}), encoding="utf-8")

        assert await load_ticker_map_file(path)() == {"TCS": "TCS.NS"}

    @pytest.mark.asyncio
    async def test_file_loader_errors(self, tmp_path):
        with pytest.raises(TickerMapLoadError):
            await load_ticker_map_file(tmp_path / "missing.json")()

        bad = tmp_path / "bad.json"
        bad.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(TickerMapLoadError):
            await load_ticker_map_file(bad)()

        broken = tmp_path / "broken.json"
        broken.write_text("{not json", encoding="utf-8")
        with pytest.raises(TickerMapLoadError):
            await load_ticker_map_file(broken)()

    @pytest.mark.asyncio
    async def test_packaged_map(self):
        mapping = await load_ticker_map_file(DEFAULT_TICKER_MAP_PATH)()
        assert mapping["TCS"] == "TCS.NS"
        assert mapping["BAJAJ"] == "BAJAJ-AUTO.NS"


class TestResolveToVendorId:
    @pytest.mark.asyncio
    async def test_dispatches_by_vendor(self, resolver):
        assert (
            await resolver.resolve_to_vendor_id(VendorKind.PRIMARY, "TCS")
            == "tata-consultancy-services-ltd"
        )
        assert await resolver.resolve_to_vendor_id(VendorKind.SECONDARY, "TCS") == "TCS.NS"
