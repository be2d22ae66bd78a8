"""Tests for the Groww page parser and promoter holding routine."""

import pytest

from stockboard.data.groww import (
    GrowwSource,
    extract_promoter_holding,
    parse_groww_page,
)
from stockboard.data.strategies import parse_html
from stockboard.models import PRIMARY_FIELDS, VendorKind

UNAVAILABLE_PAGE = (
    "<html><body><p>Sorry, this stock page is unavailable. "
    "Market Open. See Volume. Prev. Close, 52W High.</p></body></html>"
)


class TestParseGrowwPage:
    def test_fixture_fields(self, groww_html):
        stats = parse_groww_page(groww_html)

        assert stats.vendor is VendorKind.PRIMARY
        assert set(stats.data) == set(PRIMARY_FIELDS)
        assert stats.get("market_cap") == "12,50,000 Cr"
        assert stats.get("roe") == "46.5%"
        assert stats.get("pe") == "29.8"
        assert stats.get("eps") == "126.9"
        assert stats.get("pb_ratio") == "14.2"
        assert stats.get("dividend_yield") == "1.25%"
        assert stats.get("industry_pe") == "31.4"
        assert stats.get("book_value") == "243.6"
        assert stats.get("debt_to_equity") == "0.09"
        assert stats.get("face_value") == "1"
        assert stats.get("today_low") == "3,420.00"
        assert stats.get("today_high") == "3,470.50"
        assert stats.get("week_52_low") == "3,056.05"
        assert stats.get("week_52_high") == "4,592.25"
        assert stats.get("open") == "3,440.00"
        assert stats.get("prev_close") == "3,444.40"
        assert stats.get("volume") == "12,34,567"
        assert stats.get("total_traded_value") == "426.12 Cr"
        assert stats.get("upper_circuit") == "3,788.80"
        assert stats.get("lower_circuit") == "3,100.00"

    def test_price_block(self, groww_html):
        stats = parse_groww_page(groww_html)

        assert stats.get("current_price") == "3,456.70"
        assert stats.get("price_change") == "+12.30"
        assert stats.get("price_change_percent") == "0.36%"

    def test_promoter_ignores_script_and_other_holders(self, groww_html):
        assert parse_groww_page(groww_html).get("promoter_holding") == "72.30"

    def test_sentence_punctuation_is_not_a_value(self):
        """"Market Open." must not capture the full stop as the open price."""
        stats = parse_groww_page(UNAVAILABLE_PAGE)

        assert stats.get("open") is None
        assert stats.get("volume") is None
        assert stats.is_empty()

    def test_text_fallback_without_tables(self):
        html = (
            "<html><body><div>Market Cap ₹1,234.50 Cr</div>"
            "<div>Book Value 99.5 and Face Value 10</div></body></html>"
        )
        stats = parse_groww_page(html)

        assert stats.get("market_cap") == "1,234.50 Cr"
        assert stats.get("book_value") == "99.5"
        assert stats.get("face_value") == "10"

    @pytest.mark.parametrize("html", ["", "<html></html>", "not html at all", "<<<>>>"])
    def test_garbage_yields_empty_stats(self, html):
        assert parse_groww_page(html).is_empty()


class TestPromoterRoutine:
    def test_percent_element_after_promoter_label(self):
        soup = parse_html(
            "<div><div>Non Promoter (Public)</div><div>40.00%</div></div>"
            "<div><div>Promoters</div><div>60.00%</div></div>"
        )
        assert extract_promoter_holding(soup) == "60.00"

    def test_label_with_sibling_percent_in_same_parent(self):
        soup = parse_html(
            "<div><span>Promoters</span><span>Mar 2024</span><span>55.5%</span></div>"
        )
        assert extract_promoter_holding(soup) == "55.5"

    def test_generic_label_and_percent_in_short_text(self):
        soup = parse_html("<p>Promoter holding: 61.2%</p>")
        assert extract_promoter_holding(soup) == "61.2"

    def test_search_near_shareholding_heading(self):
        soup = parse_html(
            "<h3>Shareholding Pattern</h3><ul><li>Promoter group (Dec 2024)</li></ul>"
            "<p>Figures as of the latest filing</p><b>48.0%</b>"
        )
        assert extract_promoter_holding(soup) == "48.0"

    def test_full_text_regex(self):
        soup = parse_html(
            "<article>The Promoters hold about 35.5% of the company's shares, "
            "according to recent filings and disclosures made to the exchange.</article>"
        )
        assert extract_promoter_holding(soup) == "35.5"

    def test_nothing_found(self):
        soup = parse_html("<div><div>FII</div><div>20.0%</div></div>")
        assert extract_promoter_holding(soup) is None


class TestGrowwSource:
    @pytest.mark.asyncio
    async def test_build_url(self):
        source = GrowwSource("https://groww.in/stocks")
        assert await source.build_url("TCS") == (
            "https://groww.in/stocks/tata-consultancy-services-ltd"
        )

    def test_parse_delegates(self, groww_html):
        source = GrowwSource()
        assert source.display_name == "Groww"
        assert source.parse(groww_html).get("pe") == "29.8"
