"""Tests for the httpx-backed sources, symbol mapping and the credential store."""

from __future__ import annotations

from datetime import date

import httpx
import pandas as pd
import pytest
import respx

from tidyfetch.core.config import (
    FredConfig,
    HttpConfig,
    MarketplaceConfig,
    QuotesConfig,
    RatiosConfig,
    TidyfetchConfig,
)
from tidyfetch.core.exceptions import UpstreamFault
from tidyfetch.core.models import SeriesKind, Upstream
from tidyfetch.sources.credentials import clear_api_key, get_api_key, set_api_key
from tidyfetch.sources.fred import FredSource, parse_fred_csv
from tidyfetch.sources.http import HttpFetcher
from tidyfetch.sources.marketplace import NasdaqDataLinkSource
from tidyfetch.sources.morningstar import MorningstarSource
from tidyfetch.sources.provider import (
    FundamentalsSource,
    MarketplaceSource,
    QuoteSource,
    ReportSource,
    SeriesSource,
    SourceBundle,
)
from tidyfetch.sources.quotes import YahooQuoteSource
from tidyfetch.sources.yahoo import YahooSource, to_yahoo_symbol

BASE = "https://data.nasdaq.com/api/v3"


@pytest.fixture
def http(monkeypatch):
    monkeypatch.setattr("tidyfetch.sources.http.time.sleep", lambda s: None)
    with HttpFetcher(HttpConfig(request_delay=0, retry_delay=0)) as fetcher:
        yield fetcher


# --- Yahoo symbol mapping ---


class TestToYahooSymbol:
    @pytest.mark.parametrize(
        "symbol, market, expected",
        [
            ("aapl", None, "AAPL"),
            ("7203", "japan", "7203.T"),
            ("7203.T", "japan", "7203.T"),
            ("EUR/USD", "fx", "EURUSD=X"),
            ("XAU", "metals", "GC=F"),
            ("xag", "metals", "SI=F"),
            ("XRH", "metals", "XRHUSD=X"),
        ],
    )
    def test_mapping(self, symbol, market, expected):
        assert to_yahoo_symbol(symbol, market) == expected

    def test_yahoo_source_satisfies_protocols(self):
        source = YahooSource()
        assert isinstance(source, SeriesSource)
        assert isinstance(source, FundamentalsSource)


# --- FRED ---


class TestParseFredCsv:
    def test_parses_and_marks_missing(self):
        text = "DATE,GDP\n2016-01-01,18000.5\n2016-04-01,.\n2016-07-01,18300.0\n"
        frame = parse_fred_csv(text, "GDP")
        assert list(frame.columns) == ["GDP"]
        assert len(frame) == 3
        assert pd.isna(frame["GDP"].iloc[1])
        assert frame.index[0] == pd.Timestamp("2016-01-01")

    def test_wrong_layout_raises(self):
        with pytest.raises(UpstreamFault, match="Unexpected FRED layout"):
            parse_fred_csv("<html><body>Error</body></html>\n", "GDP")

    def test_unparseable_dates_raise(self):
        with pytest.raises(UpstreamFault, match="no parseable dates"):
            parse_fred_csv("a,b\nx,1\n", "GDP")


class TestFredSource:
    @respx.mock
    def test_sends_window_and_code(self, http):
        route = respx.get(FredConfig().base_url).mock(
            return_value=httpx.Response(200, text="DATE,CPIAUCSL\n2016-01-01,236.9\n")
        )
        source = FredSource(http)
        frame = source.get_series("cpiaucsl", SeriesKind.OBSERVATIONS, date(2016, 1, 1), date(2016, 12, 31))
        params = route.calls.last.request.url.params
        assert params["id"] == "CPIAUCSL"
        assert params["cosd"] == "2016-01-01"
        assert params["coed"] == "2016-12-31"
        assert frame["CPIAUCSL"].iloc[0] == pytest.approx(236.9)


# --- Morningstar ---


class TestMorningstarSource:
    @respx.mock
    def test_query_embeds_venue_and_symbol(self, http):
        route = respx.get(RatiosConfig().base_url).mock(
            return_value=httpx.Response(200, text="report body")
        )
        body = MorningstarSource(http).get_report("AAPL", "XNAS", attempts=2)
        params = route.calls.last.request.url.params
        assert body == "report body"
        assert params["t"] == "XNAS:AAPL"
        assert params["region"] == "usa"
        assert params["order"] == "asc"

    @respx.mock
    def test_empty_body_is_none(self, http):
        respx.get(RatiosConfig().base_url).mock(return_value=httpx.Response(200, text="  "))
        assert MorningstarSource(http).get_report("AAPL", "XNAS", attempts=1) is None

    @respx.mock
    def test_attempts_bound_transport_retries(self, http):
        route = respx.get(RatiosConfig().base_url).mock(side_effect=httpx.ConnectError("down"))
        with pytest.raises(UpstreamFault):
            MorningstarSource(http).get_report("AAPL", "XNYS", attempts=3)
        assert route.call_count == 3


# --- Quotes ---


class TestYahooQuoteSource:
    @respx.mock
    def test_returns_first_row(self, http):
        route = respx.get(QuotesConfig().base_url).mock(
            return_value=httpx.Response(200, text='1.5,"Apple Inc.",+1.25%\n')
        )
        row = YahooQuoteSource(http).get_quote_row("AAPL", "an")
        assert row == ["1.5", "Apple Inc.", "+1.25%"]
        params = route.calls.last.request.url.params
        assert params["s"] == "AAPL"
        assert params["f"] == "an"
        assert params["e"] == ".csv"

    @respx.mock
    def test_empty_response_raises(self, http):
        respx.get(QuotesConfig().base_url).mock(return_value=httpx.Response(200, text=""))
        with pytest.raises(UpstreamFault, match="Empty quote response"):
            YahooQuoteSource(http).get_quote_row("AAPL", "a")


# --- Nasdaq Data Link ---


def _datatable_page(rows, cursor=None) -> dict:
    return {
        "datatable": {
            "data": rows,
            "columns": [{"name": "ticker", "type": "String"}, {"name": "value", "type": "double"}],
        },
        "meta": {"next_cursor_id": cursor},
    }


class TestNasdaqDataLinkSource:
    @respx.mock
    def test_dataset(self, http):
        route = respx.get(f"{BASE}/datasets/WIKI/AAPL/data.json").mock(
            return_value=httpx.Response(
                200,
                json={
                    "dataset_data": {
                        "column_names": ["Date", "Close"],
                        "data": [["2016-01-04", 105.35], ["2016-01-05", 102.71]],
                    }
                },
            )
        )
        source = NasdaqDataLinkSource(http)
        frame = source.get_dataset("WIKI/AAPL", start_date=date(2016, 1, 1), order="asc")
        assert list(frame.columns) == ["Date", "Close"]
        assert len(frame) == 2
        params = route.calls.last.request.url.params
        assert params["start_date"] == "2016-01-01"
        assert "api_key" not in params

    @respx.mock
    def test_dataset_sends_api_key(self, http):
        route = respx.get(f"{BASE}/datasets/FRED/GDP/data.json").mock(
            return_value=httpx.Response(
                200, json={"dataset_data": {"column_names": ["Date"], "data": []}}
            )
        )
        set_api_key("k3y")
        NasdaqDataLinkSource(http).get_dataset("FRED/GDP")
        assert route.calls.last.request.url.params["api_key"] == "k3y"

    @respx.mock
    def test_malformed_dataset_raises(self, http):
        respx.get(f"{BASE}/datasets/WIKI/AAPL/data.json").mock(
            return_value=httpx.Response(200, json={"unexpected": True})
        )
        with pytest.raises(UpstreamFault, match="Unexpected dataset payload"):
            NasdaqDataLinkSource(http).get_dataset("WIKI/AAPL")

    @respx.mock
    def test_datatable_follows_cursor_when_paginating(self, http):
        route = respx.get(f"{BASE}/datatables/ZACKS/FC.json").mock(
            side_effect=[
                httpx.Response(200, json=_datatable_page([["AAPL", 1.0]], cursor="abc")),
                httpx.Response(200, json=_datatable_page([["MSFT", 2.0]])),
            ]
        )
        frame = NasdaqDataLinkSource(http).get_datatable("ZACKS/FC", paginate=True)
        assert list(frame["ticker"]) == ["AAPL", "MSFT"]
        assert route.calls[1].request.url.params["qopts.cursor_id"] == "abc"

    @respx.mock
    def test_datatable_stops_after_first_page(self, http):
        route = respx.get(f"{BASE}/datatables/ZACKS/FC.json").mock(
            return_value=httpx.Response(200, json=_datatable_page([["AAPL", 1.0]], cursor="abc"))
        )
        frame = NasdaqDataLinkSource(http).get_datatable("ZACKS/FC", ticker=["AAPL", "MSFT"])
        assert len(frame) == 1
        assert route.call_count == 1
        assert route.calls.last.request.url.params["ticker"] == "AAPL,MSFT"


# --- Credentials ---


class TestCredentials:
    def test_none_by_default(self):
        assert get_api_key() is None

    def test_config_key_used(self):
        assert get_api_key(MarketplaceConfig(api_key="cfg")) == "cfg"

    def test_explicit_key_wins(self):
        set_api_key("explicit")
        assert get_api_key(MarketplaceConfig(api_key="cfg")) == "explicit"

    def test_blank_key_unsets(self):
        set_api_key("explicit")
        set_api_key("   ")
        assert get_api_key() is None

    def test_clear(self):
        set_api_key("explicit")
        clear_api_key()
        assert get_api_key() is None


# --- SourceBundle ---


class TestSourceBundle:
    def test_from_config_builds_defaults(self):
        bundle = SourceBundle.from_config(TidyfetchConfig())
        try:
            assert isinstance(bundle.series_for(Upstream.FRED), FredSource)
            assert isinstance(bundle.series_for(Upstream.YAHOO_FX), YahooSource)
            assert isinstance(bundle.reports, ReportSource)
            assert isinstance(bundle.quotes, QuoteSource)
            assert isinstance(bundle.marketplace, MarketplaceSource)
        finally:
            bundle.close()

    def test_unknown_upstream_raises(self, sources):
        with pytest.raises(KeyError, match="No series source"):
            sources.series_for(Upstream.MORNINGSTAR)
