"""Shared pytest fixtures for tidyfetch.

Upstream providers are replaced by in-memory fakes that satisfy the source
protocols, so no test touches the network.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

import pandas as pd
import pytest

from tidyfetch.adapters.layouts import FULL, ReportLayout
from tidyfetch.core.config import TidyfetchConfig
from tidyfetch.core.models import FieldType, SeriesKind, Upstream
from tidyfetch.core.quote_fields import QUOTE_FIELDS
from tidyfetch.dispatch import Retriever
from tidyfetch.sources.credentials import clear_api_key
from tidyfetch.sources.provider import SourceBundle

TODAY = date(2024, 6, 28)
FISCAL_YEARS = list(range(2014, 2024))

NOT_FOUND_BODY = "We’re sorry. There is no available information in our database to display."

FINANCIALS_LABELS = [
    "Revenue USD Mil",
    "Gross Margin %",
    "Operating Income USD Mil",
    "Operating Margin %",
    "Net Income USD Mil",
    "Earnings Per Share USD",
    "Dividends USD",
    "Payout Ratio % *",
    "Shares Mil",
    "Book Value Per Share * USD",
    "Operating Cash Flow USD Mil",
    "Cap Spending USD Mil",
    "Free Cash Flow USD Mil",
    "Free Cash Flow Per Share * USD",
    "Working Capital USD Mil",
]


# --- Frame builders ---


def make_price_frame(dates: list[Any], start: float = 100.0, step: float = 1.0) -> pd.DataFrame:
    """Provider-layout OHLCV frame with a steadily rising close."""
    close = [start + step * i for i in range(len(dates))]
    return pd.DataFrame(
        {
            "Open": [c - 0.5 for c in close],
            "High": [c + 1.0 for c in close],
            "Low": [c - 1.0 for c in close],
            "Close": close,
            "Volume": [1_000_000 + 10 * i for i in range(len(dates))],
            "Adj Close": [c - 0.25 for c in close],
        },
        index=pd.DatetimeIndex(pd.to_datetime(dates)),
    )


def _report_cell(label: str, year_index: int, group: int) -> str:
    if label == "Revenue USD Mil":
        return f'"{10_000 + 1_000 * year_index:,}"'
    if label == "Shares Mil":
        return '"1,000"'
    if label == "Earnings Per Share USD":
        return f"{2 + year_index:.2f}"
    if label == "Book Value Per Share * USD":
        return "10.00"
    if label == "Operating Cash Flow USD Mil":
        return '"5,000"'
    if group == 20 and year_index == 0:
        return ""
    return f"{group}.5"


def build_report(layout: ReportLayout = FULL, years: list[int] | None = None) -> str:
    """A report body with exactly ``layout.line_count`` lines."""
    years = years or FISCAL_YEARS
    header = "," + ",".join(f"{y}-12" for y in years) + ",TTM"
    data = []
    for index, group in enumerate(layout.groups):
        label = FINANCIALS_LABELS[index] if index < len(FINANCIALS_LABELS) else f"Line {group}"
        cells = [_report_cell(label, i, group) for i in range(len(years))]
        data.append(",".join([label, *cells, "1"]))

    rows = iter([header, *data])
    lines = []
    for number in range(1, layout.line_count + 1):
        if number in layout.skip:
            lines.append(f"Growth Profitability and Financial Ratios {number}" if number <= 2 else "")
        else:
            lines.append(next(rows))
    return "\n".join(lines)


def build_quote_row(name: str = "Apple Inc.") -> list[str]:
    samples = {
        FieldType.NUMERIC: "1.5",
        FieldType.PERCENT: "+1.25%",
        FieldType.DATE: "6/27/2024",
        FieldType.CURRENCY: "812.5B",
        FieldType.STRING: "text",
    }
    row = [samples[f.kind] for f in QUOTE_FIELDS]
    row[[f.name for f in QUOTE_FIELDS].index("name")] = name
    return row


def build_statements(years: int = 2) -> dict[str, dict[str, pd.DataFrame]]:
    annual = pd.to_datetime([f"{2023 - i}-09-30" for i in range(years)])
    quarterly = pd.to_datetime(["2024-03-31", "2023-12-31"])

    def wide(items: list[str], columns: pd.DatetimeIndex) -> pd.DataFrame:
        return pd.DataFrame(
            [[float(100 * (r + 1) + c) for c in range(len(columns))] for r in range(len(items))],
            index=items,
            columns=columns,
        )

    items = {
        "IS": ["Total Revenue", "Net Income"],
        "BS": ["Total Assets", "Total Debt", "Cash"],
        "CF": ["Free Cash Flow"],
    }
    return {
        stmt: {"A": wide(lines, annual), "Q": wide(lines, quarterly)}
        for stmt, lines in items.items()
    }


# --- Fakes ---


class FakeSeriesSource:
    """SeriesSource keyed by (symbol, kind)."""

    def __init__(self, honour_window: bool = True):
        self.honour_window = honour_window
        self.data: dict[tuple[str, SeriesKind], pd.DataFrame] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, SeriesKind, date, date]] = []

    def add(self, symbol: str, kind: SeriesKind, frame: pd.DataFrame) -> None:
        self.data[(symbol, kind)] = frame

    def get_series(self, symbol, kind, start, end):
        self.calls.append((symbol, kind, start, end))
        if symbol in self.errors:
            raise self.errors[symbol]
        frame = self.data.get((symbol, kind))
        if frame is None:
            return pd.DataFrame()
        if not self.honour_window:
            return frame
        index = pd.DatetimeIndex(frame.index)
        return frame.loc[(index >= pd.Timestamp(start)) & (index <= pd.Timestamp(end))]


class FakeFundamentalsSource:
    def __init__(self):
        self.statements: dict[str, Any] = {}

    def get_financials(self, symbol):
        if symbol in self.statements:
            return self.statements[symbol]
        return {s: {"A": pd.DataFrame(), "Q": pd.DataFrame()} for s in ("IS", "BS", "CF")}


class FakeReportSource:
    """Answers the not-found placeholder unless a body is registered."""

    def __init__(self):
        self.bodies: dict[tuple[str, str], Any] = {}
        self.calls: list[tuple[str, str, int]] = []

    def get_report(self, symbol, venue, attempts):
        self.calls.append((symbol, venue, attempts))
        body = self.bodies.get((venue, symbol), NOT_FOUND_BODY)
        if isinstance(body, Exception):
            raise body
        return body


class FakeQuoteSource:
    def __init__(self):
        self.rows: dict[str, list[str]] = {}
        self.calls: list[tuple[str, str]] = []

    def get_quote_row(self, symbol, tags):
        self.calls.append((symbol, tags))
        return self.rows.get(symbol, ["N/A"] * len(QUOTE_FIELDS))


class FakeMarketplaceSource:
    def __init__(self):
        self.datasets: dict[str, pd.DataFrame] = {}
        self.datatables: dict[str, pd.DataFrame] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def get_dataset(self, code, **params):
        self.calls.append(("dataset", code, params))
        frame = self.datasets.get(code, pd.DataFrame())
        if params.get("order") == "desc":
            return frame.iloc[::-1].reset_index(drop=True)
        return frame

    def get_datatable(self, code, paginate=False, **params):
        self.calls.append(("datatable", code, {"paginate": paginate, **params}))
        return self.datatables.get(code, pd.DataFrame())


# --- Fixtures ---


@pytest.fixture(autouse=True)
def _reset_api_key():
    clear_api_key()
    yield
    clear_api_key()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def series_source() -> FakeSeriesSource:
    source = FakeSeriesSource()

    # New Year's Day is a market holiday
    daily = pd.bdate_range("2015-12-28", "2016-01-15").drop(pd.Timestamp("2016-01-01"))
    year_ends = pd.to_datetime([f"{y}-12-31" for y in range(2012, 2024)])
    dates = sorted(set(daily) | set(year_ends) | {pd.Timestamp("2024-06-27")})
    source.add("AAPL", SeriesKind.PRICES, make_price_frame(dates))
    source.add("MSFT", SeriesKind.PRICES, make_price_frame(dates, start=50.0))

    source.add(
        "AAPL",
        SeriesKind.DIVIDENDS,
        pd.DataFrame(
            {"dividends": [0.52, 0.57, 0.57]},
            index=pd.to_datetime(["2016-02-04", "2016-05-05", "2016-08-04"]),
        ),
    )
    source.add(
        "AAPL",
        SeriesKind.SPLITS,
        pd.DataFrame({"splits": [7.0, 4.0]}, index=pd.to_datetime(["2014-06-09", "2020-08-31"])),
    )

    fx_dates = pd.bdate_range(TODAY - timedelta(days=250), TODAY)
    source.add(
        "EUR/USD",
        SeriesKind.CLOSE,
        pd.DataFrame({"Close": [1.08 + i / 10_000 for i in range(len(fx_dates))]}, index=fx_dates),
    )
    source.add(
        "XAU",
        SeriesKind.CLOSE,
        pd.DataFrame({"Close": [2300.0 + i for i in range(len(fx_dates))]}, index=fx_dates),
    )
    return source


@pytest.fixture
def fred_source() -> FakeSeriesSource:
    source = FakeSeriesSource(honour_window=False)
    quarters = pd.date_range("2000-01-01", "2024-01-01", freq="QS")
    source.add(
        "GDP",
        SeriesKind.OBSERVATIONS,
        pd.DataFrame({"GDP": [10_000.0 + 50 * i for i in range(len(quarters))]}, index=quarters),
    )
    return source


@pytest.fixture
def fundamentals_source() -> FakeFundamentalsSource:
    source = FakeFundamentalsSource()
    source.statements["AAPL"] = build_statements()
    return source


@pytest.fixture
def report_source() -> FakeReportSource:
    source = FakeReportSource()
    source.bodies[("XNAS", "AAPL")] = build_report()
    return source


@pytest.fixture
def quote_source() -> FakeQuoteSource:
    source = FakeQuoteSource()
    source.rows["AAPL"] = build_quote_row()
    return source


@pytest.fixture
def marketplace_source() -> FakeMarketplaceSource:
    source = FakeMarketplaceSource()
    source.datasets["WIKI/AAPL"] = pd.DataFrame(
        {
            "Date": ["2016-01-04", "2016-01-05", "2016-01-06"],
            "Open": [102.61, 105.75, 100.56],
            "Adj. Close": [101.79, 99.24, 97.29],
            "Ex-Dividend": [0.0, 0.0, 0.0],
        }
    )
    source.datatables["ZACKS/FC"] = pd.DataFrame(
        {
            "ticker": ["AAPL", "AAPL"],
            "per_end_date": ["2015-09-30", "2016-09-30"],
            "tot_revnu": [233715.0, 215639.0],
        }
    )
    return source


@pytest.fixture
def sources(
    series_source,
    fred_source,
    fundamentals_source,
    report_source,
    quote_source,
    marketplace_source,
) -> SourceBundle:
    return SourceBundle(
        series={
            Upstream.YAHOO: series_source,
            Upstream.YAHOO_JAPAN: series_source,
            Upstream.YAHOO_FX: series_source,
            Upstream.YAHOO_METALS: series_source,
            Upstream.FRED: fred_source,
        },
        fundamentals=fundamentals_source,
        reports=report_source,
        quotes=quote_source,
        marketplace=marketplace_source,
    )


@pytest.fixture
def config() -> TidyfetchConfig:
    return TidyfetchConfig()


@pytest.fixture
def retriever(sources: SourceBundle, config: TidyfetchConfig) -> Retriever:
    return Retriever(config=config, sources=sources, today=lambda: TODAY)


@pytest.fixture
def report_body():
    """Factory for synthetic key-ratio report bodies."""
    return build_report


@pytest.fixture
def quote_row():
    return build_quote_row
