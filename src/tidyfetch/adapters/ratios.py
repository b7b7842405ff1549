"""Ratio-report adapter: ten-year key ratios plus derived valuation ratios."""

from __future__ import annotations

import io
import logging
import re
from datetime import date

import numpy as np
import pandas as pd

from tidyfetch.adapters.base import Adapter, Clock, plain_symbol
from tidyfetch.adapters.layouts import detect_layout
from tidyfetch.adapters.timeseries import TimeSeriesAdapter
from tidyfetch.core.config import TidyfetchConfig
from tidyfetch.core.exceptions import (
    NoDataAvailable,
    ReportUnavailable,
    RetrievalError,
    UpstreamFault,
)
from tidyfetch.core.models import (
    AdapterKind,
    Category,
    RetrievalRequest,
    StrategyDescriptor,
    Success,
)
from tidyfetch.core.strategies import lookup
from tidyfetch.sources.provider import SourceBundle
from tidyfetch.tables import nest

logger = logging.getLogger(__name__)

NOT_FOUND = re.compile(r"^\s*We.re sorry")
_PERIOD = re.compile(r"^(\d{4})-(\d{1,2})$")

VALUATION = "Valuation Ratios"
REVENUE = "Revenue USD Mil"
SHARES = "Shares Mil"
EPS = "Earnings Per Share USD"
BOOK_VALUE = "Book Value Per Share * USD"
OPERATING_CF = "Operating Cash Flow USD Mil"

_LONG_COLUMNS = ["section", "sub_section", "group", "category", "date", "value"]


def _period_start(label: str) -> date:
    match = _PERIOD.match(label.strip())
    if not match:
        raise UpstreamFault(
            f"Unrecognized report period column {label!r}",
            context={"column": label},
        )
    return date(int(match.group(1)), int(match.group(2)), 1)


def parse_report(body: str) -> pd.DataFrame:
    """Parse a raw report body into long rows.

    Returns columns ``section, sub_section, group, category, date, value``
    ordered by group, then by period.

    Raises:
        UpstreamFault: If the layout is unknown or the data lines do not
            match it.
    """
    lines = body.splitlines()
    layout = detect_layout(lines)
    data = layout.data_lines(lines)

    raw = pd.read_csv(
        io.StringIO("\n".join(data)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
    )
    raw = raw.rename(columns={raw.columns[0]: "category"})
    raw = raw.drop(columns=[c for c in raw.columns if str(c).strip().upper() == "TTM"])
    if len(raw) != len(layout.groups):
        raise UpstreamFault(
            f"Report has {len(raw)} data lines, layout {layout.name} expects {len(layout.groups)}",
            context={"layout": layout.name, "rows": len(raw)},
        )

    periods = {c: _period_start(str(c)) for c in raw.columns[1:]}
    wide = pd.concat([layout.labels(), raw.reset_index(drop=True)], axis=1)
    long = wide.melt(
        id_vars=["section", "sub_section", "group", "category"],
        var_name="date",
        value_name="value",
    )
    long["date"] = long["date"].map(periods)
    long["value"] = pd.to_numeric(
        long["value"].str.replace(",", "", regex=False).str.strip(),
        errors="coerce",
    )
    long = long.sort_values("group", kind="stable").reset_index(drop=True)
    return long[_LONG_COLUMNS]


def compute_valuation(key_ratios: pd.DataFrame, prices: pd.DataFrame) -> pd.DataFrame:
    """Derive price ratios from yearly closing prices and per-share figures.

    ``prices`` is a stock.prices table; the last adjusted price of each
    calendar year is matched against the fiscal year of the Financials rows.
    """
    annual = prices.loc[prices["adjusted"].notna(), ["date", "adjusted"]].copy()
    annual["year"] = [d.year for d in annual["date"]]
    annual = annual.sort_values("date").groupby("year", as_index=False).last()

    fin = key_ratios[key_ratios["section"] == "Financials"].copy()
    fin["year"] = [d.year for d in fin["date"]]
    wide = (
        fin.drop_duplicates(["year", "category"])
        .pivot(index="year", columns="category", values="value")
        .reindex(columns=[REVENUE, SHARES, EPS, BOOK_VALUE, OPERATING_CF])
    )
    per_share = pd.DataFrame(
        {
            EPS: wide[EPS],
            "Revenue Per Share USD": wide[REVENUE] / wide[SHARES],
            BOOK_VALUE: wide[BOOK_VALUE],
            "Cash Flow Per Share USD": wide[OPERATING_CF] / wide[SHARES],
        },
        index=wide.index,
    )
    merged = per_share.reset_index().merge(annual, on="year", how="left")

    ratios = {
        "Price to Earnings": EPS,
        "Price to Sales": "Revenue Per Share USD",
        "Price to Book": BOOK_VALUE,
        "Price to Cash Flow": "Cash Flow Per Share USD",
    }
    first_group = int(key_ratios["group"].max()) + 1 if len(key_ratios) else 1
    frames = []
    for offset, (name, per_share_column) in enumerate(ratios.items()):
        value = (merged["adjusted"] / merged[per_share_column]).replace([np.inf, -np.inf], np.nan)
        frames.append(
            pd.DataFrame(
                {
                    "section": VALUATION,
                    "sub_section": VALUATION,
                    "group": first_group + offset,
                    "category": name,
                    "date": [d if isinstance(d, date) else None for d in merged["date"]],
                    "value": value.to_numpy(dtype=float),
                }
            )
        )
    return pd.concat(frames, ignore_index=True)[_LONG_COLUMNS]


class RatioReportAdapter(Adapter):
    """Downloads the key-ratio report from the first venue that has it.

    Valuation ratios need a stock.prices fetch; it runs through a private
    time-series adapter without its own recovery boundary, so a price
    failure surfaces once, as this category's failure.
    """

    kind = AdapterKind.RATIO_REPORT

    def __init__(
        self,
        sources: SourceBundle,
        config: TidyfetchConfig | None = None,
        today: Clock = date.today,
    ) -> None:
        super().__init__(sources, config, today)
        self._prices = TimeSeriesAdapter(sources, self._config, today)

    def _retrieve(
        self,
        symbol: str,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> Success:
        ticker = plain_symbol(symbol)
        if not ticker:
            raise NoDataAvailable(f"{symbol!r} has no usable report symbol")
        key_ratios = parse_report(self._download(ticker))
        valuation = compute_valuation(key_ratios, self._annual_prices(ticker, request))
        long = pd.concat([key_ratios, valuation], ignore_index=True)
        return Success(table=nest(long, by="section", column="data"))

    def _download(self, ticker: str) -> str:
        cfg = self._config.ratios
        fault: RetrievalError | None = None
        placeholders = 0
        for venue in cfg.venues:
            try:
                body = self._sources.reports.get_report(ticker, venue, cfg.attempts)
            except UpstreamFault as e:
                logger.warning("Key ratios %s:%s failed: %s", venue, ticker, e)
                fault = e
                continue
            if body and body.strip() and not NOT_FOUND.match(body):
                logger.debug("Key ratios for %s found on %s", ticker, venue)
                return body
            placeholders += 1

        if fault is not None and placeholders == 0:
            raise fault
        raise ReportUnavailable(
            "Morningstar returned no data",
            context={"venues": list(cfg.venues)},
        )

    def _annual_prices(self, ticker: str, request: RetrievalRequest) -> pd.DataFrame:
        today = self._today()
        years = self._config.ratios.valuation_lookback_years
        try:
            start = today.replace(year=today.year - years)
        except ValueError:
            start = today.replace(year=today.year - years, day=28)
        prices_request = RetrievalRequest(
            symbol=ticker,
            category=Category.STOCK_PRICES,
            options={"from": start, "to": today},
            batch_mode=request.batch_mode,
            complete_cases=request.complete_cases,
        )
        try:
            return self._prices.retrieve(prices_request, lookup(Category.STOCK_PRICES)).table
        except RetrievalError as e:
            raise UpstreamFault(
                f"Could not retrieve prices for valuation ratios: {e}",
                context={"symbol": ticker},
            ) from e
