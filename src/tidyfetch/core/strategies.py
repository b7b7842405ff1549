"""Static category -> retrieval strategy table."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from tidyfetch.core.models import (
    AdapterKind,
    Category,
    SeriesKind,
    StrategyDescriptor,
    Upstream,
)
from tidyfetch.core.quote_fields import QUOTE_COLUMNS

OHLCV_FIELDS = ("open", "high", "low", "close", "volume", "adjusted")
FINANCIALS_COLUMNS = ("type", "annual", "quarter")
STATEMENT_COLUMNS = ("group", "category", "date", "value")
KEY_RATIOS_COLUMNS = ("section", "data")
REPORT_COLUMNS = ("sub_section", "group", "category", "date", "value")

# Oanda-style FX/metal feeds only serve the trailing 180 days
FX_WINDOW_DAYS = 180


def _series(
    category: Category,
    source: Upstream,
    display_name: str,
    kind: SeriesKind,
    fields: tuple[str, ...],
    **extra,
) -> StrategyDescriptor:
    return StrategyDescriptor(
        category=category,
        adapter=AdapterKind.TIME_SERIES,
        source=source,
        display_name=display_name,
        series=kind,
        fields=fields,
        columns=("date", *fields),
        **extra,
    )


_DESCRIPTORS: tuple[StrategyDescriptor, ...] = (
    _series(
        Category.STOCK_PRICES, Upstream.YAHOO, "Yahoo Finance",
        SeriesKind.PRICES, OHLCV_FIELDS,
    ),
    _series(
        Category.STOCK_PRICES_JAPAN, Upstream.YAHOO_JAPAN, "Yahoo Finance Japan",
        SeriesKind.PRICES, OHLCV_FIELDS,
    ),
    StrategyDescriptor(
        category=Category.FINANCIALS,
        adapter=AdapterKind.FUNDAMENTALS,
        source=Upstream.YAHOO,
        display_name="Yahoo Finance",
        fields=STATEMENT_COLUMNS,
        columns=FINANCIALS_COLUMNS,
    ),
    StrategyDescriptor(
        category=Category.KEY_STATS,
        adapter=AdapterKind.QUOTE_SNAPSHOT,
        source=Upstream.YAHOO_QUOTES,
        display_name="Yahoo Finance quotes",
        fields=QUOTE_COLUMNS,
        columns=QUOTE_COLUMNS,
    ),
    StrategyDescriptor(
        category=Category.KEY_RATIOS,
        adapter=AdapterKind.RATIO_REPORT,
        source=Upstream.MORNINGSTAR,
        display_name="Morningstar",
        fields=REPORT_COLUMNS,
        columns=KEY_RATIOS_COLUMNS,
    ),
    _series(
        Category.DIVIDENDS, Upstream.YAHOO, "Yahoo Finance",
        SeriesKind.DIVIDENDS, ("dividends",),
    ),
    _series(
        Category.SPLITS, Upstream.YAHOO, "Yahoo Finance",
        SeriesKind.SPLITS, ("splits",),
    ),
    _series(
        Category.ECONOMIC_DATA, Upstream.FRED, "FRED",
        SeriesKind.OBSERVATIONS, ("price",),
        filter_window=True,
    ),
    _series(
        Category.EXCHANGE_RATES, Upstream.YAHOO_FX, "Exchange rate feed",
        SeriesKind.CLOSE, ("exchange.rate",),
        window_limit_days=FX_WINDOW_DAYS,
    ),
    _series(
        Category.METAL_PRICES, Upstream.YAHOO_METALS, "Metal price feed",
        SeriesKind.CLOSE, ("price",),
        window_limit_days=FX_WINDOW_DAYS,
    ),
    StrategyDescriptor(
        category=Category.QUANDL,
        adapter=AdapterKind.MARKETPLACE_DATASET,
        source=Upstream.NASDAQ_DATA_LINK,
        display_name="Nasdaq Data Link",
    ),
    StrategyDescriptor(
        category=Category.QUANDL_DATATABLE,
        adapter=AdapterKind.MARKETPLACE_DATATABLE,
        source=Upstream.NASDAQ_DATA_LINK,
        display_name="Nasdaq Data Link",
    ),
)

STRATEGY_TABLE: Mapping[Category, StrategyDescriptor] = MappingProxyType(
    {d.category: d for d in _DESCRIPTORS}
)

if set(STRATEGY_TABLE) != set(Category):
    missing = sorted(set(Category) - set(STRATEGY_TABLE))
    raise RuntimeError(f"Strategy table is missing categories: {missing}")


def lookup(category: Category) -> StrategyDescriptor:
    """Return the strategy for a resolved category."""
    return STRATEGY_TABLE[category]
