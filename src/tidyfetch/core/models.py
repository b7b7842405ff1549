"""Data models: the system's type contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, field_validator

from tidyfetch.core.exceptions import RetrievalError

# --- Type Aliases ---

Symbol = str
Options = dict[str, Any]

# --- Enumerations ---


class Category(StrEnum):
    """Kinds of data a caller can request, in discovery order."""

    STOCK_PRICES = "stock.prices"
    STOCK_PRICES_JAPAN = "stock.prices.japan"
    FINANCIALS = "financials"
    KEY_STATS = "key.stats"
    KEY_RATIOS = "key.ratios"
    DIVIDENDS = "dividends"
    SPLITS = "splits"
    ECONOMIC_DATA = "economic.data"
    EXCHANGE_RATES = "exchange.rates"
    METAL_PRICES = "metal.prices"
    QUANDL = "quandl"
    QUANDL_DATATABLE = "quandl.datatable"


class AdapterKind(StrEnum):
    """Retrieval strategy families, one adapter each."""

    TIME_SERIES = "time_series"
    FUNDAMENTALS = "fundamentals"
    RATIO_REPORT = "ratio_report"
    QUOTE_SNAPSHOT = "quote_snapshot"
    MARKETPLACE_DATASET = "marketplace_dataset"
    MARKETPLACE_DATATABLE = "marketplace_datatable"


class Upstream(StrEnum):
    """Upstream source identifiers."""

    YAHOO = "yahoo"
    YAHOO_JAPAN = "yahoo_japan"
    YAHOO_FX = "yahoo_fx"
    YAHOO_METALS = "yahoo_metals"
    YAHOO_QUOTES = "yahoo_quotes"
    FRED = "fred"
    MORNINGSTAR = "morningstar"
    NASDAQ_DATA_LINK = "nasdaq_data_link"


class SeriesKind(StrEnum):
    """What a time-series source is asked for."""

    PRICES = "prices"
    DIVIDENDS = "dividends"
    SPLITS = "splits"
    CLOSE = "close"
    OBSERVATIONS = "observations"


class FieldType(StrEnum):
    """Coercion rules for quote-snapshot fields."""

    NUMERIC = "numeric"
    PERCENT = "percent"
    DATE = "date"
    CURRENCY = "currency"
    STRING = "string"


# --- Strategy Models ---


class StrategyDescriptor(BaseModel):
    """How one category is retrieved and what its tidy table looks like."""

    model_config = ConfigDict(frozen=True)

    category: Category
    adapter: AdapterKind
    source: Upstream
    display_name: str
    series: SeriesKind | None = None
    fields: tuple[str, ...] = ()
    columns: tuple[str, ...] | None = None
    # Overrides SeriesConfig.default_lookback_years when set
    lookback_years: int | None = None
    window_limit_days: int | None = None
    filter_window: bool = False

    @field_validator("window_limit_days")
    @classmethod
    def limit_positive(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("window_limit_days must be >= 1")
        return v

    @field_validator("lookback_years")
    @classmethod
    def lookback_positive(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("lookback_years must be >= 1")
        return v


class QuoteField(BaseModel):
    """One requested field of the real-time quote endpoint."""

    model_config = ConfigDict(frozen=True)

    tag: str
    description: str
    name: str
    kind: FieldType


# --- Request / Result Models ---


@dataclass(frozen=True)
class RetrievalRequest:
    """One symbol/category retrieval. Built per call, never retained."""

    symbol: Any
    category: Category
    options: Options = field(default_factory=dict)
    batch_mode: bool = False
    complete_cases: bool = True

    @property
    def will_drop(self) -> bool:
        """True when a failure will be excised from the batch output."""
        return self.batch_mode and self.complete_cases


@dataclass(frozen=True)
class Success:
    """A tidy table, plus any non-fatal notices raised while building it."""

    table: pd.DataFrame
    notices: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Sentinel for a symbol/category pair that produced no data."""

    symbol: str
    category: str
    error: RetrievalError

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return str(self.error)

    def __repr__(self) -> str:
        return (
            f"Failure(symbol={self.symbol!r}, category={self.category!r}, "
            f"error={type(self.error).__name__})"
        )


RetrievalResult = Union[Success, Failure]
