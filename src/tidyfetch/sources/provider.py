"""Upstream source protocols: the transport boundary of tidyfetch.

Architecture
------------
Adapters own parameter shaping and response reshaping; sources own the
network call and nothing else:

    Dispatcher → Adapter → Source → raw response → Adapter → tidy table

- **SeriesSource** returns a date-indexed DataFrame in the provider's
  native column layout.
- **FundamentalsSource** returns the six wide statement tables.
- **ReportSource** returns the raw key-ratio report text.
- **QuoteSource** returns one raw CSV row of quote fields.
- **MarketplaceSource** returns provider tables as DataFrames.

Sources raise ``UpstreamFault`` (or let provider exceptions escape); the
adapter boundary turns either into a ``Failure``. Swapping a provider means
writing one source class; adapters and callers stay unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

import pandas as pd

from tidyfetch.core.models import SeriesKind, Upstream

if TYPE_CHECKING:
    from tidyfetch.core.config import TidyfetchConfig
    from tidyfetch.sources.http import HttpFetcher


@runtime_checkable
class SeriesSource(Protocol):
    """Date-indexed series provider.

    Returns
    -------
    pd.DataFrame
        Index: dates (DatetimeIndex or date objects). Columns: the
        provider's native fields for ``kind``, in the order the
        category's strategy declares them. Empty when the symbol is unknown.
    """

    def get_series(
        self,
        symbol: str,
        kind: SeriesKind,
        start: date,
        end: date,
    ) -> pd.DataFrame: ...


@runtime_checkable
class FundamentalsSource(Protocol):
    """Financial statement provider.

    Returns a mapping ``{"IS"|"BS"|"CF": {"A"|"Q": wide DataFrame}}`` where
    each DataFrame has line items as index and period end dates as columns.
    """

    def get_financials(self, symbol: str) -> Mapping[str, Mapping[str, pd.DataFrame]]: ...


@runtime_checkable
class ReportSource(Protocol):
    """Key-ratio report provider for one listing venue.

    Returns the report body, or None when the venue sent nothing back.
    """

    def get_report(self, symbol: str, venue: str, attempts: int) -> str | None: ...


@runtime_checkable
class QuoteSource(Protocol):
    """Tag-driven real-time quote provider.

    Returns the raw cells of one CSV row, in ``tags`` order.
    """

    def get_quote_row(self, symbol: str, tags: str) -> list[str]: ...


@runtime_checkable
class MarketplaceSource(Protocol):
    """Financial-dataset marketplace provider."""

    def get_dataset(self, code: str, **params: Any) -> pd.DataFrame: ...

    def get_datatable(
        self, code: str, paginate: bool = False, **params: Any
    ) -> pd.DataFrame: ...


@dataclass
class SourceBundle:
    """Every upstream collaborator one Retriever talks to.

    ``series`` is keyed by upstream identifier so each time-series strategy
    names the source it needs.
    """

    series: Mapping[Upstream, SeriesSource]
    fundamentals: FundamentalsSource
    reports: ReportSource
    quotes: QuoteSource
    marketplace: MarketplaceSource
    http: HttpFetcher | None = field(default=None, repr=False)

    def series_for(self, upstream: Upstream) -> SeriesSource:
        try:
            return self.series[upstream]
        except KeyError:
            raise KeyError(f"No series source registered for {upstream!r}") from None

    def close(self) -> None:
        if self.http is not None:
            self.http.close()

    @classmethod
    def from_config(cls, config: TidyfetchConfig) -> SourceBundle:
        """Build the default provider set."""
        from tidyfetch.sources.fred import FredSource
        from tidyfetch.sources.http import HttpFetcher
        from tidyfetch.sources.marketplace import NasdaqDataLinkSource
        from tidyfetch.sources.morningstar import MorningstarSource
        from tidyfetch.sources.quotes import YahooQuoteSource
        from tidyfetch.sources.yahoo import YahooSource

        http = HttpFetcher(config.http)
        yahoo = YahooSource(market=None)
        series: dict[Upstream, SeriesSource] = {
            Upstream.YAHOO: yahoo,
            Upstream.YAHOO_JAPAN: YahooSource(market="japan"),
            Upstream.YAHOO_FX: YahooSource(market="fx"),
            Upstream.YAHOO_METALS: YahooSource(market="metals"),
            Upstream.FRED: FredSource(http, config.fred),
        }
        return cls(
            series=series,
            fundamentals=yahoo,
            reports=MorningstarSource(http, config.ratios),
            quotes=YahooQuoteSource(http, config.quotes),
            marketplace=NasdaqDataLinkSource(http, config.marketplace),
            http=http,
        )
