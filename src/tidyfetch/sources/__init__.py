"""Upstream collaborators: the network side of every retrieval.

Built-in implementations:

- ``YahooSource``: prices, dividends, splits, FX/metal closes and financial
  statements through yfinance.
- ``FredSource``: FRED economic series (CSV export).
- ``MorningstarSource``: key-ratio CSV export.
- ``YahooQuoteSource``: tag-driven quote CSV.
- ``NasdaqDataLinkSource``: marketplace datasets and datatables.
- ``HttpFetcher``: the shared rate-limited, retrying httpx client.
"""

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

__all__ = [
    # Protocols
    "SeriesSource",
    "FundamentalsSource",
    "ReportSource",
    "QuoteSource",
    "MarketplaceSource",
    "SourceBundle",
    # Implementations
    "HttpFetcher",
    "YahooSource",
    "FredSource",
    "MorningstarSource",
    "YahooQuoteSource",
    "NasdaqDataLinkSource",
    # Helpers
    "parse_fred_csv",
    "to_yahoo_symbol",
    # Credentials
    "set_api_key",
    "get_api_key",
    "clear_api_key",
]
