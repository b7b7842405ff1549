"""Yahoo Finance source: yfinance-backed series and financial statements.

One ``YahooSource`` serves one market flavour:

- ``None``: plain exchange symbols (AAPL, MSFT).
- ``"japan"``: Tokyo listings; bare codes get the ``.T`` suffix.
- ``"fx"``: currency pairs written ``EUR/USD``.
- ``"metals"``: metal codes (XAU, XAG, XPT, XPD) quoted in USD.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Mapping

import pandas as pd
import yfinance as yf

from tidyfetch.core.exceptions import UpstreamFault
from tidyfetch.core.models import SeriesKind

logger = logging.getLogger(__name__)

# Column order of SeriesKind.PRICES, matching the OHLCV strategy fields
_PRICE_COLUMNS = ["Open", "High", "Low", "Close", "Volume", "Adj Close"]

# Front-month futures stand in for spot metal quotes
_METAL_SYMBOLS: dict[str, str] = {
    "XAU": "GC=F",
    "XAG": "SI=F",
    "XPT": "PL=F",
    "XPD": "PA=F",
}

_STATEMENT_ATTRS: dict[str, dict[str, str]] = {
    "IS": {"A": "income_stmt", "Q": "quarterly_income_stmt"},
    "BS": {"A": "balance_sheet", "Q": "quarterly_balance_sheet"},
    "CF": {"A": "cashflow", "Q": "quarterly_cashflow"},
}


def to_yahoo_symbol(symbol: str, market: str | None) -> str:
    """Translate a caller symbol into Yahoo's notation for ``market``."""
    symbol = symbol.strip().upper()
    if market == "japan":
        return symbol if "." in symbol else f"{symbol}.T"
    if market == "fx":
        return symbol.replace("/", "") + "=X"
    if market == "metals":
        code = symbol.split("/")[0]
        return _METAL_SYMBOLS.get(code, f"{code}USD=X")
    return symbol


def _strip_tz(frame: pd.DataFrame | pd.Series) -> pd.DataFrame | pd.Series:
    """Drop timezone info so indices compare as plain dates."""
    index = pd.DatetimeIndex(frame.index)
    if index.tz is not None:
        index = index.tz_localize(None)
    frame = frame.copy()
    frame.index = index.normalize()
    return frame


class YahooSource:
    """Fetches Yahoo Finance data through yfinance.

    Parameters
    ----------
    market : str | None
        Symbol flavour, see module docstring.
    """

    def __init__(self, market: str | None = None) -> None:
        self._market = market

    def _ticker(self, symbol: str) -> yf.Ticker:
        return yf.Ticker(to_yahoo_symbol(symbol, self._market))

    def get_series(
        self,
        symbol: str,
        kind: SeriesKind,
        start: date,
        end: date,
    ) -> pd.DataFrame:
        """Fetch one series kind for ``symbol`` between ``start`` and ``end``."""
        ticker = self._ticker(symbol)
        logger.debug("yfinance %s %s %s..%s", kind, ticker.ticker, start, end)

        if kind in (SeriesKind.DIVIDENDS, SeriesKind.SPLITS):
            events = ticker.dividends if kind == SeriesKind.DIVIDENDS else ticker.splits
            if events is None or events.empty:
                return pd.DataFrame(columns=[kind.value])
            events = _strip_tz(events)
            mask = (events.index >= pd.Timestamp(start)) & (events.index <= pd.Timestamp(end))
            return events[mask].to_frame(name=kind.value)

        # history() treats ``end`` as exclusive
        raw = ticker.history(
            start=start.isoformat(),
            end=(end + timedelta(days=1)).isoformat(),
            auto_adjust=False,
            actions=False,
        )
        if raw is None or raw.empty:
            return pd.DataFrame()
        raw = _strip_tz(raw)

        if kind == SeriesKind.PRICES:
            missing = [c for c in _PRICE_COLUMNS if c not in raw.columns]
            if missing:
                raise UpstreamFault(
                    f"yfinance response for {symbol} lacks columns {missing}",
                    context={"symbol": symbol, "columns": list(raw.columns)},
                )
            return raw[_PRICE_COLUMNS]
        if kind == SeriesKind.CLOSE:
            return raw[["Close"]]
        raise UpstreamFault(
            f"Yahoo Finance does not serve {kind.value} series",
            context={"symbol": symbol, "kind": kind.value},
        )

    def get_financials(self, symbol: str) -> Mapping[str, Mapping[str, pd.DataFrame]]:
        """Fetch the six statement tables (annual/quarterly IS, BS, CF)."""
        ticker = self._ticker(symbol)
        statements: dict[str, dict[str, pd.DataFrame]] = {}
        for stmt, periods in _STATEMENT_ATTRS.items():
            statements[stmt] = {}
            for period, attr in periods.items():
                frame = getattr(ticker, attr)
                statements[stmt][period] = frame if frame is not None else pd.DataFrame()
        return statements
