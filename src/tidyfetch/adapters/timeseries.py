"""Time-series adapter: prices, dividends, splits, FX, metals, economic data."""

from __future__ import annotations

import logging
import warnings
from datetime import timedelta

import pandas as pd

from tidyfetch.adapters.base import Adapter, resolve_window
from tidyfetch.core.exceptions import (
    NoDataAvailable,
    PartialWindowWarning,
    UpstreamFault,
    WindowOutOfRange,
)
from tidyfetch.core.models import (
    AdapterKind,
    RetrievalRequest,
    StrategyDescriptor,
    Success,
)

logger = logging.getLogger(__name__)


def normalize_series(raw: pd.DataFrame, fields: tuple[str, ...]) -> pd.DataFrame:
    """Turn a date-indexed provider frame into ``date`` + ``fields`` rows.

    Columns are renamed by position, so the provider must deliver exactly
    one column per declared field.

    Raises:
        NoDataAvailable: If the frame has no rows.
        UpstreamFault: If the column count does not match ``fields``.
    """
    if raw is None or raw.empty:
        raise NoDataAvailable("No data returned for this symbol")
    if raw.shape[1] != len(fields):
        raise UpstreamFault(
            f"Expected {len(fields)} series columns, got {raw.shape[1]}: {list(raw.columns)}",
            context={"expected": list(fields), "actual": [str(c) for c in raw.columns]},
        )

    table = raw.copy()
    table.columns = list(fields)
    dates = pd.to_datetime(pd.Index(table.index), errors="coerce")
    table.insert(0, "date", [d.date() if not pd.isna(d) else None for d in dates])
    table = table[table["date"].notna()]
    table = table.sort_values("date", kind="stable").reset_index(drop=True)
    for col in fields:
        table[col] = pd.to_numeric(table[col], errors="coerce")
    return table


class TimeSeriesAdapter(Adapter):
    """Fetches date-ranged series and reshapes them to row-per-date tables.

    Window rules:

    - Sources with a lookback ceiling (``window_limit_days``) are never
      called when the whole window predates the ceiling; a window that only
      starts before it yields the available tail plus a
      ``PartialWindowWarning``.
    - Sources that ignore the requested window (``filter_window``) are
      filtered after the fact.
    """

    kind = AdapterKind.TIME_SERIES

    def _retrieve(
        self,
        symbol: str,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> Success:
        today = self._today()
        lookback = request.options.get(
            "lookback_years",
            descriptor.lookback_years or self._config.series.default_lookback_years,
        )
        start, end = resolve_window(request.options, lookback, today)
        notices: list[str] = []

        limit = descriptor.window_limit_days
        if limit is not None:
            earliest = today - timedelta(days=limit)
            if end < earliest:
                raise WindowOutOfRange(
                    f"{descriptor.display_name} only provides historical data for "
                    f"the past {limit} days; requested window ends {end}",
                    context={"limit_days": limit, "earliest": earliest.isoformat()},
                )
            if start < earliest:
                notice = (
                    f"{descriptor.display_name} only provides historical data for "
                    f"the past {limit} days. Symbol: {symbol}"
                )
                warnings.warn(notice, PartialWindowWarning, stacklevel=4)
                notices.append(notice)
                start = earliest

        source = self._sources.series_for(descriptor.source)
        raw = source.get_series(symbol, descriptor.series, start, end)
        table = normalize_series(raw, descriptor.fields)

        if descriptor.filter_window:
            table = table[(table["date"] >= start) & (table["date"] <= end)]
            table = table.reset_index(drop=True)

        logger.debug("%s %s: %d rows", descriptor.category, symbol, len(table))
        return Success(table=table, notices=tuple(notices))
