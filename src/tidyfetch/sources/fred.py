"""FRED economic data source: direct CSV download via httpx.

The ``fredgraph.csv`` export is unauthenticated. It honours ``cosd``/``coed``
for most series but not all of them, so callers must still filter by date.
"""

from __future__ import annotations

import io
import logging
from datetime import date

import pandas as pd

from tidyfetch.core.config import FredConfig
from tidyfetch.core.exceptions import UpstreamFault
from tidyfetch.core.models import SeriesKind
from tidyfetch.sources.http import HttpFetcher

logger = logging.getLogger(__name__)


class FredSource:
    """Fetches economic series observations from FRED."""

    def __init__(self, http: HttpFetcher, config: FredConfig | None = None) -> None:
        self._http = http
        self._config = config or FredConfig()

    def get_series(
        self,
        symbol: str,
        kind: SeriesKind,
        start: date,
        end: date,
    ) -> pd.DataFrame:
        """Return a single-column, date-indexed frame of observations."""
        code = symbol.strip().upper()
        response = self._http.get(
            self._config.base_url,
            params={"id": code, "cosd": start.isoformat(), "coed": end.isoformat()},
        )
        return parse_fred_csv(response.text, code)


def parse_fred_csv(text: str, code: str) -> pd.DataFrame:
    """Parse a fredgraph.csv body into a date-indexed DataFrame.

    Raises:
        UpstreamFault: If the body is not a two-column dated CSV.
    """
    try:
        frame = pd.read_csv(io.StringIO(text), na_values=["."])
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise UpstreamFault(
            f"Malformed FRED response for {code}: {e}",
            context={"symbol": code},
        ) from e

    if frame.shape[1] != 2:
        raise UpstreamFault(
            f"Unexpected FRED layout for {code}: columns {list(frame.columns)}",
            context={"symbol": code},
        )

    dates = pd.to_datetime(frame.iloc[:, 0], errors="coerce")
    if dates.isna().all() and len(frame):
        raise UpstreamFault(
            f"FRED response for {code} has no parseable dates",
            context={"symbol": code},
        )
    values = pd.to_numeric(frame.iloc[:, 1], errors="coerce")
    result = pd.DataFrame({code: values.to_numpy()}, index=pd.DatetimeIndex(dates))
    result = result[result.index.notna()]
    logger.debug("FRED %s: %d observations", code, len(result))
    return result
