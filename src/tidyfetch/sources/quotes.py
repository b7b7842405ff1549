"""Tag-driven quote CSV source."""

from __future__ import annotations

import csv
import io
import logging

from tidyfetch.core.config import QuotesConfig
from tidyfetch.core.exceptions import UpstreamFault
from tidyfetch.sources.http import HttpFetcher

logger = logging.getLogger(__name__)


class YahooQuoteSource:
    """Requests one CSV row of quote fields for a symbol."""

    def __init__(self, http: HttpFetcher, config: QuotesConfig | None = None) -> None:
        self._http = http
        self._config = config or QuotesConfig()

    def get_quote_row(self, symbol: str, tags: str) -> list[str]:
        response = self._http.get(
            self._config.base_url,
            params={"s": symbol, "f": tags, "e": ".csv"},
        )
        rows = [r for r in csv.reader(io.StringIO(response.text)) if r]
        if not rows:
            raise UpstreamFault(
                f"Empty quote response for {symbol}",
                context={"symbol": symbol},
            )
        if len(rows) > 1:
            logger.warning("Quote response for %s has %d rows, using the first", symbol, len(rows))
        return rows[0]
