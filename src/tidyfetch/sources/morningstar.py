"""Morningstar key-ratio report source.

The CSV export is addressed by ``<VENUE>:<SYMBOL>``. A symbol listed on a
different venue answers 200 with a short "We're sorry" placeholder instead
of an error, so venue selection is left to the caller.
"""

from __future__ import annotations

import logging

from tidyfetch.core.config import RatiosConfig
from tidyfetch.sources.http import HttpFetcher

logger = logging.getLogger(__name__)


class MorningstarSource:
    """Downloads the 10-year key-ratio CSV for one venue/symbol pair."""

    def __init__(self, http: HttpFetcher, config: RatiosConfig | None = None) -> None:
        self._http = http
        self._config = config or RatiosConfig()

    def get_report(self, symbol: str, venue: str, attempts: int) -> str | None:
        params = {
            "t": f"{venue}:{symbol}",
            "region": "usa",
            "culture": "en-US",
            "cur": "",
            "order": "asc",
        }
        response = self._http.get(self._config.base_url, params=params, attempts=attempts)
        text = response.text
        if not text.strip():
            logger.debug("Empty key-ratio body for %s:%s", venue, symbol)
            return None
        return text
