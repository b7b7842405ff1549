"""Nasdaq Data Link (formerly Quandl) source: direct HTTP implementation.

Datasets come back as ``dataset_data.column_names`` + ``data`` rows.
Datatables come back a page at a time; ``meta.next_cursor_id`` points at
the following page and is passed back as ``qopts.cursor_id``.
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from tidyfetch.core.config import MarketplaceConfig
from tidyfetch.core.exceptions import UpstreamFault
from tidyfetch.sources.credentials import get_api_key
from tidyfetch.sources.http import HttpFetcher

logger = logging.getLogger(__name__)

_MAX_PAGES = 100


class NasdaqDataLinkSource:
    """Fetches datasets and datatables from the Nasdaq Data Link REST API."""

    def __init__(self, http: HttpFetcher, config: MarketplaceConfig | None = None) -> None:
        self._http = http
        self._config = config or MarketplaceConfig()

    def _params(self, params: dict[str, Any]) -> dict[str, Any]:
        query = {k: _format_param(v) for k, v in params.items() if v is not None}
        key = get_api_key(self._config)
        if key:
            query["api_key"] = key
        return query

    def _get_json(self, url: str, params: dict[str, Any]) -> dict:
        response = self._http.get(url, params=self._params(params))
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFault(
                f"Malformed JSON from {url}",
                context={"url": url},
            ) from e

    def get_dataset(self, code: str, **params: Any) -> pd.DataFrame:
        url = f"{self._config.base_url}/datasets/{code}/data.json"
        payload = self._get_json(url, params)
        try:
            body = payload["dataset_data"]
            return pd.DataFrame(body["data"], columns=body["column_names"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamFault(
                f"Unexpected dataset payload for {code}: {e}",
                context={"url": url},
            ) from e

    def get_datatable(self, code: str, paginate: bool = False, **params: Any) -> pd.DataFrame:
        url = f"{self._config.base_url}/datatables/{code}.json"
        pages: list[pd.DataFrame] = []
        cursor: str | None = None

        for _ in range(_MAX_PAGES):
            query = dict(params)
            if cursor:
                query["qopts.cursor_id"] = cursor
            payload = self._get_json(url, query)
            try:
                table = payload["datatable"]
                columns = [c["name"] for c in table["columns"]]
                pages.append(pd.DataFrame(table["data"], columns=columns))
            except (KeyError, TypeError, ValueError) as e:
                raise UpstreamFault(
                    f"Unexpected datatable payload for {code}: {e}",
                    context={"url": url},
                ) from e

            cursor = (payload.get("meta") or {}).get("next_cursor_id")
            if not cursor:
                break
            if not paginate:
                logger.warning(
                    "Datatable %s has more pages; pass paginate=True to fetch them all",
                    code,
                )
                break
        else:
            logger.warning("Datatable %s stopped after %d pages", code, _MAX_PAGES)

        return pd.concat(pages, ignore_index=True) if len(pages) > 1 else pages[0]


def _format_param(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return value
