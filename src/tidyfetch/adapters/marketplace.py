"""Marketplace adapters: Nasdaq Data Link datasets and datatables."""

from __future__ import annotations

import logging
import re
import warnings
from typing import Any

import pandas as pd

from tidyfetch.adapters.base import Adapter, parse_date
from tidyfetch.core.exceptions import NoDataAvailable, PolicyOverrideWarning
from tidyfetch.core.models import (
    AdapterKind,
    RetrievalRequest,
    StrategyDescriptor,
    Success,
)

logger = logging.getLogger(__name__)

# Only the raw, ascending, data-only dataset variant is tidy
DATASET_POLICY: dict[str, Any] = {"type": "raw", "meta": False, "order": "asc"}

# Options consumed here or by other adapters, never forwarded upstream
_LOCAL_OPTIONS = frozenset({"from", "from_", "to", "type", "meta", "lookback_years", "paginate"})

_INVALID = re.compile(r"[^A-Za-z0-9_.]")
_DOTS = re.compile(r"\.{2,}")


def normalize_column_name(name: Any) -> str:
    """``"Adj. Close"`` -> ``"adj.close"``, ``"30 Day"`` -> ``"x30.day"``."""
    text = _DOTS.sub(".", _INVALID.sub(".", str(name))).lower()
    if not text or not (text[0].isalpha() or text[0] == "."):
        text = "x" + text
    return text


def normalize_table(raw: pd.DataFrame) -> pd.DataFrame:
    """Rename provider columns and convert a ``date`` column to dates.

    Raises:
        NoDataAvailable: If the provider returned no rows.
    """
    if raw is None or raw.empty:
        raise NoDataAvailable("No data returned for this code")
    table = raw.copy()
    table.columns = [normalize_column_name(c) for c in table.columns]
    if "date" in table.columns:
        dates = pd.to_datetime(table["date"], errors="coerce")
        table["date"] = [None if pd.isna(d) else d.date() for d in dates]
    return table.reset_index(drop=True)


def apply_dataset_policy(options: dict[str, Any], code: str) -> dict[str, Any]:
    """Coerce unsupported dataset variants, one warning per overridden option."""
    for key, required in DATASET_POLICY.items():
        given = options.get(key, required)
        if given != required:
            warnings.warn(
                f"{code}: {key}={given!r} is not supported, using {key}={required!r}",
                PolicyOverrideWarning,
                stacklevel=5,
            )
    return dict(DATASET_POLICY)


def _passthrough(options: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in options.items() if k not in _LOCAL_OPTIONS}


def marketplace_code(symbol: str) -> str:
    return symbol.strip().upper()


class DatasetAdapter(Adapter):
    """Time-series datasets such as ``WIKI/AAPL`` or ``FRED/GDP``."""

    kind = AdapterKind.MARKETPLACE_DATASET

    def _retrieve(
        self,
        symbol: str,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> Success:
        code = marketplace_code(symbol)
        options = request.options
        policy = apply_dataset_policy(options, code)

        params = _passthrough(options)
        params["order"] = policy["order"]
        raw_from = options.get("from_", options.get("from"))
        if raw_from is not None:
            params["start_date"] = parse_date(raw_from, "from")
        if options.get("to") is not None:
            params["end_date"] = parse_date(options["to"], "to")

        raw = self._sources.marketplace.get_dataset(code, **params)
        table = normalize_table(raw)
        logger.debug("dataset %s: %d rows", code, len(table))
        return Success(table=table)


class DatatableAdapter(Adapter):
    """Tabular datasets such as ``ZACKS/FC``; filters pass straight through."""

    kind = AdapterKind.MARKETPLACE_DATATABLE

    def _retrieve(
        self,
        symbol: str,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> Success:
        code = marketplace_code(symbol)
        paginate = bool(request.options.get("paginate", False))
        raw = self._sources.marketplace.get_datatable(
            code, paginate=paginate, **_passthrough(request.options)
        )
        table = normalize_table(raw)
        logger.debug("datatable %s: %d rows", code, len(table))
        return Success(table=table)
