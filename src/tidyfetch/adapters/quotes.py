"""Quote-snapshot adapter: one row of real-time key statistics."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Sequence

import pandas as pd

from tidyfetch.adapters.base import Adapter, plain_symbol
from tidyfetch.core.exceptions import NoDataAvailable, UpstreamFault
from tidyfetch.core.models import (
    AdapterKind,
    FieldType,
    QuoteField,
    RetrievalRequest,
    StrategyDescriptor,
    Success,
)
from tidyfetch.core.quote_fields import QUOTE_COLUMNS, QUOTE_FIELDS, tag_string

logger = logging.getLogger(__name__)

NA_TOKENS = frozenset({"", "NA", "N/A", "<NA>"})

_MAGNITUDE = {"K": 1e3, "M": 1e6, "B": 1e9, "T": 1e12}
_AMOUNT = re.compile(r"^([-+]?[\d.]+)\s*([KMBT])?$", re.IGNORECASE)


def _number(text: str) -> float:
    return float(text.replace(",", ""))


def _percent(text: str) -> float:
    return _number(text.rstrip("%").strip()) / 100


def _date(text: str) -> date:
    return datetime.strptime(text, "%m/%d/%Y").date()


def _amount(text: str) -> float:
    match = _AMOUNT.match(text.replace(",", ""))
    if not match:
        raise ValueError(f"not an amount: {text!r}")
    value = float(match.group(1))
    suffix = match.group(2)
    return value * _MAGNITUDE[suffix.upper()] if suffix else value


_COERCERS = {
    FieldType.NUMERIC: _number,
    FieldType.PERCENT: _percent,
    FieldType.DATE: _date,
    FieldType.CURRENCY: _amount,
    FieldType.STRING: str,
}


def coerce_value(raw: Any, field: QuoteField) -> Any:
    """Apply the field's coercion rule; missing or unparseable -> None."""
    if raw is None:
        return None
    text = str(raw).strip().strip('"').strip()
    if text in NA_TOKENS:
        return None
    try:
        return _COERCERS[field.kind](text)
    except ValueError:
        logger.debug("Unparseable %s value for %s: %r", field.kind, field.name, text)
        return None


def coerce_quote_row(
    row: Sequence[str],
    fields: Sequence[QuoteField] = QUOTE_FIELDS,
) -> pd.DataFrame:
    """Turn the raw cells of one quote row into a one-row table.

    Columns are the field names in alphabetical order.

    Raises:
        UpstreamFault: If the row length does not match the field list.
        NoDataAvailable: If every field is missing.
    """
    if len(row) != len(fields):
        raise UpstreamFault(
            f"Quote row has {len(row)} fields, expected {len(fields)}",
            context={"expected": len(fields), "actual": len(row)},
        )
    record = {f.name: coerce_value(cell, f) for f, cell in zip(fields, row)}
    if all(v is None for v in record.values()):
        raise NoDataAvailable("No quote data returned for this symbol")
    columns = sorted(record)
    return pd.DataFrame([[record[c] for c in columns]], columns=columns)


class QuoteSnapshotAdapter(Adapter):
    """Requests every quote tag at once and coerces the reply."""

    kind = AdapterKind.QUOTE_SNAPSHOT

    def _retrieve(
        self,
        symbol: str,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> Success:
        ticker = plain_symbol(symbol)
        if not ticker:
            raise NoDataAvailable(f"{symbol!r} has no usable quote symbol")
        row = self._sources.quotes.get_quote_row(ticker, tag_string())
        table = coerce_quote_row(row)
        logger.debug("key.stats %s: %d fields", symbol, len(QUOTE_COLUMNS))
        return Success(table=table)
