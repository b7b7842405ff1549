"""Fundamentals adapter: income statement, balance sheet and cash flow."""

from __future__ import annotations

import logging
from typing import Mapping

import pandas as pd

from tidyfetch.adapters.base import Adapter
from tidyfetch.core.exceptions import NoDataAvailable, UpstreamFault
from tidyfetch.core.models import (
    AdapterKind,
    RetrievalRequest,
    StrategyDescriptor,
    Success,
)
from tidyfetch.core.strategies import FINANCIALS_COLUMNS, STATEMENT_COLUMNS
from tidyfetch.tables import object_column

logger = logging.getLogger(__name__)

STATEMENT_TYPES = ("IS", "BS", "CF")
PERIODS = {"A": "annual", "Q": "quarter"}


def _period_label(column) -> str:
    if isinstance(column, str):
        return column
    return pd.Timestamp(column).date().isoformat()


def tidy_statement(wide: pd.DataFrame) -> pd.DataFrame:
    """Gather a line-item x period statement into long rows.

    ``group`` numbers the line items in statement order, so sorting by it
    keeps each item's periods together.
    """
    if wide is None or wide.empty:
        return pd.DataFrame(columns=list(STATEMENT_COLUMNS))

    frame = wide.copy()
    frame.index = [str(i) for i in frame.index]
    # mixed str/Timestamp labels break melt once the index is reset
    frame.columns = [_period_label(c) for c in frame.columns]
    frame.index.name = "category"
    frame = frame.reset_index()
    frame.insert(0, "group", range(1, len(frame) + 1))

    long = frame.melt(id_vars=["group", "category"], var_name="date", value_name="value")
    long["date"] = [d.date() for d in pd.to_datetime(long["date"])]
    long["value"] = pd.to_numeric(long["value"], errors="coerce")
    long = long.sort_values("group", kind="stable").reset_index(drop=True)
    return long[list(STATEMENT_COLUMNS)]


def nest_statements(
    statements: Mapping[str, Mapping[str, pd.DataFrame]],
) -> pd.DataFrame:
    """Build the nested ``type | annual | quarter`` table.

    Raises:
        UpstreamFault: If any of the six statement tables is missing.
    """
    tidied: dict[str, list[pd.DataFrame]] = {column: [] for column in PERIODS.values()}
    for stmt in STATEMENT_TYPES:
        for period, column in PERIODS.items():
            try:
                wide = statements[stmt][period]
            except (KeyError, TypeError) as e:
                raise UpstreamFault(
                    f"Financials response lacks the {stmt}/{period} statement",
                    context={"statement": stmt, "period": period},
                ) from e
            tidied[column].append(tidy_statement(wide))

    table = pd.DataFrame({"type": list(STATEMENT_TYPES)})
    for column, tables in tidied.items():
        table[column] = object_column(tables)
    return table[list(FINANCIALS_COLUMNS)]


class FundamentalsAdapter(Adapter):
    """Fetches the six statement tables and nests them by statement type."""

    kind = AdapterKind.FUNDAMENTALS

    def _retrieve(
        self,
        symbol: str,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> Success:
        statements = self._sources.fundamentals.get_financials(symbol)
        table = nest_statements(statements)

        if all(table.at[i, col].empty for i in table.index for col in PERIODS.values()):
            raise NoDataAvailable("No financial statements available")

        logger.debug("financials %s: %d statements", symbol, len(table))
        return Success(table=table)
