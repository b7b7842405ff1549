"""Nested-table helpers.

A nested table is a DataFrame in which one or more columns hold a whole
DataFrame per cell (or a ``Failure`` where a batch kept failed rows).
"""

from __future__ import annotations

from typing import Any, Iterable

import numpy as np
import pandas as pd

from tidyfetch.core.exceptions import NestingError


def object_column(values: Iterable[Any]) -> np.ndarray:
    """Pack arbitrary objects (DataFrames included) into a 1-d object array."""
    items = list(values)
    cells = np.empty(len(items), dtype=object)
    for i, item in enumerate(items):
        cells[i] = item
    return cells


def nest(frame: pd.DataFrame, by: str, column: str = "data") -> pd.DataFrame:
    """Group ``frame`` by ``by`` (first-appearance order) into one row per key.

    The remaining columns of each group become the DataFrame in ``column``.
    """
    keys = list(dict.fromkeys(frame[by]))
    tables = [
        frame.loc[frame[by] == key].drop(columns=[by]).reset_index(drop=True)
        for key in keys
    ]
    nested = pd.DataFrame({by: keys})
    nested[column] = object_column(tables)
    return nested


def unnest(frame: pd.DataFrame, column: str) -> pd.DataFrame:
    """Flatten one nested column so each row is one embedded observation.

    The other columns are repeated for every row of the embedded table.

    Raises:
        NestingError: If a cell is not a DataFrame, the embedded schemas
            differ, or an embedded column name clashes with an outer one.
    """
    cells = list(frame[column])
    outer = frame.drop(columns=[column]).reset_index(drop=True)

    strays = [type(c).__name__ for c in cells if not isinstance(c, pd.DataFrame)]
    if strays:
        raise NestingError(
            f"Column {column!r} holds non-table values: {sorted(set(strays))}",
            context={"column": column},
        )
    if not cells:
        return outer

    schemas = {tuple(c.columns) for c in cells}
    if len(schemas) > 1:
        raise NestingError(
            f"Column {column!r} holds tables with different columns",
            context={"column": column, "schemas": [list(s) for s in schemas]},
        )
    inner_columns = schemas.pop()
    clash = set(inner_columns) & set(outer.columns)
    if clash:
        raise NestingError(
            f"Embedded columns {sorted(clash)} clash with outer columns",
            context={"column": column},
        )

    lengths = [len(c) for c in cells]
    repeated = outer.loc[outer.index.repeat(lengths)].reset_index(drop=True)
    inner = pd.concat(cells, ignore_index=True)
    return pd.concat([repeated, inner], axis=1)
