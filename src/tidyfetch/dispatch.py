"""Single-symbol dispatch, batch mapping and the ``fetch`` entry point.

Control flow::

    fetch(x, get)
      ├── one symbol, one category ──> dispatch ──> Adapter.fetch
      └── anything wider ────────────> map_batch ─> dispatch per pair
                                           └── unnest (one category only)

Only argument errors (``ArgumentError`` subclasses) escape; every retrieval
failure is already a ``Failure`` with its diagnostic emitted by the time it
reaches this module.
"""

from __future__ import annotations

import logging
import warnings
from datetime import date
from typing import Any, Iterable, Sequence

import pandas as pd

from tidyfetch.adapters import ADAPTERS, Adapter
from tidyfetch.adapters.base import Clock
from tidyfetch.core.categories import resolve, resolve_compound
from tidyfetch.core.config import TidyfetchConfig, load_config
from tidyfetch.core.exceptions import (
    InvalidCategory,
    InvalidSymbol,
    NestedResultWarning,
    NestingError,
    UsageLimitWarning,
)
from tidyfetch.core.models import (
    AdapterKind,
    Category,
    RetrievalRequest,
    RetrievalResult,
)
from tidyfetch.core.strategies import lookup
from tidyfetch.sources.credentials import get_api_key
from tidyfetch.sources.provider import SourceBundle
from tidyfetch.tables import object_column, unnest

logger = logging.getLogger(__name__)

DEFAULT_SYMBOL_COLUMN = "symbol"

MARKETPLACE_CATEGORIES = frozenset({Category.QUANDL, Category.QUANDL_DATATABLE})

CategoryLike = str | Category


class Retriever:
    """Routes symbol/category pairs to adapters and assembles batch tables.

    Usage:
        with Retriever(config) as retriever:
            prices = retriever.fetch("AAPL", from_="2016-01-01", to="2016-01-10")
            batch = retriever.fetch(["AAPL", "MSFT"], get="dividends")

    A Retriever built without ``sources`` owns the default provider set and
    closes its HTTP client on ``close()``.
    """

    def __init__(
        self,
        config: TidyfetchConfig | None = None,
        sources: SourceBundle | None = None,
        today: Clock = date.today,
    ):
        self.config = config or TidyfetchConfig()
        self._owns_sources = sources is None
        self.sources = sources or SourceBundle.from_config(self.config)
        self._adapters: dict[AdapterKind, Adapter] = {
            cls.kind: cls(self.sources, self.config, today) for cls in ADAPTERS
        }
        missing = set(AdapterKind) - set(self._adapters)
        if missing:
            raise RuntimeError(f"No adapter registered for {sorted(missing)}")

    def close(self) -> None:
        if self._owns_sources:
            self.sources.close()

    def __enter__(self) -> Retriever:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # --- Single pair ---

    def dispatch(
        self,
        symbol: Any,
        category: CategoryLike,
        batch_mode: bool = False,
        complete_cases: bool = True,
        **options: Any,
    ) -> RetrievalResult:
        """Retrieve one symbol/category pair.

        Returns a ``Success`` or a ``Failure``; raises only for argument
        errors (unknown category, non-string symbol, bad window).
        """
        resolved = resolve(category)
        self._warn_usage_limit([resolved])
        return self._dispatch(symbol, resolved, batch_mode, complete_cases, options)

    def _dispatch(
        self,
        symbol: Any,
        category: Category,
        batch_mode: bool,
        complete_cases: bool,
        options: dict[str, Any],
    ) -> RetrievalResult:
        descriptor = lookup(category)
        request = RetrievalRequest(
            symbol=symbol,
            category=category,
            options=options,
            batch_mode=batch_mode,
            complete_cases=complete_cases,
        )
        return self._adapters[descriptor.adapter].fetch(request, descriptor)

    # --- Batch ---

    def map_batch(
        self,
        symbols: pd.DataFrame | pd.Series | Sequence[str],
        categories: Sequence[CategoryLike],
        drop_failures: bool = True,
        **options: Any,
    ) -> pd.DataFrame:
        """Retrieve every category for every symbol, one column per category.

        ``symbols`` may be a DataFrame whose first column holds the symbols;
        its other columns are carried through. Each category column holds
        one DataFrame per row, or a ``Failure`` when ``drop_failures`` is
        False. With ``drop_failures`` a failed row is removed before the
        next category is fetched.
        """
        resolved = self._resolve_all(categories)
        self._warn_usage_limit(resolved)
        frame = _symbol_frame(symbols)
        return self._map_batch(frame, categories, resolved, drop_failures, options)

    def _map_batch(
        self,
        frame: pd.DataFrame,
        labels: Sequence[CategoryLike],
        categories: Sequence[Category],
        drop_failures: bool,
        options: dict[str, Any],
    ) -> pd.DataFrame:
        symbol_column = frame.columns[0]
        for label, category in zip(labels, categories):
            results = [
                self._dispatch(symbol, category, True, drop_failures, options)
                for symbol in frame[symbol_column]
            ]
            frame = frame.copy()
            frame[str(label)] = object_column(r.table if r.ok else r for r in results)

            if drop_failures:
                keep = [r.ok for r in results]
                dropped = len(keep) - sum(keep)
                if dropped:
                    logger.debug("%s: dropped %d of %d symbols", category, dropped, len(keep))
                frame = frame.loc[keep].reset_index(drop=True)
        return frame

    # --- Entry point ---

    def fetch(
        self,
        x: str | Sequence[str] | pd.Series | pd.DataFrame,
        get: CategoryLike | Sequence[CategoryLike] = "stock.prices",
        complete_cases: bool = True,
        **options: Any,
    ) -> pd.DataFrame | RetrievalResult:
        """Retrieve ``get`` for ``x`` and return a tidy table.

        One symbol and one category give the flat table itself (or the
        ``Failure`` if retrieval failed). Anything wider gives one row per
        symbol with a nested table per category; with a single category
        the nested column is flattened when every cell shares a schema.

        Raises:
            InvalidCategory: On an unknown or non-combinable category.
            InvalidSymbol: If ``x`` is not a string, sequence or table.
        """
        labels = [get] if isinstance(get, str) else list(get)
        resolved = self._resolve_all(labels)
        self._warn_usage_limit(resolved)

        if isinstance(x, str) and len(labels) == 1:
            result = self._dispatch(x, resolved[0], False, complete_cases, options)
            return result.table if result.ok else result

        frame = _symbol_frame(x)
        nested = self._map_batch(frame, labels, resolved, complete_cases, options)

        if len(labels) == 1 and not isinstance(x, str):
            column = str(labels[0])
            try:
                return unnest(nested, column)
            except NestingError as e:
                logger.info("Could not flatten %s: %s", column, e)
                warnings.warn("Returning as nested data frame.", NestedResultWarning, stacklevel=2)
        return nested

    # --- Helpers ---

    @staticmethod
    def _resolve_all(categories: Iterable[CategoryLike]) -> list[Category]:
        labels = list(categories)
        if not labels:
            raise InvalidCategory("At least one category is required", context={"category": []})
        return resolve_compound(labels) if len(labels) > 1 else [resolve(labels[0])]

    def _warn_usage_limit(self, categories: Iterable[Category]) -> None:
        if not MARKETPLACE_CATEGORIES.intersection(categories):
            return
        if get_api_key(self.config.marketplace) is None:
            warnings.warn(
                "No Nasdaq Data Link API key detected. Limited to 50 anonymous "
                "calls per day. Set one with tidyfetch.set_api_key().",
                UsageLimitWarning,
                stacklevel=3,
            )


def _symbol_frame(symbols: Any) -> pd.DataFrame:
    """Normalize the symbol argument to a DataFrame, symbols first."""
    if isinstance(symbols, pd.DataFrame):
        if symbols.shape[1] == 0:
            raise InvalidSymbol("Symbol table has no columns", context={"symbol": None})
        return symbols.reset_index(drop=True)
    if isinstance(symbols, pd.Series):
        name = symbols.name if symbols.name is not None else DEFAULT_SYMBOL_COLUMN
        return pd.DataFrame({name: list(symbols)})
    if isinstance(symbols, str):
        return pd.DataFrame({DEFAULT_SYMBOL_COLUMN: [symbols]})
    if isinstance(symbols, (list, tuple)):
        return pd.DataFrame({DEFAULT_SYMBOL_COLUMN: list(symbols)})
    raise InvalidSymbol(
        "x must be a single string, a sequence of strings, or a DataFrame "
        "whose first column holds the symbols",
        context={"symbol": type(symbols).__name__},
    )


def fetch(
    x: str | Sequence[str] | pd.Series | pd.DataFrame,
    get: CategoryLike | Sequence[CategoryLike] = "stock.prices",
    complete_cases: bool = True,
    *,
    retriever: Retriever | None = None,
    **options: Any,
) -> pd.DataFrame | RetrievalResult:
    """Module-level ``Retriever.fetch``.

    Without ``retriever``, builds one from ``load_config()`` for this call
    and closes it afterwards.
    """
    if retriever is not None:
        return retriever.fetch(x, get, complete_cases, **options)
    with Retriever(load_config()) as owned:
        return owned.fetch(x, get, complete_cases, **options)
