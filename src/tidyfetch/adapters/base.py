"""Adapter base class: symbol validation, recovery boundary, diagnostics."""

from __future__ import annotations

import logging
import string
import warnings
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Callable

import pandas as pd

from tidyfetch.core.config import TidyfetchConfig
from tidyfetch.core.exceptions import (
    ArgumentError,
    InvalidSymbol,
    RetrievalError,
    RetrievalWarning,
    UpstreamFault,
)
from tidyfetch.core.models import (
    AdapterKind,
    Failure,
    RetrievalRequest,
    RetrievalResult,
    StrategyDescriptor,
    Success,
)
from tidyfetch.sources.provider import SourceBundle

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


def validate_symbol(symbol: Any) -> str:
    """Return ``symbol`` if it is a non-empty string.

    Raises:
        InvalidSymbol: For anything else.
    """
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidSymbol(
            "x must be a character string in the form of a valid symbol, "
            f"got {symbol!r}",
            context={"symbol": symbol},
        )
    return symbol


def plain_symbol(symbol: str) -> str:
    """Uppercase, trim and strip punctuation (``brk.b`` -> ``BRKB``)."""
    return symbol.strip().upper().translate(str.maketrans("", "", string.punctuation))


def parse_date(value: Any, name: str) -> date:
    """Coerce a window bound to a date.

    Raises:
        ArgumentError: If the value is not a date or ISO date string.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ArgumentError(
        f"{name} must be a date or an ISO 'YYYY-MM-DD' string, got {value!r}",
        context={"field": name, "value": value},
    )


def resolve_window(
    options: dict[str, Any],
    lookback_years: int,
    today: date,
) -> tuple[date, date]:
    """Read ``from``/``to`` from request options, defaulting to a lookback window.

    ``from`` may be spelled ``from_`` since ``from`` is a Python keyword.
    """
    raw_from = options.get("from_", options.get("from"))
    raw_to = options.get("to")
    start = parse_date(raw_from, "from") if raw_from is not None else date(today.year - lookback_years, 1, 1)
    end = parse_date(raw_to, "to") if raw_to is not None else today
    if start > end:
        raise ArgumentError(
            f"from ({start}) must not be after to ({end})",
            context={"from": start.isoformat(), "to": end.isoformat()},
        )
    return start, end


class Adapter(ABC):
    """One retrieval strategy family.

    Subclasses implement ``_retrieve``; ``fetch`` wraps it in the recovery
    boundary so that every upstream fault becomes a ``Failure`` and exactly
    one ``RetrievalWarning``. Argument errors are not caught.
    """

    kind: AdapterKind

    def __init__(
        self,
        sources: SourceBundle,
        config: TidyfetchConfig | None = None,
        today: Clock = date.today,
    ) -> None:
        self._sources = sources
        self._config = config or TidyfetchConfig()
        self._today = today

    def retrieve(
        self,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> Success:
        """Retrieve without the recovery boundary; faults propagate."""
        symbol = validate_symbol(request.symbol)
        result = self._retrieve(symbol, request, descriptor)
        _check_schema(result.table, descriptor)
        return result

    def fetch(
        self,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> RetrievalResult:
        """Retrieve and normalize one symbol/category pair."""
        symbol = validate_symbol(request.symbol)
        try:
            result = self.retrieve(request, descriptor)
        except ArgumentError:
            raise
        except RetrievalError as e:
            return self._fail(request, e)
        except Exception as e:
            # Upstream libraries raise whatever they like
            fault = UpstreamFault(
                f"{type(e).__name__}: {e}",
                context={"symbol": symbol, "category": request.category.value},
            )
            fault.__cause__ = e
            return self._fail(request, fault)
        return result

    @abstractmethod
    def _retrieve(
        self,
        symbol: str,
        request: RetrievalRequest,
        descriptor: StrategyDescriptor,
    ) -> Success: ...

    def _fail(self, request: RetrievalRequest, error: RetrievalError) -> Failure:
        """Emit the single diagnostic for a failed pair and build its sentinel."""
        symbol = str(request.symbol)
        category = request.category.value
        error.context.setdefault("symbol", symbol)
        error.context.setdefault("category", category)

        message = f"x = '{symbol}', get = '{category}': {error}"
        if request.will_drop:
            message += f" Removing {symbol}."
        logger.info("%s failed for %s: %s", category, symbol, error, extra={"context": error.context})
        warnings.warn(message, RetrievalWarning, stacklevel=4)
        return Failure(symbol=symbol, category=category, error=error)


def _check_schema(table: pd.DataFrame, descriptor: StrategyDescriptor) -> None:
    """Reject tables whose columns drift from the declared schema."""
    if descriptor.columns is None:
        return
    actual = tuple(table.columns)
    if actual != descriptor.columns:
        raise UpstreamFault(
            f"Response schema changed: expected {list(descriptor.columns)}, got {list(actual)}",
            context={"expected": list(descriptor.columns), "actual": list(actual)},
        )
