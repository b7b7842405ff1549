"""Category canonicalization and validation.

Callers spell categories loosely (" Stock.Price ", "stock.prices", "SPLITS");
every spelling is reduced to a canonical key before lookup:

    lowercase -> trim -> drop ASCII punctuation -> drop one trailing "s"
"""

from __future__ import annotations

import re
import string
from typing import Iterable

from tidyfetch.core.exceptions import InvalidCategory, InvalidCompoundCategory
from tidyfetch.core.models import Category

_PUNCTUATION = re.compile(f"[{re.escape(string.punctuation)}]")

# Only plain-symbol, date-ranged series can share one batch
COMPOUND_CATEGORIES: frozenset[Category] = frozenset(
    {Category.STOCK_PRICES, Category.DIVIDENDS, Category.SPLITS}
)


def canonicalize(raw: str) -> str:
    """Reduce a category spelling to its canonical key."""
    key = _PUNCTUATION.sub("", str(raw).strip().lower())
    return re.sub(r"s$", "", key)


_BY_KEY: dict[str, Category] = {canonicalize(c.value): c for c in Category}


def get_options() -> list[str]:
    """Return the valid category strings in discovery order."""
    return [c.value for c in Category]


def resolve(raw: str | Category) -> Category:
    """Resolve one category spelling to a Category.

    Raises:
        InvalidCategory: If the canonical key is not a known category.
    """
    if isinstance(raw, Category):
        return raw
    if not isinstance(raw, str):
        raise InvalidCategory(
            f"Category must be a string, got {type(raw).__name__}",
            context={"category": raw},
        )
    key = canonicalize(raw)
    try:
        return _BY_KEY[key]
    except KeyError:
        raise InvalidCategory(
            f"Invalid category {raw!r}. Valid options: {', '.join(get_options())}",
            context={"category": raw, "canonical": key},
        ) from None


def resolve_compound(categories: Iterable[str | Category]) -> list[Category]:
    """Resolve every element of a multi-category request.

    Raises:
        InvalidCategory: If any element is not a known category.
        InvalidCompoundCategory: If any element is outside the compound subset.
    """
    raw = list(categories)
    resolved = [resolve(c) for c in raw]
    rejected = [
        str(r) for r, c in zip(raw, resolved) if c not in COMPOUND_CATEGORIES
    ]
    if rejected:
        allowed = sorted(c.value for c in COMPOUND_CATEGORIES)
        raise InvalidCompoundCategory(
            f"Categories {rejected} cannot be combined in one request. "
            f"Compound requests accept only: {', '.join(allowed)}",
            context={"categories": [str(r) for r in raw], "rejected": rejected},
        )
    return resolved
