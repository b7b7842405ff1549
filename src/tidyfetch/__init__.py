"""tidyfetch: Tidy financial data from many upstream sources through one call."""

__version__ = "0.1.0"

from tidyfetch.core import (
    ArgumentError,
    Category,
    Failure,
    InvalidCategory,
    InvalidCompoundCategory,
    InvalidSymbol,
    RetrievalError,
    RetrievalWarning,
    Success,
    TidyfetchConfig,
    TidyfetchError,
    TidyfetchWarning,
    get_options,
    load_config,
)
from tidyfetch.dispatch import Retriever, fetch
from tidyfetch.sources.credentials import clear_api_key, get_api_key, set_api_key

__all__ = [
    "__version__",
    "fetch",
    "get_options",
    "Retriever",
    "Category",
    "Success",
    "Failure",
    "TidyfetchConfig",
    "load_config",
    "set_api_key",
    "get_api_key",
    "clear_api_key",
    "TidyfetchError",
    "ArgumentError",
    "InvalidCategory",
    "InvalidCompoundCategory",
    "InvalidSymbol",
    "RetrievalError",
    "TidyfetchWarning",
    "RetrievalWarning",
]
