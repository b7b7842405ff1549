"""tidyfetch.core: Foundation types, config, category resolution, and exceptions."""

from tidyfetch.core.categories import (
    COMPOUND_CATEGORIES,
    canonicalize,
    get_options,
    resolve,
    resolve_compound,
)
from tidyfetch.core.config import (
    FredConfig,
    HttpConfig,
    MarketplaceConfig,
    QuotesConfig,
    RatiosConfig,
    SeriesConfig,
    TidyfetchConfig,
    load_config,
)
from tidyfetch.core.exceptions import (
    ArgumentError,
    ConfigError,
    InvalidCategory,
    InvalidCompoundCategory,
    InvalidSymbol,
    NestedResultWarning,
    NestingError,
    NoDataAvailable,
    PartialWindowWarning,
    PolicyOverrideWarning,
    RateLimitError,
    ReportUnavailable,
    RetrievalError,
    RetrievalWarning,
    TidyfetchError,
    TidyfetchWarning,
    UpstreamFault,
    UsageLimitWarning,
    WindowOutOfRange,
)
from tidyfetch.core.models import (
    AdapterKind,
    Category,
    Failure,
    FieldType,
    QuoteField,
    RetrievalRequest,
    RetrievalResult,
    SeriesKind,
    StrategyDescriptor,
    Success,
    Upstream,
)
from tidyfetch.core.strategies import STRATEGY_TABLE, lookup

__all__ = [
    # Enums
    "Category",
    "AdapterKind",
    "Upstream",
    "SeriesKind",
    "FieldType",
    # Models
    "StrategyDescriptor",
    "QuoteField",
    "RetrievalRequest",
    "RetrievalResult",
    "Success",
    "Failure",
    # Categories
    "COMPOUND_CATEGORIES",
    "canonicalize",
    "get_options",
    "resolve",
    "resolve_compound",
    # Strategies
    "STRATEGY_TABLE",
    "lookup",
    # Config
    "TidyfetchConfig",
    "HttpConfig",
    "SeriesConfig",
    "FredConfig",
    "RatiosConfig",
    "QuotesConfig",
    "MarketplaceConfig",
    "load_config",
    # Exceptions
    "TidyfetchError",
    "ConfigError",
    "ArgumentError",
    "NestingError",
    "InvalidCategory",
    "InvalidCompoundCategory",
    "InvalidSymbol",
    "RetrievalError",
    "WindowOutOfRange",
    "ReportUnavailable",
    "NoDataAvailable",
    "UpstreamFault",
    "RateLimitError",
    # Warnings
    "TidyfetchWarning",
    "RetrievalWarning",
    "PartialWindowWarning",
    "PolicyOverrideWarning",
    "UsageLimitWarning",
    "NestedResultWarning",
]
