"""Custom exception and warning hierarchy for tidyfetch."""

from typing import Any


class TidyfetchError(Exception):
    """Base exception for all tidyfetch errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(TidyfetchError):
    """Invalid or missing configuration.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str - the config field that failed validation
        value: Any - the invalid value (redacted for secrets)
    """


class NestingError(TidyfetchError):
    """A nested result cannot be flattened uniformly.

    Policy: callers fall back to the nested shape with a NestedResultWarning.

    Context keys:
        column: str - the nested column
    """


class ArgumentError(TidyfetchError):
    """The caller passed arguments that can never produce data.

    Policy: raise immediately and abort the whole call, batch included.
    """


class InvalidCategory(ArgumentError):
    """A requested category is not a known option.

    Context keys:
        category: str - the raw value the caller passed
        canonical: str - the value after canonicalization
    """


class InvalidCompoundCategory(InvalidCategory):
    """A multi-category request names a category outside the compound subset.

    Context keys:
        categories: list[str] - the raw values the caller passed
        rejected: list[str] - the offending values
    """


class InvalidSymbol(ArgumentError):
    """The symbol is not a non-empty string.

    Context keys:
        symbol: Any - the rejected value
    """


class RetrievalError(TidyfetchError):
    """Upstream has no usable data for one symbol/category pair.

    Policy: caught at the adapter boundary and turned into a Failure.
    Never aborts a batch.

    Context keys:
        symbol: str
        category: str
    """


class WindowOutOfRange(RetrievalError):
    """The requested window lies entirely beyond the provider's lookback ceiling.

    Context keys:
        limit_days: int
        earliest: str - ISO date of the oldest obtainable observation
    """


class ReportUnavailable(RetrievalError):
    """Every candidate venue answered with the not-found placeholder.

    Context keys:
        venues: list[str]
    """


class NoDataAvailable(RetrievalError):
    """The provider answered, but with nothing for this symbol."""


class UpstreamFault(RetrievalError):
    """Network, parse or format failure from an upstream source.

    Context keys:
        url: str | None
        status_code: int | None
    """


class RateLimitError(UpstreamFault):
    """Provider rate limit exceeded (HTTP 429) after retries.

    Context keys:
        retry_after: int | None - seconds to wait
    """


# --- Warnings ---


class TidyfetchWarning(UserWarning):
    """Base class for non-fatal tidyfetch diagnostics."""


class RetrievalWarning(TidyfetchWarning):
    """A symbol/category pair failed and was replaced by a Failure."""


class PartialWindowWarning(TidyfetchWarning):
    """Part of the requested window predates the provider's lookback ceiling."""


class PolicyOverrideWarning(TidyfetchWarning):
    """An unsupported request option was coerced to the supported mode."""


class UsageLimitWarning(TidyfetchWarning):
    """No API key is configured; the provider applies anonymous limits."""


class NestedResultWarning(TidyfetchWarning):
    """A batch result could not be flattened and is returned nested."""
