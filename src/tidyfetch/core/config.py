"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tidyfetch.core.exceptions import ConfigError


class HttpConfig(BaseModel):
    """Shared HTTP client settings for every httpx-backed source."""

    model_config = ConfigDict(frozen=True)

    user_agent: str = "Mozilla/5.0 (compatible; tidyfetch/0.1)"
    timeout: float = 15.0
    max_retries: int = 3
    retry_delay: float = 1.0
    request_delay: float = 0.25

    @field_validator("timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v

    @field_validator("max_retries")
    @classmethod
    def retries_bounded(cls, v: int) -> int:
        if v < 0 or v > 10:
            raise ValueError("max_retries must be between 0 and 10")
        return v

    @field_validator("retry_delay", "request_delay")
    @classmethod
    def delay_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("delays must be >= 0")
        return v


class SeriesConfig(BaseModel):
    """Time-series defaults."""

    model_config = ConfigDict(frozen=True)

    default_lookback_years: int = 10

    @field_validator("default_lookback_years")
    @classmethod
    def lookback_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("default_lookback_years must be >= 1")
        return v


class FredConfig(BaseModel):
    """FRED economic data download."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://fred.stlouisfed.org/graph/fredgraph.csv"


class RatiosConfig(BaseModel):
    """Key-ratio report download."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "http://financials.morningstar.com/finan/ajax/exportKR2CSV.html"
    venues: list[str] = ["XNAS", "XNYS", "XASE"]
    attempts: int = 5
    valuation_lookback_years: int = 12

    @field_validator("venues")
    @classmethod
    def venues_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("venues must not be empty")
        return [s.strip().upper() for s in v]

    @field_validator("attempts")
    @classmethod
    def attempts_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("attempts must be >= 1")
        return v


class QuotesConfig(BaseModel):
    """Real-time quote endpoint."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "http://download.finance.yahoo.com/d/quotes.csv"


class MarketplaceConfig(BaseModel):
    """Financial-dataset marketplace (Nasdaq Data Link, formerly Quandl)."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://data.nasdaq.com/api/v3"
    api_key: str | None = Field(default=None, repr=False)

    @field_validator("api_key", mode="before")
    @classmethod
    def key_as_string(cls, v: object) -> str | None:
        # YAML reads all-digit keys as int
        if v is None or v == "":
            return None
        return str(v)


class TidyfetchConfig(BaseModel):
    """Root configuration for tidyfetch."""

    model_config = ConfigDict(frozen=True)

    http: HttpConfig = HttpConfig()
    series: SeriesConfig = SeriesConfig()
    fred: FredConfig = FredConfig()
    ratios: RatiosConfig = RatiosConfig()
    quotes: QuotesConfig = QuotesConfig()
    marketplace: MarketplaceConfig = MarketplaceConfig()


def load_config(
    config_path: str | None = None,
    env_prefix: str = "TIDYFETCH_",
) -> TidyfetchConfig:
    """Build the configuration from defaults, one YAML file and the environment.

    Later layers win: built-in defaults, then the first config file found
    (see ``_resolve_config_path``), then ``TIDYFETCH_*`` variables. Nested
    keys use a double underscore, so ``TIDYFETCH_RATIOS__ATTEMPTS=3`` sets
    ``ratios.attempts``.

    Raises:
        ConfigError: For a missing explicit file, unparseable YAML or
            values that fail validation.
    """
    path = _resolve_config_path(config_path, env_prefix)
    layered = _merge_env_vars(_load_yaml(path) if path else {}, env_prefix)
    try:
        return TidyfetchConfig.model_validate(layered)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration: {e}",
            context={"config_file": str(path) if path else None},
        ) from e


def _config_candidates() -> list[Path]:
    xdg = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return [Path("tidyfetch.yml"), Path(xdg) / "tidyfetch" / "config.yml"]


def _resolve_config_path(explicit: str | None, env_prefix: str = "TIDYFETCH_") -> Path | None:
    """Pick the config file: explicit path, ``<prefix>CONFIG``, then the
    working directory and the user config directory.

    Only the first two must exist; the fallbacks are optional.
    """
    env_var = f"{env_prefix}CONFIG"
    for value, origin in ((explicit, "config_path"), (os.environ.get(env_var), env_var)):
        if not value:
            continue
        path = Path(value).expanduser()
        if not path.is_file():
            raise ConfigError(
                f"Config file not found: {value}",
                context={"field": origin, "value": value},
            )
        return path

    return next((p for p in _config_candidates() if p.is_file()), None)


def _load_yaml(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"YAML config must be a mapping, got {type(data).__name__}",
            context={"field": "config_file", "value": str(path)},
        )
    return data


# Passed through uncast ("0123" must not become 123)
_VERBATIM_KEYS = frozenset({"api_key"})


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay environment variables onto base config dict.

    Double-underscore separates nesting levels.
    Values are auto-cast: "true"/"false" -> bool, numeric strings -> int.
    Credentials are kept verbatim.
    """
    result = dict(base)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        parts = [p.lower() for p in remainder.split("__")]

        # Skip the CONFIG env var itself
        if parts == ["config"]:
            continue

        cast_value = value if parts[-1] in _VERBATIM_KEYS else _auto_cast(value)

        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = cast_value

    return result


def _auto_cast(value: str) -> str | int | float | bool:
    """Auto-cast string values from environment variables."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value
