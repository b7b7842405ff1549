"""Marketplace API key store.

An explicitly set key wins over the configured one. Without any key the
marketplace still answers, but with anonymous usage limits.
"""

from __future__ import annotations

from tidyfetch.core.config import MarketplaceConfig

_api_key: str | None = None


def set_api_key(key: str | None) -> None:
    """Set (or with None, unset) the process-wide marketplace API key."""
    global _api_key
    _api_key = key.strip() if key and key.strip() else None


def clear_api_key() -> None:
    set_api_key(None)


def get_api_key(config: MarketplaceConfig | None = None) -> str | None:
    """Return the explicitly set key, else the configured one, else None."""
    if _api_key is not None:
        return _api_key
    if config is not None and config.api_key:
        return config.api_key
    return None
