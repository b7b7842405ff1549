"""Rate-limited synchronous HTTP client shared by the httpx-backed sources."""

from __future__ import annotations

import logging
import time

import httpx

from tidyfetch.core.config import HttpConfig
from tidyfetch.core.exceptions import RateLimitError, UpstreamFault

logger = logging.getLogger(__name__)

_DEFAULT_RETRY_AFTER = 12
_RETRYABLE_STATUS = (500, 502, 503)


class HttpFetcher:
    """Blocking httpx client with request spacing and bounded retries.

    Use via ``with HttpFetcher(config) as http:`` or call ``close()``.
    """

    def __init__(
        self,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config or HttpConfig()
        self._client = client or httpx.Client(
            headers={"User-Agent": self._config.user_agent},
            timeout=httpx.Timeout(self._config.timeout),
            follow_redirects=True,
        )
        self._last_request_time: float = 0.0

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def _rate_limit(self) -> None:
        """Enforce minimum delay between requests."""
        elapsed = time.monotonic() - self._last_request_time
        if elapsed < self._config.request_delay:
            time.sleep(self._config.request_delay - elapsed)
        self._last_request_time = time.monotonic()

    def get(
        self,
        url: str,
        params: dict | None = None,
        attempts: int | None = None,
    ) -> httpx.Response:
        """GET with rate limiting and retry logic.

        Retry policy:
            - HTTP 429: Wait for Retry-After (or 12s default), then retry.
            - HTTP 500/502/503: Retry with exponential backoff.
            - Other HTTP errors: Raise immediately (no retry).
            - Transport errors: Retry with fixed delay.

        ``attempts`` overrides the total number of tries (default:
        ``max_retries + 1``).

        Raises:
            RateLimitError: If retries are exhausted on 429 responses.
            UpstreamFault: On any other unrecoverable failure.
        """
        total = attempts if attempts is not None else self._config.max_retries + 1

        for attempt in range(total):
            last = attempt == total - 1
            try:
                self._rate_limit()
                response = self._client.get(url, params=params)
            except httpx.TransportError as e:
                if not last:
                    logger.warning(
                        "Transport error on %s: %s (attempt %d/%d)",
                        url, e, attempt + 1, total,
                    )
                    time.sleep(self._config.retry_delay)
                    continue
                raise UpstreamFault(
                    f"Request failed after {total} attempts: {url}",
                    context={"url": url, "error": str(e)},
                ) from e

            if response.status_code == 200:
                return response

            if response.status_code == 429:
                retry_after = _retry_after(response)
                if not last:
                    logger.warning(
                        "Rate limited (429) on %s, waiting %ds (attempt %d/%d)",
                        url, retry_after, attempt + 1, total,
                    )
                    time.sleep(retry_after)
                    continue
                raise RateLimitError(
                    f"Rate limit exceeded after {total} attempts: {url}",
                    context={"url": url, "retry_after": retry_after},
                )

            if response.status_code in _RETRYABLE_STATUS:
                if not last:
                    delay = self._config.retry_delay * 2**attempt
                    logger.warning(
                        "Server error %d on %s, retrying in %.1fs (attempt %d/%d)",
                        response.status_code, url, delay, attempt + 1, total,
                    )
                    time.sleep(delay)
                    continue
                raise UpstreamFault(
                    f"Server error {response.status_code} after {total} attempts: {url}",
                    context={"url": url, "status_code": response.status_code},
                )

            raise UpstreamFault(
                f"HTTP {response.status_code} from {url}",
                context={"url": url, "status_code": response.status_code},
            )

        raise UpstreamFault(f"No attempts made for {url}", context={"url": url})


def _retry_after(response: httpx.Response) -> int:
    try:
        return int(response.headers.get("Retry-After", _DEFAULT_RETRY_AFTER))
    except ValueError:
        return _DEFAULT_RETRY_AFTER
