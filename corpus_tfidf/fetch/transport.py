"""
HTTP byte transport.

Fetches raw response bodies with httpx, following redirects and retrying
with a short linear backoff. Failures are reported in the returned
FetchResult rather than raised, so callers decide how to classify them.
"""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Callable

import httpx

from ..config import FetchConfig


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either content will be populated (success) or error will be populated
    (failure), but never both. status_code may be None for network-level
    failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        content: The raw response body, or None on error
        error: Error message if fetch failed, None on success
    """
    url: str
    status_code: int | None
    content: bytes | None
    error: str | None

    @property
    def ok(self) -> bool:
        return self.error is None and self.content is not None


Transport = Callable[[str], FetchResult]


def fetch_url(
    url: str,
    timeout: float,
    retries: int,
    user_agent: str,
    trust_env: bool,
) -> FetchResult:
    """Fetch a URL using httpx with retry logic.

    Uses a synchronous HTTP client that follows redirects and respects
    system proxy settings when trust_env is enabled. HTTP error statuses
    count as failures and are retried like network errors.

    Args:
        url: The URL to fetch
        timeout: Request timeout in seconds
        retries: Number of retry attempts after initial failure
        user_agent: User-Agent header string
        trust_env: Whether to respect system proxy settings from environment

    Returns:
        FetchResult with content on success or error message on failure
    """
    headers = {"User-Agent": user_agent}
    last_error: str | None = None
    last_status: int | None = None

    for attempt in range(retries + 1):
        try:
            with httpx.Client(
                timeout=timeout,
                headers=headers,
                follow_redirects=True,
                trust_env=trust_env,
            ) as client:
                resp = client.get(url)
            if resp.status_code < 400:
                return FetchResult(url=url, status_code=resp.status_code, content=resp.content, error=None)
            last_status = resp.status_code
            last_error = f"HTTPStatusError: {resp.status_code} {resp.reason_phrase}"
        except httpx.InvalidURL as exc:
            # Malformed URLs are not retried.
            return FetchResult(url=url, status_code=None, content=None, error=f"InvalidURL: {exc}")
        except httpx.HTTPError as exc:
            last_status = None
            last_error = f"{type(exc).__name__}: {exc}"
        if attempt < retries:
            # Backoff: 0.5s, 1.0s, 1.5s...
            time.sleep(0.5 * (attempt + 1))

    return FetchResult(url=url, status_code=last_status, content=None, error=last_error)


def build_transport(cfg: FetchConfig) -> Transport:
    """Bind fetch_url to the transport settings of a FetchConfig."""

    def _transport(url: str) -> FetchResult:
        return fetch_url(
            url,
            timeout=cfg.timeout_seconds,
            retries=cfg.retries,
            user_agent=cfg.user_agent,
            trust_env=cfg.trust_env,
        )

    return _transport
