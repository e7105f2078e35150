"""
Shared async HTTP client with rate-limit aware retry.

``create_client()`` builds a pre-configured ``httpx.AsyncClient``;
``fetch_with_retry()`` wraps a GET with the retry policy every source uses:

- HTTP 429: wait ``Retry-After`` seconds (or ``2**attempt`` when absent),
  then retry. Exhausting attempts raises ``RateLimitedError``.
- Transport failure (DNS, timeout, reset): wait ``2**attempt * 0.5`` seconds,
  then retry. Exhausting attempts raises ``TransportError``.
- Any other response, 2xx or not, is returned as-is; callers check status.

Usage::

    from trail_status.services.http import create_client, fetch_with_retry

    async with create_client() as client:
        resp = await fetch_with_retry(client, "https://api.example.com/v1/data")
        resp.raise_for_status()
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from trail_status import __version__
from trail_status.errors import RateLimitedError, TransportError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_MAX_ATTEMPTS = 3

USER_AGENT = f"trail-status/{__version__}"

#: Some sources (social-media CDNs) reject non-browser clients.
BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

RATE_LIMITED = 429


def create_client(
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an ``httpx.AsyncClient`` with the project User-Agent.

    Args:
        timeout: Default timeout applied to every request.
        transport: Custom transport (tests pass ``httpx.MockTransport``).
    """
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


def _retry_after_seconds(response: httpx.Response, attempt: int) -> float:
    value = response.headers.get("Retry-After")
    if value is not None:
        try:
            return float(int(value))
        except ValueError:
            # HTTP-date form; fall through to exponential backoff
            pass
    return float(2**attempt)


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> httpx.Response:
    """
    GET ``url``, retrying on HTTP 429 and transport failures.

    Args:
        client: Client to send through.
        url: Destination URL.
        headers: Extra request headers (merged over the client's).
        max_attempts: Total attempts, including the first.
        sleep: Awaitable delay function (injected in tests).

    Returns:
        The first non-429 response.

    Raises:
        RateLimitedError: Every attempt answered 429.
        TransportError: The last attempt failed at the network level.
    """
    last_error: httpx.TransportError | None = None

    for attempt in range(max_attempts):
        is_last = attempt == max_attempts - 1
        try:
            response = await client.get(url, headers=headers)
        except httpx.TransportError as exc:
            last_error = exc
            logger.warning("Transport error fetching %s (attempt %d): %s", url, attempt + 1, exc)
            if not is_last:
                await sleep(2**attempt * 0.5)
            continue

        if response.status_code != RATE_LIMITED:
            return response

        if is_last:
            raise RateLimitedError(url, response.status_code)

        wait = _retry_after_seconds(response, attempt)
        logger.info("Rate limited by %s, retrying in %.1fs", url, wait)
        await sleep(wait)

    msg = f"Giving up on {url} after {max_attempts} attempts"
    raise TransportError(msg) from last_error
