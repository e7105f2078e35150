"""Tests for the shared HTTP client and retry policy."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from trail_status.errors import RateLimitedError, TransportError
from trail_status.services.http import (
    BROWSER_USER_AGENT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT,
    create_client,
    fetch_with_retry,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from tests.conftest import RecordingSleep

URL = "https://example.com/feed"


class Responder:
    """MockTransport handler replaying a script of responses or exceptions."""

    def __init__(self, *script: httpx.Response | Exception) -> None:
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.script[min(len(self.requests), len(self.script)) - 1]
        if isinstance(step, Exception):
            raise step
        # Fresh copy: the last step may be replayed
        return httpx.Response(step.status_code, headers=step.headers, content=step.content)


def _fetch(sleeps: RecordingSleep, **kwargs: Any) -> Callable[[httpx.AsyncClient], Any]:
    return lambda client: fetch_with_retry(client, URL, sleep=sleeps, **kwargs)


class TestCreateClient:
    """Verify client factory."""

    def test_returns_async_client(self) -> None:
        client = create_client()
        assert isinstance(client, httpx.AsyncClient)
        asyncio.run(client.aclose())

    def test_user_agent_header(self) -> None:
        client = create_client()
        assert "trail-status" in client.headers["User-Agent"]
        asyncio.run(client.aclose())

    def test_custom_timeout(self) -> None:
        client = create_client(timeout=42)
        assert client.timeout.read == 42
        asyncio.run(client.aclose())

    def test_defaults(self) -> None:
        assert DEFAULT_TIMEOUT == 30
        assert DEFAULT_MAX_ATTEMPTS == 3


class TestFetchWithRetry:
    """Retry behaviour for 429s and transport errors."""

    def test_success_first_try(self, run_with_client: Any, sleeps: RecordingSleep) -> None:
        responder = Responder(httpx.Response(200, text="ok"))
        resp = run_with_client(responder, _fetch(sleeps))
        assert resp.status_code == 200
        assert resp.text == "ok"
        assert len(responder.requests) == 1
        assert sleeps.calls == []

    def test_non_429_error_returned_unmodified(
        self, run_with_client: Any, sleeps: RecordingSleep
    ) -> None:
        responder = Responder(httpx.Response(503))
        resp = run_with_client(responder, _fetch(sleeps))
        assert resp.status_code == 503
        assert len(responder.requests) == 1
        assert sleeps.calls == []

    def test_429_honours_retry_after(self, run_with_client: Any, sleeps: RecordingSleep) -> None:
        responder = Responder(
            httpx.Response(429, headers={"Retry-After": "7"}),
            httpx.Response(200),
        )
        resp = run_with_client(responder, _fetch(sleeps))
        assert resp.status_code == 200
        assert sleeps.calls == [7.0]

    def test_429_without_retry_after_backs_off_exponentially(
        self, run_with_client: Any, sleeps: RecordingSleep
    ) -> None:
        responder = Responder(httpx.Response(429), httpx.Response(429), httpx.Response(200))
        resp = run_with_client(responder, _fetch(sleeps))
        assert resp.status_code == 200
        assert sleeps.calls == [1.0, 2.0]

    def test_unparseable_retry_after_falls_back(
        self, run_with_client: Any, sleeps: RecordingSleep
    ) -> None:
        responder = Responder(
            httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}),
            httpx.Response(200),
        )
        run_with_client(responder, _fetch(sleeps))
        assert sleeps.calls == [1.0]

    def test_persistent_429_is_bounded(self, run_with_client: Any, sleeps: RecordingSleep) -> None:
        responder = Responder(httpx.Response(429, headers={"Retry-After": "1"}))
        with pytest.raises(RateLimitedError) as excinfo:
            run_with_client(responder, _fetch(sleeps, max_attempts=3))

        assert excinfo.value.status == 429
        assert len(responder.requests) == 3
        # Two waits between three attempts, ~2 seconds in total
        assert sleeps.calls == [1.0, 1.0]

    def test_transport_error_retried(self, run_with_client: Any, sleeps: RecordingSleep) -> None:
        responder = Responder(httpx.ConnectError("connection reset"), httpx.Response(200))
        resp = run_with_client(responder, _fetch(sleeps))
        assert resp.status_code == 200
        assert sleeps.calls == [0.5]

    def test_transport_error_exhausts(self, run_with_client: Any, sleeps: RecordingSleep) -> None:
        responder = Responder(httpx.ConnectTimeout("timed out"))
        with pytest.raises(TransportError) as excinfo:
            run_with_client(responder, _fetch(sleeps, max_attempts=3))

        assert isinstance(excinfo.value.__cause__, httpx.ConnectTimeout)
        assert len(responder.requests) == 3
        assert sleeps.calls == [0.5, 1.0]

    def test_single_attempt_does_not_sleep(
        self, run_with_client: Any, sleeps: RecordingSleep
    ) -> None:
        responder = Responder(httpx.Response(429))
        with pytest.raises(RateLimitedError):
            run_with_client(responder, _fetch(sleeps, max_attempts=1))
        assert sleeps.calls == []

    def test_extra_headers_sent(self, run_with_client: Any, sleeps: RecordingSleep) -> None:
        responder = Responder(httpx.Response(200))
        run_with_client(responder, _fetch(sleeps, headers={"User-Agent": BROWSER_USER_AGENT}))
        assert responder.requests[0].headers["User-Agent"] == BROWSER_USER_AGENT
