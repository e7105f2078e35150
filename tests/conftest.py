"""Shared fixtures."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from trail_status.services.http import create_client

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def run_with_client() -> Callable[..., Any]:
    """Run ``func(client)`` against a client whose requests go to ``handler``."""

    def _run(
        handler: Callable[[httpx.Request], httpx.Response],
        func: Callable[[httpx.AsyncClient], Awaitable[Any]],
    ) -> Any:
        async def main() -> Any:
            async with create_client(transport=httpx.MockTransport(handler)) as client:
                return await func(client)

        return asyncio.run(main())

    return _run


@pytest.fixture(scope="session")
def prefect_harness() -> Iterator[None]:
    """Temporary Prefect backend for tests that run flows."""
    from prefect.testing.utilities import prefect_test_harness

    with prefect_test_harness():
        yield
