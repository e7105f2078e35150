"""Tests for the JSON status endpoint."""

from __future__ import annotations

import http.server
import threading
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from unittest.mock import patch

import httpx
import pytest

from trail_status.config import Settings
from trail_status.schemas import AggregateResponse, response_headers
from trail_status.server import StatusRequestHandler, get_statuses
from trail_status.store import RESPONSE_PATH, DataStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

CACHE = "public, s-maxage=7200, max-age=7200"
SHORT_CACHE = "public, s-maxage=300, max-age=300"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(_env_file=None, data_dir=tmp_path)


def cached(tmp_path: Path, body: dict[str, object], valid_until: datetime) -> None:
    DataStore(tmp_path).write(
        RESPONSE_PATH, body, source="trail-status", valid_until=valid_until, cache_control=CACHE
    )


def ok_response() -> AggregateResponse:
    return AggregateResponse(
        last_updated=datetime(2026, 10, 19, 15, tzinfo=UTC), cache_control=CACHE
    )


async def _resolved(response: AggregateResponse) -> AggregateResponse:
    return response


async def _crashed() -> AggregateResponse:
    raise RuntimeError("engine unavailable")


class TestGetStatuses:
    """Cache-or-aggregate decision."""

    def test_fresh_cache_served(self, settings: Settings, tmp_path: Path) -> None:
        body = {"trails": {}, "lastUpdated": "2026-10-19T15:00:00Z"}
        cached(tmp_path, body, datetime.now(UTC) + timedelta(hours=1))

        with patch("trail_status.server.aggregate_statuses") as mock_flow:
            result = get_statuses(settings)

        assert result == (body, response_headers(CACHE))
        mock_flow.assert_not_called()

    def test_expired_cache_reaggregates(self, settings: Settings, tmp_path: Path) -> None:
        cached(tmp_path, {"trails": {}}, datetime.now(UTC) - timedelta(seconds=1))
        response = AggregateResponse(
            last_updated=datetime(2026, 10, 19, 15, tzinfo=UTC),
            cache_control=SHORT_CACHE,
            error="Failed to fetch trail statuses",
        )

        with patch(
            "trail_status.server.aggregate_statuses", return_value=_resolved(response)
        ) as mock_flow:
            body, headers = get_statuses(settings)

        mock_flow.assert_called_once()
        assert body["error"] == "Failed to fetch trail statuses"
        assert headers == response.headers

    def test_corrupt_cache_reaggregates(self, settings: Settings, tmp_path: Path) -> None:
        path = tmp_path / RESPONSE_PATH
        path.parent.mkdir(parents=True)
        path.write_text('{"meta": {"valid_until": ')

        with patch(
            "trail_status.server.aggregate_statuses", return_value=_resolved(ok_response())
        ) as mock_flow:
            body, headers = get_statuses(settings)

        mock_flow.assert_called_once()
        assert body == {"trails": {}, "lastUpdated": "2026-10-19T15:00:00Z"}
        assert headers["Cache-Control"] == CACHE

    def test_cache_without_data_reaggregates(self, settings: Settings, tmp_path: Path) -> None:
        DataStore(tmp_path).write(
            RESPONSE_PATH, None, source="x", valid_until=datetime.now(UTC) + timedelta(hours=1)
        )
        with patch(
            "trail_status.server.aggregate_statuses", return_value=_resolved(ok_response())
        ) as mock_flow:
            get_statuses(settings)
        mock_flow.assert_called_once()

    def test_failed_run_gives_failure_body(self, settings: Settings) -> None:
        with patch("trail_status.server.aggregate_statuses", return_value=_crashed()):
            body, headers = get_statuses(settings)

        assert body["trails"] == {}
        assert body["error"] == "Failed to fetch trail statuses"
        assert headers["Cache-Control"] == SHORT_CACHE


@pytest.fixture
def server_url() -> Iterator[str]:
    server = http.server.HTTPServer(("127.0.0.1", 0), StatusRequestHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


class TestStatusRequestHandler:
    """HTTP surface."""

    def test_statuses_route(self, server_url: str) -> None:
        body = {"trails": {"momba": {"status": "open"}}, "lastUpdated": "2026-10-19T15:00:00Z"}
        with patch(
            "trail_status.server.get_statuses", return_value=(body, response_headers(CACHE))
        ):
            resp = httpx.get(f"{server_url}/api/statuses?ts=1", trust_env=False)

        assert resp.status_code == 200
        assert resp.json() == body
        assert resp.headers["Content-Type"] == "application/json"
        assert resp.headers["Cache-Control"] == CACHE
        assert resp.headers["Access-Control-Allow-Origin"] == "*"

    def test_trailing_slash(self, server_url: str) -> None:
        headers = response_headers(CACHE)
        with patch("trail_status.server.get_statuses", return_value=({"trails": {}}, headers)):
            assert httpx.get(f"{server_url}/api/statuses/", trust_env=False).status_code == 200

    def test_unknown_route(self, server_url: str) -> None:
        with patch("trail_status.server.get_statuses") as mock_get:
            resp = httpx.get(f"{server_url}/api/other", trust_env=False)
        assert resp.status_code == 404
        mock_get.assert_not_called()
