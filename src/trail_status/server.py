"""
JSON endpoint for the frontend.

``GET /api/statuses`` returns the cached aggregate response while it is fresh
and runs the aggregation flow otherwise. The answer is always HTTP 200; a
failed cycle shows up as an empty ``trails`` object with a short max-age.

The server handles one request at a time, so a single process never runs two
aggregation cycles at once.
"""

from __future__ import annotations

import asyncio
import http.server
import json
import logging
from typing import Any

from trail_status.config import Settings, get_settings
from trail_status.flows.aggregate import aggregate_statuses, cache_control, failure_response
from trail_status.schemas import response_headers
from trail_status.store import RESPONSE_PATH, DataStore

logger = logging.getLogger(__name__)

STATUS_ROUTES = frozenset({"/api/statuses", "/api/statuses/"})


def _cached(store: DataStore) -> tuple[dict[str, Any], str | None] | None:
    """Fresh cached ``(body, cache_control)``, or None when stale or unreadable."""
    try:
        if not store.is_fresh(RESPONSE_PATH):
            return None
        envelope = store.read_raw(RESPONSE_PATH) or {}
        body = envelope.get("data")
        if not isinstance(body, dict):
            return None
        return body, envelope["meta"].get("cache_control")
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("Ignoring unreadable response cache: %s", exc)
        return None


def get_statuses(settings: Settings | None = None) -> tuple[dict[str, Any], dict[str, str]]:
    """Return ``(body, headers)``, re-aggregating only when the cache expired.

    Never raises: if the flow run itself fails, the empty failure body is
    returned with its short max-age.
    """
    settings = settings or get_settings()

    cached = _cached(DataStore(settings.data_dir))
    if cached is not None:
        body, cache = cached
        return body, response_headers(cache or cache_control(settings.cache_max_age))

    try:
        response = asyncio.run(aggregate_statuses())
    except Exception:  # noqa: BLE001 - the endpoint must always answer
        logger.exception("Aggregation run failed")
        response = failure_response(settings)
    return response.body(), response.headers


class StatusRequestHandler(http.server.BaseHTTPRequestHandler):
    """Serves the aggregate status JSON."""

    server_version = "trail-status"

    def do_GET(self) -> None:  # noqa: N802 - http.server naming
        route = self.path.split("?", 1)[0]
        if route not in STATUS_ROUTES:
            self.send_error(404, "Not Found")
            return

        body, headers = get_statuses()
        payload = json.dumps(body).encode()
        self.send_response(200)
        for name, value in headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.info("%s - %s", self.address_string(), format % args)


def serve(port: int) -> None:
    """Serve ``/api/statuses`` until interrupted."""
    with http.server.HTTPServer(("", port), StatusRequestHandler) as server:
        print(f"Serving trail statuses on http://localhost:{port}/api/statuses (Ctrl+C to stop)")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            print("\nServer stopped.")
