"""Trail status from a calendar of status posts.

The trail crew posts an all-day event titled e.g. "Trails OPEN" or "CLOSED -
wet" whenever conditions change, so today's latest event is the current
status, and without one the most recent post still holds.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx

from trail_status.datasources.calendar.events import CalendarEvent, parse_events
from trail_status.errors import FetchError, ParseError, UpstreamError
from trail_status.schemas import StatusResult, TrailStatus
from trail_status.services.http import DEFAULT_MAX_ATTEMPTS, fetch_with_retry

if TYPE_CHECKING:
    from datetime import tzinfo

logger = logging.getLogger(__name__)

NO_UPDATES = "No status updates found"
FETCH_FAILED = "Unable to fetch trail status"
LAST_UPDATE_PREFIX = "Last update: "


def classify_text(text: str) -> TrailStatus:
    """Map event text to a status by keyword; "closed" beats "open"."""
    lower = text.lower()
    if "closed" in lower:
        return TrailStatus.CLOSED
    if "open" in lower:
        return TrailStatus.OPEN
    return TrailStatus.UNKNOWN


def status_from_events(
    events: list[CalendarEvent],
    now: datetime,
    tz: tzinfo,
) -> StatusResult:
    """
    Derive the current status from parsed events.

    Today's latest post wins; otherwise the most recent post before ``now``
    is reported with a "Last update: " prefix. Future posts are ignored
    unless they fall on today.

    Args:
        events: Events with summary and start.
        now: Current time (aware).
        tz: Zone defining "today".
    """
    today = now.astimezone(tz).date()
    by_newest = sorted(events, key=lambda e: e.start, reverse=True)

    todays = [e for e in by_newest if e.local_date(tz) == today]
    if todays:
        latest = todays[0]
        return StatusResult(
            status=classify_text(latest.summary),
            description=latest.description or latest.summary,
        )

    past = [e for e in by_newest if e.start <= now]
    if past:
        recent = past[0]
        description = f"{LAST_UPDATE_PREFIX}{recent.summary}"
        if recent.description:
            description += f" - {recent.description}"
        return StatusResult(status=classify_text(recent.summary), description=description)

    return StatusResult(status=TrailStatus.UNKNOWN, description=NO_UPDATES)


async def fetch_calendar_status(
    client: httpx.AsyncClient,
    url: str,
    *,
    tz: tzinfo,
    now: datetime | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> StatusResult:
    """
    Fetch a calendar feed and derive the trail status.

    Never raises: any fetch or parse failure becomes ``status=error``.
    """
    try:
        resp = await fetch_with_retry(client, url, max_attempts=max_attempts)
        if not resp.is_success:
            raise UpstreamError(url, resp.status_code)
        events = parse_events(resp.text, tz)
    except (FetchError, ParseError, ValueError, httpx.HTTPError) as exc:
        logger.error("Calendar fetch failed for %s: %s", url, exc)
        return StatusResult(status=TrailStatus.ERROR, description=FETCH_FAILED)

    return status_from_events(events, now or datetime.now(UTC), tz)
