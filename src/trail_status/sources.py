"""StatusSource: one variant per way a trail publishes its status.

The orchestrator only ever calls ``extract_status(client)``; which datasource
runs is decided once, from the trail's kind, by ``source_for()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, tzinfo
from typing import TYPE_CHECKING, Protocol

from trail_status.datasources.calendar import fetch_calendar_status
from trail_status.datasources.image import fetch_image_status
from trail_status.schemas import SourceKind
from trail_status.services.http import DEFAULT_MAX_ATTEMPTS

if TYPE_CHECKING:
    from datetime import datetime

    import httpx

    from trail_status.schemas import StatusResult, TrailConfig


class StatusSource(Protocol):
    """Anything that can report a trail's current status."""

    async def extract_status(self, client: httpx.AsyncClient) -> StatusResult: ...


@dataclass(frozen=True)
class CalendarSource:
    """Public iCalendar feed of status posts."""

    url: str
    tz: tzinfo = UTC
    now: datetime | None = None
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    async def extract_status(self, client: httpx.AsyncClient) -> StatusResult:
        return await fetch_calendar_status(
            client, self.url, tz=self.tz, now=self.now, max_attempts=self.max_attempts
        )


@dataclass(frozen=True)
class ImageSource:
    """Profile picture whose background colour encodes the status."""

    locator: str
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    async def extract_status(self, client: httpx.AsyncClient) -> StatusResult:
        return await fetch_image_status(client, self.locator, max_attempts=self.max_attempts)


def source_for(
    trail: TrailConfig,
    *,
    tz: tzinfo = UTC,
    now: datetime | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> StatusSource:
    """Build the status source matching ``trail.kind``."""
    builders = {
        SourceKind.CALENDAR: lambda: CalendarSource(
            trail.source, tz=tz, now=now, max_attempts=max_attempts
        ),
        SourceKind.IMAGE: lambda: ImageSource(trail.source, max_attempts=max_attempts),
    }
    return builders[trail.kind]()
