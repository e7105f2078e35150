"""Event extraction from an iCalendar feed."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo
from typing import Any

from icalendar import Calendar

from trail_status.errors import ParseError


@dataclass(frozen=True)
class CalendarEvent:
    """A single status post from the feed."""

    summary: str
    start: datetime
    description: str | None = None

    def local_date(self, tz: tzinfo) -> date:
        """Calendar day of the event start in ``tz``."""
        return self.start.astimezone(tz).date()


def _first(value: Any) -> Any:
    # icalendar returns a list when a property repeats
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _to_datetime(value: Any, tz: tzinfo) -> datetime | None:
    """Normalize a DTSTART value to an aware datetime.

    Date-only values start at local midnight; floating date-times are local.
    Returns None for a missing or unparseable value.
    """
    if value is None:
        return None
    try:
        dt = getattr(value, "dt", value)
    except ValueError:
        # icalendar keeps unparseable values and raises on access
        return None
    if isinstance(dt, datetime):
        return dt if dt.tzinfo is not None else dt.replace(tzinfo=tz)
    if isinstance(dt, date):
        return datetime.combine(dt, time(), tzinfo=tz)
    return None


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    lines = [line.strip() for line in str(value).splitlines()]
    text = " ".join(line for line in lines if line)
    return text or None


def parse_events(ical_text: str, tz: tzinfo) -> list[CalendarEvent]:
    """
    Parse VEVENT blocks into events.

    Events lacking a summary or a usable start are dropped.

    Args:
        ical_text: Raw feed body.
        tz: Zone for date-only and floating start times.

    Raises:
        ParseError: The text is not a valid iCalendar document.
    """
    try:
        calendar = Calendar.from_ical(ical_text)
    except ValueError as exc:
        msg = f"Invalid calendar feed: {exc}"
        raise ParseError(msg) from exc

    events = []
    for component in calendar.walk("VEVENT"):
        summary = _clean_text(_first(component.get("SUMMARY")))
        start = _to_datetime(_first(component.get("DTSTART")), tz)
        if not summary or start is None:
            continue
        description = _clean_text(_first(component.get("DESCRIPTION")))
        events.append(CalendarEvent(summary=summary, start=start, description=description))

    return events
