"""iCalendar status source.

Public API:
  - events: CalendarEvent, parse_events
  - status: classify_text, status_from_events, fetch_calendar_status
"""

from trail_status.datasources.calendar.events import CalendarEvent, parse_events
from trail_status.datasources.calendar.status import (
    classify_text,
    fetch_calendar_status,
    status_from_events,
)

__all__ = [
    "CalendarEvent",
    "classify_text",
    "fetch_calendar_status",
    "parse_events",
    "status_from_events",
]
