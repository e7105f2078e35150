"""Tests for the iCalendar status source."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from trail_status.datasources.calendar import (
    CalendarEvent,
    classify_text,
    fetch_calendar_status,
    parse_events,
    status_from_events,
)
from trail_status.errors import ParseError
from trail_status.schemas import TrailStatus

# 2026-10-19 10:00 local at UTC-5
NOW = datetime(2026, 10, 19, 15, 0, tzinfo=UTC)
TZ = timezone(timedelta(hours=-5))
FEED_URL = "https://calendar.example.com/basic.ics"


def make_feed(*events: str) -> str:
    """Wrap VEVENT bodies in a minimal VCALENDAR."""
    body = "".join(f"BEGIN:VEVENT\r\n{event}END:VEVENT\r\n" for event in events)
    return f"BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//test//EN\r\n{body}END:VCALENDAR\r\n"


def event(summary: str, start: datetime, description: str | None = None) -> CalendarEvent:
    return CalendarEvent(summary=summary, start=start, description=description)


class TestClassifyText:
    """Keyword classification."""

    def test_open(self) -> None:
        assert classify_text("Trails OPEN") == TrailStatus.OPEN

    def test_closed(self) -> None:
        assert classify_text("trails closed - wet") == TrailStatus.CLOSED

    def test_closed_beats_open(self) -> None:
        assert classify_text("Closed today, will reopen tomorrow") == TrailStatus.CLOSED

    def test_no_keyword(self) -> None:
        assert classify_text("Trail work day, bring gloves") == TrailStatus.UNKNOWN

    def test_case_insensitive(self) -> None:
        assert classify_text("CLOSED") == TrailStatus.CLOSED
        assert classify_text("oPeN") == TrailStatus.OPEN


class TestParseEvents:
    """VEVENT extraction."""

    def test_date_only_start_is_local_midnight(self) -> None:
        feed = make_feed("SUMMARY:Trail OPEN\r\nDTSTART;VALUE=DATE:20261019\r\n")
        events = parse_events(feed, TZ)
        assert len(events) == 1
        assert events[0].summary == "Trail OPEN"
        assert events[0].start == datetime(2026, 10, 19, tzinfo=TZ)

    def test_utc_datetime_start(self) -> None:
        feed = make_feed("SUMMARY:Closed\r\nDTSTART:20261018T143000Z\r\n")
        events = parse_events(feed, TZ)
        assert events[0].start == datetime(2026, 10, 18, 14, 30, tzinfo=UTC)

    def test_description_unescaped_and_unfolded(self) -> None:
        feed = make_feed(
            "SUMMARY:Closed\r\n"
            "DTSTART;VALUE=DATE:20261019\r\n"
            "DESCRIPTION:Wet\\, muddy\\nStay off until\r\n"
            "  Saturday\r\n"
        )
        events = parse_events(feed, TZ)
        assert events[0].description == "Wet, muddy Stay off until Saturday"

    def test_missing_summary_dropped(self) -> None:
        feed = make_feed("DTSTART;VALUE=DATE:20261019\r\n")
        assert parse_events(feed, TZ) == []

    def test_missing_start_dropped(self) -> None:
        feed = make_feed("SUMMARY:Trail OPEN\r\n")
        assert parse_events(feed, TZ) == []

    def test_multiple_events(self) -> None:
        feed = make_feed(
            "SUMMARY:Open\r\nDTSTART;VALUE=DATE:20261017\r\n",
            "SUMMARY:Closed\r\nDTSTART;VALUE=DATE:20261018\r\n",
        )
        assert [e.summary for e in parse_events(feed, TZ)] == ["Open", "Closed"]

    def test_unparseable_start_dropped(self) -> None:
        feed = make_feed(
            "SUMMARY:Trail OPEN\r\nDTSTART;VALUE=DATE:20261019\r\n",
            "SUMMARY:Trail CLOSED\r\nDTSTART:2026-10-1\r\n",
        )
        assert [e.summary for e in parse_events(feed, TZ)] == ["Trail OPEN"]

    def test_not_a_calendar(self) -> None:
        with pytest.raises(ParseError):
            parse_events("this is not a calendar", TZ)


class TestStatusFromEvents:
    """Selecting and classifying the relevant event."""

    def test_today_event(self) -> None:
        events = [event("Trail OPEN", datetime(2026, 10, 19, tzinfo=TZ))]
        result = status_from_events(events, NOW, TZ)
        assert result.status == TrailStatus.OPEN
        assert result.description == "Trail OPEN"

    def test_today_event_prefers_description(self) -> None:
        result = status_from_events(
            [event("CLOSED", datetime(2026, 10, 19, tzinfo=TZ), "Too wet to ride")], NOW, TZ
        )
        assert result.status == TrailStatus.CLOSED
        assert result.description == "Too wet to ride"

    def test_latest_of_several_today(self) -> None:
        events = [
            event("Closed this morning", datetime(2026, 10, 19, 7, tzinfo=TZ)),
            event("Open again", datetime(2026, 10, 19, 9, tzinfo=TZ)),
        ]
        assert status_from_events(events, NOW, TZ).status == TrailStatus.OPEN

    def test_falls_back_to_most_recent_past(self) -> None:
        events = [
            event("Trails Closed", datetime(2026, 10, 10, tzinfo=TZ)),
            event("Trails Open", datetime(2026, 10, 15, tzinfo=TZ)),
        ]
        result = status_from_events(events, NOW, TZ)
        assert result.status == TrailStatus.OPEN
        assert result.description == "Last update: Trails Open"

    def test_fallback_appends_description(self) -> None:
        events = [event("Closed", datetime(2026, 10, 15, tzinfo=TZ), "Freeze/thaw")]
        result = status_from_events(events, NOW, TZ)
        assert result.status == TrailStatus.CLOSED
        assert result.description == "Last update: Closed - Freeze/thaw"

    def test_local_day_boundary(self) -> None:
        # 04:30 UTC on the 19th is still the 18th locally
        events = [event("Closed", datetime(2026, 10, 19, 4, 30, tzinfo=UTC))]
        result = status_from_events(events, NOW, TZ)
        assert result.description.startswith("Last update: ")

    def test_future_events_ignored_for_fallback(self) -> None:
        events = [
            event("Open", datetime(2026, 10, 12, tzinfo=TZ)),
            event("Closed for race", datetime(2026, 10, 25, tzinfo=TZ)),
        ]
        result = status_from_events(events, NOW, TZ)
        assert result.status == TrailStatus.OPEN

    def test_no_events(self) -> None:
        result = status_from_events([], NOW, TZ)
        assert result.status == TrailStatus.UNKNOWN
        assert result.description == "No status updates found"

    @pytest.mark.parametrize(
        ("summary", "expected"),
        [
            ("Open", TrailStatus.OPEN),
            ("CLOSED", TrailStatus.CLOSED),
            ("Open? No, closed", TrailStatus.CLOSED),
            ("Group ride 6pm", TrailStatus.UNKNOWN),
        ],
    )
    def test_today_classification(self, summary: str, expected: TrailStatus) -> None:
        events = [event(summary, datetime(2026, 10, 19, 8, tzinfo=TZ))]
        assert status_from_events(events, NOW, TZ).status == expected


class TestFetchCalendarStatus:
    """End-to-end with a mocked feed."""

    def test_open_today(self, run_with_client: Any) -> None:
        feed = make_feed("SUMMARY:Trail OPEN\r\nDTSTART;VALUE=DATE:20261019\r\n")
        result = run_with_client(
            lambda request: httpx.Response(200, text=feed),
            lambda client: fetch_calendar_status(client, FEED_URL, tz=TZ, now=NOW),
        )
        assert result.status == TrailStatus.OPEN
        assert result.description == "Trail OPEN"
        assert result.detected_color is None

    def test_bad_event_does_not_hide_good_one(self, run_with_client: Any) -> None:
        feed = make_feed(
            "SUMMARY:Trails OPEN\r\nDTSTART;VALUE=DATE:20261019\r\n",
            "SUMMARY:Trails CLOSED\r\nDTSTART:2026-10-1\r\n",
        )
        result = run_with_client(
            lambda request: httpx.Response(200, text=feed),
            lambda client: fetch_calendar_status(client, FEED_URL, tz=TZ, now=NOW),
        )
        assert result.status == TrailStatus.OPEN
        assert result.description == "Trails OPEN"

    def test_http_error_is_error_status(self, run_with_client: Any) -> None:
        result = run_with_client(
            lambda request: httpx.Response(500),
            lambda client: fetch_calendar_status(client, FEED_URL, tz=TZ, now=NOW),
        )
        assert result.status == TrailStatus.ERROR
        assert result.description == "Unable to fetch trail status"

    def test_malformed_feed_is_error_status(self, run_with_client: Any) -> None:
        result = run_with_client(
            lambda request: httpx.Response(200, text="<html>Sign in</html>"),
            lambda client: fetch_calendar_status(client, FEED_URL, tz=TZ, now=NOW),
        )
        assert result.status == TrailStatus.ERROR

    def test_transport_failure_is_error_status(self, run_with_client: Any) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("dns failure")

        result = run_with_client(
            handler,
            lambda client: fetch_calendar_status(
                client, FEED_URL, tz=TZ, now=NOW, max_attempts=1
            ),
        )
        assert result.status == TrailStatus.ERROR
