"""
Prefect flow aggregating every trail's status and tomorrow's prediction.

Each trail runs its status source and the weather engine concurrently, and
all trails run concurrently with each other. Once every entry is in, the
notifier diffs the new statuses against the persisted map, and the response
is cached in the data store for the JSON endpoint.

Run locally:
    python -m trail_status.flows.aggregate

Run with Prefect dashboard:
    prefect server start &
    python -m trail_status.flows.aggregate
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from prefect import flow, task

from trail_status.config import get_settings
from trail_status.datasources.weather import WeatherOptions, fetch_weather_prediction
from trail_status.errors import TrailStatusError
from trail_status.notify import StatusChange, check_and_notify
from trail_status.reference import load_trails
from trail_status.schemas import (
    AggregateResponse,
    StatusResult,
    TrailConfig,
    TrailEntry,
    TrailStatus,
    WeatherPrediction,
    WeatherUnavailable,
)
from trail_status.services.http import create_client
from trail_status.sources import source_for
from trail_status.store import RESPONSE_PATH, DataStore, StatusStore

if TYPE_CHECKING:
    from pathlib import Path

    from trail_status.config import Settings

AGGREGATE_FAILED = "Failed to fetch trail statuses"
STATUS_FAILED = "Unable to fetch trail status"


def cache_control(max_age: int) -> str:
    """Cache directive for browsers and the CDN edge."""
    return f"public, s-maxage={max_age}, max-age={max_age}"


def success_response(
    entries: dict[str, TrailEntry], settings: Settings, now: datetime | None = None
) -> AggregateResponse:
    return AggregateResponse(
        trails=entries,
        last_updated=now or datetime.now(UTC),
        cache_control=cache_control(settings.cache_max_age),
    )


def failure_response(settings: Settings, now: datetime | None = None) -> AggregateResponse:
    """Empty response with a short cache lifetime so clients retry soon."""
    return AggregateResponse(
        trails={},
        last_updated=now or datetime.now(UTC),
        error=AGGREGATE_FAILED,
        cache_control=cache_control(settings.error_cache_max_age),
    )


@task(name="fetch-trail-status")
async def fetch_trail_status(trail: TrailConfig, now: datetime | None = None) -> StatusResult:
    """Read the trail's current status from its own source."""
    settings = get_settings()
    source = source_for(trail, tz=settings.tz, now=now, max_attempts=settings.max_fetch_attempts)
    async with create_client(timeout=settings.http_timeout) as client:
        return await source.extract_status(client)


@task(name="fetch-trail-weather")
async def fetch_trail_weather(
    trail: TrailConfig, now: datetime | None = None
) -> WeatherPrediction | WeatherUnavailable | None:
    """Predict tomorrow's status at the trail's coordinate."""
    settings = get_settings()
    if not settings.openweather_api_key:
        return None
    async with create_client(timeout=settings.http_timeout) as client:
        return await fetch_weather_prediction(
            client,
            trail.lat,
            trail.lon,
            settings.openweather_api_key,
            options=WeatherOptions(units=settings.units, tz=settings.tz),
            now=now,
            max_attempts=settings.max_fetch_attempts,
        )


async def _status_or_error(trail: TrailConfig, now: datetime | None) -> StatusResult:
    try:
        return await fetch_trail_status(trail, now)
    except Exception as exc:  # noqa: BLE001 - one trail must not sink the others
        print(f"  {trail.id}: status source failed: {exc!r}")
        return StatusResult(status=TrailStatus.ERROR, description=STATUS_FAILED)


async def _weather_or_none(
    trail: TrailConfig, now: datetime | None
) -> WeatherPrediction | WeatherUnavailable | None:
    try:
        return await fetch_trail_weather(trail, now)
    except Exception as exc:  # noqa: BLE001 - weather is optional per trail
        print(f"  {trail.id}: weather prediction failed: {exc!r}")
        return None


async def build_trail_entry(trail: TrailConfig, now: datetime | None = None) -> TrailEntry:
    """Run status and weather for one trail concurrently and merge them.

    A failing status source gives an ``error`` entry and a failing weather
    lookup omits the weather slot; neither affects other trails.
    """
    status, weather = await asyncio.gather(
        _status_or_error(trail, now),
        _weather_or_none(trail, now),
    )
    return TrailEntry(
        **status.model_dump(),
        name=trail.name,
        weather=weather,
        trailheads=trail.trailheads,
    )


@task(name="notify-changes")
async def notify_changes(
    entries: dict[str, TrailEntry], now: datetime | None = None
) -> list[StatusChange]:
    """Diff against the persisted map and send change notifications."""
    settings = get_settings()
    status_store = StatusStore(DataStore(settings.data_dir))
    try:
        async with create_client(timeout=settings.http_timeout) as client:
            return await check_and_notify(
                entries, status_store, client, settings.discord_webhook_url, now=now
            )
    except (TrailStatusError, OSError, ValueError) as exc:
        print(f"Status change notification failed: {exc}")
        return []


@task(name="save-response")
def save_response(response: AggregateResponse, max_age: int) -> Path:
    """Cache the response body in the data store for ``max_age`` seconds."""
    settings = get_settings()
    return DataStore(settings.data_dir).write(
        RESPONSE_PATH,
        response.body(),
        source="trail-status",
        valid_until=response.last_updated + timedelta(seconds=max_age),
        cache_control=response.cache_control,
    )


@flow(name="aggregate-statuses", log_prints=True)
async def aggregate_statuses(
    trails: list[TrailConfig] | None = None,
    now: datetime | None = None,
) -> AggregateResponse:
    """
    Aggregate all configured trails into one response.

    Never raises: per-source failures are already absorbed into each entry,
    and anything else yields an empty response with a short cache lifetime.
    """
    settings = get_settings()
    try:
        trail_list = list(trails) if trails is not None else list(load_trails(settings.trails_file))
        print(f"Aggregating {len(trail_list)} trails...")

        built = await asyncio.gather(*(build_trail_entry(t, now) for t in trail_list))
        entries = {t.id: entry for t, entry in zip(trail_list, built, strict=True)}
        for trail_id, entry in entries.items():
            print(f"  {trail_id}: {entry.status}")

        changes = await notify_changes(entries, now)
        if changes:
            print(f"{len(changes)} status change(s) detected")

        response = success_response(entries, settings, now)
        max_age = settings.cache_max_age
    except Exception as exc:  # noqa: BLE001 - the endpoint must always answer
        print(f"Aggregation failed: {exc!r}")
        response = failure_response(settings, now)
        max_age = settings.error_cache_max_age

    try:
        save_response(response, max_age)
    except OSError as exc:
        print(f"Could not cache response: {exc}")

    return response


if __name__ == "__main__":
    result = asyncio.run(aggregate_statuses())
    print(f"Flow complete: {len(result.trails)} trails")
