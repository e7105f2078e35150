"""Tomorrow's predicted trail status from the weather forecast."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, time, timedelta
from typing import TYPE_CHECKING

import httpx

from trail_status.datasources.weather.client import (
    DAYTIME_END_HOUR,
    DAYTIME_START_HOUR,
    WeatherOptions,
)
from trail_status.datasources.weather.forecast import fetch_forecast, parse_forecast
from trail_status.datasources.weather.models import ForecastPoint, ForecastStats
from trail_status.datasources.weather.rules import apply_rules
from trail_status.errors import FetchError, ParseError, RateLimitedError, UpstreamError
from trail_status.schemas import TomorrowConditions, WeatherPrediction, WeatherUnavailable
from trail_status.services.http import DEFAULT_MAX_ATTEMPTS
from trail_status.utils import round_half_up

if TYPE_CHECKING:
    from datetime import tzinfo

logger = logging.getLogger(__name__)

UNAUTHORIZED = 401


def tomorrow_window(now: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of tomorrow's local calendar day."""
    tomorrow = now.astimezone(tz).date() + timedelta(days=1)
    start = datetime.combine(tomorrow, time(), tzinfo=tz)
    return start, start + timedelta(days=1)


def select_tomorrow(points: list[ForecastPoint], now: datetime, tz: tzinfo) -> list[ForecastPoint]:
    """
    Pick tomorrow's daytime forecast points.

    Falls back to all of tomorrow's points when none land in daytime hours,
    and returns an empty list when the forecast does not reach tomorrow.
    """
    start, end = tomorrow_window(now, tz)
    tomorrows = [p for p in points if start <= p.time < end]
    daytime = [
        p
        for p in tomorrows
        if DAYTIME_START_HOUR <= p.time.astimezone(tz).hour <= DAYTIME_END_HOUR
    ]
    return daytime or tomorrows


def predict(points: list[ForecastPoint]) -> WeatherPrediction:
    """
    Apply the prediction rules to tomorrow's points.

    The midpoint entry stands in for tomorrow's overall conditions.
    """
    stats = ForecastStats.from_points(points)
    outcome = apply_rules(stats)
    midday = points[len(points) // 2]
    return WeatherPrediction(
        tomorrow=TomorrowConditions(
            temp_high=stats.high,
            temp_low=stats.low,
            description=midday.description,
            icon=midday.icon,
            humidity=midday.humidity,
            wind_speed=round_half_up(midday.wind_speed),
        ),
        prediction=outcome.prediction,
        confidence=outcome.confidence,
        reason=outcome.reason,
    )


async def fetch_weather_prediction(
    client: httpx.AsyncClient,
    lat: float,
    lon: float,
    api_key: str | None,
    *,
    options: WeatherOptions | None = None,
    now: datetime | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> WeatherPrediction | WeatherUnavailable | None:
    """
    Predict tomorrow's trail status at a coordinate.

    Returns:
        The prediction; ``WeatherUnavailable`` when rate limited; None when
        there is no key, the key is rejected, the forecast has no points for
        tomorrow, or the request otherwise fails.
    """
    if not api_key:
        return None

    options = options or WeatherOptions()
    try:
        data = await fetch_forecast(
            client, lat, lon, api_key, units=options.units, max_attempts=max_attempts
        )
        points = parse_forecast(data, options.units)
    except RateLimitedError:
        logger.warning("Weather API rate limited for (%s, %s)", lat, lon)
        return WeatherUnavailable()
    except UpstreamError as exc:
        if exc.status == UNAUTHORIZED:
            logger.error("OpenWeatherMap API key invalid or not yet activated")
        else:
            logger.error("Weather fetch failed for (%s, %s): %s", lat, lon, exc)
        return None
    except (FetchError, ParseError, httpx.HTTPError) as exc:
        logger.error("Weather fetch failed for (%s, %s): %s", lat, lon, exc)
        return None

    selected = select_tomorrow(points, now or datetime.now(UTC), options.tz)
    if not selected:
        logger.info("No forecast points for tomorrow at (%s, %s)", lat, lon)
        return None

    return predict(selected)
