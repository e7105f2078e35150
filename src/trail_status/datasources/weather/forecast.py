"""5-day / 3-hour forecast from OpenWeatherMap."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from trail_status.datasources.weather.client import (
    OPENWEATHER_FORECAST_API,
    Units,
    c_to_f,
    mm_to_inches,
)
from trail_status.datasources.weather.models import ForecastPoint
from trail_status.errors import ParseError, UpstreamError
from trail_status.services.http import DEFAULT_MAX_ATTEMPTS, fetch_with_retry

if TYPE_CHECKING:
    import httpx


async def fetch_forecast(
    client: httpx.AsyncClient,
    lat: float,
    lon: float,
    api_key: str,
    *,
    units: Units = "imperial",
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> dict[str, Any]:
    """
    Fetch the multi-point forecast for a coordinate.

    Args:
        client: HTTP client.
        lat: Latitude.
        lon: Longitude.
        api_key: OpenWeatherMap API key.
        units: Provider unit system.
        max_attempts: Retry budget for the request.

    Returns:
        Raw API response dict with a ``list`` of forecast points.

    Raises:
        UpstreamError: Non-2xx answer (``status`` 401 means a bad key).
        RateLimitedError, TransportError: From the retry layer.
        ParseError: The body is not JSON.
    """
    url = f"{OPENWEATHER_FORECAST_API}?lat={lat}&lon={lon}&units={units}&appid={api_key}"
    resp = await fetch_with_retry(client, url, max_attempts=max_attempts)
    if not resp.is_success:
        raise UpstreamError(OPENWEATHER_FORECAST_API, resp.status_code)
    try:
        result: dict[str, Any] = resp.json()
    except ValueError as exc:
        msg = f"Forecast response is not JSON: {exc}"
        raise ParseError(msg) from exc
    return result


def parse_forecast(data: dict[str, Any], units: Units = "imperial") -> list[ForecastPoint]:
    """
    Normalize raw forecast items to ``ForecastPoint`` in °F and inches.

    Precipitation is reported in millimetres whatever ``units`` says.

    Raises:
        ParseError: An item is missing required fields.
    """
    points = []
    try:
        for item in data["list"]:
            temp = float(item["main"]["temp"])
            weather = item["weather"][0]
            points.append(
                ForecastPoint(
                    time=datetime.fromtimestamp(item["dt"], tz=UTC),
                    temp_f=c_to_f(temp) if units == "metric" else temp,
                    humidity=int(item["main"]["humidity"]),
                    description=str(weather["description"]),
                    icon=str(weather.get("icon", "")),
                    rain_in=mm_to_inches((item.get("rain") or {}).get("3h", 0.0)),
                    snow_in=mm_to_inches((item.get("snow") or {}).get("3h", 0.0)),
                    wind_speed=float((item.get("wind") or {}).get("speed", 0.0)),
                )
            )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        msg = f"Malformed forecast item: {exc!r}"
        raise ParseError(msg) from exc
    return points
