"""OpenWeatherMap API client constants and unit helpers.

API docs:
  - 5 day / 3 hour forecast: https://openweathermap.org/forecast5
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, tzinfo
from typing import Literal

OPENWEATHER_FORECAST_API = "https://api.openweathermap.org/data/2.5/forecast"

Units = Literal["imperial", "metric"]

MM_PER_INCH = 25.4

# Local hours (inclusive) counted as "daytime" riding hours
DAYTIME_START_HOUR = 6
DAYTIME_END_HOUR = 21


@dataclass(frozen=True)
class WeatherOptions:
    """Unit system requested from the provider and the zone defining "tomorrow"."""

    units: Units = "imperial"
    tz: tzinfo = field(default=UTC)


def c_to_f(celsius: float) -> float:
    """Convert Celsius to Fahrenheit."""
    return celsius * 9 / 5 + 32


def mm_to_inches(mm: float) -> float:
    return mm / MM_PER_INCH
