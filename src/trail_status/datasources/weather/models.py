"""Weather forecast data models.

Everything here is normalized to °F and inches regardless of the unit system
requested from the provider, because the prediction rules are written in
those units.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from trail_status.utils import round_half_up

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True)
class ForecastPoint:
    """One 3-hour forecast step."""

    time: datetime
    temp_f: float
    humidity: int
    description: str
    icon: str
    rain_in: float = 0.0
    snow_in: float = 0.0
    wind_speed: float = 0.0

    @property
    def mentions_rain(self) -> bool:
        desc = self.description.lower()
        return "rain" in desc or "drizzle" in desc or "shower" in desc

    @property
    def mentions_snow(self) -> bool:
        return "snow" in self.description.lower()


@dataclass(frozen=True)
class ForecastStats:
    """Aggregate of the forecast points selected for tomorrow."""

    min_temp: float
    max_temp: float
    total_rain: float
    total_snow: float
    avg_humidity: int
    has_rain: bool
    has_snow: bool

    @property
    def low(self) -> int:
        """Rounded low temperature for display."""
        return round_half_up(self.min_temp)

    @property
    def high(self) -> int:
        """Rounded high temperature for display."""
        return round_half_up(self.max_temp)

    @classmethod
    def from_points(cls, points: list[ForecastPoint]) -> ForecastStats:
        """
        Aggregate forecast points.

        Raises:
            ValueError: If ``points`` is empty.
        """
        if not points:
            msg = "Cannot aggregate an empty forecast"
            raise ValueError(msg)

        temps = [p.temp_f for p in points]
        return cls(
            min_temp=min(temps),
            max_temp=max(temps),
            total_rain=sum(p.rain_in for p in points),
            total_snow=sum(p.snow_in for p in points),
            avg_humidity=round_half_up(sum(p.humidity for p in points) / len(points)),
            has_rain=any(p.mentions_rain for p in points),
            has_snow=any(p.mentions_snow for p in points),
        )
