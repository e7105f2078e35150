"""
Domain models for trail status.

Pydantic models shared by the extractors, the orchestrator and the JSON
endpoint. Field names are snake_case in Python; the camelCase serialization
aliases are the wire format the frontend reads.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class TrailStatus(StrEnum):
    """Usability of a trail."""

    OPEN = "open"
    CLOSED = "closed"
    CAUTION = "caution"
    FREEZE_THAW = "freeze-thaw"
    UNKNOWN = "unknown"
    ERROR = "error"


class Confidence(StrEnum):
    """How much a weather prediction should be trusted."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Hue(StrEnum):
    """Dominant colour category of a sampled image."""

    BLUE = "blue"
    GREEN = "green"
    RED = "red"
    YELLOW = "yellow"
    UNKNOWN = "unknown"


class SourceKind(StrEnum):
    """Where a trail publishes its status."""

    CALENDAR = "calendar"
    IMAGE = "image"


# =============================================================================
# Configuration
# =============================================================================


class Trailhead(BaseModel):
    """A parking/access point for a trail."""

    model_config = ConfigDict(frozen=True)

    name: str
    address: str
    note: str | None = None


class TrailConfig(BaseModel):
    """A tracked trail. Immutable once loaded."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., description="Stable key used in responses and the status store")
    name: str = Field(..., description="Display name")
    kind: SourceKind
    source: str = Field(..., description="Calendar URL, image URL, or social page id")
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    trailheads: tuple[Trailhead, ...] = ()


# =============================================================================
# Status
# =============================================================================


class RGB(BaseModel):
    """Mean sampled colour."""

    r: int
    g: int
    b: int


class StatusResult(BaseModel):
    """Current status as read from a trail's source."""

    model_config = ConfigDict(populate_by_name=True)

    status: TrailStatus
    description: str
    detected_color: Hue | None = Field(default=None, serialization_alias="detectedColor")
    rgb: RGB | None = None


# =============================================================================
# Weather
# =============================================================================


class TomorrowConditions(BaseModel):
    """Representative forecast for tomorrow's daytime."""

    model_config = ConfigDict(populate_by_name=True)

    temp_high: int = Field(serialization_alias="tempHigh")
    temp_low: int = Field(serialization_alias="tempLow")
    description: str
    icon: str
    humidity: int
    wind_speed: int


class WeatherPrediction(BaseModel):
    """Predicted trail status for tomorrow."""

    tomorrow: TomorrowConditions
    prediction: TrailStatus
    confidence: Confidence
    reason: str


class WeatherUnavailable(BaseModel):
    """Placed in the weather slot when the provider rate-limits us."""

    error: Literal["rate_limited"] = "rate_limited"
    message: str = "Weather API rate limited"


# =============================================================================
# Aggregate response
# =============================================================================


class TrailEntry(StatusResult):
    """One trail in the aggregate response."""

    name: str
    weather: WeatherPrediction | WeatherUnavailable | None = None
    trailheads: tuple[Trailhead, ...] = ()


class AggregateResponse(BaseModel):
    """Everything the frontend needs, plus the cache directive to send with it."""

    model_config = ConfigDict(populate_by_name=True)

    trails: dict[str, TrailEntry] = Field(default_factory=dict)
    last_updated: datetime = Field(serialization_alias="lastUpdated")
    error: str | None = None
    cache_control: str = Field(exclude=True)

    def body(self) -> dict[str, Any]:
        """JSON-ready payload in the frontend's wire format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @property
    def headers(self) -> dict[str, str]:
        return response_headers(self.cache_control)


def response_headers(cache_control: str) -> dict[str, str]:
    """HTTP headers sent with an aggregate body."""
    return {
        "Content-Type": "application/json",
        "Cache-Control": cache_control,
        "Access-Control-Allow-Origin": "*",
    }
