"""Trail table for the Miami Valley (Dayton, OH) area."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from trail_status.errors import ConfigError
from trail_status.schemas import SourceKind, Trailhead, TrailConfig

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_TRAILS: tuple[TrailConfig, ...] = (
    TrailConfig(
        id="momba",
        name="MoMBA",
        kind=SourceKind.CALENDAR,
        source="https://calendar.google.com/calendar/ical/mombastatus%40gmail.com/public/basic.ics",
        lat=40.05,
        lon=-84.22,
        trailheads=(Trailhead(name="Main Entrance", address="4485 Union Rd, Dayton, OH 45424"),),
    ),
    TrailConfig(
        id="johnbryan",
        name="John Bryan",
        kind=SourceKind.IMAGE,
        source="128228967211438",
        lat=39.79,
        lon=-83.89,
        trailheads=(
            Trailhead(
                name="Trailhead",
                address="John Bryan Mountain Bike Trail, Yellow Springs, OH 45387",
            ),
        ),
    ),
    TrailConfig(
        id="caesarcreek",
        name="Caesar Creek",
        kind=SourceKind.IMAGE,
        source="576124532419546",
        lat=39.49,
        lon=-84.06,
        trailheads=(
            Trailhead(
                name="Ward Trailhead",
                address="Caesar Creek Ward Rd MTB Trail Head, Waynesville, OH 45068",
            ),
            Trailhead(
                name="Campground",
                address="Caesar Creek Campground Loop MTB Trailhead, Wilmington, OH 45177",
            ),
            Trailhead(
                name="Harveysburg",
                address="5563-5679 Harveysburg Rd, Waynesville, OH 45068",
            ),
        ),
    ),
    TrailConfig(
        id="troy",
        name="Troy MTB",
        kind=SourceKind.IMAGE,
        source="322521698109617",
        lat=40.04,
        lon=-84.20,
        trailheads=(
            Trailhead(
                name="Main Entrance",
                address="1670 Troy-Sidney Rd, Troy, OH 45373",
                note="Open sunrise to sunset",
            ),
        ),
    ),
)

_TRAIL_LIST = TypeAdapter(list[TrailConfig])


def load_trails(path: Path | None = None) -> tuple[TrailConfig, ...]:
    """
    Load the trail table.

    Args:
        path: JSON file holding a list of trail objects. None returns
            ``DEFAULT_TRAILS``.

    Raises:
        ConfigError: If the file is missing, malformed, or has duplicate ids.
    """
    if path is None:
        return DEFAULT_TRAILS

    try:
        raw = json.loads(path.read_text())
        trails = _TRAIL_LIST.validate_python(raw)
    except (OSError, ValueError, ValidationError) as exc:
        msg = f"Cannot load trails from {path}: {exc}"
        raise ConfigError(msg) from exc

    ids = [t.id for t in trails]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        msg = f"Duplicate trail ids in {path}: {', '.join(duplicates)}"
        raise ConfigError(msg)

    return tuple(trails)
