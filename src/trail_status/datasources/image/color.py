"""Dominant-hue classification of a status picture.

Trail crews swap their profile picture to a coloured background: green for
open, red for closed, yellow for caution, blue for freeze/thaw. The picture
usually carries text too, so instead of a true dominant colour we look at
which channel deviates most from grey in the mean colour.

The deviation thresholds were tuned against real pictures and existing
classifications depend on them. Keep them as they are.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trail_status.schemas import RGB, Hue, TrailStatus
from trail_status.utils import round_half_up

if TYPE_CHECKING:
    from PIL import Image

SAMPLE_STRIDE = 2

BLUE_MIN_DEVIATION = 3
GREEN_MIN_DEVIATION = 5
RED_MIN_DEVIATION = 5
YELLOW_MAX_BLUE_DEVIATION = -5

HUE_STATUS: dict[Hue, TrailStatus] = {
    Hue.GREEN: TrailStatus.OPEN,
    Hue.RED: TrailStatus.CLOSED,
    Hue.YELLOW: TrailStatus.CAUTION,
    Hue.BLUE: TrailStatus.FREEZE_THAW,
}

UNDETERMINED = "Unable to determine trail status. Check the Facebook page directly."

HUE_DESCRIPTION: dict[Hue, str] = {
    Hue.GREEN: "Trails are open and in good condition",
    Hue.RED: "Trails are currently closed",
    Hue.YELLOW: "Caution - Trails may be wet or have hazards",
    Hue.BLUE: "Freeze/Thaw conditions - Exercise caution",
}


def mean_rgb(image: Image.Image, stride: int = SAMPLE_STRIDE) -> RGB:
    """
    Mean colour over a regular grid of pixels.

    Samples every ``stride``-th column and row starting at (0, 0), so the
    result depends only on pixel data.
    """
    rgb = image.convert("RGB")
    width, height = rgb.size
    pixels = rgb.load()

    red = green = blue = count = 0
    for x in range(0, width, stride):
        for y in range(0, height, stride):
            r, g, b = pixels[x, y]
            red += r
            green += g
            blue += b
            count += 1

    if count == 0:
        return RGB(r=0, g=0, b=0)

    return RGB(
        r=round_half_up(red / count),
        g=round_half_up(green / count),
        b=round_half_up(blue / count),
    )


def classify_hue(color: RGB) -> Hue:
    """Classify the dominant hue by each channel's deviation from grey."""
    avg = (color.r + color.g + color.b) / 3
    r_dev = color.r - avg
    g_dev = color.g - avg
    b_dev = color.b - avg

    if b_dev > BLUE_MIN_DEVIATION and b_dev > r_dev and b_dev > g_dev:
        return Hue.BLUE
    if g_dev > GREEN_MIN_DEVIATION and g_dev > r_dev and g_dev > b_dev:
        return Hue.GREEN
    if r_dev > RED_MIN_DEVIATION and r_dev > b_dev:
        if g_dev > 0 and b_dev < YELLOW_MAX_BLUE_DEVIATION:
            return Hue.YELLOW
        return Hue.RED
    return Hue.UNKNOWN


def hue_to_status(hue: Hue) -> TrailStatus:
    return HUE_STATUS.get(hue, TrailStatus.UNKNOWN)


def hue_to_description(hue: Hue) -> str:
    return HUE_DESCRIPTION.get(hue, UNDETERMINED)
