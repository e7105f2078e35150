"""Profile-picture colour status source.

Public API:
  - color: mean_rgb, classify_hue, hue_to_status, hue_to_description
  - status: picture_url, decode_image, status_from_image, fetch_image_status
"""

from trail_status.datasources.image.color import (
    classify_hue,
    hue_to_description,
    hue_to_status,
    mean_rgb,
)
from trail_status.datasources.image.status import (
    decode_image,
    fetch_image_status,
    picture_url,
    status_from_image,
)

__all__ = [
    "classify_hue",
    "decode_image",
    "fetch_image_status",
    "hue_to_description",
    "hue_to_status",
    "mean_rgb",
    "picture_url",
    "status_from_image",
]
