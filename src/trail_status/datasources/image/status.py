"""Trail status from a social-media profile picture."""

from __future__ import annotations

import io
import logging

import httpx
from PIL import Image, UnidentifiedImageError

from trail_status.datasources.image.color import (
    UNDETERMINED,
    classify_hue,
    hue_to_description,
    hue_to_status,
    mean_rgb,
)
from trail_status.errors import FetchError, ParseError, RateLimitedError, UpstreamError
from trail_status.schemas import StatusResult, TrailStatus
from trail_status.services.http import BROWSER_USER_AGENT, DEFAULT_MAX_ATTEMPTS, fetch_with_retry

logger = logging.getLogger(__name__)

GRAPH_PICTURE_URL = "https://graph.facebook.com/{page_id}/picture?type=large"

RATE_LIMITED = "Rate limited - please try again later."


def picture_url(source: str) -> str:
    """Full URLs pass through; anything else is treated as a page id."""
    if source.startswith(("http://", "https://")):
        return source
    return GRAPH_PICTURE_URL.format(page_id=source)


def decode_image(data: bytes) -> Image.Image:
    """Decode image bytes, raising ``ParseError`` on anything Pillow rejects."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        msg = f"Cannot decode image: {exc}"
        raise ParseError(msg) from exc
    return image


def status_from_image(image: Image.Image) -> StatusResult:
    """Classify a decoded picture."""
    color = mean_rgb(image)
    hue = classify_hue(color)
    logger.debug("Mean colour %s classified as %s", color, hue)
    return StatusResult(
        status=hue_to_status(hue),
        description=hue_to_description(hue),
        detected_color=hue,
        rgb=color,
    )


async def fetch_image_status(
    client: httpx.AsyncClient,
    source: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> StatusResult:
    """
    Download the status picture and classify its colour.

    Never raises. Rate limiting gives ``status=error``; every other failure
    gives ``status=unknown`` pointing the user at the page itself.
    """
    url = picture_url(source)
    try:
        resp = await fetch_with_retry(
            client, url, headers={"User-Agent": BROWSER_USER_AGENT}, max_attempts=max_attempts
        )
        if not resp.is_success:
            raise UpstreamError(url, resp.status_code)
        image = decode_image(resp.content)
    except RateLimitedError as exc:
        logger.error("Image fetch rate limited for %s: %s", url, exc)
        return StatusResult(status=TrailStatus.ERROR, description=RATE_LIMITED)
    except (FetchError, ParseError, httpx.HTTPError) as exc:
        logger.error("Image fetch failed for %s: %s", url, exc)
        return StatusResult(status=TrailStatus.UNKNOWN, description=UNDETERMINED)

    return status_from_image(image)
