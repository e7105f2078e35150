"""
Change detection and webhook notifications.

After each aggregation cycle the fresh statuses are diffed against the
persisted map. A trail that moved between two non-error statuses produces
exactly one notification. ``error`` is never persisted, so an outage can
neither trigger nor swallow a notification; the trail keeps its last good
value until a real status comes back.

Notifications go to a Discord-compatible webhook as a single embed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from trail_status.errors import RevisionConflictError, StoreLockedError
from trail_status.schemas import TrailStatus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from trail_status.schemas import TrailEntry
    from trail_status.store import StatusStore

logger = logging.getLogger(__name__)

STATUS_COLORS: dict[TrailStatus, int] = {
    TrailStatus.OPEN: 0x22C55E,
    TrailStatus.CLOSED: 0xEF4444,
    TrailStatus.CAUTION: 0xF59E0B,
    TrailStatus.FREEZE_THAW: 0x3B82F6,
    TrailStatus.UNKNOWN: 0x6B7280,
    TrailStatus.ERROR: 0x7C3AED,
}

STATUS_EMOJIS: dict[TrailStatus, str] = {
    TrailStatus.OPEN: "\U0001f7e2",
    TrailStatus.CLOSED: "\U0001f534",
    TrailStatus.CAUTION: "\U0001f7e1",
    TrailStatus.FREEZE_THAW: "\U0001f535",
    TrailStatus.UNKNOWN: "⚪",
    TrailStatus.ERROR: "\U0001f7e3",
}

FOOTER = "Miami Valley MTB Trail Status"

COMMIT_ATTEMPTS = 3


@dataclass(frozen=True)
class StatusChange:
    """A trail moved from one known status to another."""

    trail_id: str
    trail_name: str
    old: TrailStatus
    new: TrailStatus


def detect_changes(
    previous: Mapping[str, TrailStatus],
    current: Mapping[str, TrailEntry],
) -> list[StatusChange]:
    """List trails whose known status changed. First sightings and errors are skipped."""
    changes = []
    for trail_id, entry in current.items():
        old = previous.get(trail_id)
        if old is None or entry.status == TrailStatus.ERROR or entry.status == old:
            continue
        changes.append(StatusChange(trail_id, entry.name, old, entry.status))
    return changes


def merge_statuses(
    previous: Mapping[str, TrailStatus],
    current: Mapping[str, TrailEntry],
) -> dict[str, TrailStatus]:
    """Next persisted map: new statuses, except errored trails keep their last good value."""
    merged: dict[str, TrailStatus] = {}
    for trail_id, entry in current.items():
        if entry.status != TrailStatus.ERROR:
            merged[trail_id] = entry.status
        elif trail_id in previous:
            merged[trail_id] = previous[trail_id]
    return merged


def build_embed(change: StatusChange, timestamp: datetime) -> dict[str, Any]:
    """Webhook embed describing one status change."""
    emoji = STATUS_EMOJIS.get(change.new, STATUS_EMOJIS[TrailStatus.UNKNOWN])
    old_emoji = STATUS_EMOJIS.get(change.old, STATUS_EMOJIS[TrailStatus.UNKNOWN])
    return {
        "title": f"{emoji} {change.trail_name} Status Changed",
        "description": (
            f"**{old_emoji} {change.old.upper()}** → **{emoji} {change.new.upper()}**"
        ),
        "color": STATUS_COLORS.get(change.new, STATUS_COLORS[TrailStatus.UNKNOWN]),
        "timestamp": timestamp.isoformat(),
        "footer": {"text": FOOTER},
    }


async def send_notification(
    client: httpx.AsyncClient,
    webhook_url: str,
    change: StatusChange,
    now: datetime | None = None,
) -> bool:
    """POST one change to the webhook. Failures are logged, never raised."""
    payload = {"embeds": [build_embed(change, now or datetime.now(UTC))]}
    try:
        resp = await client.post(webhook_url, json=payload)
    except httpx.HTTPError as exc:
        logger.error("Webhook delivery failed for %s: %s", change.trail_name, exc)
        return False

    if not resp.is_success:
        logger.error(
            "Webhook rejected notification for %s: HTTP %s", change.trail_name, resp.status_code
        )
        return False

    logger.info("Notification sent for %s: %s -> %s", change.trail_name, change.old, change.new)
    return True


async def check_and_notify(
    entries: Mapping[str, TrailEntry],
    status_store: StatusStore,
    client: httpx.AsyncClient,
    webhook_url: str | None = None,
    *,
    now: datetime | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[StatusChange]:
    """
    Diff ``entries`` against the persisted map, commit, then notify.

    The commit is a compare-and-swap on the map's revision. If another cycle
    committed first, the map is reloaded and diffed again, so each transition
    is notified by whichever cycle commits it and never twice.

    Returns:
        The changes that were committed (and notified, if a webhook is set).
    """
    for attempt in range(COMMIT_ATTEMPTS):
        previous, revision = status_store.load()
        changes = detect_changes(previous, entries)
        try:
            status_store.save(merge_statuses(previous, entries), expected_revision=revision)
        except (RevisionConflictError, StoreLockedError) as exc:
            logger.warning("Status map commit attempt %d lost a race: %s", attempt + 1, exc)
            if attempt < COMMIT_ATTEMPTS - 1:
                await sleep(0.1 * 2**attempt)
            continue
        break
    else:
        logger.error("Gave up committing status map after %d attempts", COMMIT_ATTEMPTS)
        return []

    if not changes:
        return []

    if not webhook_url:
        for change in changes:
            logger.info(
                "Status change (no webhook): %s %s -> %s", change.trail_name, change.old, change.new
            )
        return changes

    for change in changes:
        await send_notification(client, webhook_url, change, now)
    return changes
