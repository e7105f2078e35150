"""Exception hierarchy.

Extractors convert these into status values; only the orchestrator's
last-resort handler ever sees one escape.
"""

from __future__ import annotations


class TrailStatusError(Exception):
    """Base class for all trail-status errors."""


class FetchError(TrailStatusError):
    """Retrieving a remote resource failed."""


class TransportError(FetchError):
    """Network-level failure (DNS, timeout, reset) after all retries."""


class RateLimitedError(FetchError):
    """Upstream kept answering HTTP 429 until the attempt budget ran out."""

    def __init__(self, url: str, status: int = 429) -> None:
        super().__init__(f"Rate limited by {url} (HTTP {status})")
        self.url = url
        self.status = status


class UpstreamError(FetchError):
    """Upstream answered with a non-2xx status other than 429."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"Unexpected HTTP {status} from {url}")
        self.url = url
        self.status = status


class ParseError(TrailStatusError):
    """A fetched feed, image or forecast could not be decoded."""


class ConfigError(TrailStatusError):
    """Required configuration is missing or invalid."""


class StoreLockedError(TrailStatusError):
    """Another process is committing to the status map right now."""


class RevisionConflictError(TrailStatusError):
    """The persisted status map changed since it was read."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected revision {expected}, found {actual}")
        self.expected = expected
        self.actual = actual
