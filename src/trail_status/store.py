"""JSON data store with freshness metadata, plus the revisioned status map.

Every JSON file is wrapped in a metadata envelope::

    {"meta": {"source": ..., "fetched_at": ..., "valid_until": ...}, "data": ...}

Files are laid out by lifetime:
  - state/: Durable state owned by one component (the last-known status map)
  - derived/: Computed outputs with a short TTL (the cached aggregate response)

``StatusStore`` keeps a ``revision`` counter in the envelope and only commits
when the revision it read is still current, so two overlapping aggregation
cycles cannot both act on the same transition.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from trail_status.errors import RevisionConflictError, StoreLockedError
from trail_status.schemas import TrailStatus

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = logging.getLogger(__name__)

STATUS_PATH = Path("state/statuses.json")
RESPONSE_PATH = Path("derived/statuses.json")

# A lock older than this is assumed to belong to a crashed process.
LOCK_STALE_SECONDS = 30.0


class DataStore:
    """Manages read/write of cached data files with TTL."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """Read the full envelope (meta + data) from a JSON file."""
        full = self._resolve(path)
        if not full.exists():
            return None
        with full.open() as f:
            result: dict[str, Any] = json.load(f)
        return result

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Write data wrapped in a metadata envelope.

        The file is replaced atomically, so readers see either the old or the
        new envelope.

        Args:
            path: Relative path under base_dir (e.g. ``derived/statuses.json``).
            data: Payload to store under the ``data`` key.
            source: Data source identifier (e.g. ``"trail-status"``).
            valid_until: Expiry timestamp. None means never fresh.
            **params: Extra metadata fields (revision, etc.).

        Returns:
            Absolute path of the written file.
        """
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)

        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": datetime.now(UTC).isoformat(),
        }
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        if params:
            meta.update(params)

        envelope = {"meta": meta, "data": data}
        fd, tmp_name = tempfile.mkstemp(dir=full.parent, prefix=f".{full.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(envelope, f, indent=2)
            Path(tmp_name).replace(full)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        return full

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full

    def is_fresh(self, path: Path, now: datetime | None = None) -> bool:
        """Check if a file exists and hasn't expired.

        Returns False if the file is missing, has no ``valid_until``, or
        the expiry time has passed.
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return False

        valid_until = envelope.get("meta", {}).get("valid_until")
        if valid_until is None:
            return False

        expiry = datetime.fromisoformat(valid_until)
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return (now or datetime.now(UTC)) < expiry

    @contextmanager
    def lock(self, path: Path) -> Iterator[None]:
        """Hold an exclusive lock file next to ``path``.

        Raises:
            StoreLockedError: Another holder has the lock.
        """
        lock_path = self._resolve(path).with_suffix(".lock")
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            if not _is_stale(lock_path):
                msg = f"{lock_path} is held by another process"
                raise StoreLockedError(msg) from None
            logger.warning("Removing stale lock %s", lock_path)
            lock_path.unlink(missing_ok=True)
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        try:
            os.write(fd, str(os.getpid()).encode())
            yield
        finally:
            os.close(fd)
            lock_path.unlink(missing_ok=True)


def _is_stale(lock_path: Path) -> bool:
    try:
        age = time.time() - lock_path.stat().st_mtime
    except FileNotFoundError:
        return True
    return age > LOCK_STALE_SECONDS


class StatusStore:
    """Last observed status per trail, with a compare-and-swap revision."""

    def __init__(self, store: DataStore, path: Path = STATUS_PATH) -> None:
        self.store = store
        self.path = path

    def load(self) -> tuple[dict[str, TrailStatus], int]:
        """Return ``(statuses, revision)``; ``({}, 0)`` before the first save."""
        envelope = self.store.read_raw(self.path)
        if envelope is None:
            return {}, 0

        revision = int(envelope.get("meta", {}).get("revision", 0))
        statuses: dict[str, TrailStatus] = {}
        for trail_id, value in (envelope.get("data") or {}).items():
            try:
                status = TrailStatus(value)
            except ValueError:
                logger.warning("Ignoring unknown stored status %r for %s", value, trail_id)
                continue
            if status != TrailStatus.ERROR:
                statuses[trail_id] = status
        return statuses, revision

    def save(self, statuses: Mapping[str, TrailStatus], expected_revision: int) -> int:
        """
        Replace the map if nobody else committed since ``expected_revision``.

        ``error`` entries are never written.

        Returns:
            The new revision.

        Raises:
            RevisionConflictError: The stored revision moved on.
            StoreLockedError: A concurrent save holds the lock.
        """
        with self.store.lock(self.path):
            _, current = self.load()
            if current != expected_revision:
                raise RevisionConflictError(expected_revision, current)

            new_revision = current + 1
            data = {
                trail_id: str(status)
                for trail_id, status in statuses.items()
                if status != TrailStatus.ERROR
            }
            self.store.write(self.path, data, source="trail-status", revision=new_revision)
        return new_revision
