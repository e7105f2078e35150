"""Trail Status - mountain-bike trail conditions from unofficial signals.

Architecture::

    datasources/   Signal extractors (iCal feed, profile-picture colour, weather forecast)
    sources.py     StatusSource capability: one variant per trail source kind
    store.py       JSON data store with TTL + revisioned status map
    notify.py      Change detection and webhook notifications
    flows/         Prefect orchestration (aggregate every trail, notify, cache)
    services/      Shared utilities (async HTTP client with retry)
    server.py      JSON endpoint consumed by the frontend

Data flow: datasources → flows (aggregate) → notify (store diff) → server/CLI

Extension points:
  - New status source:  datasources/__init__.py, then sources.py
  - New trail:          reference/trails.py or a trails JSON file
"""

__version__ = "0.1.0"

from trail_status.config import Settings
from trail_status.schemas import TrailConfig, TrailStatus

__all__ = ["Settings", "TrailConfig", "TrailStatus", "__version__"]
