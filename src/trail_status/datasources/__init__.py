"""Status and forecast data sources.

Each subdirectory is one source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants (optional)
    ├── models.py         # Dataclasses for parsed data (optional)
    └── {feature}.py      # Fetch + classify functions

Adding a new status source
--------------------------
1. Create ``datasources/{name}/`` with files above. See ``calendar/`` for a
   minimal example, ``weather/`` for a richer one.

2. Write an async fetch function that never raises and returns a
   ``StatusResult``::

       from trail_status.services.http import fetch_with_retry

       async def fetch_something_status(client, locator) -> StatusResult:
           try:
               resp = await fetch_with_retry(client, locator)
               ...
           except FetchError:
               return StatusResult(status=TrailStatus.ERROR, description="...")

3. Re-export public API in ``__init__.py`` with ``__all__``.

4. Add a ``SourceKind`` member in ``schemas.py`` and a ``StatusSource``
   variant in ``sources.py``.

5. Add tests in ``tests/test_{name}.py``.
"""
