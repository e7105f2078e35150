"""
Prefect flows for the status pipeline.

Flows:
- aggregate: Fetch every trail's status and forecast, notify on changes,
  cache the response

Usage (local):
    python -m trail_status.flows.aggregate

Usage (with Prefect dashboard):
    prefect server start &
    python -m trail_status.flows.aggregate
"""
