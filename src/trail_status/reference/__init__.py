"""Static trail reference data.

The default trail table lives here so the pipeline runs with no configuration.
Deployments override it with a JSON file (``TRAIL_STATUS_TRAILS_FILE``).
"""

from trail_status.reference.trails import DEFAULT_TRAILS as DEFAULT_TRAILS
from trail_status.reference.trails import load_trails as load_trails
