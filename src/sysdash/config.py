"""
Configuration and constants for sysdash.

These are constructor defaults, not runtime knobs.
"""

import tempfile
from pathlib import Path

# Maximum age of a cached snapshot before it is regenerated (seconds)
FRESHNESS_SECONDS = 10.0

# Auto-refresh cadence (seconds)
REFRESH_INTERVAL_SECONDS = 5.0
MIN_REFRESH_INTERVAL_SECONDS = 0.1

# Number of samples kept for the usage chart
HISTORY_CAPACITY = 24

# Persistent snapshot slot
SNAPSHOT_FILE = Path(tempfile.gettempdir()) / "sysdash" / "metrics.json"

LOG_FORMAT = "[%(levelname)s] %(message)s"
FILE_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
