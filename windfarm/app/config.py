"""
Wind Farm Monitor - Runtime Settings

All values come from the environment so the same image runs in every farm.
"""

import os

FARM_ID = os.getenv("FARM_ID", "farm-01")

# Interval pushed to a turbine the first time it reports
REPORTING_INTERVAL_SECONDS = int(os.getenv("REPORTING_INTERVAL_SECONDS", "10"))

# Liveness / offline sweep
STALE_AGE_SECONDS = int(os.getenv("STALE_AGE_SECONDS", "300"))
SWEEP_INTERVAL_SECONDS = float(os.getenv("SWEEP_INTERVAL_SECONDS", "60"))
SWEEP_STARTUP_DELAY_SECONDS = float(os.getenv("SWEEP_STARTUP_DELAY_SECONDS", "15"))
SWEEP_ITEM_TIMEOUT_SECONDS = float(os.getenv("SWEEP_ITEM_TIMEOUT_SECONDS", "10"))

# Alert dedup windows
THRESHOLD_DEDUP_HOURS = float(os.getenv("THRESHOLD_DEDUP_HOURS", "2"))
OFFLINE_DEDUP_HOURS = float(os.getenv("OFFLINE_DEDUP_HOURS", "24"))

# Command bridge (HTTP front of the turbine message broker)
COMMAND_BRIDGE_URL = os.getenv("COMMAND_BRIDGE_URL", "http://localhost:8080")
COMMAND_BRIDGE_TIMEOUT = float(os.getenv("COMMAND_BRIDGE_TIMEOUT", "5.0"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
