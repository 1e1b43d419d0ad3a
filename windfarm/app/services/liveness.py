"""
Wind Farm Monitor - Liveness Classification

The one place that decides whether a turbine is running, stopped or offline.
The offline sweep and every read path go through these helpers.

Boundary rule: a turbine is stale only when it has been silent for
strictly more than the stale age. A turbine last seen exactly
STALE_AGE_SECONDS ago is still live.
"""

import enum
from datetime import datetime, timedelta
from typing import Optional

from windfarm.app import config

STALE_AGE = timedelta(seconds=config.STALE_AGE_SECONDS)


class LivenessState(str, enum.Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    OFFLINE = "offline"


def stale_cutoff(now: datetime, stale_age: timedelta = STALE_AGE) -> datetime:
    """Turbines last seen strictly before this instant are stale."""
    return now - stale_age


def is_stale(last_seen_at: Optional[datetime], now: datetime, stale_age: timedelta = STALE_AGE) -> bool:
    if last_seen_at is None:
        return True
    return last_seen_at < stale_cutoff(now, stale_age)


def classify_liveness(
    turbine,
    latest_status: Optional[str],
    now: datetime,
    stale_age: timedelta = STALE_AGE,
) -> LivenessState:
    if turbine is None or is_stale(turbine.last_seen_at, now, stale_age):
        return LivenessState.OFFLINE
    if latest_status == "running":
        return LivenessState.RUNNING
    return LivenessState.STOPPED
