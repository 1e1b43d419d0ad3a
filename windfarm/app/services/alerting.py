"""
Wind Farm Monitor - Alert Generation

Maintenance gate, per-metric deduplication and acknowledgement. Every alert
row in the system is created through AlertEngine.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Set

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from windfarm.app import config
from windfarm.app.database import commit
from windfarm.app.models import Alert, Turbine, utcnow
from windfarm.app.services.liveness import STALE_AGE
from windfarm.app.services.thresholds import WARNING, evaluate_sample

logger = logging.getLogger(__name__)

OFFLINE_KEY = "offline"


class TurbineLocks:
    """
    One asyncio.Lock per turbine id. Alert creation reads existing alerts
    and then inserts, so writers for the same turbine must hold the lock
    from the read until their transaction commits.

    Entries are never dropped. Every id that gets a lock also gets a turbine
    row, so the map is bounded by the size of the fleet.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, turbine_id: str) -> asyncio.Lock:
        lock = self._locks.get(turbine_id)
        if lock is None:
            lock = self._locks[turbine_id] = asyncio.Lock()
        return lock


def alerts_suppressed(turbine: Turbine) -> bool:
    """Maintenance gate: no threshold or offline alerts while in maintenance."""
    return bool(turbine.is_in_maintenance)


async def open_metric_keys(session: AsyncSession, turbine_id: str, since: datetime) -> Set[str]:
    """Metric keys of unacknowledged alerts for a turbine triggered at or after `since`."""
    stmt = (
        select(Alert.metric_key)
        .where(
            Alert.turbine_id == turbine_id,
            Alert.is_acknowledged.is_(False),
            Alert.triggered_at >= since,
        )
    )
    result = await session.execute(stmt)
    return set(result.scalars().all())


class AlertEngine:
    """Turns threshold violations and offline transitions into alert rows.

    Neither method commits; callers hold the turbine's lock and commit.
    """

    def __init__(
        self,
        threshold_window: timedelta = timedelta(hours=config.THRESHOLD_DEDUP_HOURS),
        offline_window: timedelta = timedelta(hours=config.OFFLINE_DEDUP_HOURS),
        stale_age: timedelta = STALE_AGE,
    ):
        self.threshold_window = threshold_window
        self.offline_window = offline_window
        self.stale_age = stale_age

    async def evaluate(self, session: AsyncSession, sample, turbine: Turbine) -> List[Alert]:
        if alerts_suppressed(turbine):
            return []

        violations = evaluate_sample(sample)
        if not violations:
            return []

        existing = await open_metric_keys(session, turbine.id, sample.recorded_at - self.threshold_window)

        created = []
        for v in violations:
            if v.metric_key in existing:
                continue
            alert = Alert(
                turbine_id=turbine.id,
                severity=v.severity,
                metric_key=v.metric_key,
                message=v.message,
                triggered_at=sample.recorded_at,
                is_acknowledged=False,
            )
            session.add(alert)
            created.append(alert)
            logger.info("Alert for %s: [%s] %s", turbine.id, v.severity, v.message)

        return created

    async def raise_offline(self, session: AsyncSession, turbine: Turbine, now: datetime) -> Optional[Alert]:
        if alerts_suppressed(turbine):
            return None

        existing = await open_metric_keys(session, turbine.id, now - self.offline_window)
        if OFFLINE_KEY in existing:
            return None

        minutes = int(self.stale_age.total_seconds() // 60)
        last_seen = turbine.last_seen_at.strftime("%H:%M") if turbine.last_seen_at else "never"
        alert = Alert(
            turbine_id=turbine.id,
            severity=WARNING,
            metric_key=OFFLINE_KEY,
            message=f"Offline: no telemetry for >{minutes} min (last seen {last_seen} UTC)",
            triggered_at=now,
            is_acknowledged=False,
        )
        session.add(alert)
        logger.warning("Turbine %s offline - last seen %s", turbine.id, turbine.last_seen_at)
        return alert


async def acknowledge_alert(
    session: AsyncSession,
    alert_id: int,
    acknowledged_by: str = "operator",
    now: Optional[datetime] = None,
) -> Optional[Alert]:
    """Acknowledge once; later calls return the alert unchanged.

    The write is conditional on the row still being unacknowledged, so when
    two requests race the first commit wins and the second is a no-op.
    """
    stmt = (
        update(Alert)
        .where(Alert.id == alert_id, Alert.is_acknowledged.is_(False))
        .values(is_acknowledged=True, acknowledged_at=now or utcnow(), acknowledged_by=acknowledged_by)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    await commit(session)
    if result.rowcount:
        logger.info("Alert %s acknowledged by %s", alert_id, acknowledged_by)

    return await session.get(Alert, alert_id, populate_existing=True)


async def recent_alerts(session: AsyncSession, limit: int = 50, unack_only: bool = False,
                        turbine_id: Optional[str] = None) -> List[Alert]:
    stmt = select(Alert).order_by(Alert.triggered_at.desc(), Alert.id.desc()).limit(limit)
    if unack_only:
        stmt = stmt.where(Alert.is_acknowledged.is_(False))
    if turbine_id is not None:
        stmt = stmt.where(Alert.turbine_id == turbine_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def set_maintenance(
    session: AsyncSession,
    turbine_id: str,
    enabled: bool,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[Turbine]:
    """Toggle maintenance mode. Existing alerts are left as they are."""
    turbine = await session.get(Turbine, turbine_id)
    if turbine is None:
        return None

    if enabled:
        if not turbine.is_in_maintenance:
            turbine.maintenance_since = now or utcnow()
        turbine.is_in_maintenance = True
        turbine.maintenance_reason = reason
    else:
        turbine.is_in_maintenance = False
        turbine.maintenance_since = None
        turbine.maintenance_reason = None

    await commit(session)
    logger.info("Turbine %s maintenance %s", turbine_id, "on" if enabled else "off")
    return turbine
