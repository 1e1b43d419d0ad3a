"""
Wind Farm Monitor - Offline Detection

Marks turbines that stopped reporting as offline and raises one offline
alert per silence (deduplicated over 24 h).
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from windfarm.app import config
from windfarm.app.database import commit
from windfarm.app.models import Alert, Turbine, utcnow
from windfarm.app.services.alerting import AlertEngine, TurbineLocks
from windfarm.app.services.liveness import STALE_AGE, is_stale, stale_cutoff
from windfarm.app.services.scheduler import PeriodicTicker

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    turbines_marked_offline: int = 0
    alerts_created: int = 0


class OfflineSweeper:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        alerts: AlertEngine,
        locks: TurbineLocks,
        stale_age: timedelta = STALE_AGE,
        item_timeout: float = config.SWEEP_ITEM_TIMEOUT_SECONDS,
    ):
        self.session_factory = session_factory
        self.alerts = alerts
        self.locks = locks
        self.stale_age = stale_age
        self.item_timeout = item_timeout

    async def sweep_once(self, now: Optional[datetime] = None) -> SweepResult:
        """
        One detection pass. Each turbine is handled in its own savepoint so a
        failure only rolls back that turbine; everything else is committed
        together at the end. If the final commit fails nothing is kept and
        the same turbines are picked up again on the next pass.
        """
        now = now or utcnow()
        result = SweepResult()

        async with self.session_factory() as session, AsyncExitStack() as held:
            stmt = (
                select(Turbine)
                .where(Turbine.is_online.is_(True), Turbine.last_seen_at < stale_cutoff(now, self.stale_age))
                .order_by(Turbine.id)
            )
            stale = (await session.execute(stmt)).scalars().all()
            if not stale:
                return result

            logger.info("OfflineDetection: %d turbine(s) past stale age", len(stale))

            for turbine in stale:
                # Held until commit so ingestion cannot interleave an alert check
                lock = self.locks.get(turbine.id)
                try:
                    await asyncio.wait_for(lock.acquire(), self.item_timeout)
                except asyncio.TimeoutError:
                    logger.warning("OfflineDetection: turbine %s busy, retrying next tick", turbine.id)
                    continue
                held.callback(lock.release)

                try:
                    marked, alert = await asyncio.wait_for(
                        self._mark_offline(session, turbine, now), self.item_timeout
                    )
                except Exception:
                    logger.exception("OfflineDetection failed for turbine %s", turbine.id)
                    continue
                if marked:
                    result.turbines_marked_offline += 1
                if alert is not None:
                    result.alerts_created += 1

            await commit(session)

        logger.info(
            "OfflineDetection: %d marked offline, %d alert(s) raised",
            result.turbines_marked_offline, result.alerts_created,
        )
        return result

    async def _mark_offline(self, session: AsyncSession, turbine: Turbine, now: datetime) -> Tuple[bool, Optional[Alert]]:
        async with session.begin_nested():
            # Telemetry may have landed between the scan and taking the lock
            await session.refresh(turbine)
            if not turbine.is_online or not is_stale(turbine.last_seen_at, now, self.stale_age):
                return False, None

            turbine.is_online = False
            alert = await self.alerts.raise_offline(session, turbine, now)
            await session.flush()
            return True, alert

    def ticker(
        self,
        interval: float = config.SWEEP_INTERVAL_SECONDS,
        startup_delay: float = config.SWEEP_STARTUP_DELAY_SECONDS,
        **kwargs,
    ) -> PeriodicTicker:
        return PeriodicTicker(self.sweep_once, interval, startup_delay, name="offline-sweeper", **kwargs)
