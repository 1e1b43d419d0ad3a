"""
Wind Farm Monitor - Telemetry Ingestion

Stores one telemetry sample, refreshes the turbine's liveness fields and
runs threshold alerting. A turbine seen for the first time is registered
and sent its reporting interval.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from windfarm.app import config
from windfarm.app.database import commit
from windfarm.app.errors import TransportError
from windfarm.app.models import Alert, TelemetrySample, Turbine, utcnow
from windfarm.app.schemas import TelemetryCreate
from windfarm.app.services.alerting import AlertEngine, TurbineLocks
from windfarm.app.services.commands import CommandService

logger = logging.getLogger(__name__)


class ReportingIntervalRegistry:
    """
    Turbines that already got their setInterval command in this process.
    In-memory only: a restart forgets everything, which is acceptable
    because the command is idempotent on the turbine side.
    """

    def __init__(self):
        self._configured: Set[str] = set()

    def mark_if_new(self, turbine_id: str) -> bool:
        """Returns True the first time this turbine id is seen."""
        if turbine_id in self._configured:
            return False
        self._configured.add(turbine_id)
        return True


@dataclass
class IngestResult:
    sample: TelemetrySample
    turbine: Turbine
    alerts: List[Alert] = field(default_factory=list)
    first_sighting: bool = False


def to_naive_utc(ts: Optional[datetime]) -> Optional[datetime]:
    if ts is None or ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


class IngestionService:
    def __init__(
        self,
        alerts: AlertEngine,
        locks: TurbineLocks,
        commands: CommandService,
        registry: ReportingIntervalRegistry,
        reporting_interval: int = config.REPORTING_INTERVAL_SECONDS,
    ):
        self.alerts = alerts
        self.locks = locks
        self.commands = commands
        self.registry = registry
        self.reporting_interval = reporting_interval

    async def ingest(self, session: AsyncSession, data: TelemetryCreate, now: Optional[datetime] = None) -> IngestResult:
        now = now or utcnow()
        recorded_at = to_naive_utc(data.timestamp) or now

        async with self.locks.get(data.turbine_id):
            turbine = await session.get(Turbine, data.turbine_id)
            first_sighting = turbine is None
            if first_sighting:
                turbine = Turbine(
                    id=data.turbine_id,
                    name=data.turbine_name or data.turbine_id,
                    location="",
                    is_in_maintenance=False,
                )
                session.add(turbine)
                # Flush so the telemetry FK is satisfied
                await session.flush()

            # Liveness tracks when we last heard from the turbine, not its own clock
            turbine.is_online = True
            turbine.last_seen_at = now

            sample = TelemetrySample(
                turbine_id=data.turbine_id,
                recorded_at=recorded_at,
                wind_speed=data.wind_speed,
                wind_direction=data.wind_direction,
                ambient_temperature=data.ambient_temperature,
                rotor_speed=data.rotor_speed,
                power_output=data.power_output,
                nacelle_direction=data.nacelle_direction,
                blade_pitch=data.blade_pitch,
                generator_temp=data.generator_temp,
                gearbox_temp=data.gearbox_temp,
                vibration=data.vibration,
                status=data.status,
            )
            session.add(sample)

            created = await self.alerts.evaluate(session, sample, turbine)
            await commit(session)

        logger.info("Saved telemetry for turbine %s (%d new alert(s))", data.turbine_id, len(created))

        if first_sighting and self.registry.mark_if_new(data.turbine_id):
            await self._configure_interval(session, data.turbine_id, now)

        return IngestResult(sample=sample, turbine=turbine, alerts=created, first_sighting=first_sighting)

    async def _configure_interval(self, session: AsyncSession, turbine_id: str, now: datetime):
        payload = {"action": "setInterval", "value": self.reporting_interval}
        try:
            await self.commands.forward(session, turbine_id, payload, issued_by="system", now=now)
        except TransportError as e:
            # Telemetry is already stored; the turbine keeps its factory interval
            logger.warning("Could not send setInterval to %s: %s", turbine_id, e)
            return
        await commit(session)
        logger.info("Sent setInterval=%ss to %s", self.reporting_interval, turbine_id)
