"""
Wind Farm Monitor API - Turbine Endpoints

Fleet status (classified through the liveness helpers), maintenance toggle
and operator commands.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from windfarm.app.database import get_session
from windfarm.app.dependencies import get_command_service
from windfarm.app.models import TelemetrySample, Turbine, utcnow
from windfarm.app.schemas import AlertOut, CommandRequest, CommandResponse, MaintenanceUpdate, TurbineOut, TelemetryOut
from windfarm.app.services.alerting import recent_alerts, set_maintenance
from windfarm.app.services.commands import CommandService
from windfarm.app.services.liveness import classify_liveness

router = APIRouter(prefix="/turbines", tags=["turbines"])


async def _latest_sample(session: AsyncSession, turbine_id: str):
    stmt = (
        select(TelemetrySample)
        .where(TelemetrySample.turbine_id == turbine_id)
        .order_by(TelemetrySample.recorded_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _turbine_view(session: AsyncSession, turbine: Turbine, now) -> TurbineOut:
    latest = await _latest_sample(session, turbine.id)
    state = classify_liveness(turbine, latest.status if latest else None, now)
    return TurbineOut(
        id=turbine.id,
        name=turbine.name,
        location=turbine.location,
        is_online=turbine.is_online,
        last_seen_at=turbine.last_seen_at,
        is_in_maintenance=turbine.is_in_maintenance,
        maintenance_since=turbine.maintenance_since,
        maintenance_reason=turbine.maintenance_reason,
        state=state.value,
        latest_metric=TelemetryOut.model_validate(latest) if latest else None,
    )


async def _get_turbine_or_404(session: AsyncSession, turbine_id: str) -> Turbine:
    turbine = await session.get(Turbine, turbine_id)
    if turbine is None:
        raise HTTPException(status_code=404, detail=f"Turbine {turbine_id} not found")
    return turbine


@router.get("/", response_model=List[TurbineOut])
async def list_turbines(session: AsyncSession = Depends(get_session)):
    """All turbines with their latest sample and display state."""
    result = await session.execute(select(Turbine).order_by(Turbine.id))
    now = utcnow()
    return [await _turbine_view(session, t, now) for t in result.scalars().all()]


@router.get("/{turbine_id}", response_model=TurbineOut)
async def get_turbine(turbine_id: str, session: AsyncSession = Depends(get_session)):
    turbine = await _get_turbine_or_404(session, turbine_id)
    return await _turbine_view(session, turbine, utcnow())


@router.get("/{turbine_id}/alerts", response_model=List[AlertOut])
async def get_turbine_alerts(turbine_id: str, limit: int = 20, session: AsyncSession = Depends(get_session)):
    await _get_turbine_or_404(session, turbine_id)
    return await recent_alerts(session, limit=limit, turbine_id=turbine_id)


@router.post("/{turbine_id}/maintenance", response_model=TurbineOut)
async def update_maintenance(turbine_id: str, data: MaintenanceUpdate, session: AsyncSession = Depends(get_session)):
    turbine = await set_maintenance(session, turbine_id, data.enabled, data.reason)
    if turbine is None:
        raise HTTPException(status_code=404, detail=f"Turbine {turbine_id} not found")
    return await _turbine_view(session, turbine, utcnow())


@router.post("/{turbine_id}/command", response_model=CommandResponse)
async def send_command(
    turbine_id: str,
    data: CommandRequest,
    session: AsyncSession = Depends(get_session),
    commands: CommandService = Depends(get_command_service),
):
    """Validate, forward and audit an operator command."""
    request = data.model_dump(exclude={"issued_by"})
    entry = await commands.dispatch(session, turbine_id, request, issued_by=data.issued_by)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Turbine {turbine_id} not found")
    return entry
