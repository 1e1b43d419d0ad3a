from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from windfarm.app.database import get_session
from windfarm.app.dependencies import get_ingestion_service
from windfarm.app.models import TelemetrySample
from windfarm.app.schemas import TelemetryCreate, TelemetryOut
from windfarm.app.services.ingestion import IngestionService

router = APIRouter(prefix="/telemetry", tags=["telemetry"])

@router.post("/")
async def create_telemetry(
    data: TelemetryCreate,
    session: AsyncSession = Depends(get_session),
    ingestion: IngestionService = Depends(get_ingestion_service),
):
    result = await ingestion.ingest(session, data)
    return {"status": "ok", "alerts": len(result.alerts), "firstSighting": result.first_sighting}

@router.get("/", response_model=List[TelemetryOut])
async def get_telemetry_history(
    turbine_id: str,
    limit: int = 100,
    session: AsyncSession = Depends(get_session)
):
    stmt = (
        select(TelemetrySample)
        .where(TelemetrySample.turbine_id == turbine_id)
        .order_by(TelemetrySample.recorded_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    # Oldest first so charts draw left-to-right
    return list(reversed(result.scalars().all()))

@router.get("/latest", response_model=Optional[TelemetryOut])
async def get_latest_telemetry(turbine_id: str, session: AsyncSession = Depends(get_session)):
    stmt = select(TelemetrySample).where(TelemetrySample.turbine_id == turbine_id).order_by(TelemetrySample.recorded_at.desc()).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
