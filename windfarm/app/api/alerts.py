from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from windfarm.app.database import get_session
from windfarm.app.schemas import AlertOut
from windfarm.app.services.alerting import acknowledge_alert, recent_alerts

router = APIRouter(prefix="/alerts", tags=["alerts"])

@router.get("/", response_model=List[AlertOut])
async def get_alerts(limit: int = 50, unack_only: bool = False, session: AsyncSession = Depends(get_session)):
    return await recent_alerts(session, limit=limit, unack_only=unack_only)

@router.post("/{alert_id}/acknowledge", response_model=AlertOut)
async def acknowledge(
    alert_id: int,
    acknowledged_by: str = Query("operator", alias="acknowledgedBy"),
    session: AsyncSession = Depends(get_session),
):
    """Acknowledge an alert. Repeating the call changes nothing."""
    alert = await acknowledge_alert(session, alert_id, acknowledged_by)
    if alert is None:
        raise HTTPException(status_code=404, detail=f"Alert {alert_id} not found")
    return alert
