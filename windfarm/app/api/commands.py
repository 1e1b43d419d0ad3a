"""
Wind Farm Monitor API - Command Audit Log

Read-only view of every command forwarded to a turbine. Commands are sent
through POST /turbines/{id}/command.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from windfarm.app.database import get_session
from windfarm.app.schemas import CommandResponse
from windfarm.app.services.commands import list_audit

router = APIRouter(prefix="/commands", tags=["commands"])


@router.get("/", response_model=List[CommandResponse])
async def get_commands(
    turbine_id: Optional[str] = None,
    limit: int = 200,
    session: AsyncSession = Depends(get_session)
):
    """Audit log, newest first."""
    return await list_audit(session, turbine_id=turbine_id, limit=limit)
