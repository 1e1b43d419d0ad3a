"""
Wind Farm Monitor - Operator Commands

Validation, forwarding and auditing of commands sent back to turbines.
A command is audited only after the transport accepted it.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from windfarm.app import config
from windfarm.app.database import commit
from windfarm.app.errors import CommandValidationError
from windfarm.app.models import OperatorCommand, Turbine, utcnow
from windfarm.app.schemas import CanonicalCommand, command_adapter
from windfarm.app.services.transport import CommandPublisher, command_topic

logger = logging.getLogger(__name__)

ACTIONS = ("start", "stop", "setInterval", "setPitch")
SENT = "Sent"


def validate_command(request: Dict[str, Any]) -> CanonicalCommand:
    """
    Validate a raw {action, value?, angle?, reason?} request into one of the
    command variants. Fields the action does not use are dropped.
    """
    action = request.get("action")
    if action not in ACTIONS:
        raise CommandValidationError(f"Unknown action: {action!r}")

    data = {k: v for k, v in request.items() if v is not None}
    try:
        return command_adapter.validate_python(data)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        detail = "; ".join(f"{'.'.join(str(p) for p in err['loc'][1:]) or 'action'}: {err['msg']}"
                           for err in errors)
        raise CommandValidationError(f"Invalid {action} command: {detail}", errors) from e


def canonical_payload(command: CanonicalCommand) -> Dict[str, Any]:
    return command.model_dump()


async def record_audit(
    session: AsyncSession,
    turbine_id: str,
    payload: Dict[str, Any],
    issued_by: str,
    issued_at: Optional[datetime] = None,
) -> OperatorCommand:
    """Add the audit row for a forwarded command. Caller commits."""
    entry = OperatorCommand(
        turbine_id=turbine_id,
        action=payload["action"],
        payload=payload,
        issued_by=issued_by,
        issued_at=issued_at or utcnow(),
        status=SENT,
    )
    session.add(entry)
    return entry


async def list_audit(session: AsyncSession, turbine_id: Optional[str] = None, limit: int = 200) -> List[OperatorCommand]:
    stmt = select(OperatorCommand).order_by(OperatorCommand.issued_at.desc()).limit(limit)
    if turbine_id:
        stmt = stmt.where(OperatorCommand.turbine_id == turbine_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


class CommandService:
    def __init__(self, publisher: CommandPublisher, farm_id: str = config.FARM_ID):
        self.publisher = publisher
        self.farm_id = farm_id

    async def forward(
        self,
        session: AsyncSession,
        turbine_id: str,
        payload: Dict[str, Any],
        issued_by: str,
        now: Optional[datetime] = None,
    ) -> OperatorCommand:
        """Publish an already canonical payload, then audit it. TransportError propagates unaudited."""
        await self.publisher.publish(command_topic(turbine_id, self.farm_id), payload)
        return await record_audit(session, turbine_id, payload, issued_by, now)

    async def dispatch(
        self,
        session: AsyncSession,
        turbine_id: str,
        request: Dict[str, Any],
        issued_by: str = "operator",
        now: Optional[datetime] = None,
    ) -> Optional[OperatorCommand]:
        """
        Validate, forward and audit one operator command.

        Returns None when the turbine is unknown. Raises CommandValidationError
        before anything is published, and TransportError if the publish fails.
        """
        command = validate_command(request)

        turbine = await session.get(Turbine, turbine_id)
        if turbine is None:
            return None

        entry = await self.forward(session, turbine_id, canonical_payload(command), issued_by, now)
        await commit(session)
        logger.info("Command %s sent to %s by %s", command.action, turbine_id, issued_by)
        return entry
