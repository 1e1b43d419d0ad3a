"""
Process-wide service instances, exposed as FastAPI dependencies so tests
can override them.
"""

from windfarm.app.database import AsyncSessionLocal
from windfarm.app.services.alerting import AlertEngine, TurbineLocks
from windfarm.app.services.commands import CommandService
from windfarm.app.services.ingestion import IngestionService, ReportingIntervalRegistry
from windfarm.app.services.offline import OfflineSweeper
from windfarm.app.services.transport import HttpCommandPublisher

locks = TurbineLocks()
alert_engine = AlertEngine()
publisher = HttpCommandPublisher()
command_service = CommandService(publisher)
ingestion_service = IngestionService(alert_engine, locks, command_service, ReportingIntervalRegistry())
sweeper = OfflineSweeper(AsyncSessionLocal, alert_engine, locks)


def get_command_service() -> CommandService:
    return command_service


def get_ingestion_service() -> IngestionService:
    return ingestion_service
