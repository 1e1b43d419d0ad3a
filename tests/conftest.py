"""
Shared fixtures: an isolated SQLite database per test, a recording command
publisher and the service graph wired the same way as in production.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from windfarm.app.database import init_db
from windfarm.app.errors import TransportError
from windfarm.app.models import Alert, OperatorCommand, Turbine
from windfarm.app.schemas import TelemetryCreate
from windfarm.app.services.alerting import AlertEngine, TurbineLocks
from windfarm.app.services.commands import CommandService
from windfarm.app.services.ingestion import IngestionService, ReportingIntervalRegistry
from windfarm.app.services.offline import OfflineSweeper
from windfarm.app.services.transport import CommandPublisher

NOW = datetime(2026, 3, 1, 12, 0, 0)


class FakePublisher(CommandPublisher):
    def __init__(self):
        self.published = []
        self.fail = False

    async def publish(self, topic, payload):
        if self.fail:
            raise TransportError(f"broker unreachable for {topic}")
        self.published.append((topic, payload))


def make_telemetry(turbine_id="wt-01", **overrides):
    data = {
        "turbine_id": turbine_id,
        "turbine_name": f"Turbine {turbine_id}",
        "timestamp": NOW,
        "wind_speed": 10.0,
        "wind_direction": 220.0,
        "ambient_temperature": 8.0,
        "rotor_speed": 12.0,
        "power_output": 1500.0,
        "nacelle_direction": 220.0,
        "blade_pitch": 4.0,
        "generator_temp": 50.0,
        "gearbox_temp": 50.0,
        "vibration": 0.5,
        "status": "running",
    }
    data.update(overrides)
    return TelemetryCreate(**data)


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'windfarm_test.db'}")

    # Let SQLAlchemy drive BEGIN so SAVEPOINTs behave on SQLite
    @event.listens_for(eng.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def locks():
    return TurbineLocks()


@pytest.fixture
def alert_engine():
    return AlertEngine()


@pytest.fixture
def command_service(publisher):
    return CommandService(publisher, farm_id="farm-01")


@pytest.fixture
def registry():
    return ReportingIntervalRegistry()


@pytest.fixture
def ingestion(alert_engine, locks, command_service, registry):
    return IngestionService(alert_engine, locks, command_service, registry, reporting_interval=10)


@pytest.fixture
def sweeper(session_factory, alert_engine, locks):
    return OfflineSweeper(session_factory, alert_engine, locks)


async def add_turbine(session, turbine_id="wt-01", last_seen_at=NOW, is_online=True,
                      in_maintenance=False, reason=None):
    turbine = Turbine(
        id=turbine_id,
        name=f"Turbine {turbine_id}",
        location="North ridge",
        is_online=is_online,
        last_seen_at=last_seen_at,
        is_in_maintenance=in_maintenance,
        maintenance_since=NOW if in_maintenance else None,
        maintenance_reason=reason if in_maintenance else None,
    )
    session.add(turbine)
    await session.commit()
    return turbine


async def fetch_alerts(session_factory, turbine_id=None, metric_key=None):
    async with session_factory() as s:
        stmt = select(Alert).order_by(Alert.id)
        if turbine_id:
            stmt = stmt.where(Alert.turbine_id == turbine_id)
        if metric_key:
            stmt = stmt.where(Alert.metric_key == metric_key)
        return list((await s.execute(stmt)).scalars().all())


async def fetch_turbine(session_factory, turbine_id):
    async with session_factory() as s:
        return await s.get(Turbine, turbine_id)


async def fetch_audit(session_factory):
    async with session_factory() as s:
        return list((await s.execute(select(OperatorCommand))).scalars().all())
