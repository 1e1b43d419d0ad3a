"""
Tests for telemetry ingestion and first-contact configuration.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from windfarm.app.models import TelemetrySample
from windfarm.app.services.ingestion import IngestionService, ReportingIntervalRegistry, to_naive_utc
from conftest import NOW, add_turbine, fetch_audit, fetch_turbine, make_telemetry


class TestFirstSighting:

    @pytest.mark.asyncio
    async def test_creates_turbine_and_sends_interval(self, ingestion, publisher, session, session_factory):
        result = await ingestion.ingest(session, make_telemetry(turbine_name="Ridge 1"), now=NOW)

        assert result.first_sighting
        turbine = await fetch_turbine(session_factory, "wt-01")
        assert turbine.name == "Ridge 1"
        assert turbine.is_online is True
        assert turbine.last_seen_at == NOW
        assert turbine.is_in_maintenance is False

        assert publisher.published == [
            ("farm/farm-01/windmill/wt-01/command", {"action": "setInterval", "value": 10}),
        ]
        [audit] = await fetch_audit(session_factory)
        assert audit.issued_by == "system"
        assert audit.status == "Sent"

    @pytest.mark.asyncio
    async def test_interval_sent_only_once(self, ingestion, publisher, session):
        await ingestion.ingest(session, make_telemetry(timestamp=NOW), now=NOW)
        second = await ingestion.ingest(session, make_telemetry(timestamp=NOW + timedelta(seconds=10)),
                                        now=NOW + timedelta(seconds=10))

        assert not second.first_sighting
        assert len(publisher.published) == 1

    @pytest.mark.asyncio
    async def test_registry_is_per_process(self, alert_engine, locks, command_service, publisher, session):
        # Same turbine id, new row after a data reset, but this process already configured it
        registry = ReportingIntervalRegistry()
        registry.mark_if_new("wt-01")
        service = IngestionService(alert_engine, locks, command_service, registry)

        result = await service.ingest(session, make_telemetry(), now=NOW)

        assert result.first_sighting
        assert publisher.published == []

    @pytest.mark.asyncio
    async def test_transport_failure_keeps_telemetry(self, ingestion, publisher, session, session_factory):
        publisher.fail = True

        result = await ingestion.ingest(session, make_telemetry(), now=NOW)

        assert result.first_sighting
        assert await fetch_turbine(session_factory, "wt-01") is not None
        assert await fetch_audit(session_factory) == []

    @pytest.mark.asyncio
    async def test_name_defaults_to_id(self, ingestion, session, session_factory):
        await ingestion.ingest(session, make_telemetry("wt-09", turbine_name=None), now=NOW)
        assert (await fetch_turbine(session_factory, "wt-09")).name == "wt-09"


class TestIngest:

    @pytest.mark.asyncio
    async def test_sample_stored(self, ingestion, session):
        await ingestion.ingest(session, make_telemetry(generator_temp=61.5, status="stopped"), now=NOW)

        rows = (await session.execute(select(TelemetrySample))).scalars().all()
        assert len(rows) == 1
        assert rows[0].recorded_at == NOW
        assert rows[0].generator_temp == 61.5
        assert rows[0].status == "stopped"

    @pytest.mark.asyncio
    async def test_resent_sample_is_accepted(self, ingestion, session, session_factory):
        await ingestion.ingest(session, make_telemetry(generator_temp=91.0), now=NOW)
        later = NOW + timedelta(seconds=30)

        result = await ingestion.ingest(session, make_telemetry(generator_temp=91.0), now=later)

        assert result.alerts == []
        rows = (await session.execute(select(TelemetrySample))).scalars().all()
        assert [r.recorded_at for r in rows] == [NOW, NOW]
        assert (await fetch_turbine(session_factory, "wt-01")).last_seen_at == later

    @pytest.mark.asyncio
    async def test_brings_offline_turbine_back_online(self, ingestion, session, session_factory):
        await add_turbine(session, last_seen_at=NOW - timedelta(hours=1), is_online=False)

        await ingestion.ingest(session, make_telemetry(), now=NOW)

        turbine = await fetch_turbine(session_factory, "wt-01")
        assert turbine.is_online is True
        assert turbine.last_seen_at == NOW

    @pytest.mark.asyncio
    async def test_last_seen_uses_receipt_time(self, ingestion, session, session_factory):
        await add_turbine(session, last_seen_at=NOW - timedelta(minutes=1))
        device_clock = NOW - timedelta(hours=3)

        await ingestion.ingest(session, make_telemetry(timestamp=device_clock), now=NOW)

        assert (await fetch_turbine(session_factory, "wt-01")).last_seen_at == NOW

    @pytest.mark.asyncio
    async def test_missing_timestamp_uses_now(self, ingestion, session):
        result = await ingestion.ingest(session, make_telemetry(timestamp=None), now=NOW)
        assert result.sample.recorded_at == NOW

    @pytest.mark.asyncio
    async def test_stopped_turbine_skips_speed_checks(self, ingestion, session):
        result = await ingestion.ingest(
            session, make_telemetry(status="stopped", rotor_speed=0.0, wind_speed=0.5), now=NOW,
        )
        assert result.alerts == []


def test_to_naive_utc():
    aware = datetime(2026, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_naive_utc(aware) == NOW
    assert to_naive_utc(NOW) == NOW
    assert to_naive_utc(None) is None


def test_camel_case_payload():
    data = make_telemetry().model_dump(by_alias=True)
    assert "generatorTemp" in data
    assert "turbineId" in data
