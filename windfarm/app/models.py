from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, Text, Index, JSON, Uuid
from windfarm.app.database import Base
import uuid


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Turbine(Base):
    __tablename__ = "turbines"
    id = Column(String(64), primary_key=True)
    name = Column(String(128), nullable=False, default="")
    location = Column(String(128), nullable=False, default="")
    is_online = Column(Boolean, nullable=False, default=False)
    last_seen_at = Column(DateTime)
    # is_in_maintenance == False implies both fields below are NULL
    is_in_maintenance = Column(Boolean, nullable=False, default=False)
    maintenance_since = Column(DateTime)
    maintenance_reason = Column(Text)

    __table_args__ = (
        Index("ix_turbines_online_last_seen", "is_online", "last_seen_at"),
    )

class TelemetrySample(Base):
    __tablename__ = "telemetry"
    # recorded_at stays in the key for the hypertable; id lets a resent sample land twice
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    recorded_at = Column(DateTime, primary_key=True, nullable=False)
    turbine_id = Column(String(64), ForeignKey("turbines.id"), nullable=False)
    wind_speed = Column(Float)
    wind_direction = Column(Float)
    ambient_temperature = Column(Float)
    rotor_speed = Column(Float)
    power_output = Column(Float)
    nacelle_direction = Column(Float)
    blade_pitch = Column(Float)
    generator_temp = Column(Float)
    gearbox_temp = Column(Float)
    vibration = Column(Float)
    status = Column(String(32), nullable=False, default="")

    __table_args__ = (
        Index("ix_telemetry_turbine_recorded", "turbine_id", "recorded_at"),
    )

class Alert(Base):
    __tablename__ = "alerts"
    id = Column(Integer, primary_key=True, autoincrement=True)
    turbine_id = Column(String(64), ForeignKey("turbines.id"), nullable=False)
    severity = Column(String(16), nullable=False)
    metric_key = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    triggered_at = Column(DateTime, nullable=False)
    is_acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_at = Column(DateTime)
    acknowledged_by = Column(String(64))

    __table_args__ = (
        Index("ix_alerts_turbine_triggered", "turbine_id", "triggered_at"),
    )

class OperatorCommand(Base):
    """Audit record of a forwarded command. Written once, never updated."""
    __tablename__ = "operator_commands"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    turbine_id = Column(String(64), ForeignKey("turbines.id"), nullable=False, index=True)
    action = Column(String(32), nullable=False)
    payload = Column(JSON, nullable=False)
    issued_by = Column(String(64), nullable=False)
    issued_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    status = Column(String(16), nullable=False, default="Sent")
