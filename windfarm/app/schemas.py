from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Annotated, Optional, Any, Dict, Literal, Union
from uuid import UUID


class CamelModel(BaseModel):
    """Turbines speak camelCase on the wire; Python code uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TelemetryCreate(CamelModel):
    turbine_id: str
    turbine_name: Optional[str] = None
    farm_id: Optional[str] = None
    timestamp: Optional[datetime] = None
    wind_speed: float
    wind_direction: float = 0.0
    ambient_temperature: float = 0.0
    rotor_speed: float
    power_output: float = 0.0
    nacelle_direction: float = 0.0
    blade_pitch: float = 0.0
    generator_temp: float
    gearbox_temp: float
    vibration: float
    status: str


# --- Operator commands: one variant per action, tagged by "action" ---

class StartCommand(BaseModel):
    action: Literal["start"]


class StopCommand(BaseModel):
    action: Literal["stop"]
    reason: str = "operator"

    @field_validator("reason", mode="before")
    @classmethod
    def default_reason(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return "operator"
        return v


class SetIntervalCommand(BaseModel):
    action: Literal["setInterval"]
    value: int = Field(strict=True, ge=1, le=60)


class SetPitchCommand(BaseModel):
    action: Literal["setPitch"]
    angle: float = Field(ge=0, le=30)

    @field_validator("angle", mode="before")
    @classmethod
    def reject_bool(cls, v):
        if isinstance(v, bool):
            raise ValueError("angle must be a number")
        return v


CanonicalCommand = Annotated[
    Union[StartCommand, StopCommand, SetIntervalCommand, SetPitchCommand],
    Field(discriminator="action"),
]
command_adapter = TypeAdapter(CanonicalCommand)


class CommandRequest(CamelModel):
    """Raw operator request as posted by the UI; validated into a CanonicalCommand."""
    action: Optional[str] = None
    value: Optional[Any] = None
    angle: Optional[Any] = None
    reason: Optional[str] = None
    issued_by: str = "operator"


class MaintenanceUpdate(CamelModel):
    enabled: bool
    reason: Optional[str] = None


# --- Responses ---

class TelemetryOut(CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
    turbine_id: str
    recorded_at: datetime
    wind_speed: Optional[float] = None
    wind_direction: Optional[float] = None
    ambient_temperature: Optional[float] = None
    rotor_speed: Optional[float] = None
    power_output: Optional[float] = None
    nacelle_direction: Optional[float] = None
    blade_pitch: Optional[float] = None
    generator_temp: Optional[float] = None
    gearbox_temp: Optional[float] = None
    vibration: Optional[float] = None
    status: str


class TurbineOut(CamelModel):
    id: str
    name: str
    location: str
    is_online: bool
    last_seen_at: Optional[datetime] = None
    is_in_maintenance: bool
    maintenance_since: Optional[datetime] = None
    maintenance_reason: Optional[str] = None
    state: str
    latest_metric: Optional[TelemetryOut] = None


class AlertOut(CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
    id: int
    turbine_id: str
    severity: str
    metric_key: str
    message: str
    triggered_at: datetime
    is_acknowledged: bool
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None


class CommandResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
    id: UUID
    turbine_id: str
    action: str
    payload: Dict[str, Any]
    issued_by: str
    issued_at: datetime
    status: str
