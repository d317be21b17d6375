# spacewatch/models.py
# ------------------------------------------------------------
# Core domain models for the space-weather / fleet simulation
# ------------------------------------------------------------

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, Literal, List, Tuple
from datetime import datetime, timezone
import uuid


# -------------------------------
# Shared helpers & enums
# -------------------------------
AlertType = Literal["geomagnetic", "solar_radiation", "radio_blackout"]
AlertSeverity = Literal["minor", "moderate", "strong", "severe", "extreme"]

SatelliteType = Literal["communication", "gps", "scientific", "weather"]
SatelliteMode = Literal["normal", "safe", "alert", "emergency", "maintenance"]
InstrumentState = Literal["active", "standby", "offline"]

# escalation order, lowest first
SEVERITY_ORDER: Tuple[str, ...] = ("minor", "moderate", "strong", "severe", "extreme")
SATELLITE_MODES: Tuple[str, ...] = ("normal", "safe", "alert", "emergency", "maintenance")


def severity_rank(severity: str) -> int:
    return SEVERITY_ORDER.index(severity)


def uid(prefix: str) -> str:
    """
    Short, readable IDs for UI/debugging.
    Example: geo_a3f91c2b1e
    """
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


def utcnow() -> datetime:
    """
    Always return timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


# -------------------------------
# Space weather
# -------------------------------
class Alert(BaseModel):
    """
    A warning derived from a single weather sample.

    Only `acknowledged` is expected to change after creation.
    """

    alert_id: str
    type: AlertType
    severity: AlertSeverity

    title: str
    description: str

    issued: datetime
    expires: datetime

    acknowledged: bool = False

    @model_validator(mode="after")
    def _expires_after_issued(self) -> "Alert":
        if self.expires <= self.issued:
            raise ValueError("alert must expire after it is issued")
        return self

    def is_active(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now < self.expires and not self.acknowledged


class SolarWind(BaseModel):
    model_config = ConfigDict(frozen=True)

    velocity: float      # km/s
    density: float       # particles/cm^3
    temperature: float   # K


class MagneticField(BaseModel):
    model_config = ConfigDict(frozen=True)

    bx: float
    by: float
    bz: float
    bt: float  # nT total


class GeomagneticActivity(BaseModel):
    model_config = ConfigDict(frozen=True)

    k_index: float = Field(ge=0.0, le=9.0)
    ap_index: int
    dst_index: int


class SolarActivity(BaseModel):
    model_config = ConfigDict(frozen=True)

    solar_flux: int    # sfu
    xray_flux: str     # display label, e.g. "C4.7"
    proton_flux: int   # particles/cm^2/s


class WeatherSample(BaseModel):
    """
    One synthesized space-weather observation plus the alerts derived from it.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utcnow)

    solar_wind: SolarWind
    magnetic_field: MagneticField
    geomagnetic_activity: GeomagneticActivity
    solar_activity: SolarActivity

    alerts: List[Alert] = Field(default_factory=list)


# -------------------------------
# Satellites
# -------------------------------
class SatelliteStatus(BaseModel):
    operational: bool = True
    communicating: bool = True
    instruments: InstrumentState = "active"
    issues: List[str] = Field(default_factory=list)


class OrbitalPosition(BaseModel):
    latitude: float
    longitude: float   # wrapped into [-180, 180)
    altitude: float    # km


class Telemetry(BaseModel):
    battery_level: float = Field(ge=10.0, le=100.0)  # %
    signal_strength: float  # dBm
    temperature: float      # Celsius
    power_consumption: int  # W


class ModeHistoryEntry(BaseModel):
    mode: SatelliteMode
    timestamp: datetime = Field(default_factory=utcnow)
    reason: str
    automatic: bool = False


class Satellite(BaseModel):
    """
    A managed spacecraft: identity, mode, derived status and telemetry.
    """

    satellite_id: str = Field(frozen=True)
    name: str
    satellite_type: SatelliteType = Field(frozen=True)

    mode: SatelliteMode = "normal"
    status: SatelliteStatus = Field(default_factory=SatelliteStatus)

    position: OrbitalPosition
    telemetry: Telemetry

    last_update: datetime = Field(default_factory=utcnow)

    # newest first
    mode_history: List[ModeHistoryEntry] = Field(default_factory=list)


class SatelliteFleet(BaseModel):
    """
    Snapshot of the whole fleet with derived counters.
    """

    satellites: List[Satellite] = Field(default_factory=list)
    last_update: datetime = Field(default_factory=utcnow)

    total_active: int = 0
    total_in_safe_mode: int = 0
    total_with_issues: int = 0


class ModeChange(BaseModel):
    """
    A mode history entry tagged with the satellite it belongs to.
    """

    satellite_id: str
    satellite_name: str
    entry: ModeHistoryEntry
