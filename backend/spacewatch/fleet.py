# spacewatch/fleet.py
# ------------------------------------------------------------
# Satellite mode/type tables and the reference fleet catalog.
#
# Everything here is a pure function of (mode, type, telemetry);
# FleetEngine owns the mutable state.
# ------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .models import (
    InstrumentState,
    OrbitalPosition,
    Satellite,
    SatelliteMode,
    SatelliteStatus,
    SatelliteType,
    Telemetry,
    utcnow,
)


# -------------------------------
# Type tables
# -------------------------------
BASE_POWER_W: Dict[SatelliteType, int] = {
    "communication": 850,
    "gps": 1200,
    "scientific": 450,
    "weather": 950,
}

# degrees of longitude per tick; gps/scientific fly the fast orbit
ORBIT_RATE_DEG: Dict[SatelliteType, float] = {
    "communication": 0.01,
    "gps": 0.1,
    "scientific": 0.1,
    "weather": 0.01,
}


# -------------------------------
# Mode tables
# -------------------------------
MODE_POWER_MULTIPLIER: Dict[SatelliteMode, float] = {
    "normal": 1.0,
    "safe": 0.3,
    "alert": 1.2,
    "emergency": 0.2,
    "maintenance": 0.1,
}

# mode -> (instruments, communicating, operational, issue)
MODE_STATUS: Dict[SatelliteMode, Tuple[InstrumentState, bool, bool, Optional[str]]] = {
    "normal": ("active", True, True, None),
    "safe": ("standby", True, True, None),
    "alert": ("active", True, True, "Heightened alert status"),
    "emergency": ("offline", False, False, "Emergency mode active"),
    "maintenance": ("offline", True, False, "Scheduled maintenance"),
}

LOW_BATTERY_THRESHOLD = 20.0
LOW_BATTERY_ISSUE = "Low battery warning"

BATTERY_FLOOR = 10.0
BATTERY_CEILING = 100.0


def power_consumption(satellite_type: SatelliteType, mode: SatelliteMode) -> int:
    return round(BASE_POWER_W[satellite_type] * MODE_POWER_MULTIPLIER[mode])


def derive_status(mode: SatelliteMode, battery_level: float) -> SatelliteStatus:
    """
    Rebuild the status block from scratch for the given mode.
    """
    instruments, communicating, operational, issue = MODE_STATUS[mode]
    issues: List[str] = []
    if issue:
        issues.append(issue)
    if battery_level < LOW_BATTERY_THRESHOLD:
        issues.append(LOW_BATTERY_ISSUE)
    return SatelliteStatus(
        operational=operational,
        communicating=communicating,
        instruments=instruments,
        issues=issues,
    )


def wrap_longitude(lon: float) -> float:
    """
    Wrap into [-180, 180).
    """
    return (lon + 180.0) % 360.0 - 180.0


# -------------------------------
# Reference fleet
# -------------------------------
def _satellite(
    satellite_id: str,
    name: str,
    satellite_type: SatelliteType,
    position: Tuple[float, float, float],
    battery: float,
    signal: float,
    temperature: float,
    now: datetime,
) -> Satellite:
    lat, lon, alt = position
    return Satellite(
        satellite_id=satellite_id,
        name=name,
        satellite_type=satellite_type,
        mode="normal",
        status=derive_status("normal", battery),
        position=OrbitalPosition(latitude=lat, longitude=lon, altitude=alt),
        telemetry=Telemetry(
            battery_level=battery,
            signal_strength=signal,
            temperature=temperature,
            power_consumption=power_consumption(satellite_type, "normal"),
        ),
        last_update=now,
    )


def default_fleet(now: Optional[datetime] = None) -> List[Satellite]:
    """
    The four-satellite demo constellation (two GEO, one MEO, one LEO).
    """
    now = now or utcnow()
    return [
        _satellite("comm-sat-1", "CommSat Alpha", "communication",
                   (0.0, -75.0, 35786.0), 87.0, -65.0, 15.0, now),
        _satellite("gps-sat-2", "NavStar Beta", "gps",
                   (55.0, 12.0, 20200.0), 92.0, -58.0, -5.0, now),
        _satellite("sci-sat-3", "Research Gamma", "scientific",
                   (-25.0, 140.0, 600.0), 78.0, -72.0, -45.0, now),
        _satellite("weather-sat-4", "MeteoSat Delta", "weather",
                   (0.0, 0.0, 35786.0), 95.0, -61.0, 8.0, now),
    ]


# -------------------------------
# Operator quick actions
# -------------------------------
# name -> keyword arguments for FleetEngine.set_fleet_mode()
FLEET_QUICK_ACTIONS: Dict[str, Dict[str, object]] = {
    "return-to-normal": {
        "mode": "normal",
        "from_modes": ("safe",),
        "reason": "Fleet return to normal operations",
    },
    "fleet-alert": {
        "mode": "alert",
        "from_modes": ("normal",),
        "reason": "Fleet wide alert status",
    },
    "commsat-maintenance": {
        "mode": "maintenance",
        "satellite_type": "communication",
        "reason": "Scheduled maintenance cycle",
    },
}
