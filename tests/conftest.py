from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

import pytest

from spacewatch.config import EngineOptions
from spacewatch.fleet import default_fleet
from spacewatch.fleet_engine import FleetEngine
from spacewatch.models import (
    GeomagneticActivity,
    MagneticField,
    OrbitalPosition,
    Satellite,
    SolarActivity,
    SolarWind,
    Telemetry,
    WeatherSample,
)

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


# ---------- Deterministic collaborators ----------


class ScriptedRandom:
    """random()-only source cycling through fixed values."""

    def __init__(self, values: Iterable[float]):
        self._values = itertools.cycle(list(values))

    def random(self) -> float:
        return next(self._values)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ---------- Builders ----------


def make_sample(
    k_index: float = 3.0,
    velocity: float = 400.0,
    bz: float = 0.0,
    timestamp: Optional[datetime] = None,
) -> WeatherSample:
    """Hand-built sample; only K, velocity and Bz matter to the fleet."""
    return WeatherSample(
        timestamp=timestamp or T0,
        solar_wind=SolarWind(velocity=velocity, density=5.0, temperature=100_000),
        magnetic_field=MagneticField(bx=0.0, by=0.0, bz=bz, bt=abs(bz)),
        geomagnetic_activity=GeomagneticActivity(k_index=k_index, ap_index=20, dst_index=-50),
        solar_activity=SolarActivity(solar_flux=120, xray_flux="B3.2", proton_flux=10),
    )


def make_satellite(
    satellite_id: str,
    satellite_type: str = "communication",
    mode: str = "normal",
    battery: float = 80.0,
    longitude: float = 0.0,
) -> Satellite:
    return Satellite(
        satellite_id=satellite_id,
        name=satellite_id.upper(),
        satellite_type=satellite_type,
        mode=mode,
        position=OrbitalPosition(latitude=0.0, longitude=longitude, altitude=500.0),
        telemetry=Telemetry(
            battery_level=battery,
            signal_strength=-60.0,
            temperature=10.0,
            power_consumption=0,
        ),
    )


def recount(fleet) -> tuple:
    sats = fleet.satellites
    return (
        sum(1 for s in sats if s.status.operational),
        sum(1 for s in sats if s.mode == "safe"),
        sum(1 for s in sats if s.status.issues),
    )


# ---------- Shared fixtures ----------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quiet_rng() -> ScriptedRandom:
    """Every draw is the midpoint: zero telemetry jitter, no radio roll."""
    return ScriptedRandom([0.5])


@pytest.fixture
def fleet_engine(clock, quiet_rng) -> FleetEngine:
    return FleetEngine(
        satellites=default_fleet(clock()),
        options=EngineOptions(),
        rng=quiet_rng,
        clock=clock,
    )


@pytest.fixture
def published() -> List:
    return []
