# spacewatch/routes/health.py
# ------------------------------------------------------------
# Health & metrics endpoint
#
# Purpose:
# - quick liveness check
# - counts for UI chips
# - engine timer state
# ------------------------------------------------------------

from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import time

from ..fleet_engine import FleetEngine
from ..generators import iso_utc
from ..weather_engine import WeatherEngine
from ._common import get_fleet, get_weather

router = APIRouter(tags=["health"])

# server start reference (module load time)
STARTED_AT = datetime.now(timezone.utc)


@router.get("/api/health")
async def health(
    weather: WeatherEngine = Depends(get_weather),
    fleet: FleetEngine = Depends(get_fleet),
):
    """
    Health status for the dashboard.

    Returns:
    - ok, utc
    - started_at, uptime_seconds
    - counts (history samples, active alerts, satellites, safe mode)
    - engines (timer running / shut down)
    - freshness (latest sample and fleet update)
    - latency_ms (server-measured for this handler)
    """
    t0 = time.perf_counter()

    current = weather.get_current()
    snapshot = fleet.get_fleet()

    counts = {
        "weather_history": len(weather.get_history()),
        "active_alerts": len(weather.get_active_alerts()),
        "satellites": len(snapshot.satellites),
        "satellites_active": snapshot.total_active,
        "satellites_in_safe_mode": snapshot.total_in_safe_mode,
        "satellites_with_issues": snapshot.total_with_issues,
    }

    engines = {
        "weather": {"running": weather.running, "shut_down": weather.is_shut_down},
        "fleet": {"running": fleet.running, "shut_down": fleet.is_shut_down},
    }

    freshness = {
        "weather_latest": iso_utc(current.timestamp) if current else None,
        "fleet_latest": iso_utc(snapshot.last_update),
    }

    now = datetime.now(timezone.utc)
    uptime_seconds = int((now - STARTED_AT).total_seconds())

    latency_ms = round((time.perf_counter() - t0) * 1000, 2)

    return {
        "ok": True,
        "utc": iso_utc(now),
        "started_at": iso_utc(STARTED_AT),
        "uptime_seconds": uptime_seconds,
        "counts": counts,
        "engines": engines,
        "freshness": freshness,
        "latency_ms": latency_ms,
    }
