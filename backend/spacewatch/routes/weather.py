# spacewatch/routes/weather.py
# ------------------------------------------------------------
# Space weather API
#
# Thin wrappers over WeatherEngine reads/commands. Every payload is
# a copy; nothing here can mutate engine state except ack.
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, HTTPException, Query

from ..weather_engine import WeatherEngine
from ._common import get_weather

router = APIRouter(tags=["weather"])


@router.get("/api/weather/current")
async def current_weather(engine: WeatherEngine = Depends(get_weather)):
    """
    Latest sample (null before the first synthesis).
    """
    sample = engine.get_current()
    return {"item": sample.model_dump(mode="json") if sample else None}


@router.get("/api/weather/history")
async def weather_history(
    limit: int = Query(200, ge=1, le=5000),
    engine: WeatherEngine = Depends(get_weather),
):
    """
    Retained samples, oldest first. `limit` keeps the newest N.
    """
    items = engine.get_history()[-limit:]
    return {"items": [s.model_dump(mode="json") for s in items]}


@router.get("/api/weather/alerts")
async def active_alerts(engine: WeatherEngine = Depends(get_weather)):
    """
    Unacknowledged, unexpired alerts of the current sample.
    """
    return {"items": [a.model_dump(mode="json") for a in engine.get_active_alerts()]}


@router.post("/api/weather/alerts/{alert_id}/ack")
async def acknowledge_alert(alert_id: str, engine: WeatherEngine = Depends(get_weather)):
    if not engine.acknowledge_alert(alert_id):
        raise HTTPException(status_code=404, detail=f"Alert {alert_id} not in current sample.")
    return {"ok": True, "alert_id": alert_id}
