# spacewatch/routes/_common.py
# ------------------------------------------------------------
# Shared dependencies for engine-backed endpoints.
# Keeps route files small and consistent.
#
# Engine-facing handlers and dependencies are `async def` so they run
# on the event loop next to the engine timers, never in the threadpool.
# ------------------------------------------------------------

from fastapi import Request

from ..fleet_engine import FleetEngine
from ..weather_engine import WeatherEngine


async def get_weather(request: Request) -> WeatherEngine:
    """
    The WeatherEngine built by the app lifespan.
    """
    return request.app.state.weather


async def get_fleet(request: Request) -> FleetEngine:
    return request.app.state.fleet
