# spacewatch/main.py
# ------------------------------------------------------------
# FastAPI entrypoint for the space-weather dashboard backend.
#
# Responsibilities:
# - App initialization & middleware
# - Route registration
# - Engine construction and wiring (lifespan)
# - Background simulation loops (weather, fleet)
# ------------------------------------------------------------

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .coordinator import Coordinator
from .fleet_engine import FleetEngine
from .routes import fleet, health, stream, weather
from .weather_engine import WeatherEngine

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Application lifespan
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    On startup:
    1. Build both engines from settings.
    2. Wire weather -> fleet and start the timers if enabled.
    On shutdown: dispose subscriptions, stop both engines and await
    their timer tasks.
    """
    options = settings.engine_options()
    weather_engine = WeatherEngine(options)
    fleet_engine = FleetEngine(options=options)
    coordinator = Coordinator(weather_engine, fleet_engine)

    app.state.weather = weather_engine
    app.state.fleet = fleet_engine
    app.state.coordinator = coordinator

    # static demo mode keeps the initial data but never ticks
    coordinator.start(run_timers=settings.generators_enabled)
    logger.info("simulation ready (generators_enabled=%s)", settings.generators_enabled)

    try:
        yield
    finally:
        await coordinator.aclose()
        logger.info("simulation stopped")


# ------------------------------------------------------------
# FastAPI application instance
# ------------------------------------------------------------
app = FastAPI(
    title="Space Weather Dashboard API",
    version="0.1.0",
    description="Synthetic space-weather and satellite fleet backend for dashboard demos",
    lifespan=lifespan,
)


# ------------------------------------------------------------
# CORS configuration
# Allows frontend dashboards to connect safely
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url)
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": str(exc), "path": str(request.url)},
    )


# ------------------------------------------------------------
# API routes
# ------------------------------------------------------------
app.include_router(weather.router)
app.include_router(fleet.router)
app.include_router(stream.router)
app.include_router(health.router)
