# spacewatch/routes/stream.py
# ------------------------------------------------------------
# Server-Sent Events (SSE) stream
#
# Each connected client gets its own asyncio.Queue subscribed to
# both engines. Every engine mutation (timer ticks and the async
# route handlers) runs on the event loop, so put_nowait() is safe:
# - event: weather_updated | fleet_updated | heartbeat
# - data: <json>
# ------------------------------------------------------------

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
import asyncio
import json
import time
from typing import Any, AsyncGenerator, Callable, Dict, Tuple

from ..fleet_engine import FleetEngine
from ..weather_engine import WeatherEngine
from ._common import get_fleet, get_weather

router = APIRouter(tags=["stream"])

HEARTBEAT_SEC = 10.0
QUEUE_LIMIT = 100


def sse(event: str, data_obj) -> str:
    """
    Build an SSE message.

    Format:
        event: name
        data: json
    """
    return f"event: {event}\ndata: {json.dumps(data_obj)}\n\n"


def subscribe_queue(
    weather: WeatherEngine,
    fleet: FleetEngine,
    queue: "asyncio.Queue[Tuple[str, Dict[str, Any]]]",
) -> Callable[[], None]:
    """
    Forward engine updates into `queue` as (event, payload) pairs.
    When the client lags behind, the oldest update is dropped.
    Returns a disposer for both subscriptions.
    """

    def _put(item: Tuple[str, Dict[str, Any]]) -> None:
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(item)

    unsub_weather = weather.subscribe(
        lambda sample: _put(("weather_updated", sample.model_dump(mode="json")))
    )
    unsub_fleet = fleet.subscribe(
        lambda snapshot: _put(("fleet_updated", snapshot.model_dump(mode="json")))
    )

    def dispose() -> None:
        unsub_weather()
        unsub_fleet()

    return dispose


@router.get("/api/stream")
async def stream(
    weather: WeatherEngine = Depends(get_weather),
    fleet: FleetEngine = Depends(get_fleet),
):
    """
    Live updates stream.

    Implementation notes:
    - Starts from "now" (does not replay history) to avoid huge bursts.
    - Sends a heartbeat when idle to keep the connection alive.
    - Uses async waits (does NOT block the server worker).
    """

    async def gen() -> AsyncGenerator[str, None]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_LIMIT)
        dispose = subscribe_queue(weather, fleet, queue)
        try:
            # initial hello + retry hint (client reconnect delay)
            yield "retry: 2000\n\n"
            yield sse("hello", {"ok": True, "ts": time.time()})

            while True:
                try:
                    event, data = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_SEC)
                except asyncio.TimeoutError:
                    yield sse("heartbeat", {"t": time.time()})
                    continue
                yield sse(event, data)
        finally:
            dispose()

    headers = {
        # SSE must not be cached
        "Cache-Control": "no-cache",
        # keep TCP connection open
        "Connection": "keep-alive",
        # if behind nginx, prevents response buffering
        "X-Accel-Buffering": "no",
    }

    return StreamingResponse(gen(), media_type="text/event-stream", headers=headers)
