# spacewatch/coordinator.py
# ------------------------------------------------------------
# Wires the two engines together.
#
# Contract: fleet.respond_to_weather() is called exactly once per
# weather emission, synchronously, in emission order. The engines
# themselves never import each other.
# ------------------------------------------------------------

from __future__ import annotations

import logging
from typing import List, Optional

from .fleet_engine import FleetEngine
from .models import SatelliteFleet, WeatherSample
from .pubsub import Unsubscribe
from .weather_engine import WeatherEngine

logger = logging.getLogger(__name__)


class Coordinator:
    """
    Owns the subscriptions between WeatherEngine and FleetEngine and
    caches the latest fleet snapshot for display.
    """

    def __init__(self, weather: WeatherEngine, fleet: FleetEngine):
        self.weather = weather
        self.fleet = fleet
        self.latest_fleet: Optional[SatelliteFleet] = None
        self._disposers: List[Unsubscribe] = []

    @property
    def wired(self) -> bool:
        return bool(self._disposers)

    def _on_weather(self, sample: WeatherSample) -> None:
        changed = self.fleet.respond_to_weather(sample)
        if changed:
            logger.info(
                "weather response changed %d satellite(s) (K=%.1f)",
                changed,
                sample.geomagnetic_activity.k_index,
            )

    def _on_fleet(self, fleet: SatelliteFleet) -> None:
        self.latest_fleet = fleet

    def wire(self) -> None:
        """
        Register the cross-engine subscriptions (no timers).
        """
        if self.wired:
            return
        self.latest_fleet = self.fleet.get_fleet()
        self._disposers.append(self.weather.subscribe(self._on_weather))
        self._disposers.append(self.fleet.subscribe(self._on_fleet))

    def start(self, run_timers: bool = True) -> None:
        self.wire()
        if run_timers:
            self.weather.start()
            self.fleet.start()

    def shutdown(self) -> None:
        for dispose in self._disposers:
            dispose()
        self._disposers.clear()
        self.weather.shutdown()
        self.fleet.shutdown()

    async def aclose(self) -> None:
        """
        shutdown(), then wait for both engine timers to wind down.
        """
        self.shutdown()
        await self.weather.aclose()
        await self.fleet.aclose()
