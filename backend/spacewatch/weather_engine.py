# spacewatch/weather_engine.py
# ------------------------------------------------------------
# WeatherEngine: owns the current sample and a rolling history,
# synthesizes a new sample every tick and publishes it.
#
# Lifecycle:
#   engine = WeatherEngine(options)   # current sample + backfill
#   engine.start()                    # inside a running loop
#   ...
#   engine.shutdown()                 # terminal, idempotent
# ------------------------------------------------------------

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from .config import EngineOptions
from .generators import RandomSource, synthesize_sample
from .models import Alert, WeatherSample, utcnow
from .pubsub import ObserverRegistry, Unsubscribe
from .scheduler import PeriodicTask

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class WeatherEngine:
    """
    Synthetic space-weather feed.

    Every read hands out a deep copy; subscribers each get their own copy
    of the new sample.
    """

    def __init__(
        self,
        options: Optional[EngineOptions] = None,
        rng: Optional[RandomSource] = None,
        clock: Clock = utcnow,
    ):
        self.options = options or EngineOptions()
        self.rng = rng or random.Random()
        self.clock = clock

        self._current: Optional[WeatherSample] = None
        self._history: List[WeatherSample] = []
        self._subscribers: ObserverRegistry[WeatherSample] = ObserverRegistry("weather")
        self._timer = PeriodicTask(
            "weather-engine",
            self.options.tick_interval_sec,
            self.tick,
        )
        self._shut_down = False

        self._generate_initial_data()

    # -------------------------------
    # Lifecycle
    # -------------------------------
    @property
    def running(self) -> bool:
        return self._timer.running

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def start(self) -> None:
        if self._shut_down:
            logger.warning("weather engine already shut down; start() ignored")
            return
        self._timer.start()
        logger.info("weather engine started (tick=%sms)", self.options.tick_interval_ms)

    def shutdown(self) -> None:
        if self._shut_down:
            return
        self._shut_down = True
        self._timer.stop()
        self._subscribers.clear()
        logger.info("weather engine shut down")

    async def aclose(self) -> None:
        """
        shutdown() and wait for the timer task to finish.
        """
        self.shutdown()
        await self._timer.aclose()

    # -------------------------------
    # Synthesis
    # -------------------------------
    def _generate_initial_data(self) -> None:
        now = self.clock()
        self._current = synthesize_sample(self.rng, now=now)

        # i.i.d. hourly points: now - N hours ... now
        hours = self.options.history_backfill_hours
        for i in range(hours, -1, -1):
            ts = now - timedelta(hours=i)
            self._history.append(synthesize_sample(self.rng, timestamp=ts, now=now))

    def _evict_expired(self, now: datetime) -> None:
        cutoff = now - timedelta(milliseconds=self.options.history_window_ms)
        self._history = [s for s in self._history if s.timestamp > cutoff]

    def tick(self) -> Optional[WeatherSample]:
        """
        Produce, store and publish one sample. Returns a copy of it,
        or None after shutdown.
        """
        if self._shut_down:
            return None

        now = self.clock()
        sample = synthesize_sample(self.rng, now=now)

        self._history.append(sample)
        self._evict_expired(now)
        self._current = sample

        logger.debug(
            "weather tick: K=%.1f v=%s Bz=%.1f alerts=%d",
            sample.geomagnetic_activity.k_index,
            sample.solar_wind.velocity,
            sample.magnetic_field.bz,
            len(sample.alerts),
        )

        self._subscribers.publish(lambda: sample.model_copy(deep=True))
        return sample.model_copy(deep=True)

    # -------------------------------
    # Reads
    # -------------------------------
    def get_current(self) -> Optional[WeatherSample]:
        if self._current is None:
            return None
        return self._current.model_copy(deep=True)

    def get_history(self) -> List[WeatherSample]:
        """
        Chronological copy of the retained samples.
        """
        return [s.model_copy(deep=True) for s in self._history]

    def get_active_alerts(self, now: Optional[datetime] = None) -> List[Alert]:
        """
        Unacknowledged, unexpired alerts of the current sample.
        """
        if self._current is None:
            return []
        now = now or self.clock()
        return [
            a.model_copy()
            for a in self._current.alerts
            if a.is_active(now)
        ]

    # -------------------------------
    # Commands
    # -------------------------------
    def subscribe(self, callback: Callable[[WeatherSample], None]) -> Unsubscribe:
        if self._shut_down:
            return lambda: None
        return self._subscribers.subscribe(callback)

    def acknowledge_alert(self, alert_id: str) -> bool:
        """
        Mark an alert of the current sample as acknowledged.

        Historical samples are never touched. Returns False when the id
        is not part of the current sample.
        """
        if self._shut_down or self._current is None:
            return False
        for alert in self._current.alerts:
            if alert.alert_id == alert_id:
                alert.acknowledged = True
                logger.info("alert %s acknowledged", alert_id)
                return True
        logger.debug("acknowledge_alert: %s not in current sample", alert_id)
        return False
