# spacewatch/fleet_engine.py
# ------------------------------------------------------------
# FleetEngine: satellite telemetry + mode state machine.
#
# - telemetry drifts every tick (battery, signal, temperature, orbit)
# - modes change by operator command or by the weather-response policy
# - every mode change is recorded in the satellite's mode history
# - fleet counters are recomputed after every mutation
#
# Weather-response hysteresis:
#   enter safe : K > 6  or  v > 700  or  Bz < -15
#   leave safe : K < 4  and v < 500
# ------------------------------------------------------------

from __future__ import annotations

import heapq
import logging
import random
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .config import EngineOptions
from .fleet import (
    BATTERY_CEILING,
    BATTERY_FLOOR,
    ORBIT_RATE_DEG,
    default_fleet,
    derive_status,
    power_consumption,
    wrap_longitude,
)
from .generators import RandomSource, clamp, jitter
from .models import (
    SATELLITE_MODES,
    ModeChange,
    ModeHistoryEntry,
    Satellite,
    SatelliteFleet,
    SatelliteMode,
    SatelliteType,
    WeatherSample,
    utcnow,
)
from .pubsub import ObserverRegistry, Unsubscribe
from .scheduler import PeriodicTask

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# -------------------------------
# Policy thresholds
# -------------------------------
SAFE_K_INDEX = 6.0
SAFE_SOLAR_WIND = 700.0
SAFE_BZ = -15.0

RECOVER_K_INDEX = 4.0
RECOVER_SOLAR_WIND = 500.0

# modes the policy may escalate out of
AUTO_ESCALATE_FROM = ("normal", "alert")
# modes fleet-wide safing leaves alone
FLEET_SAFE_EXEMPT = ("safe", "maintenance")

RECOVERY_REASON = "Automatic return to normal: Space weather conditions improved"

# telemetry noise magnitudes per tick
BATTERY_NOISE = 1.0
SIGNAL_NOISE = 1.5
TEMPERATURE_NOISE = 2.0


def safe_mode_trigger(sample: WeatherSample) -> Optional[str]:
    """
    Reason for forcing safe mode, or None when conditions are tolerable.
    First match wins: geomagnetic storm, then solar wind, then Bz.
    """
    k = sample.geomagnetic_activity.k_index
    v = sample.solar_wind.velocity
    bz = sample.magnetic_field.bz

    if k > SAFE_K_INDEX:
        return f"Severe geomagnetic storm (K={k:.1f})"
    if v > SAFE_SOLAR_WIND:
        return f"High-speed solar wind ({round(v)} km/s)"
    if bz < SAFE_BZ:
        return f"Strong southward magnetic field (Bz={bz:.1f} nT)"
    return None


def conditions_improved(sample: WeatherSample) -> bool:
    return (
        sample.geomagnetic_activity.k_index < RECOVER_K_INDEX
        and sample.solar_wind.velocity < RECOVER_SOLAR_WIND
    )


class FleetEngine:
    """
    Owns the satellites. Reads return deep copies; subscribers receive a
    fresh fleet snapshot after every published change.
    """

    def __init__(
        self,
        satellites: Optional[List[Satellite]] = None,
        options: Optional[EngineOptions] = None,
        rng: Optional[RandomSource] = None,
        clock: Clock = utcnow,
    ):
        self.options = options or EngineOptions()
        self.rng = rng or random.Random()
        self.clock = clock

        now = self.clock()
        source = satellites if satellites is not None else default_fleet(now)
        self._satellites: List[Satellite] = [s.model_copy(deep=True) for s in source]
        self._by_id: Dict[str, Satellite] = {s.satellite_id: s for s in self._satellites}
        if len(self._by_id) != len(self._satellites):
            raise ValueError("satellite ids must be unique")

        for sat in self._satellites:
            self._refresh_status(sat, now)

        self._total_active = 0
        self._total_in_safe_mode = 0
        self._total_with_issues = 0
        self._last_update = now
        self._refresh_stats(now)

        self._subscribers: ObserverRegistry[SatelliteFleet] = ObserverRegistry("fleet")
        self._timer = PeriodicTask(
            "fleet-engine",
            self.options.tick_interval_sec,
            self.tick,
        )
        self._shut_down = False

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
            logger.warning("fleet engine already shut down; start() ignored")
            return
        self._timer.start()
        logger.info(
            "fleet engine started (%d satellites, tick=%sms)",
            len(self._satellites),
            self.options.tick_interval_ms,
        )

    def shutdown(self) -> None:
        if self._shut_down:
            return
        self._shut_down = True
        self._timer.stop()
        self._subscribers.clear()
        logger.info("fleet engine shut down")

    async def aclose(self) -> None:
        self.shutdown()
        await self._timer.aclose()

    # -------------------------------
    # Internal state maintenance
    # -------------------------------
    def _refresh_status(self, sat: Satellite, now: datetime) -> None:
        sat.status = derive_status(sat.mode, sat.telemetry.battery_level)
        sat.telemetry.power_consumption = power_consumption(sat.satellite_type, sat.mode)
        sat.last_update = now

    def _refresh_stats(self, now: datetime) -> None:
        self._total_active = sum(1 for s in self._satellites if s.status.operational)
        self._total_in_safe_mode = sum(1 for s in self._satellites if s.mode == "safe")
        self._total_with_issues = sum(1 for s in self._satellites if s.status.issues)
        self._last_update = now

    def _snapshot(self) -> SatelliteFleet:
        return SatelliteFleet(
            satellites=[s.model_copy(deep=True) for s in self._satellites],
            last_update=self._last_update,
            total_active=self._total_active,
            total_in_safe_mode=self._total_in_safe_mode,
            total_with_issues=self._total_with_issues,
        )

    def _notify(self) -> None:
        self._subscribers.publish(self._snapshot)

    def _transition(
        self,
        sat: Satellite,
        mode: SatelliteMode,
        reason: str,
        automatic: bool,
        now: datetime,
    ) -> None:
        """
        Apply a mode change, record it, rebuild status. Counters are the
        caller's job so batch operations recompute them once.
        """
        old = sat.mode
        sat.mode = mode
        sat.mode_history.insert(
            0,
            ModeHistoryEntry(mode=mode, timestamp=now, reason=reason, automatic=automatic),
        )
        del sat.mode_history[self.options.mode_history_capacity:]
        self._refresh_status(sat, now)

        logger.info(
            "%s: %s -> %s (%s) %s",
            sat.satellite_id,
            old,
            mode,
            "auto" if automatic else "manual",
            reason,
        )

    # -------------------------------
    # Timer
    # -------------------------------
    def tick(self) -> None:
        """
        Drift telemetry and advance orbits for every satellite.
        """
        if self._shut_down:
            return

        now = self.clock()
        for sat in self._satellites:
            tm = sat.telemetry
            tm.battery_level = clamp(
                tm.battery_level + jitter(self.rng, BATTERY_NOISE),
                BATTERY_FLOOR,
                BATTERY_CEILING,
            )
            tm.signal_strength += jitter(self.rng, SIGNAL_NOISE)
            tm.temperature += jitter(self.rng, TEMPERATURE_NOISE)

            sat.position.longitude = wrap_longitude(
                sat.position.longitude + ORBIT_RATE_DEG[sat.satellite_type]
            )
            # battery may have crossed the low-battery line
            self._refresh_status(sat, now)

        self._refresh_stats(now)
        logger.debug(
            "fleet tick: active=%d safe=%d issues=%d",
            self._total_active,
            self._total_in_safe_mode,
            self._total_with_issues,
        )
        self._notify()

    # -------------------------------
    # Reads
    # -------------------------------
    def get_fleet(self) -> SatelliteFleet:
        return self._snapshot()

    def get_satellite(self, satellite_id: str) -> Optional[Satellite]:
        sat = self._by_id.get(satellite_id)
        return sat.model_copy(deep=True) if sat else None

    def get_recent_mode_changes(self, limit: int = 10) -> List[ModeChange]:
        """
        Mode history of the whole fleet, newest first.
        """
        entries: List[Tuple[datetime, int, ModeChange]] = []
        seq = 0
        for sat in self._satellites:
            for entry in sat.mode_history:
                entries.append((
                    entry.timestamp,
                    -seq,
                    ModeChange(
                        satellite_id=sat.satellite_id,
                        satellite_name=sat.name,
                        entry=entry.model_copy(),
                    ),
                ))
                seq += 1
        newest = heapq.nlargest(max(0, limit), entries, key=lambda e: (e[0], e[1]))
        return [change for _, _, change in newest]

    # -------------------------------
    # Commands
    # -------------------------------
    def subscribe(self, callback: Callable[[SatelliteFleet], None]) -> Unsubscribe:
        if self._shut_down:
            return lambda: None
        return self._subscribers.subscribe(callback)

    def set_mode(
        self,
        satellite_id: str,
        mode: SatelliteMode,
        reason: Optional[str] = None,
    ) -> bool:
        """
        Operator mode change. Always recorded, even when the mode does not
        change. Returns False for an unknown satellite or mode.
        """
        if self._shut_down:
            return False

        sat = self._by_id.get(satellite_id)
        if sat is None:
            logger.warning("set_mode: unknown satellite %r", satellite_id)
            return False
        if mode not in SATELLITE_MODES:
            logger.warning("set_mode: unknown mode %r for %s", mode, satellite_id)
            return False

        now = self.clock()
        reason = reason or f"Manual mode change from {sat.mode} to {mode}"
        self._transition(sat, mode, reason, automatic=False, now=now)
        self._refresh_stats(now)
        self._notify()
        return True

    def set_fleet_to_safe_mode(self, reason: str = "Emergency protocol activated") -> int:
        """
        Force every satellite outside safe/maintenance into safe mode.
        Returns how many changed; notifies only if any did.
        """
        if self._shut_down:
            return 0

        now = self.clock()
        changed = 0
        for sat in self._satellites:
            if sat.mode in FLEET_SAFE_EXEMPT:
                continue
            self._transition(
                sat,
                "safe",
                f"Fleet emergency: {reason} (was {sat.mode})",
                automatic=True,
                now=now,
            )
            changed += 1

        if changed > 0:
            self._refresh_stats(now)
            logger.info("fleet safe mode: %d satellite(s) changed (%s)", changed, reason)
            self._notify()
        return changed

    def set_fleet_mode(
        self,
        mode: SatelliteMode,
        reason: Optional[str] = None,
        from_modes: Optional[Iterable[SatelliteMode]] = None,
        satellite_type: Optional[SatelliteType] = None,
    ) -> int:
        """
        Operator bulk mode change.

        Applies to every satellite whose mode is in `from_modes` (any mode
        when None) and whose type matches `satellite_type` (any type when
        None). Entries are recorded as manual changes. Returns how many
        satellites changed; notifies only if any did.
        """
        if self._shut_down:
            return 0
        if mode not in SATELLITE_MODES:
            logger.warning("set_fleet_mode: unknown mode %r", mode)
            return 0

        allowed = set(from_modes) if from_modes is not None else None
        now = self.clock()
        changed = 0
        for sat in self._satellites:
            if allowed is not None and sat.mode not in allowed:
                continue
            if satellite_type is not None and sat.satellite_type != satellite_type:
                continue
            self._transition(
                sat,
                mode,
                reason or f"Fleet mode change from {sat.mode} to {mode}",
                automatic=False,
                now=now,
            )
            changed += 1

        if changed > 0:
            self._refresh_stats(now)
            logger.info("fleet mode %s: %d satellite(s) changed", mode, changed)
            self._notify()
        return changed

    def respond_to_weather(self, sample: WeatherSample) -> int:
        """
        Automatic policy bridge, fed once per weather emission.

        Escalates normal/alert satellites into safe mode under severe
        conditions and returns safe satellites to normal once both
        recovery conditions hold. Emergency and maintenance are never
        touched. Returns the number of satellites changed.
        """
        if self._shut_down:
            return 0

        now = self.clock()
        trigger = safe_mode_trigger(sample)
        improved = trigger is None and conditions_improved(sample)

        changed = 0
        for sat in self._satellites:
            if trigger is not None and sat.mode in AUTO_ESCALATE_FROM:
                self._transition(
                    sat,
                    "safe",
                    f"Automatic response: {trigger} (was {sat.mode})",
                    automatic=True,
                    now=now,
                )
                changed += 1
            elif improved and sat.mode == "safe":
                self._transition(sat, "normal", RECOVERY_REASON, automatic=True, now=now)
                changed += 1

        if changed > 0:
            self._refresh_stats(now)
            self._notify()
        return changed
