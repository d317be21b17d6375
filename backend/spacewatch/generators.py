# spacewatch/generators.py
# ------------------------------------------------------------
# Synthetic space-weather generators (demo/testing):
# - Each sample is an independent draw (no autocorrelation)
# - Magnetic field components are consistent with the declared total
# - Alerts are derived from thresholds on the sample itself
#
# All randomness goes through a RandomSource, i.e. anything with a
# random() -> float in [0, 1) method. random.Random satisfies it.
# ------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import math
from typing import List, Optional, Protocol

from .models import (
    Alert,
    AlertSeverity,
    GeomagneticActivity,
    MagneticField,
    SolarActivity,
    SolarWind,
    WeatherSample,
    uid,
    utcnow,
)


class RandomSource(Protocol):
    def random(self) -> float: ...


# -------------------------------
# Alert thresholds
# -------------------------------
GEOMAGNETIC_K_THRESHOLD = 4.0
GEOMAGNETIC_BZ_THRESHOLD = -10.0
SOLAR_WIND_ALERT_VELOCITY = 600.0
SOLAR_WIND_STRONG_VELOCITY = 800.0
RADIO_BLACKOUT_PROBABILITY = 0.10

# highest threshold passed wins
K_INDEX_SEVERITY = (
    (8.0, "extreme"),
    (7.0, "severe"),
    (6.0, "strong"),
    (5.0, "moderate"),
    (4.0, "minor"),
)

ALERT_LIFETIME = {
    "geomagnetic": timedelta(hours=6),
    "solar_radiation": timedelta(hours=4),
    "radio_blackout": timedelta(hours=2),
}

XRAY_CLASSES = ("A", "B", "C", "M", "X")
XRAY_FLUX_THRESHOLDS = (100, 150, 200, 250)


# -------------------------------
# Helpers
# -------------------------------
def iso_utc(dt: datetime) -> str:
    """
    Always return UTC ISO string with 'Z' suffix.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def uniform(rng: RandomSource, lo: float, hi: float) -> float:
    """
    Draw from [lo, hi) using a single rng.random() call.
    """
    return lo + rng.random() * (hi - lo)


def jitter(rng: RandomSource, magnitude: float) -> float:
    """
    Symmetric noise in [-magnitude, magnitude).
    """
    return (rng.random() - 0.5) * 2.0 * magnitude


# -------------------------------
# Classification
# -------------------------------
def xray_class(solar_flux: float, rng: RandomSource) -> str:
    """
    Display label such as "C4.7". Only the letter depends on the flux.
    """
    idx = 0
    for threshold in XRAY_FLUX_THRESHOLDS:
        if solar_flux > threshold:
            idx += 1
    sub_class = int(rng.random() * 9) + 1
    decimal = int(rng.random() * 10)
    return f"{XRAY_CLASSES[idx]}{sub_class}.{decimal}"


def geomagnetic_severity(k_index: float) -> AlertSeverity:
    for threshold, severity in K_INDEX_SEVERITY:
        if k_index > threshold:
            return severity
    # bz-triggered alert while K is still quiet
    return "minor"


def _make_alert(prefix: str, alert_type: str, severity: str, title: str,
                description: str, issued: datetime) -> Alert:
    return Alert(
        alert_id=uid(prefix),
        type=alert_type,
        severity=severity,
        title=title,
        description=description,
        issued=issued,
        expires=issued + ALERT_LIFETIME[alert_type],
    )


def derive_alerts(
    k_index: float,
    solar_wind_velocity: float,
    bz: float,
    rng: RandomSource,
    now: Optional[datetime] = None,
) -> List[Alert]:
    """
    Threshold rules over a single sample. Consumes exactly one rng draw
    (the radio blackout roll) regardless of the outcome.
    """
    now = now or utcnow()
    alerts: List[Alert] = []

    if k_index > GEOMAGNETIC_K_THRESHOLD or bz < GEOMAGNETIC_BZ_THRESHOLD:
        severity = geomagnetic_severity(k_index)
        alerts.append(_make_alert(
            "geo",
            "geomagnetic",
            severity,
            f"Geomagnetic Storm {severity.capitalize()}",
            f"K-index: {k_index:.1f}. Enhanced geomagnetic activity expected. "
            "Satellite operations may be affected.",
            now,
        ))

    if solar_wind_velocity > SOLAR_WIND_ALERT_VELOCITY:
        severity = "strong" if solar_wind_velocity > SOLAR_WIND_STRONG_VELOCITY else "moderate"
        alerts.append(_make_alert(
            "wind",
            "solar_radiation",
            severity,
            "High-Speed Solar Wind",
            f"Solar wind velocity: {round(solar_wind_velocity)} km/s. "
            "Increased radiation levels possible.",
            now,
        ))

    if rng.random() < RADIO_BLACKOUT_PROBABILITY:
        alerts.append(_make_alert(
            "radio",
            "radio_blackout",
            "minor",
            "Radio Blackout Watch",
            "Increased solar activity may cause HF radio communication disruptions.",
            now,
        ))

    return alerts


# -------------------------------
# Sample synthesis
# -------------------------------
def synthesize_sample(
    rng: RandomSource,
    timestamp: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> WeatherSample:
    """
    Draw one independent space-weather sample.

    `timestamp` stamps the sample (backfilled history uses past hours),
    `now` stamps the alerts; both default to the current time.
    """
    now = now or utcnow()
    timestamp = timestamp or now

    k_base = uniform(rng, 2.0, 5.0)
    velocity = uniform(rng, 300.0, 700.0)
    solar_flux = uniform(rng, 70.0, 220.0)

    # field components consistent with the declared total
    bt = uniform(rng, 2.0, 17.0)
    bz = uniform(rng, -bt / 2.0, bt / 2.0)
    by = uniform(rng, -bt / 2.0, bt / 2.0)
    bx = math.sqrt(max(0.0, bt * bt - by * by - bz * bz))

    solar_wind = SolarWind(
        velocity=round(velocity),
        density=round(uniform(rng, 1.0, 21.0), 1),
        temperature=round(uniform(rng, 50_000.0, 250_000.0)),
    )
    magnetic_field = MagneticField(
        bx=round(bx, 1),
        by=round(by, 1),
        bz=round(bz, 1),
        bt=round(bt, 1),
    )
    geomagnetic = GeomagneticActivity(
        k_index=round(k_base, 1),
        ap_index=round(math.pow(2.0, k_base) * 3.0),
        dst_index=round(-20.0 - 15.0 * k_base + uniform(rng, 0.0, 10.0)),
    )
    solar = SolarActivity(
        solar_flux=round(solar_flux),
        xray_flux=xray_class(solar_flux, rng),
        proton_flux=round(math.pow(10.0, 0.5 + uniform(rng, 0.0, 2.0))),
    )

    alerts = derive_alerts(
        geomagnetic.k_index,
        solar_wind.velocity,
        magnetic_field.bz,
        rng,
        now=now,
    )

    return WeatherSample(
        timestamp=timestamp,
        solar_wind=solar_wind,
        magnetic_field=magnetic_field,
        geomagnetic_activity=geomagnetic,
        solar_activity=solar,
        alerts=alerts,
    )
