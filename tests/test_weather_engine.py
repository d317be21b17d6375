from __future__ import annotations

import random
from datetime import timedelta

import pytest

from spacewatch.config import EngineOptions
from spacewatch.weather_engine import WeatherEngine

from conftest import T0, FakeClock, ScriptedRandom


@pytest.fixture
def engine(clock) -> WeatherEngine:
    return WeatherEngine(rng=random.Random(42), clock=clock)


@pytest.fixture
def alerting_engine(clock) -> WeatherEngine:
    """Every sample carries exactly one radio blackout alert."""
    return WeatherEngine(rng=ScriptedRandom([0.05]), clock=clock)


# ---------- Initialization ----------


def test_initial_state_has_current_and_hourly_backfill(engine):
    assert engine.get_current() is not None

    history = engine.get_history()
    assert len(history) == 25
    assert history[0].timestamp == T0 - timedelta(hours=24)
    assert history[-1].timestamp == T0
    gaps = {b.timestamp - a.timestamp for a, b in zip(history, history[1:])}
    assert gaps == {timedelta(hours=1)}


def test_backfill_size_follows_options(clock):
    e = WeatherEngine(EngineOptions(history_backfill_hours=0), rng=random.Random(1), clock=clock)
    assert len(e.get_history()) == 1


def test_engine_does_not_tick_until_started(engine):
    assert engine.running is False


# ---------- Ticks ----------


def test_tick_appends_and_evicts_outside_window(engine, clock):
    clock.advance(seconds=30)
    sample = engine.tick()

    history = engine.get_history()
    # the T0-24h point fell out of the window
    assert len(history) == 25
    assert history[0].timestamp == T0 - timedelta(hours=23)
    assert history[-1].timestamp == clock.now
    assert sample.timestamp == clock.now
    assert engine.get_current().timestamp == clock.now


def test_short_window_evicts_aggressively():
    clock = FakeClock()
    e = WeatherEngine(
        EngineOptions(history_window_ms=90 * 60 * 1000),
        rng=random.Random(3),
        clock=clock,
    )
    clock.advance(minutes=1)
    e.tick()
    stamps = [s.timestamp for s in e.get_history()]
    assert stamps == [T0 - timedelta(hours=1), T0, clock.now]


def test_subscribers_get_each_new_sample(engine, clock, published):
    engine.subscribe(published.append)

    clock.advance(seconds=30)
    engine.tick()
    clock.advance(seconds=30)
    engine.tick()

    assert [s.timestamp for s in published] == [
        T0 + timedelta(seconds=30),
        T0 + timedelta(seconds=60),
    ]


def test_subscribers_receive_independent_copies(alerting_engine):
    seen = []
    alerting_engine.subscribe(seen.append)
    alerting_engine.subscribe(seen.append)

    alerting_engine.tick()
    first, second = seen
    first.alerts[0].acknowledged = True

    assert second.alerts[0].acknowledged is False
    assert alerting_engine.get_current().alerts[0].acknowledged is False


def test_unsubscribe_before_tick_prevents_delivery(engine, published):
    unsubscribe = engine.subscribe(published.append)
    unsubscribe()
    unsubscribe()  # second call is a no-op

    engine.tick()
    assert published == []


def test_unsubscribe_removes_only_its_registration(engine, published):
    first = engine.subscribe(published.append)
    engine.subscribe(published.append)
    first()

    engine.tick()
    assert len(published) == 1


# ---------- Reads are copies ----------


def test_history_is_a_copy(engine):
    history = engine.get_history()
    history.clear()
    assert len(engine.get_history()) == 25


def test_current_is_a_copy(alerting_engine):
    current = alerting_engine.get_current()
    current.alerts.clear()
    assert len(alerting_engine.get_current().alerts) == 1


# ---------- Alerts ----------


def test_acknowledge_alert_in_current_sample(alerting_engine, clock):
    alert = alerting_engine.get_current().alerts[0]
    assert [a.alert_id for a in alerting_engine.get_active_alerts()] == [alert.alert_id]

    assert alerting_engine.acknowledge_alert(alert.alert_id) is True
    assert alerting_engine.get_current().alerts[0].acknowledged is True
    assert alerting_engine.get_active_alerts() == []


def test_acknowledge_unknown_alert_is_a_noop(alerting_engine):
    before = alerting_engine.get_current()

    assert alerting_engine.acknowledge_alert("geo_doesnotexist") is False
    assert alerting_engine.get_current() == before


def test_acknowledge_ignores_historical_alerts(alerting_engine):
    old_id = alerting_engine.get_history()[0].alerts[0].alert_id

    assert alerting_engine.acknowledge_alert(old_id) is False
    assert alerting_engine.get_history()[0].alerts[0].acknowledged is False


def test_each_sample_has_fresh_alerts(alerting_engine):
    first = alerting_engine.get_current().alerts[0]
    alerting_engine.acknowledge_alert(first.alert_id)

    alerting_engine.tick()
    current = alerting_engine.get_current().alerts
    assert len(current) == 1
    assert current[0].alert_id != first.alert_id
    assert current[0].acknowledged is False


def test_expired_alerts_are_not_active(alerting_engine, clock):
    assert len(alerting_engine.get_active_alerts()) == 1
    assert alerting_engine.get_active_alerts(now=clock.now + timedelta(hours=2)) == []


# ---------- Shutdown ----------


def test_shutdown_is_terminal_and_idempotent(engine, published):
    engine.subscribe(published.append)
    last = engine.get_current()

    engine.shutdown()
    engine.shutdown()

    assert engine.is_shut_down
    assert engine.tick() is None
    assert published == []
    # stale reads stay available
    assert engine.get_current() == last
    assert engine.acknowledge_alert("anything") is False


def test_subscribe_after_shutdown_returns_noop_disposer(engine, published):
    engine.shutdown()
    unsubscribe = engine.subscribe(published.append)
    unsubscribe()
    engine.tick()
    assert published == []
