from __future__ import annotations

import asyncio
import random

import pytest

from spacewatch.config import EngineOptions
from spacewatch.coordinator import Coordinator
from spacewatch.fleet_engine import FleetEngine
from spacewatch.scheduler import PeriodicTask
from spacewatch.weather_engine import WeatherEngine

FAST = EngineOptions(tick_interval_ms=10)


def test_periodic_task_runs_until_stopped():
    calls = []

    async def scenario():
        task = PeriodicTask("test", 0.01, lambda: calls.append(1))
        task.start()
        task.start()  # already running
        assert task.running
        await asyncio.sleep(0.1)
        task.stop()
        count = len(calls)
        await asyncio.sleep(0.05)
        return count

    count = asyncio.run(scenario())
    assert count >= 2
    assert len(calls) == count


def test_failing_tick_does_not_stop_the_loop():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first tick fails")

    async def scenario():
        task = PeriodicTask("flaky", 0.01, flaky)
        task.start()
        await asyncio.sleep(0.1)
        task.stop()

    asyncio.run(scenario())
    assert len(calls) >= 2


def test_start_outside_event_loop_raises():
    with pytest.raises(RuntimeError):
        PeriodicTask("orphan", 1.0, lambda: None).start()


def test_weather_engine_emits_on_timer_and_stops_on_shutdown():
    received = []

    async def scenario():
        engine = WeatherEngine(FAST, rng=random.Random(5))
        engine.subscribe(received.append)
        engine.start()
        await asyncio.sleep(0.1)
        engine.shutdown()
        count = len(received)
        await asyncio.sleep(0.05)
        assert not engine.running
        return count

    count = asyncio.run(scenario())
    assert count >= 2
    assert len(received) == count


def test_fleet_engine_ticks_on_timer():
    snapshots = []

    async def scenario():
        engine = FleetEngine(options=FAST, rng=random.Random(5))
        engine.subscribe(snapshots.append)
        engine.start()
        await asyncio.sleep(0.1)
        engine.shutdown()
        engine.start()  # ignored after shutdown
        assert not engine.running

    asyncio.run(scenario())
    assert len(snapshots) >= 2


def test_aclose_waits_for_cancelled_timer():
    async def scenario():
        task = PeriodicTask("closing", 0.01, lambda: None)
        task.start()
        inner = task._task
        await task.aclose()
        assert inner.done() and inner.cancelled()
        assert not task.running
        await task.aclose()  # second close is a no-op

    asyncio.run(scenario())


def test_coordinator_aclose_leaves_no_pending_tasks():
    async def scenario():
        weather = WeatherEngine(FAST, rng=random.Random(5))
        fleet = FleetEngine(options=FAST, rng=random.Random(5))
        coordinator = Coordinator(weather, fleet)
        coordinator.start()
        await asyncio.sleep(0.05)

        await coordinator.aclose()

        assert weather.is_shut_down and fleet.is_shut_down
        assert not coordinator.wired
        others = asyncio.all_tasks() - {asyncio.current_task()}
        assert all(t.done() for t in others)

    asyncio.run(scenario())
