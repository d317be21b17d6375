from __future__ import annotations

import logging

from spacewatch.pubsub import ObserverRegistry


def test_delivery_follows_subscription_order():
    reg = ObserverRegistry("t")
    seen = []
    reg.subscribe(lambda v: seen.append(("a", v)))
    reg.subscribe(lambda v: seen.append(("b", v)))

    assert reg.publish(lambda: 1) == 2
    assert seen == [("a", 1), ("b", 1)]


def test_same_callback_twice_gets_two_registrations():
    reg = ObserverRegistry("t")
    seen = []
    first = reg.subscribe(seen.append)
    reg.subscribe(seen.append)

    first()
    first()
    assert len(reg) == 1

    reg.publish(lambda: "x")
    assert seen == ["x"]


def test_payload_is_built_per_subscriber():
    reg = ObserverRegistry("t")
    received = []
    reg.subscribe(received.append)
    reg.subscribe(received.append)

    reg.publish(list)
    assert received == [[], []]
    assert received[0] is not received[1]


def test_failing_subscriber_is_logged_and_skipped(caplog):
    reg = ObserverRegistry("t")
    seen = []

    def boom(_):
        raise RuntimeError("subscriber failure")

    reg.subscribe(boom)
    reg.subscribe(seen.append)

    with caplog.at_level(logging.ERROR, logger="spacewatch.pubsub"):
        reg.publish(lambda: 7)

    assert seen == [7]
    assert "subscriber 1 raised" in caplog.text


def test_unsubscribe_during_publish_skips_removed_callback():
    reg = ObserverRegistry("t")
    seen = []
    holder = {}

    def first(v):
        seen.append(("first", v))
        holder["second"]()

    reg.subscribe(first)
    holder["second"] = reg.subscribe(lambda v: seen.append(("second", v)))

    assert reg.publish(lambda: 1) == 1
    assert seen == [("first", 1)]


def test_clear_drops_everything():
    reg = ObserverRegistry("t")
    seen = []
    dispose = reg.subscribe(seen.append)
    reg.clear()
    dispose()

    assert reg.publish(lambda: 1) == 0
    assert seen == []
