import asyncio
import logging

from chatkit.services.logging import StructuredLogger
from chatkit.services.streams import EventStream


def test_events_fan_out_to_every_current_listener():
    stream = EventStream("numbers")
    first, second = [], []
    stream.subscribe(first.append)
    stream.subscribe(second.append)

    stream.publish(1)
    stream.publish(2)

    assert first == [1, 2]
    assert second == [1, 2]


def test_late_subscribers_do_not_see_past_events():
    stream = EventStream("numbers")
    stream.publish("missed")
    late = []
    stream.subscribe(late.append)
    stream.publish("seen")
    assert late == ["seen"]


def test_unsubscribe_stops_delivery():
    stream = EventStream("numbers")
    events = []
    unsubscribe = stream.subscribe(events.append)
    stream.publish(1)
    unsubscribe()
    stream.publish(2)
    assert events == [1]


def test_close_is_idempotent_and_blocks_publishing():
    stream = EventStream("numbers")
    events = []
    stream.subscribe(events.append)

    assert stream.close() is True
    assert stream.close() is False
    assert stream.publish(3) is False
    assert events == []
    assert stream.subscriber_count == 0


def test_failing_listener_does_not_starve_others(caplog):
    caplog.set_level(logging.ERROR)
    stream = EventStream("numbers", StructuredLogger("test-streams"))
    received = []

    def broken(_event):
        raise RuntimeError("listener bug")

    stream.subscribe(broken)
    stream.subscribe(received.append)
    stream.publish("ok")

    assert received == ["ok"]
    assert any("stream.listener.failed" in record.message for record in caplog.records)


def test_async_subscription_receives_until_closed():
    stream = EventStream("numbers")

    async def run():
        subscription = stream.listen()
        stream.publish(1)
        stream.publish(2)
        stream.close()
        return [event async for event in subscription]

    assert asyncio.run(run()) == [1, 2]


def test_cancelled_subscription_ends_iteration():
    stream = EventStream("numbers")

    async def run():
        subscription = stream.listen()
        stream.publish("before")
        subscription.cancel()
        stream.publish("after")
        return [event async for event in subscription]

    assert asyncio.run(run()) == ["before"]
    assert stream.subscriber_count == 0


def test_listen_on_closed_stream_yields_nothing():
    stream = EventStream("numbers")
    stream.close()

    async def run():
        return [event async for event in stream.listen()]

    assert asyncio.run(run()) == []
