import threading

import pytest

from pour.logging.event_buffer import EventBuffer
from pour.logging.log_event import LogEvent


def _event(i: int) -> LogEvent:
    return LogEvent(message=f"event {i}", timestamp="2026-10-19T08:00:00Z")


def test_append_keeps_emission_order() -> None:
    buffer = EventBuffer()
    for i in range(5):
        buffer.append(_event(i))

    assert len(buffer) == 5
    assert [e.message for e in buffer.snapshot()] == [f"event {i}" for i in range(5)]


def test_discard_shipped_keeps_later_appends() -> None:
    buffer = EventBuffer()
    buffer.append(_event(0))
    buffer.append(_event(1))

    shipped = buffer.snapshot()
    buffer.append(_event(2))  # arrives while the shipment is in flight
    buffer.discard_shipped(len(shipped))

    assert [e.message for e in buffer.snapshot()] == ["event 2"]


def test_discard_more_than_buffered_is_rejected() -> None:
    buffer = EventBuffer()
    buffer.append(_event(0))
    with pytest.raises(ValueError):
        buffer.discard_shipped(2)
    assert len(buffer) == 1


def test_snapshot_and_clear() -> None:
    buffer = EventBuffer()
    buffer.append(_event(0))
    items = buffer.snapshot_and_clear()

    assert len(items) == 1
    assert buffer.is_empty()


def test_concurrent_appends_are_not_lost() -> None:
    buffer = EventBuffer()

    def producer(offset: int) -> None:
        for i in range(200):
            buffer.append(_event(offset + i))

    threads = [threading.Thread(target=producer, args=(n * 1000,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(buffer) == 1600
