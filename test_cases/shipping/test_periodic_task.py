import threading
import time

from conftest import FakeSession
from pour.shipping.hardware_sampler import HardwareSampler, HardwareUsage
from pour.shipping.periodic_task import PeriodicTask
from pour.shipping.shipment_loop import ShipmentLoop, ShipmentPolicy
from pour.transport.http_transport import HttpTransport


class CountingTask(PeriodicTask):
    def __init__(self, *, fail_first=False, **kwargs):
        super().__init__(**kwargs)
        self.ticks = 0
        self.errors = []
        self.ticked = threading.Event()
        self._fail_first = fail_first

    def tick(self) -> None:
        self.ticks += 1
        if self._fail_first and self.ticks == 1:
            raise RuntimeError("first tick")
        self.ticked.set()

    def on_tick_error(self, exc: Exception) -> None:
        self.errors.append(exc)


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_ticks_repeat_on_the_interval_until_stopped() -> None:
    task = CountingTask(interval=0.01)

    task.start()
    assert task.is_running()
    assert _wait_for(lambda: task.ticks >= 3)
    task.stop()

    assert not task.is_running()
    stopped_at = task.ticks
    time.sleep(0.05)
    assert task.ticks == stopped_at


def test_first_tick_waits_one_interval() -> None:
    task = CountingTask(interval=60.0)

    task.start()
    time.sleep(0.05)
    task.stop()

    assert task.ticks == 0
    assert not task.is_running()


def test_tick_first_runs_immediately_and_stop_wakes_the_wait() -> None:
    task = CountingTask(interval=60.0, tick_first=True)

    task.start()
    assert task.ticked.wait(2.0)
    started = time.monotonic()
    task.stop()

    assert time.monotonic() - started < 1.0
    assert task.ticks == 1
    assert not task.is_running()


def test_loop_survives_a_failing_tick() -> None:
    task = CountingTask(interval=0.01, fail_first=True)

    task.start()
    try:
        assert task.ticked.wait(2.0)
    finally:
        task.stop()

    assert len(task.errors) == 1
    assert str(task.errors[0]) == "first tick"
    assert task.ticks >= 2


def test_running_shipment_loop_ships_buffered_events(emitter, collector_config) -> None:
    session = FakeSession(status_code=202)
    loop = ShipmentLoop(
        buffer=emitter.buffer,
        transport=HttpTransport(collector_config, session=session),
        emitter=emitter,
        enabled=True,
        policy=ShipmentPolicy(interval=0.01),
    )
    emitter.log("queued")
    assert emitter.flush()

    loop.start()
    try:
        assert _wait_for(lambda: len(session.calls) >= 1 and emitter.buffer.is_empty())
    finally:
        loop.stop()

    assert not loop.is_running()
    assert session.calls[0]["method"] == "POST"
    assert session.calls[0]["url"] == "http://collector.local:12555/logs"


def test_running_hardware_sampler_patches_before_first_interval(emitter, collector_config) -> None:
    session = FakeSession(status_code=202)
    sampler = HardwareSampler(
        transport=HttpTransport(collector_config, session=session),
        emitter=emitter,
        interval=60.0,
        sample_fn=lambda: HardwareUsage(memory_total=1, cpus=[5.0]),
    )

    sampler.start()
    try:
        assert _wait_for(lambda: len(session.calls) == 1)
    finally:
        sampler.stop()

    assert not sampler.is_running()
    assert session.calls[0]["method"] == "PATCH"
    assert session.calls[0]["url"] == "http://collector.local:12555/logs/projects/hardware"
