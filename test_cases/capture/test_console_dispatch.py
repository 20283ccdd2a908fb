import io
import threading
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from pour.logging.console_sink import ConsoleSink
from pour.logging.dispatch_worker import DispatchWorker
from pour.logging.log_tag import COLOR_GREEN, COLOR_RESET


def test_console_line_format() -> None:
    stream = io.StringIO()
    clock = lambda: datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)
    sink = ConsoleSink(tz=ZoneInfo("UTC"), stream=stream, clock=clock)

    sink.emit(COLOR_GREEN, "up and running")

    assert stream.getvalue() == f"[19 Oct 26 08:30 UTC] {COLOR_GREEN}up and running{COLOR_RESET}\n"


def test_dispatch_runs_jobs_in_order_off_thread() -> None:
    worker = DispatchWorker()
    seen = []
    threads = set()

    def job(i: int):
        def run() -> None:
            seen.append(i)
            threads.add(threading.current_thread().name)
        return run

    try:
        for i in range(50):
            worker.submit(job(i))
        assert worker.flush()
    finally:
        worker.stop()

    assert seen == list(range(50))
    assert threads == {"pour-dispatch"}


def test_failing_job_does_not_stop_the_worker() -> None:
    errors = []
    worker = DispatchWorker(on_error=errors.append)
    seen = []

    def boom() -> None:
        raise RuntimeError("boom")

    try:
        worker.submit(boom)
        worker.submit(lambda: seen.append("after"))
        assert worker.flush()
    finally:
        worker.stop()

    assert [str(e) for e in errors] == ["boom"]
    assert seen == ["after"]
