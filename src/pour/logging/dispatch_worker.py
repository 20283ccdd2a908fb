from __future__ import annotations

import queue
import sys
import threading
import traceback
from typing import Callable, Optional


Job = Callable[[], None]

DEFAULT_QUEUE_SIZE = 10_000


class DispatchWorker:
    """
    Runs capture jobs off the caller's thread.

    Thread ownership model:
      - submit() only enqueues; the caller never touches disk or buffer locks
      - a single worker thread drains the queue in FIFO order, so events
        reach the buffer and the log file in emission order
      - a job that raises is handed to on_error; the worker keeps running
    """

    def __init__(
        self,
        *,
        name: str = "pour-dispatch",
        maxsize: int = DEFAULT_QUEUE_SIZE,
        on_error: Optional[Callable[[BaseException], None]] = None,
        poll_interval: float = 0.1,
    ):
        self.name = name
        self._on_error = on_error or print_job_error
        self._poll_interval = poll_interval

        self._q: "queue.Queue[Job]" = queue.Queue(maxsize=maxsize)
        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()

    # --------------------------
    # Public API
    # --------------------------

    def start(self) -> None:
        with self._start_lock:
            if self._thread and self._thread.is_alive():
                return
            self._stop_evt.clear()
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()

    def stop(self, join_timeout: float = 2.0) -> None:
        self._stop_evt.set()
        if self._thread:
            self._thread.join(timeout=join_timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def submit(self, job: Job) -> None:
        """
        Enqueue a job. Blocks only when the queue is full.
        """
        if not self.is_running():
            self.start()
        self._q.put(job)

    def flush(self, timeout: Optional[float] = 5.0) -> bool:
        """
        Wait until every job submitted so far has run.

        Returns False on timeout, or when called from the worker itself.
        """
        if threading.current_thread() is self._thread:
            return False
        done = threading.Event()
        self.submit(done.set)
        return done.wait(timeout)

    def pending(self) -> int:
        return self._q.qsize()

    # --------------------------
    # Worker thread internals
    # --------------------------

    def _run(self) -> None:
        while True:
            try:
                job = self._q.get(timeout=self._poll_interval)
            except queue.Empty:
                if self._stop_evt.is_set():
                    return
                continue

            try:
                job()
            except Exception as e:
                self._on_error(e)
            finally:
                self._q.task_done()


def print_job_error(exc: BaseException) -> None:
    print("[pour] dispatched log job failed:", file=sys.stderr)
    traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
