from __future__ import annotations

import sys
import threading
from typing import Optional


class PeriodicTask:
    """
    Background loop calling tick() at a fixed interval.

    start() spins a daemon thread that waits ``interval`` seconds between
    ticks; stop() wakes it and joins. Subclasses implement tick().
    """

    name = "pour-periodic"

    def __init__(self, *, interval: float, tick_first: bool = False):
        self.interval = interval
        self.tick_first = tick_first

        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> None:
        raise NotImplementedError

    def start(self) -> None:
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

    def on_tick_error(self, exc: Exception) -> None:
        print(f"[{self.name}] tick failed: {exc!r}", file=sys.stderr)

    def _run(self) -> None:
        if self.tick_first and not self._stop_evt.is_set():
            self._safe_tick()
        while not self._stop_evt.wait(self.interval):
            self._safe_tick()

    def _safe_tick(self) -> None:
        try:
            self.tick()
        except Exception as e:
            self.on_tick_error(e)
