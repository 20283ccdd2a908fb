from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional, TextIO
import sys
import threading

from pour.logging.log_tag import COLOR_RESET


# Go-style RFC 822 layout: "19 Oct 26 10:30 CEST"
RFC822_FORMAT = "%d %b %y %H:%M %Z"


class ConsoleSink:
    """
    Prints one colored line per event.

    Lines are formatted as ``[<time>] <color><message><reset>`` with the
    time rendered in the configured display timezone.
    """

    def __init__(
        self,
        tz: Optional[tzinfo] = None,
        stream: Optional[TextIO] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._tz = tz or timezone.utc
        self._stream = stream
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()

    def set_timezone(self, tz: tzinfo) -> None:
        self._tz = tz

    def format_line(self, color: str, text: str) -> str:
        stamp = self._clock().astimezone(self._tz).strftime(RFC822_FORMAT)
        return f"[{stamp}] {color}{text}{COLOR_RESET}"

    def emit(self, color: str, text: str) -> None:
        line = self.format_line(color, text)
        stream = self._stream or sys.stdout
        with self._lock:
            print(line, file=stream, flush=True)
