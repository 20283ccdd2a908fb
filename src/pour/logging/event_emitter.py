from __future__ import annotations

import os
import sys
from typing import Any, Callable, Optional, Tuple, Union

from pour.logging.console_sink import ConsoleSink
from pour.logging.dispatch_worker import DispatchWorker, print_job_error
from pour.logging.event_buffer import EventBuffer
from pour.logging.local_persister import LocalPersistenceError, LocalPersister
from pour.logging.log_event import LogEvent, utc_timestamp
from pour.logging.log_tag import COLOR_RED, COLOR_WHITE, TAG_ERROR, LogTag, resolve_tag


_THIS_FILE = os.path.normcase(os.path.abspath(__file__))

LOCAL_IO_EXIT_CODE = 1
PANIC_PREFIX = "PANIC:"


def abort_process(exit_code: int) -> None:
    """Terminate immediately, from any thread."""
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(exit_code)


def _caller_location(stacklevel: int = 1) -> Tuple[str, int]:
    """
    File and line of the first frame outside this module.

    ``stacklevel`` > 1 skips that many extra frames, for wrappers that
    forward to the emitter (same meaning as in ``logging.Logger.log``).
    Must run on the caller's thread: once the work is dispatched the
    stack only contains the worker.
    """
    frame = sys._getframe(1)
    while frame is not None and os.path.normcase(os.path.abspath(frame.f_code.co_filename)) == _THIS_FILE:
        frame = frame.f_back
    while frame is not None and stacklevel > 1:
        frame = frame.f_back
        stacklevel -= 1
    if frame is None:
        return "", 0
    return frame.f_code.co_filename, frame.f_lineno


def _join_args(args: Tuple[Any, ...]) -> str:
    return " ".join(str(arg) for arg in args)


def _location_prefix(filename: str, line: int) -> str:
    if not filename:
        return ""
    return f"{os.path.basename(filename)}:{line} "


class EventEmitter:
    """
    Public capture API.

    Every entry point builds a LogEvent on the caller's thread and hands
    console output, the local log file and the shipment buffer to the
    dispatch worker, so the caller never waits on disk or locks. Only
    log_panic_kill() runs synchronously.
    """

    def __init__(
        self,
        *,
        buffer: EventBuffer,
        persister: LocalPersister,
        console: Optional[ConsoleSink] = None,
        dispatcher: Optional[DispatchWorker] = None,
        abort: Optional[Callable[[int], None]] = None,
    ):
        self.buffer = buffer
        self.persister = persister
        self.console = console or ConsoleSink()
        self._abort = abort or abort_process
        self._dispatcher = dispatcher or DispatchWorker(on_error=self._on_job_error)

    # -------------------------------------------------
    # Entry points
    # -------------------------------------------------
    def log(self, *args: Any, stacklevel: int = 1) -> None:
        filename, line = _caller_location(stacklevel)
        message = _location_prefix(filename, line) + _join_args(args)
        self._dispatch(
            LogEvent(message=message, timestamp=utc_timestamp(), file_name=filename, file_line=line),
            color=COLOR_WHITE,
            silent=False,
        )

    def log_tagged(self, silent: bool, tag: Union[int, LogTag], *args: Any, stacklevel: int = 1) -> None:
        filename, line = _caller_location(stacklevel)
        resolved = tag if isinstance(tag, LogTag) else resolve_tag(tag)
        message = _location_prefix(filename, line) + _join_args(args)
        self._dispatch(
            LogEvent(
                message=message,
                timestamp=utc_timestamp(),
                tag=resolved,
                file_name=filename,
                file_line=line,
            ),
            color=resolved.ansi,
            silent=silent,
        )

    def log_color(self, silent: bool, color: str, *args: Any, stacklevel: int = 1) -> None:
        filename, line = _caller_location(stacklevel)
        self._dispatch(
            LogEvent(message=_join_args(args), timestamp=utc_timestamp(), file_name=filename, file_line=line),
            color=color,
            silent=silent,
        )

    def log_err(self, err: BaseException, stacklevel: int = 1) -> None:
        self.log_tagged(False, TAG_ERROR, str(err), stacklevel=stacklevel)

    def log_panic_kill(self, exit_code: int, *args: Any, stacklevel: int = 1) -> None:
        """
        Record a fatal event and end the process with ``exit_code``.

        Earlier dispatched events are flushed first so the local log keeps
        emission order. Raises SystemExit.
        """
        filename, line = _caller_location(stacklevel)
        self._dispatcher.flush(timeout=2.0)

        event = LogEvent(
            message=f"{PANIC_PREFIX} {_join_args(args)}",
            timestamp=utc_timestamp(),
            tag=LogTag.ERROR,
            file_name=filename,
            file_line=line,
        )
        self.console.emit(COLOR_RED, event.message)
        try:
            self.persister.record(event.message, event.timestamp)
        except LocalPersistenceError as e:
            print(f"[pour] could not persist panic event: {e}", file=sys.stderr)
        self.buffer.append(event)
        raise SystemExit(exit_code)

    # -------------------------------------------------
    # Lifecycle
    # -------------------------------------------------
    def flush(self, timeout: Optional[float] = 5.0) -> bool:
        """Wait for all dispatched events to reach the buffer and disk."""
        return self._dispatcher.flush(timeout=timeout)

    def close(self) -> None:
        self._dispatcher.stop()

    # -------------------------------------------------
    # Internals
    # -------------------------------------------------
    def _dispatch(self, event: LogEvent, *, color: str, silent: bool) -> None:
        self._dispatcher.submit(lambda: self._capture(event, color, silent))

    def _capture(self, event: LogEvent, color: str, silent: bool) -> None:
        if not silent:
            self.console.emit(color, event.message)
        self.persister.record(event.message, event.timestamp)
        self.buffer.append(event)

    def _on_job_error(self, exc: BaseException) -> None:
        if isinstance(exc, LocalPersistenceError):
            print(f"[pour] fatal: {exc}", file=sys.stderr)
            self._abort(LOCAL_IO_EXIT_CODE)
            return
        print_job_error(exc)
