import io
from typing import Any, Callable, Optional

import pytest
import requests

from pour.config.pour_config import PourConfig
from pour.logging.console_sink import ConsoleSink
from pour.logging.event_buffer import EventBuffer
from pour.logging.event_emitter import EventEmitter
from pour.logging.local_persister import LocalPersister


class FakeResponse:
    def __init__(self, status_code: int, text: str = ""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """
    Stand-in for requests.Session that records every request.

    ``responder`` receives the recorded call and returns a FakeResponse
    or raises.
    """

    def __init__(self, status_code: int = 202, text: str = "", responder: Optional[Callable] = None):
        self.status_code = status_code
        self.text = text
        self.responder = responder
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method, url, data=None, headers=None, timeout=None, verify=True):
        call = {
            "method": method,
            "url": url,
            "data": data,
            "headers": dict(headers or {}),
            "timeout": timeout,
            "verify": verify,
        }
        self.calls.append(call)
        if self.responder is not None:
            return self.responder(call)
        return FakeResponse(self.status_code, self.text)

    def close(self) -> None:
        self.closed = True


def raise_connection_error(call):
    raise requests.ConnectionError("connection refused")


@pytest.fixture
def collector_config() -> PourConfig:
    return PourConfig(
        remote_logs=True,
        project_key="project-key",
        host="collector.local",
        port=12555,
        client="tester",
        client_key="client-secret",
        tls=False,
        timezone="UTC",
    )


@pytest.fixture
def console_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def emitter(tmp_path, console_stream):
    def no_abort(exit_code: int) -> None:
        raise AssertionError(f"unexpected abort({exit_code})")

    em = EventEmitter(
        buffer=EventBuffer(),
        persister=LocalPersister(str(tmp_path), run_id="test-run"),
        console=ConsoleSink(stream=console_stream),
        abort=no_abort,
    )
    yield em
    em.close()
