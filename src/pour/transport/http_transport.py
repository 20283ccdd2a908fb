from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

import requests

from pour.config.pour_config import PourConfig
from pour.transport.transport_exceptions import RequestFailedError, SerializationError


HTTP_ACCEPTED = 202

LOGS_PATH = "/logs"
HARDWARE_PATH = "/logs/projects/hardware"


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    body: str

    @property
    def accepted(self) -> bool:
        # The collector answers 202 for stored batches; any other status,
        # 2xx included, means the batch was not taken.
        return self.status_code == HTTP_ACCEPTED


class HttpTransport:
    """
    HTTP(S) client for the log collector.

    Serializes a payload to JSON and sends it with the static
    client / key / project headers the collector authenticates on.
    """

    def __init__(
        self,
        config: PourConfig,
        *,
        use_tls: Optional[bool] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.use_tls = config.tls if use_tls is None else use_tls
        self._session = session or requests.Session()

    def set_use_tls(self, use: bool) -> None:
        self.use_tls = use

    def base_url(self) -> str:
        scheme = "https://" if self.use_tls else "http://"
        return f"{scheme}{self.config.host}:{self.config.port}"

    def headers(self) -> dict[str, str]:
        return {
            "X-CLIENT": self.config.client,
            "Authorization": self.config.client_key,
            "X-KEY": self.config.project_key,
            "Content-Type": "application/json",
        }

    def send(self, method: str, path: str, payload: Any) -> TransportResponse:
        """
        Send ``payload`` as JSON.

        Raises SerializationError when the payload cannot be encoded and
        RequestFailedError when no response was received.
        """
        try:
            body = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise SerializationError(path, f"Could not serialize payload: {e}", details=e) from e

        try:
            response = self._session.request(
                method,
                self.base_url() + path,
                data=body.encode("utf-8"),
                headers=self.headers(),
                timeout=self.config.timeout_seconds,
                verify=not self.config.insecure_skip_verify,
            )
        except requests.RequestException as e:
            raise RequestFailedError(path, f"{method} {path} failed: {e}", details=e) from e

        return TransportResponse(status_code=response.status_code, body=response.text)

    def post_logs(self, events: list[dict[str, Any]]) -> TransportResponse:
        return self.send("POST", LOGS_PATH, events)

    def patch_hardware(self, usage: dict[str, Any]) -> TransportResponse:
        return self.send("PATCH", HARDWARE_PATH, usage)

    def close(self) -> None:
        self._session.close()
