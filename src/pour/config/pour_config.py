from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any


CONFIG_FILENAME = "config_pour.json"
DEFAULT_TIMEZONE = "Europe/Berlin"
DEFAULT_TIMEOUT_SECONDS = 10.0

DEFAULT_FILE_CONTENT = """{
\t"remote_logs": true,
\t"project_key": "<GET THIS FROM SERVER ADMINISTRATOR>",
\t"host": "127.0.0.1",
\t"port": 12555,
\t"client": "default_user",
\t"client_key": "c8e0e509-ba4b-4c90-bbf2-8336627ac3ed",
\t"tls": true
}"""


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class PourConfig:
    """
    Collector connection settings.

    Loaded once at startup and read-only afterwards.
    """

    remote_logs: bool = False
    project_key: str = ""
    host: str = ""
    port: int = 0
    client: str = ""
    client_key: str = ""
    tls: bool = True

    # Certificate verification stays on unless explicitly disabled.
    insecure_skip_verify: bool = False
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    timezone: str = DEFAULT_TIMEZONE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PourConfig":
        if not isinstance(data, dict):
            raise ConfigError("Pour config must be a JSON object.")

        try:
            return cls(
                remote_logs=bool(data.get("remote_logs", False)),
                project_key=str(data.get("project_key", "")),
                host=str(data.get("host", "")),
                port=int(data.get("port", 0)),
                client=str(data.get("client", "")),
                client_key=str(data.get("client_key", "")),
                tls=bool(data.get("tls", True)),
                insecure_skip_verify=bool(data.get("insecure_skip_verify", False)),
                timeout_seconds=float(data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
                timezone=str(data.get("timezone", DEFAULT_TIMEZONE)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid pour config value: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def validation_errors(self) -> list[str]:
        """
        Names of the fields that prevent remote logging.
        """
        missing = []
        if not self.host:
            missing.append("host")
        if self.port <= 0:
            missing.append("port")
        if not self.project_key:
            missing.append("project_key")
        if not self.client:
            missing.append("client")
        if not self.client_key:
            missing.append("client_key")
        return missing

    def is_valid(self) -> bool:
        return not self.validation_errors()

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


def load_config(path: Path) -> PourConfig:
    """
    Read and parse a pour config file.

    Raises ConfigError if the file cannot be read or decoded.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Couldn't read pour config {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Couldn't parse pour config {path}: {e}") from e

    return PourConfig.from_dict(data)


def write_default_config(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_FILE_CONTENT, encoding="utf-8")
