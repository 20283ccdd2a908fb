import json

import pytest

from pour.config.pour_config import (
    DEFAULT_FILE_CONTENT,
    ConfigError,
    PourConfig,
    load_config,
    write_default_config,
)


def test_default_template_is_valid_json(tmp_path) -> None:
    path = tmp_path / "config_pour.json"
    write_default_config(path)

    config = load_config(path)
    assert config.remote_logs is True
    assert config.address == "127.0.0.1:12555"
    assert config.tls is True
    assert config.insecure_skip_verify is False
    assert json.loads(DEFAULT_FILE_CONTENT)["client"] == "default_user"


def test_validation_lists_missing_fields() -> None:
    config = PourConfig.from_dict({"remote_logs": True, "host": "", "port": 0, "client": "c"})
    assert config.validation_errors() == ["host", "port", "project_key", "client_key"]
    assert not config.is_valid()


def test_full_config_is_valid(collector_config) -> None:
    assert collector_config.is_valid()


def test_bad_port_type_is_rejected() -> None:
    with pytest.raises(ConfigError):
        PourConfig.from_dict({"port": "not-a-number"})


def test_unparseable_file(tmp_path) -> None:
    path = tmp_path / "config_pour.json"
    path.write_text("{remote_logs: yes")
    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.json")
