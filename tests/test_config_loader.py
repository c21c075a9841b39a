"""Tests for settings loading, environment overrides and key conversion."""

import json
from pathlib import Path

import pytest

from riffmcp.config.loader import camel_to_snake, convert_keys, get_data_dir, get_settings_path, load_settings
from riffmcp.config.schema import Settings, default_data_dir


def test_defaults(monkeypatch) -> None:
    for name in ("RIFFMCP_HOST", "RIFFMCP_PORT", "RIFFMCP_DATA_DIR"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.host == "127.0.0.1"
    assert settings.port == 3001
    assert settings.discovery_timeout_seconds == 15.0
    assert settings.score_capacity == 100
    assert settings.data_dir == default_data_dir()
    assert settings.record_path == settings.data_dir / "server.json"
    assert settings.image_dir == settings.data_dir / "SheetMusic"


def test_environment_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("RIFFMCP_PORT", "4100")
    monkeypatch.setenv("RIFFMCP_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("RIFFMCP_LAUNCH_COMMAND", '["riffmcp", "--port", "0"]')

    settings = Settings()
    assert settings.port == 4100
    assert settings.data_dir == tmp_path
    assert settings.launch_command == ["riffmcp", "--port", "0"]


def test_data_dir_follows_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("RIFFMCP_DATA_DIR", str(tmp_path))
    assert get_data_dir() == tmp_path
    assert get_settings_path() == tmp_path / "settings.json"


def test_load_missing_file_gives_defaults(tmp_path) -> None:
    settings = load_settings(tmp_path / "settings.json")
    assert isinstance(settings, Settings)


def test_load_camel_case_file(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"port": 0, "dataDir": str(tmp_path), "discoveryTimeoutSeconds": 2.5, "logToFile": False}),
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.port == 0
    assert settings.data_dir == tmp_path
    assert settings.discovery_timeout_seconds == 2.5
    assert settings.log_to_file is False


@pytest.mark.parametrize("content", ["{broken", "[]", '{"port": 70000}'])
def test_invalid_file_raises_value_error(tmp_path, content: str) -> None:
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError, match="Failed to load settings"):
        load_settings(path)


def test_tilde_in_data_dir_is_expanded() -> None:
    settings = Settings(data_dir="~/riff-data")
    assert settings.data_dir == Path.home() / "riff-data"


def test_key_conversion() -> None:
    assert camel_to_snake("proxyRequestTimeoutSeconds") == "proxy_request_timeout_seconds"
    assert camel_to_snake("host") == "host"
    assert convert_keys({"logLevel": "DEBUG", "launchCommand": ["a"]}) == {
        "log_level": "DEBUG",
        "launch_command": ["a"],
    }
