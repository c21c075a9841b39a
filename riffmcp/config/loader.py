"""Configuration loading utilities."""

import json
import os
from pathlib import Path
from typing import Any

from riffmcp.config.schema import Settings, default_data_dir


def get_data_dir() -> Path:
    """Get the riffmcp data directory (RIFFMCP_DATA_DIR wins over the platform default)."""
    override = os.environ.get("RIFFMCP_DATA_DIR")
    return Path(override).expanduser() if override else default_data_dir()


def get_settings_path() -> Path:
    """Get the default settings file path."""
    return get_data_dir() / "settings.json"


def load_settings(settings_path: Path | None = None) -> Settings:
    """
    Load settings from file or fall back to defaults plus environment.

    Args:
        settings_path: Optional path to a settings file. Uses default if not provided.

    Returns:
        Loaded settings object.
    """
    path = settings_path or get_settings_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level value must be a JSON object")
            return Settings(**convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            raise ValueError(
                f"Failed to load settings from {path}: {e}. "
                "Fix the file or remove it to use defaults."
            ) from e

    return Settings()


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)
