"""Configuration schema using Pydantic."""

import os
import sys
from pathlib import Path

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

APP_DIR_NAME = "RiffMCP"
RECORD_FILE_NAME = "server.json"


def default_data_dir() -> Path:
    """Per-user application-support directory for the current platform."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / APP_DIR_NAME
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME.lower()


class Settings(BaseSettings):
    """Root configuration for riffmcp."""
    model_config = ConfigDict(env_prefix="RIFFMCP_", env_nested_delimiter="__")

    host: str = "127.0.0.1"
    port: int = Field(default=3001, ge=0, le=65535)  # 0 picks an ephemeral port
    data_dir: Path = Field(default_factory=default_data_dir)
    discovery_timeout_seconds: float = Field(default=15.0, gt=0)
    discovery_poll_interval_seconds: float = Field(default=0.2, gt=0)
    proxy_request_timeout_seconds: float = Field(default=30.0, gt=0)
    score_capacity: int = Field(default=100, ge=1)
    image_max_age_hours: float = 24.0
    launch_command: list[str] | None = None  # defaults to `python -m riffmcp`
    log_level: str = "INFO"
    log_to_file: bool = True

    @field_validator("data_dir", mode="before")
    @classmethod
    def _expand_data_dir(cls, value):
        return Path(value).expanduser() if value else default_data_dir()

    @property
    def record_path(self) -> Path:
        return self.data_dir / RECORD_FILE_NAME

    @property
    def image_dir(self) -> Path:
        return self.data_dir / "SheetMusic"

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    @property
    def settings_path(self) -> Path:
        return self.data_dir / "settings.json"
