"""Configuration module for riffmcp."""

from riffmcp.config.loader import load_settings, get_settings_path, get_data_dir
from riffmcp.config.schema import Settings, default_data_dir
from riffmcp.config.access import get_settings, clear_settings_cache

__all__ = [
    "Settings",
    "load_settings",
    "get_settings_path",
    "get_data_dir",
    "default_data_dir",
    "get_settings",
    "clear_settings_cache",
]
