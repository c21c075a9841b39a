"""Cached settings access facade."""

from __future__ import annotations

import threading
from pathlib import Path

from riffmcp.config.loader import get_settings_path, load_settings
from riffmcp.config.schema import Settings

_lock = threading.RLock()
_cache: dict[str, Settings] = {}


def _cache_key(settings_path: Path | None = None) -> str:
    path = Path(settings_path) if settings_path else get_settings_path()
    return str(path.expanduser().resolve())


def get_settings(*, settings_path: Path | None = None, force_reload: bool = False) -> Settings:
    """Get settings with process-local cache and optional refresh."""
    key = _cache_key(settings_path)
    with _lock:
        if force_reload or key not in _cache:
            _cache[key] = load_settings(Path(key))
        return _cache[key]


def clear_settings_cache(*, settings_path: Path | None = None) -> None:
    """Clear cached settings entry (or all cache entries)."""
    with _lock:
        if settings_path is None:
            _cache.clear()
            return
        _cache.pop(_cache_key(settings_path), None)
