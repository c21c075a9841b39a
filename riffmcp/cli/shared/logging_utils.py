"""Loguru helpers for consistent logging in CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_SINK_IDS: dict[str, int] = {}


def configure_stderr_logging(level: str = "INFO", enabled: bool = True) -> None:
    """Replace loguru's default sink; stdout is never used since it can carry RPC traffic."""
    logger.remove()
    _SINK_IDS.clear()
    if enabled:
        logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)


def ensure_rotating_log_file(log_dir: Path, name: str, level: str = "INFO") -> Path:
    """Ensure a rotating log sink for the given command name."""
    log_path = log_dir / f"{name}.log"
    if name in _SINK_IDS:
        return log_path
    log_dir.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        str(log_path),
        level=level,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[name] = sink_id
    return log_path
