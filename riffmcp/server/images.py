"""Generated image files: naming, lookup and age-based cleanup."""

from __future__ import annotations

import time
from pathlib import Path

from loguru import logger


def resolve_image_path(image_dir: Path, filename: str) -> Path:
    """
    Map a request path segment onto a file inside ``image_dir``.

    Raises PermissionError for anything that could leave the directory:
    parent references, separators, absolute paths, or a resolved path outside it.
    """
    if not filename or ".." in filename or "/" in filename or "\\" in filename or "\x00" in filename:
        raise PermissionError(f"Invalid image path: {filename!r}")
    base = image_dir.resolve()
    resolved = (base / filename).resolve()
    if not resolved.is_relative_to(base):
        raise PermissionError(f"Invalid image path: {filename!r}")
    return resolved


def cleanup_old_images(image_dir: Path, max_age_hours: float = 24.0) -> int:
    """Delete PNG files older than ``max_age_hours``; returns how many were removed."""
    if not image_dir.is_dir():
        return 0
    cutoff = time.time() - max_age_hours * 3600
    removed = 0
    for path in image_dir.glob("*.png"):
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
                logger.info("Cleaned up old image {}", path.name)
        except OSError as e:
            logger.warning("Failed to clean up {}: {}", path, e)
    return removed
