"""Start the primary as an independent process, at most one launcher at a time."""

from __future__ import annotations

import os
import subprocess
import sys
import time
from pathlib import Path

from loguru import logger

from riffmcp.utils.exceptions import LaunchError


def default_launch_command() -> list[str]:
    return [sys.executable, "-m", "riffmcp"]


class PrimaryLauncher:
    """
    Spawns the primary detached from the caller's session and stdio.

    Concurrent proxy-candidates coordinate through a ``.launching`` marker
    created with O_EXCL: the one that creates it spawns, the others only
    wait for the record to appear. A marker older than ``stale_after``
    seconds is left over from a crashed launcher and gets replaced.
    """

    def __init__(
        self,
        command: list[str] | None = None,
        lock_path: Path | None = None,
        stale_after: float = 15.0,
    ):
        self.command = list(command) if command else default_launch_command()
        self.lock_path = Path(lock_path) if lock_path else None
        self.stale_after = stale_after
        self._owns_lock = False
        self.process: subprocess.Popen | None = None

    def launch(self) -> subprocess.Popen | None:
        """Spawn the primary; returns None when another launcher is already at it."""
        if not self._acquire_lock():
            logger.info("Another process is launching the server; waiting for it")
            return None

        kwargs: dict = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
            "close_fds": True,
        }
        if os.name == "nt":
            kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True

        try:
            self.process = subprocess.Popen(self.command, **kwargs)
        except OSError as e:
            self.release_lock()
            raise LaunchError(self.command, str(e)) from e
        logger.info("Launched server process pid={} ({})", self.process.pid, " ".join(self.command))
        return self.process

    def check_exited(self) -> None:
        """Raise LaunchError when the spawned process already died with a failure status."""
        if self.process is None:
            return
        code = self.process.poll()
        if code is not None and code != 0:
            raise LaunchError(self.command, f"exited with status {code}")

    def relaunch_if_abandoned(self) -> None:
        """Take over when the launcher we were waiting on gave up without a server."""
        if self.process is not None or self.lock_path is None or self.lock_path.exists():
            return
        logger.info("Other launcher gave up; launching the server ourselves")
        self.launch()

    def release_lock(self) -> None:
        if not self._owns_lock or self.lock_path is None:
            return
        self._owns_lock = False
        try:
            self.lock_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove launch marker {}: {}", self.lock_path, e)

    def _acquire_lock(self) -> bool:
        if self.lock_path is None:
            return True
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        for _ in range(2):
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                if not self._clear_stale_lock():
                    return False
                continue
            except OSError as e:
                logger.warning("Cannot create launch marker {}: {}", self.lock_path, e)
                return True
            with os.fdopen(fd, "w") as f:
                f.write(str(os.getpid()))
            self._owns_lock = True
            return True
        return False

    def _clear_stale_lock(self) -> bool:
        try:
            age = time.time() - self.lock_path.stat().st_mtime
        except FileNotFoundError:
            return True
        if age < self.stale_after:
            return False
        logger.info("Removing stale launch marker {} ({:.0f}s old)", self.lock_path, age)
        try:
            self.lock_path.unlink(missing_ok=True)
        except OSError:
            return False
        return True
