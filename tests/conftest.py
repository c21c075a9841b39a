"""Pytest hooks and fixtures."""

from pathlib import Path

import pytest

from riffmcp.config.access import clear_settings_cache
from riffmcp.coordination.store import ConfigStore


class FakeOracle:
    """Liveness double: answers from a fixed value or a per-pid table."""

    def __init__(self, alive: bool = True, table: dict[int, bool] | None = None):
        self.alive = alive
        self.table = table or {}
        self.calls: list[int] = []

    def is_alive(self, pid: int, instance: str | None = None) -> bool:
        self.calls.append(pid)
        return self.table.get(pid, self.alive)


class FakeLauncher:
    """Launcher double; ``on_launch`` stands in for the spawned primary starting up."""

    def __init__(self, on_launch=None, error: Exception | None = None):
        self.on_launch = on_launch
        self.error = error
        self.launches = 0
        self.released = 0
        self.process = None

    def launch(self):
        self.launches += 1
        if self.error is not None:
            raise self.error
        if self.on_launch is not None:
            self.on_launch()
        return None

    def check_exited(self) -> None:
        return None

    def relaunch_if_abandoned(self) -> None:
        return None

    def release_lock(self) -> None:
        self.released += 1


@pytest.fixture
def oracle_factory():
    return FakeOracle


@pytest.fixture
def launcher_factory():
    return FakeLauncher


@pytest.fixture
def record_path(tmp_path: Path) -> Path:
    return tmp_path / "RiffMCP" / "server.json"


@pytest.fixture
def store(record_path: Path) -> ConfigStore:
    return ConfigStore(record_path)


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()
