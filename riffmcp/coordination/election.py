"""
Startup decision procedure shared by primary- and proxy-candidates.

Built only from the server record and the liveness check: the record is
rewritten and verified by every new primary, and a record whose pid is dead
is removed by whoever notices.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from loguru import logger

from riffmcp.coordination.launcher import PrimaryLauncher
from riffmcp.coordination.liveness import LivenessOracle, find_running_primary
from riffmcp.coordination.record import PrimaryRecord
from riffmcp.coordination.store import ConfigStore
from riffmcp.utils.exceptions import DiscoveryTimeoutError


class Role(str, Enum):
    PRIMARY = "primary"
    YIELD = "yield"
    PROXY = "proxy"


@dataclass
class ElectionOutcome:
    role: Role
    record: PrimaryRecord


class Election:
    def __init__(
        self,
        store: ConfigStore,
        oracle: LivenessOracle,
        launcher: PrimaryLauncher | None = None,
        *,
        discovery_timeout: float = 15.0,
        poll_interval: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.oracle = oracle
        self.launcher = launcher or PrimaryLauncher(lock_path=store.launch_lock_path, stale_after=discovery_timeout)
        self.discovery_timeout = discovery_timeout
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def running_primary(self) -> PrimaryRecord | None:
        return find_running_primary(self.store, self.oracle)

    def run_primary_candidate(self, start_listening: Callable[[], tuple[str, int]]) -> ElectionOutcome:
        """
        Yield to a live primary, or start listening and publish the record.

        ``start_listening`` binds the server socket and returns the host and
        port actually bound; the record is only written after that succeeds.
        ConfigVerificationError from the write is fatal and propagates.
        """
        existing = self.running_primary()
        if existing is not None:
            logger.info("Server already running (pid={}, port={}); yielding", existing.pid, existing.port)
            return ElectionOutcome(Role.YIELD, existing)

        host, port = start_listening()
        record = self.store.write(host, port)
        return ElectionOutcome(Role.PRIMARY, record)

    def run_proxy_candidate(self) -> ElectionOutcome:
        """
        Find the live primary, launching one when none is running.

        Never becomes primary itself. Raises LaunchError if the launch fails
        and DiscoveryTimeoutError if no live record shows up in time.
        """
        existing = self.running_primary()
        if existing is not None:
            return ElectionOutcome(Role.PROXY, existing)

        try:
            self.launcher.launch()
            record = self._discover()
        finally:
            self.launcher.release_lock()
        return ElectionOutcome(Role.PROXY, record)

    def _discover(self) -> PrimaryRecord:
        deadline = self._clock() + self.discovery_timeout
        while True:
            record = self.running_primary()
            if record is not None:
                logger.info("Discovered server on port {} (pid={})", record.port, record.pid)
                return record
            self.launcher.check_exited()
            self.launcher.relaunch_if_abandoned()
            if self._clock() >= deadline:
                raise DiscoveryTimeoutError(self.discovery_timeout)
            self._sleep(self.poll_interval)
