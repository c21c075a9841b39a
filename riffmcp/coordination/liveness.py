"""Decide whether the pid named in a server record still runs."""

from __future__ import annotations

import os

import psutil
from loguru import logger

from riffmcp.coordination.record import PrimaryRecord
from riffmcp.coordination.store import ConfigStore


class LivenessOracle:
    """
    Process-table lookup first, then a signal-0 check.

    A signal check that reports "no such process" also clears the server record
    written by that primary, identified by its instance token. A record
    published since then by another primary is left in place.
    """

    def __init__(self, store: ConfigStore | None = None):
        self._store = store

    def is_alive(self, pid: int, instance: str | None = None) -> bool:
        if pid <= 0:
            return False

        found = self._lookup(pid)
        if found is not None:
            return found
        return self._signal_check(pid, instance)

    def _lookup(self, pid: int) -> bool | None:
        try:
            status = psutil.Process(pid).status()
        except psutil.AccessDenied:
            return True
        except psutil.NoSuchProcess:
            return None
        except psutil.Error as e:
            logger.debug("Process lookup for pid {} failed: {}", pid, e)
            return None
        return status != psutil.STATUS_ZOMBIE

    def _signal_check(self, pid: int, instance: str | None) -> bool:
        try:
            os.kill(pid, 0)
        except PermissionError:
            return True
        except ProcessLookupError:
            if self._store is not None and instance is not None:
                self._store.remove_if_owned(instance)
            return False
        except OSError as e:
            logger.warning("Unexpected error signalling pid {}: {}", pid, e)
            return False
        return True

    def __call__(self, pid: int, instance: str | None = None) -> bool:
        return self.is_alive(pid, instance)


def find_running_primary(store: ConfigStore, oracle: LivenessOracle) -> PrimaryRecord | None:
    """Return the live primary's record, clearing a record whose pid is dead."""
    record = store.read()
    if record is None:
        return None
    if oracle.is_alive(record.pid, instance=record.instance):
        return record
    if store.remove_if_owned(record.instance):
        logger.info("Server record names dead pid {}; removed it", record.pid)
    return None
