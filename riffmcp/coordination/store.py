"""File-backed store for the primary record, written atomically and verified."""

from __future__ import annotations

import json
import os
from pathlib import Path

from loguru import logger

from riffmcp.coordination.record import PrimaryRecord
from riffmcp.utils.exceptions import ConfigVerificationError


class ConfigStore:
    """
    Owns the server record file.

    ``write`` replaces the file in one step and reads it back to make sure no
    other primary overwrote it in between. ``read`` heals the file: malformed
    content is deleted, a missing file is simply absent.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def launch_lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".launching")

    def write(self, host: str, port: int) -> PrimaryRecord:
        record = PrimaryRecord.for_current_process(host, port)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{self.path.name}.{record.instance}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(record.model_dump(), f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        stored = self._load_quietly()
        found = stored.instance if stored else None
        if found != record.instance:
            raise ConfigVerificationError(str(self.path), record.instance, found)
        logger.info("Published server record {} (pid={}, port={})", self.path, record.pid, record.port)
        return record

    def read(self) -> PrimaryRecord | None:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cannot read server record {}: {}", self.path, e)
            return None

        try:
            record = self._parse(raw)
        except ValueError as e:
            logger.warning("Discarding malformed server record {}: {}", self.path, e)
            self.remove()
            return None

        if not record.is_running:
            logger.debug("Ignoring server record with status {!r}", record.status)
            return None
        return record

    def remove(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove server record {}: {}", self.path, e)

    def remove_if_owned(self, instance: str) -> bool:
        """Delete the record only when it still names this instance."""
        stored = self._load_quietly()
        if stored is None or stored.instance != instance:
            return False
        self.remove()
        return True

    def _load_quietly(self) -> PrimaryRecord | None:
        try:
            return self._parse(self.path.read_bytes())
        except (OSError, ValueError):
            return None

    @staticmethod
    def _parse(raw: bytes) -> PrimaryRecord:
        data = json.loads(raw.decode("utf-8"))
        if not isinstance(data, dict):
            raise ValueError("server record must be a JSON object")
        return PrimaryRecord.model_validate(data)
