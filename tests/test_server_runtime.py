"""Tests for the primary server lifecycle."""

import os
import time

import pytest

from riffmcp.config.schema import Settings
from riffmcp.coordination.election import Election, Role
from riffmcp.coordination.store import ConfigStore
from riffmcp.server.runtime import PrimaryServer


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path, host="127.0.0.1", port=0, log_to_file=False)


def _server(settings, oracle):
    store = ConfigStore(settings.record_path)
    return PrimaryServer(settings, election=Election(store, oracle))


def test_start_binds_and_publishes_record(settings, oracle_factory) -> None:
    server = _server(settings, oracle_factory())
    try:
        outcome = server.start()
        assert outcome.role == Role.PRIMARY
        assert outcome.record.port > 0
        assert server.dispatcher.port == outcome.record.port
        assert ConfigStore(settings.record_path).read() == outcome.record
        assert settings.image_dir.is_dir()
    finally:
        server.shutdown()

    assert not settings.record_path.exists()


def test_second_server_yields_without_binding(settings, oracle_factory) -> None:
    oracle = oracle_factory(alive=True)
    first = _server(settings, oracle)
    second = _server(settings, oracle)
    try:
        first.start()
        outcome = second.start()
        assert outcome.role == Role.YIELD
        assert outcome.record == first.record
        assert second._socket is None
    finally:
        second.shutdown()
        first.shutdown()


def test_shutdown_leaves_a_newer_record_alone(settings, oracle_factory) -> None:
    server = _server(settings, oracle_factory())
    server.start()
    newer = ConfigStore(settings.record_path).write("127.0.0.1", 5555)

    server.shutdown()

    assert ConfigStore(settings.record_path).read() == newer


def test_old_images_are_cleaned_on_start(settings, oracle_factory) -> None:
    settings.image_dir.mkdir(parents=True)
    old = settings.image_dir / "old.png"
    fresh = settings.image_dir / "fresh.png"
    old.write_bytes(b"png")
    fresh.write_bytes(b"png")
    stale = time.time() - 48 * 3600
    os.utime(old, (stale, stale))

    server = _server(settings, oracle_factory())
    try:
        server.start()
    finally:
        server.shutdown()

    assert not old.exists()
    assert fresh.exists()


def test_bind_failure_propagates_and_writes_nothing(settings, oracle_factory) -> None:
    holder = _server(settings, oracle_factory(alive=False))
    holder.start()
    taken = settings.model_copy(update={"port": holder.record.port, "data_dir": settings.data_dir / "other"})
    try:
        with pytest.raises(OSError):
            _server(taken, oracle_factory()).start()
        assert not taken.record_path.exists()
    finally:
        holder.shutdown()


def test_serve_requires_a_won_election(settings) -> None:
    with pytest.raises(RuntimeError):
        PrimaryServer(settings).serve()
