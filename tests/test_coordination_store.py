"""Tests for the server record file."""

import json
import os

import pytest

from riffmcp.coordination.record import RUNNING, PrimaryRecord
from riffmcp.coordination.store import ConfigStore
from riffmcp.utils.exceptions import ConfigVerificationError


def test_write_then_read_returns_the_same_record(store: ConfigStore) -> None:
    written = store.write("127.0.0.1", 4000)

    record = store.read()
    assert record == written
    assert record.host == "127.0.0.1"
    assert record.port == 4000
    assert record.status == RUNNING
    assert record.pid == os.getpid()
    assert record.base_url == "http://127.0.0.1:4000"


def test_write_creates_parent_directory_and_leaves_no_temp_files(store: ConfigStore) -> None:
    assert not store.path.parent.exists()
    store.write("127.0.0.1", 4000)
    assert sorted(p.name for p in store.path.parent.iterdir()) == ["server.json"]


def test_file_is_plain_json_with_all_fields(store: ConfigStore) -> None:
    record = store.write("0.0.0.0", 3001)
    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data == {
        "host": "0.0.0.0",
        "instance": record.instance,
        "pid": record.pid,
        "port": 3001,
        "status": "running",
        "timestamp": record.timestamp,
    }


def test_each_write_gets_a_new_instance(store: ConfigStore) -> None:
    first = store.write("127.0.0.1", 4000)
    second = store.write("127.0.0.1", 4001)
    assert first.instance != second.instance
    assert store.read().port == 4001


def test_read_missing_file_is_absent(store: ConfigStore) -> None:
    assert store.read() is None


def test_remove_is_idempotent(store: ConfigStore) -> None:
    store.write("127.0.0.1", 4000)
    store.remove()
    store.remove()
    assert store.read() is None
    assert not store.path.exists()


@pytest.mark.parametrize(
    "content",
    [
        b"{not json",
        b"[1, 2, 3]",
        b'{"host": "127.0.0.1", "status": "running"}',
        b'{"port": "many", "host": "h", "status": "running", "pid": 1, "instance": "x", "timestamp": 0}',
        b"\xff\xfe\x00",
    ],
)
def test_malformed_record_is_deleted(store: ConfigStore, content: bytes) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_bytes(content)

    assert store.read() is None
    assert not store.path.exists()


def test_record_not_running_is_ignored_but_kept(store: ConfigStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        json.dumps({"port": 1, "host": "h", "status": "stopped", "pid": 1, "instance": "x", "timestamp": 0}),
        encoding="utf-8",
    )
    assert store.read() is None
    assert store.path.exists()


def test_unknown_fields_are_ignored(store: ConfigStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        json.dumps(
            {"port": 9, "host": "h", "status": "running", "pid": 2, "instance": "x", "timestamp": 1.5, "extra": True}
        ),
        encoding="utf-8",
    )
    record = store.read()
    assert isinstance(record, PrimaryRecord)
    assert record.port == 9


def test_verification_failure_when_another_writer_wins(store: ConfigStore, monkeypatch) -> None:
    intruder = PrimaryRecord(port=5, host="h", status="running", pid=99, instance="someone-else", timestamp=0)
    monkeypatch.setattr(store, "_load_quietly", lambda: intruder)

    with pytest.raises(ConfigVerificationError) as exc_info:
        store.write("127.0.0.1", 4000)
    assert exc_info.value.details["found"] == "someone-else"


def test_remove_if_owned(store: ConfigStore) -> None:
    record = store.write("127.0.0.1", 4000)

    assert store.remove_if_owned("not-mine") is False
    assert store.path.exists()

    assert store.remove_if_owned(record.instance) is True
    assert not store.path.exists()
    assert store.remove_if_owned(record.instance) is False


def test_launch_lock_path_sits_beside_record(store: ConfigStore) -> None:
    assert store.launch_lock_path.parent == store.path.parent
    assert store.launch_lock_path.name == "server.json.launching"
