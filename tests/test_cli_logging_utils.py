"""Tests for the CLI logging helpers."""

import sys

import pytest
from loguru import logger

from riffmcp.cli.shared import logging_utils
from riffmcp.cli.shared.logging_utils import configure_stderr_logging, ensure_rotating_log_file


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    logger.remove()
    logging_utils._SINK_IDS.clear()
    logger.add(sys.stderr)


def test_stderr_logging_goes_to_stderr_only(capsys) -> None:
    configure_stderr_logging("DEBUG")
    logger.debug("hello from the primary")

    captured = capsys.readouterr()
    assert "hello from the primary" in captured.err
    assert captured.out == ""


def test_disabled_stderr_logging_is_silent(capsys) -> None:
    configure_stderr_logging(enabled=False)
    logger.error("should not appear")

    assert capsys.readouterr().err == ""


def test_rotating_log_file_is_added_once(tmp_path) -> None:
    configure_stderr_logging(enabled=False)
    log_dir = tmp_path / "logs"

    first = ensure_rotating_log_file(log_dir, "proxy")
    second = ensure_rotating_log_file(log_dir, "proxy")
    logger.info("relayed one frame")
    logger.remove()

    assert first == second == log_dir / "proxy.log"
    assert first.read_text(encoding="utf-8").count("relayed one frame") == 1


def test_reconfiguring_drops_file_sinks(tmp_path) -> None:
    ensure_rotating_log_file(tmp_path, "server")
    configure_stderr_logging(enabled=False)

    assert logging_utils._SINK_IDS == {}
