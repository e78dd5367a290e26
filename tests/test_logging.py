"""Tests for log level resolution and handler setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from acp_chat.config.schema import LoggingConfig
from acp_chat.logging import (
    TRACE,
    VERBOSE,
    get_logger,
    reset_logging,
    resolve_level,
    setup_logging,
)


@pytest.mark.parametrize(
    ("config", "expected"),
    [
        (None, logging.WARNING),
        (LoggingConfig(), logging.WARNING),
        (LoggingConfig(level="debug"), logging.DEBUG),
        (LoggingConfig(level="TRACE"), TRACE),
        (LoggingConfig(level="nonsense"), logging.WARNING),
        (LoggingConfig(verbose=0), logging.ERROR),
        (LoggingConfig(verbose=3), VERBOSE),
        (LoggingConfig(verbose=9), TRACE),
        (LoggingConfig(level="error", verbose=2), logging.INFO),
    ],
)
def test_resolve_level(config: LoggingConfig | None, expected: int) -> None:
    assert resolve_level(config) == expected


def test_child_loggers_share_root() -> None:
    assert get_logger().name == "acp_chat"
    assert get_logger("transport").name == "acp_chat.transport"
    assert logging.getLevelName(VERBOSE) == "VERBOSE"


def test_log_file_receives_records(tmp_path: Path) -> None:
    log_file = tmp_path / "chat.log"
    setup_logging(LoggingConfig(file=str(log_file), verbose=2))
    get_logger("connection").info("Connected session %s", "s1")
    get_logger("connection").log(VERBOSE, "Routing status frame on s1")
    reset_logging()

    text = log_file.read_text(encoding="utf-8")
    assert "info: Connected session s1" in text
    assert "Routing" not in text


def test_setup_is_idempotent_until_reset(tmp_path: Path) -> None:
    setup_logging(LoggingConfig(file=str(tmp_path / "a.log")))
    setup_logging(LoggingConfig(file=str(tmp_path / "b.log")))

    assert len(get_logger().handlers) == 1
    assert not (tmp_path / "b.log").exists()

    reset_logging()
    assert get_logger().handlers == []
