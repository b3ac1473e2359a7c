"""Tests for logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from autotag.config import LoggingConfig, configure_logging


def _installed(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, "_autotag", False)]


def test_console_handler(scratch_logger: logging.Logger) -> None:
    """Test a console handler is installed at the configured level."""
    configure_logging(LoggingConfig(level="DEBUG"), scratch_logger.name)

    handlers = _installed(scratch_logger)
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.StreamHandler)
    assert scratch_logger.level == logging.DEBUG


def test_file_handler(scratch_logger: logging.Logger, tmp_path: Path) -> None:
    """Test logging to a file creates its directory."""
    log_file = tmp_path / "logs" / "autotag.log"
    configure_logging(
        LoggingConfig(file=log_file, console=False), scratch_logger.name
    )

    scratch_logger.info("hello")
    for handler in _installed(scratch_logger):
        handler.flush()

    assert "hello" in log_file.read_text(encoding="utf-8")


def test_reconfigure_replaces_handlers(scratch_logger: logging.Logger) -> None:
    """Test calling again replaces previously installed handlers."""
    foreign = logging.NullHandler()
    scratch_logger.addHandler(foreign)

    configure_logging(LoggingConfig(), scratch_logger.name)
    configure_logging(LoggingConfig(level="ERROR"), scratch_logger.name)

    assert len(_installed(scratch_logger)) == 1
    assert foreign in scratch_logger.handlers
    assert scratch_logger.level == logging.ERROR


def test_no_handlers(scratch_logger: logging.Logger) -> None:
    """Test console and file can both be switched off."""
    configure_logging(LoggingConfig(console=False), scratch_logger.name)
    assert _installed(scratch_logger) == []
