"""Pytest fixtures for config module tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest


@pytest.fixture
def sample_yaml_file(tmp_path: Path) -> Path:
    """Create a sample YAML config file for testing.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory path provided by pytest.

    Returns
    -------
    Path
        Path to the created YAML config file.
    """
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        """
profile: test
engine:
  reapply_interval: 10
  add_cooldown: 2.5
logging:
  level: DEBUG
parameters:
  Stop Ratio: 1.5
"""
    )
    return config_file


@pytest.fixture
def malformed_yaml_file(tmp_path: Path) -> Path:
    """Create a malformed YAML file for testing."""
    config_file = tmp_path / "malformed.yaml"
    config_file.write_text("engine:\n  add_cooldown: [1, 2\n")
    return config_file


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every AUTOTAG_ variable from the environment."""
    for key in list(os.environ):
        if key.startswith("AUTOTAG_"):
            monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture
def scratch_logger() -> Iterator[logging.Logger]:
    """Provide a logger whose handlers are removed after the test."""
    logger = logging.getLogger("autotag_test_scratch")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
