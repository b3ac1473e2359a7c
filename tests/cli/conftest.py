"""Test fixtures for CLI tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide Click CLI test runner.

    Returns
    -------
    CliRunner
        Click test runner.
    """
    return CliRunner()


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Iterator[None]:
    """Undo the logging setup commands perform."""
    logger = logging.getLogger("autotag")
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if getattr(handler, "_autotag", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


@pytest.fixture
def subjects_file(tmp_path: Path) -> Path:
    """Create a subjects file with one large and one small subject.

    Parameters
    ----------
    tmp_path : Path
        Pytest temporary directory.

    Returns
    -------
    Path
        Path to the subjects file.
    """
    path = tmp_path / "subjects.yaml"
    path.write_text(
        """
subjects:
  - subject_id: big
    display_name: Big Buck Bunny
    size: 5000
    state: seeding
    tags: [Manual]
  - subject_id: small
    display_name: Sintel
    size: 10
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def rules_file(tmp_path: Path) -> Path:
    """Create a rules file with dependent, plain and broken tags.

    Parameters
    ----------
    tmp_path : Path
        Pytest temporary directory.

    Returns
    -------
    Path
        Path to the rules file.
    """
    path = tmp_path / "rules.yaml"
    path.write_text(
        """
tags:
  Tiny:
    constraint: size < 100 && !hasTag("Large")
  Large:
    constraint: size > 100
  Manual: {}
  Broken:
    constraint: size >
  Ratio:
    constraint: shareratio >= getConfig("queue.seeding.ignore.share.ratio")
parameters:
  Stop Ratio: 5.0
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Create a configuration file overriding the add cooldown."""
    path = tmp_path / "autotag.yaml"
    path.write_text("engine:\n  add_cooldown: 3\n", encoding="utf-8")
    return path
