"""Tests for configuration CLI commands."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from autotag.cli import cli


def test_show(cli_runner: CliRunner) -> None:
    """Test the merged configuration is shown as YAML."""
    result = cli_runner.invoke(cli, ["--profile", "dev", "config", "show"])

    assert result.exit_code == 0
    data = yaml.safe_load(result.output)
    assert data["profile"] == "dev"
    assert data["logging"]["level"] == "DEBUG"


def test_show_key(cli_runner: CliRunner) -> None:
    """Test showing a single value."""
    result = cli_runner.invoke(
        cli, ["--profile", "test", "config", "show", "--key", "engine.add_cooldown"]
    )

    assert result.exit_code == 0
    assert result.output.strip() == "0.0"


def test_show_unknown_key(cli_runner: CliRunner) -> None:
    """Test an unknown key fails."""
    result = cli_runner.invoke(cli, ["config", "show", "--key", "engine.nope"])

    assert result.exit_code == 1
    assert "Configuration key not found" in result.output


def test_show_with_config_file(cli_runner: CliRunner, config_file: Path) -> None:
    """Test values from a configuration file."""
    result = cli_runner.invoke(
        cli,
        [
            "--config-file",
            str(config_file),
            "config",
            "show",
            "-k",
            "engine.add_cooldown",
        ],
    )

    assert result.exit_code == 0
    assert result.output.strip() == "3.0"


def test_show_with_environment(
    cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test environment variables are applied."""
    monkeypatch.setenv("AUTOTAG_ENGINE__REAPPLY_INTERVAL", "12")

    result = cli_runner.invoke(
        cli, ["config", "show", "--key", "engine.reapply_interval"]
    )

    assert result.exit_code == 0
    assert result.output.strip() == "12.0"


def test_invalid_config_file(cli_runner: CliRunner, tmp_path: Path) -> None:
    """Test an invalid configuration file fails."""
    path = tmp_path / "bad.yaml"
    path.write_text("engine:\n  reapply_interval: -1\n", encoding="utf-8")

    result = cli_runner.invoke(cli, ["--config-file", str(path), "config", "show"])

    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_profiles(cli_runner: CliRunner) -> None:
    """Test the available profiles are listed."""
    result = cli_runner.invoke(cli, ["config", "profiles"])

    assert result.exit_code == 0
    for name in ("default", "dev", "test"):
        assert f"• {name}" in result.output
