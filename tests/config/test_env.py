"""Tests for environment variable configuration support."""

from __future__ import annotations

from pathlib import Path

import pytest

from autotag.config.env import env_to_nested_dict, load_from_env, parse_env_value


class TestParseEnvValue:
    """Tests for parse_env_value function."""

    @pytest.mark.parametrize("value", ["true", "TRUE", "yes", "On"])
    def test_parse_true(self, value: str) -> None:
        """Test parsing boolean true spellings."""
        assert parse_env_value(value) is True

    @pytest.mark.parametrize("value", ["false", "No", "OFF"])
    def test_parse_false(self, value: str) -> None:
        """Test parsing boolean false spellings."""
        assert parse_env_value(value) is False

    def test_zero_and_one_stay_numeric(self) -> None:
        """Test 0 and 1 parse as integers, not booleans."""
        assert parse_env_value("0") == 0
        assert parse_env_value("1") == 1
        assert type(parse_env_value("1")) is int

    def test_parse_float(self) -> None:
        """Test parsing float values."""
        assert parse_env_value("2.5") == 2.5

    def test_parse_path(self) -> None:
        """Test values that look like paths become Path objects."""
        assert parse_env_value("/var/log/autotag.log") == Path("/var/log/autotag.log")
        assert parse_env_value("./logs") == Path("logs")

    def test_parse_string(self) -> None:
        """Test anything else is kept as a string."""
        assert parse_env_value("DEBUG") == "DEBUG"


class TestEnvToNestedDict:
    """Tests for env_to_nested_dict function."""

    def test_nested_keys(self) -> None:
        """Test double underscores nest keys."""
        env = {
            "AUTOTAG_ENGINE__ADD_COOLDOWN": "2",
            "AUTOTAG_LOGGING__LEVEL": "DEBUG",
            "AUTOTAG_PROFILE": "dev",
        }
        assert env_to_nested_dict(env, "AUTOTAG_") == {
            "engine": {"add_cooldown": 2},
            "logging": {"level": "DEBUG"},
            "profile": "dev",
        }

    def test_other_prefixes_are_ignored(self) -> None:
        """Test variables without the prefix are skipped."""
        assert env_to_nested_dict({"HOME": "/root"}, "AUTOTAG_") == {}


def test_load_from_env(clean_env: pytest.MonkeyPatch) -> None:
    """Test reading the process environment."""
    clean_env.setenv("AUTOTAG_ENGINE__REAPPLY_INTERVAL", "45")
    clean_env.setenv("UNRELATED", "x")

    assert load_from_env() == {"engine": {"reapply_interval": 45}}


def test_load_from_env_empty(clean_env: pytest.MonkeyPatch) -> None:
    """Test an environment without variables gives an empty dictionary."""
    assert load_from_env() == {}
