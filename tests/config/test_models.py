"""Tests for configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from autotag.config import AutotagConfig, EngineConfig, LoggingConfig


class TestEngineConfig:
    """Tests for EngineConfig model."""

    def test_defaults(self) -> None:
        """Test default timings."""
        config = EngineConfig()
        assert config.reapply_interval == 30.0
        assert config.activity_window == 60

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("reapply_interval", 0),
            ("state_change_interval", -1),
            ("add_cooldown", -0.5),
            ("config_cache_ttl", -1),
            ("activity_window", 0),
        ],
    )
    def test_rejects_out_of_range(self, field: str, value: float) -> None:
        """Test out-of-range timings are rejected."""
        with pytest.raises(ValidationError):
            EngineConfig(**{field: value})

    def test_zero_intervals_allowed(self) -> None:
        """Test rate limits can be switched off."""
        config = EngineConfig(state_change_interval=0, add_cooldown=0)
        assert config.state_change_interval == 0.0


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_defaults(self) -> None:
        """Test default logging settings."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.file is None
        assert config.console is True

    def test_rejects_unknown_level(self) -> None:
        """Test only standard level names are accepted."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]


class TestAutotagConfig:
    """Tests for AutotagConfig model."""

    def test_default_parameters(self) -> None:
        """Test the default external parameters."""
        assert AutotagConfig().parameters == {"Stop Ratio": 0.0}

    def test_parameters_are_floats(self) -> None:
        """Test parameter values are coerced to floats."""
        config = AutotagConfig(parameters={"Stop Ratio": 2})
        assert config.parameters == {"Stop Ratio": 2.0}
        assert isinstance(config.parameters["Stop Ratio"], float)

    def test_nested_from_dict(self) -> None:
        """Test sections are built from plain dictionaries."""
        config = AutotagConfig(engine={"add_cooldown": 3}, logging={"level": "ERROR"})
        assert config.engine.add_cooldown == 3.0
        assert config.logging.level == "ERROR"

    def test_to_dict(self) -> None:
        """Test conversion to a dictionary."""
        data = AutotagConfig().to_dict()
        assert data["engine"]["reapply_interval"] == 30.0
        assert data["logging"]["level"] == "INFO"
