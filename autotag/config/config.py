"""Main configuration models for the autotag package."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from autotag.config.logging import LoggingConfig


class EngineConfig(BaseModel):
    """Timing configuration of the constraint engine.

    Parameters
    ----------
    reapply_interval : float
        Seconds between periodic re-application of every constraint.
    state_change_interval : float
        Minimum seconds between two drains of staged state-change work.
    add_cooldown : float
        Seconds during which a repeated add of the same tag to the same
        subject is suppressed.
    config_cache_ttl : float
        Seconds a value read by ``getConfig`` stays cached.
    activity_window : int
        Seconds covered by the evaluation rate reported per constraint.

    Examples
    --------
    >>> config = EngineConfig()
    >>> config.reapply_interval
    30.0
    >>> config.add_cooldown
    1.0
    """

    reapply_interval: float = Field(
        default=30.0, gt=0, description="Periodic re-application interval"
    )
    state_change_interval: float = Field(
        default=5.0, ge=0, description="Minimum spacing of state-change drains"
    )
    add_cooldown: float = Field(
        default=1.0, ge=0, description="Repeated add suppression window"
    )
    config_cache_ttl: float = Field(
        default=60.0, ge=0, description="getConfig cache lifetime"
    )
    activity_window: int = Field(
        default=60, gt=0, description="Evaluation rate window in seconds"
    )


class AutotagConfig(BaseModel):
    """Main configuration for the autotag package.

    Parameters
    ----------
    profile : str
        Configuration profile name.
    engine : EngineConfig
        Engine timing configuration.
    logging : LoggingConfig
        Logging configuration.
    parameters : dict[str, float]
        Initial values of the external parameters ``getConfig`` can read.

    Examples
    --------
    >>> config = AutotagConfig()
    >>> config.profile
    'default'
    >>> config.engine.state_change_interval
    5.0
    """

    profile: str = Field(default="default", description="Configuration profile name")
    engine: EngineConfig = Field(
        default_factory=EngineConfig, description="Engine configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    parameters: dict[str, float] = Field(
        default_factory=lambda: {"Stop Ratio": 0.0},
        description="External parameters",
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Examples
        --------
        >>> AutotagConfig().to_dict()["profile"]
        'default'
        """
        return self.model_dump()

    def to_yaml(self) -> str:
        """Convert configuration to YAML string.

        Examples
        --------
        >>> "profile: default" in AutotagConfig().to_yaml()
        True
        """
        from autotag.config.serialization import to_yaml  # noqa: PLC0415

        return to_yaml(self)
