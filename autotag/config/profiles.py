"""Configuration profiles for the autotag package."""

from __future__ import annotations

from autotag.config.config import AutotagConfig, EngineConfig
from autotag.config.defaults import DEFAULT_CONFIG
from autotag.config.logging import LoggingConfig

# development profile: verbose logging, default timings
DEV_CONFIG = AutotagConfig(
    profile="dev",
    engine=EngineConfig(),
    logging=LoggingConfig(level="DEBUG", console=True),
)
"""Development configuration profile."""

# test profile: no waiting between passes, quiet logging
TEST_CONFIG = AutotagConfig(
    profile="test",
    engine=EngineConfig(
        reapply_interval=3600.0,
        state_change_interval=0.0,
        add_cooldown=0.0,
        config_cache_ttl=0.0,
    ),
    logging=LoggingConfig(level="WARNING", console=False),
)
"""Testing configuration profile.

The periodic pass is pushed out of the way and every rate limit is off, so
tests observe each application directly.
"""

PROFILES: dict[str, AutotagConfig] = {
    "default": DEFAULT_CONFIG,
    "dev": DEV_CONFIG,
    "test": TEST_CONFIG,
}
"""Available configuration profiles.

Examples
--------
>>> sorted(PROFILES)
['default', 'dev', 'test']
>>> PROFILES["dev"].logging.level
'DEBUG'
"""


def get_profile(name: str) -> AutotagConfig:
    """Get configuration profile by name.

    Parameters
    ----------
    name : str
        Profile name.

    Returns
    -------
    AutotagConfig
        A deep copy of the profile configuration.

    Raises
    ------
    ValueError
        If the profile does not exist.

    Examples
    --------
    >>> get_profile("test").engine.add_cooldown
    0.0
    """
    if name not in PROFILES:
        available = ", ".join(sorted(PROFILES))
        raise ValueError(f"Profile '{name}' not found. Available profiles: {available}")
    return PROFILES[name].model_copy(deep=True)


def list_profiles() -> list[str]:
    """List available profile names."""
    return sorted(PROFILES)
