"""Default configuration for the autotag package."""

from __future__ import annotations

from autotag.config.config import AutotagConfig, EngineConfig
from autotag.config.logging import LoggingConfig

DEFAULT_CONFIG = AutotagConfig(
    profile="default",
    engine=EngineConfig(),
    logging=LoggingConfig(),
)
"""Default configuration instance.

Examples
--------
>>> DEFAULT_CONFIG.engine.reapply_interval
30.0
"""


def get_default_config() -> AutotagConfig:
    """Get a copy of the default configuration.

    Returns
    -------
    AutotagConfig
        A deep copy of the default configuration.

    Examples
    --------
    >>> config = get_default_config()
    >>> config.profile
    'default'
    """
    return DEFAULT_CONFIG.model_copy(deep=True)
