"""Configuration system for the autotag package.

This module provides configuration models, default settings and profiles
for the constraint engine.

Examples
--------
>>> from autotag.config import get_default_config, get_profile
>>> get_default_config().profile
'default'
>>> get_profile("dev").logging.level
'DEBUG'
"""

from __future__ import annotations

from autotag.config.config import AutotagConfig, EngineConfig
from autotag.config.defaults import DEFAULT_CONFIG, get_default_config
from autotag.config.env import load_from_env
from autotag.config.loader import load_config, load_yaml_file, merge_configs
from autotag.config.logging import LoggingConfig, configure_logging
from autotag.config.parameters import ParameterStore
from autotag.config.profiles import (
    DEV_CONFIG,
    PROFILES,
    TEST_CONFIG,
    get_profile,
    list_profiles,
)
from autotag.config.serialization import save_yaml, to_yaml

__all__ = [
    # Main config
    "AutotagConfig",
    # Config sections
    "EngineConfig",
    "LoggingConfig",
    "configure_logging",
    # Defaults
    "DEFAULT_CONFIG",
    "get_default_config",
    # Profiles
    "DEV_CONFIG",
    "TEST_CONFIG",
    "PROFILES",
    "get_profile",
    "list_profiles",
    # Loading
    "load_config",
    "load_yaml_file",
    "merge_configs",
    # Environment
    "load_from_env",
    # Parameters
    "ParameterStore",
    # Serialization
    "to_yaml",
    "save_yaml",
]
