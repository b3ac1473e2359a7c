"""Configuration loading from YAML files.

This module loads configurations from YAML files, merges configurations
from multiple sources and applies keyword overrides.
"""

from pathlib import Path
from typing import Any

import yaml

from autotag.config.config import AutotagConfig
from autotag.config.env import load_from_env
from autotag.config.profiles import get_profile


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two configuration dictionaries.

    Examples
    --------
    >>> merge_configs({"a": 1, "b": {"c": 2}}, {"b": {"d": 3}})
    {'a': 1, 'b': {'c': 2, 'd': 3}}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)  # type: ignore[arg-type]
        else:
            result[key] = value
    return result


def load_yaml_file(path: Path | str) -> dict[str, Any]:
    """Load YAML file and return as dictionary.

    Raises
    ------
    FileNotFoundError
        If file doesn't exist.
    yaml.YAMLError
        If YAML is malformed.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
            return content if content is not None else {}
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def _nest_overrides(overrides: dict[str, Any]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for key, value in overrides.items():
        parts = key.split("__")
        current = nested
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value
    return nested


def load_config(
    config_path: Path | str | None = None,
    profile: str = "default",
    use_env: bool = False,
    **overrides: Any,
) -> AutotagConfig:
    """Load configuration from YAML file with optional overrides.

    Precedence (lowest to highest):
    1. Profile defaults
    2. YAML file values
    3. ``AUTOTAG_`` environment variables, when use_env is set
    4. Keyword overrides (``engine__add_cooldown=2.0``)

    Parameters
    ----------
    config_path : Path | str | None
        Path to YAML config file. If None, uses profile defaults.
    profile : str
        Profile to use as base (default, dev, test).
    use_env : bool
        Whether to apply environment variables.
    **overrides : Any
        Direct overrides for config values.

    Returns
    -------
    AutotagConfig
        Loaded and merged configuration.

    Raises
    ------
    FileNotFoundError
        If config_path is specified but doesn't exist.
    yaml.YAMLError
        If YAML file is malformed.
    ValidationError
        If configuration is invalid.

    Examples
    --------
    >>> config = load_config(profile="dev", engine__add_cooldown=2.0)
    >>> config.profile, config.engine.add_cooldown
    ('dev', 2.0)
    """
    base_config: dict[str, Any] = get_profile(profile).model_dump()

    if config_path is not None:
        base_config = merge_configs(base_config, load_yaml_file(config_path))

    if use_env:
        base_config = merge_configs(base_config, load_from_env())

    if overrides:
        base_config = merge_configs(base_config, _nest_overrides(overrides))

    return AutotagConfig(**base_config)
