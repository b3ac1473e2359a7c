"""Configuration serialization to YAML format."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from autotag.config.config import AutotagConfig


def config_to_dict(config: AutotagConfig) -> dict[str, Any]:
    """Convert AutotagConfig to a YAML-friendly dictionary.

    Paths become strings; everything else keeps its JSON-compatible form.

    Examples
    --------
    >>> from autotag.config.defaults import get_default_config
    >>> config_to_dict(get_default_config())["logging"]["file"] is None
    True
    """
    return config.model_dump(mode="json")


def to_yaml(config: AutotagConfig) -> str:
    """Serialize configuration to a YAML string."""
    return yaml.safe_dump(config_to_dict(config), sort_keys=False)


def save_yaml(config: AutotagConfig, path: Path | str) -> None:
    """Write configuration to a YAML file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(to_yaml(config))
