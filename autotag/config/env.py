"""Environment variable support for configuration.

Variables named ``AUTOTAG_<SECTION>__<FIELD>`` map onto nested
configuration keys, e.g. ``AUTOTAG_ENGINE__ADD_COOLDOWN=2``.
"""

import os
from pathlib import Path
from typing import Any


def parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate Python type.

    Handles: int, float, bool, Path, string

    Parameters
    ----------
    value : str
        Raw environment variable value.

    Returns
    -------
    Any
        Parsed value with appropriate type.

    Examples
    --------
    >>> parse_env_value("1")
    1
    >>> parse_env_value("2.5")
    2.5
    >>> parse_env_value("off")
    False
    >>> parse_env_value("/var/log/autotag.log")
    PosixPath('/var/log/autotag.log')
    """
    # numbers first, so that "0" and "1" stay numeric
    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    if value.startswith(("/", "./", "~/", "../")):
        return Path(value).expanduser()

    return value


def env_to_nested_dict(env_vars: dict[str, str], prefix: str) -> dict[str, Any]:
    """Convert flat environment variables to nested dictionary.

    Examples
    --------
    >>> env_to_nested_dict({"AUTOTAG_LOGGING__LEVEL": "DEBUG"}, "AUTOTAG_")
    {'logging': {'level': 'DEBUG'}}
    """
    result: dict[str, Any] = {}

    for key, value in env_vars.items():
        if not key.startswith(prefix):
            continue

        parts = [part.lower() for part in key[len(prefix) :].split("__")]

        current = result
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = parse_env_value(value)

    return result


def load_from_env(prefix: str = "AUTOTAG_") -> dict[str, Any]:
    """Load configuration values from environment variables.

    Parameters
    ----------
    prefix : str
        Environment variable prefix to filter on.

    Returns
    -------
    dict[str, Any]
        Nested configuration dictionary from environment.
    """
    env_vars = {k: v for k, v in os.environ.items() if k.startswith(prefix)}
    return env_to_nested_dict(env_vars, prefix)
