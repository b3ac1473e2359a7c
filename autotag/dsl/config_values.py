"""Process-wide cache of configuration values read by ``getConfig``.

Only whitelisted keys can be read. Values are cached for a fixed time per
key and the whole cache is dropped when any watched parameter changes. The
cache is shared by every constraint in the process; ``ConstraintHandler``
binds it to its parameter source and sets its lifetime on construction.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from autotag.dsl.errors import EvaluationError

if TYPE_CHECKING:
    from autotag.interfaces import ParameterSource


@dataclass(frozen=True)
class ConfigKey:
    """Whitelisted configuration key.

    Attributes
    ----------
    kind : str
        Value type, currently only ``"float"``.
    parameter : str
        Name of the parameter in the external configuration.
    """

    kind: str
    parameter: str


CONFIG_FLOAT = "float"

CONFIG_KEYS: dict[str, ConfigKey] = {
    "queue.seeding.ignore.share.ratio": ConfigKey(CONFIG_FLOAT, "Stop Ratio"),
}


class ConfigValueCache:
    """Time-limited cache of configuration values keyed by raw key.

    Parameters
    ----------
    ttl : float
        Seconds a cached value stays valid.
    clock : Callable[[], float]
        Monotonic time source.

    Examples
    --------
    >>> from autotag.config.parameters import ParameterStore
    >>> store = ParameterStore({"Stop Ratio": 2.0})
    >>> cache = ConfigValueCache()
    >>> cache.get("queue.seeding.ignore.share.ratio", store)
    2.0
    """

    def __init__(
        self, ttl: float = 60.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._values: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._bound: list[ParameterSource] = []

    def bind(self, source: ParameterSource) -> None:
        """Clear the cache whenever a whitelisted parameter of source changes."""
        with self._lock:
            if any(bound is source for bound in self._bound):
                return
            self._bound.append(source)
        for key in CONFIG_KEYS.values():
            source.add_listener(key.parameter, self._parameter_changed)

    def get(self, key: str, source: ParameterSource) -> Any:
        """Read a whitelisted key, from the cache when still fresh.

        Raises
        ------
        EvaluationError
            If the key is not whitelisted or has an unsupported type.
        """
        now = self._clock()
        with self._lock:
            cached = self._values.get(key)
            if cached is not None and now - cached[0] < self.ttl:
                return cached[1]

        entry = CONFIG_KEYS.get(key)
        if entry is None or entry.kind != CONFIG_FLOAT:
            raise EvaluationError(f"Error getting config value for '{key}'")

        try:
            value = source.get_float(entry.parameter)
        except (KeyError, ValueError) as e:
            raise EvaluationError(f"Error getting config value for '{key}'") from e
        with self._lock:
            self._values[key] = (now, value)
        return value

    def clear(self) -> None:
        """Drop every cached value."""
        with self._lock:
            self._values.clear()

    def _parameter_changed(self, name: str) -> None:
        self.clear()


config_value_cache = ConfigValueCache()
"""The process-wide cache used by every evaluator."""
