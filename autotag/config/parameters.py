"""In-memory external parameter store.

``ParameterStore`` implements the ``ParameterSource`` protocol the
``getConfig`` builtin reads from.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ParameterStore:
    """Named float parameters with change listeners.

    Parameters
    ----------
    values : dict[str, float] | None
        Initial parameter values.

    Examples
    --------
    >>> store = ParameterStore({"Stop Ratio": 2.0})
    >>> store.get_float("Stop Ratio")
    2.0
    >>> seen = []
    >>> store.add_listener("Stop Ratio", seen.append)
    >>> store.set("Stop Ratio", 3.0)
    >>> seen
    ['Stop Ratio']
    """

    def __init__(self, values: dict[str, float] | None = None) -> None:
        self._lock = threading.Lock()
        self._values: dict[str, float] = dict(values or {})
        self._listeners: dict[str, list[Callable[[str], None]]] = {}

    def get_float(self, name: str) -> float:
        """Read a parameter.

        Raises
        ------
        KeyError
            If the parameter is not defined.
        """
        with self._lock:
            if name not in self._values:
                raise KeyError(f"Unknown parameter '{name}'")
            return float(self._values[name])

    def set(self, name: str, value: float) -> None:
        """Set a parameter and notify its listeners if the value changed."""
        with self._lock:
            if self._values.get(name) == value:
                return
            self._values[name] = value
            listeners = list(self._listeners.get(name, ()))
        for callback in listeners:
            try:
                callback(name)
            except Exception:
                logger.exception("Parameter listener failed for '%s'", name)

    def add_listener(self, name: str, callback: Callable[[str], None]) -> None:
        """Call callback with the parameter name whenever it changes."""
        with self._lock:
            self._listeners.setdefault(name, []).append(callback)
