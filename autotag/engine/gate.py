"""Reentrant pause gate for constraint application."""

from __future__ import annotations

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)


class ProcessingGate:
    """Counts pause requests and captures work submitted while paused.

    Every ``disable`` must be matched by an ``enable``; the work captured
    while paused is handed back, in submission order, by the ``enable``
    that lifts the last pause.

    Examples
    --------
    >>> gate = ProcessingGate()
    >>> gate.disable()
    >>> gate.defer("a"), gate.defer("b")
    (True, True)
    >>> gate.enable()
    ['a', 'b']
    >>> gate.defer("c")
    False
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._disabled = 0
        self._pending: list[Any] = []

    @property
    def is_open(self) -> bool:
        """Whether work may run right now."""
        with self._lock:
            return self._disabled == 0

    def disable(self) -> None:
        """Pause processing; may be nested."""
        with self._lock:
            self._disabled += 1

    def enable(self) -> list[Any]:
        """Lift one pause.

        Returns
        -------
        list[Any]
            The captured work when this lifts the last pause, otherwise an
            empty list.
        """
        with self._lock:
            if self._disabled == 0:
                logger.warning("Processing enabled without a matching disable")
                return []
            self._disabled -= 1
            if self._disabled > 0:
                return []
            pending, self._pending = self._pending, []
            return pending

    def defer(self, item: Any) -> bool:
        """Capture item if processing is paused.

        Returns
        -------
        bool
            True if the item was captured and must not run now.
        """
        with self._lock:
            if self._disabled == 0:
                return False
            self._pending.append(item)
            return True
