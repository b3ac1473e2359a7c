"""Record of recent automatic adds, used to suppress rapid re-adds."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class ApplyHistory:
    """Last automatic add time per (tag, subject).

    Parameters
    ----------
    cooldown : float
        Seconds during which a repeated add of the same pair is refused.
    clock : Callable[[], float]
        Monotonic time source.

    Examples
    --------
    >>> now = [10.0]
    >>> history = ApplyHistory(cooldown=1.0, clock=lambda: now[0])
    >>> history.try_record("tag-1", "s1")
    True
    >>> history.try_record("tag-1", "s1")
    False
    >>> now[0] = 11.5
    >>> history.try_record("tag-1", "s1")
    True
    """

    def __init__(
        self, cooldown: float = 1.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.cooldown = cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], float] = {}

    def try_record(self, tag_id: str, subject_id: str) -> bool:
        """Record an add unless the same pair was added within the cooldown.

        Returns
        -------
        bool
            True if the add may go ahead.
        """
        key = (tag_id, subject_id)
        now = self._clock()
        with self._lock:
            last = self._entries.get(key)
            if last is not None and now - last < self.cooldown:
                return False
            self._entries[key] = now
            return True

    def clear(self) -> None:
        """Forget every recorded add."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
