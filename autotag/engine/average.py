"""Sliding-window event rate."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable


class ActivityAverage:
    """Per-second event rate over a sliding window of whole seconds.

    Parameters
    ----------
    window : int
        Number of one-second buckets averaged over.
    clock : Callable[[], float]
        Monotonic time source.

    Examples
    --------
    >>> now = [100.0]
    >>> average = ActivityAverage(window=10, clock=lambda: now[0])
    >>> for _ in range(20):
    ...     average.add()
    >>> average.rate()
    2.0
    >>> now[0] = 200.0
    >>> average.rate()
    0.0
    """

    def __init__(
        self, window: int = 60, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: deque[list[int]] = deque()

    def add(self, count: int = 1) -> None:
        """Record count events at the current time."""
        second = int(self._clock())
        with self._lock:
            if self._buckets and self._buckets[-1][0] == second:
                self._buckets[-1][1] += count
            else:
                self._buckets.append([second, count])
            self._expire(second)

    def rate(self) -> float:
        """Average events per second over the window."""
        second = int(self._clock())
        with self._lock:
            self._expire(second)
            total = sum(count for _, count in self._buckets)
        return total / self.window

    def _expire(self, second: int) -> None:
        while self._buckets and self._buckets[0][0] <= second - self.window:
            self._buckets.popleft()
