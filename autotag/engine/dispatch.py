"""Background execution: a serial worker, a rate-limited trigger and a timer.

All constraint application runs on one ``SerialDispatcher`` worker thread,
so passes never overlap. ``FrequencyLimitedDispatcher`` coalesces bursts of
triggers into spaced-out runs on that worker, and ``PeriodicTimer`` fires a
callback at a fixed interval.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

Task = Callable[[], None]


class SerialDispatcher:
    """Runs submitted tasks one at a time, in order, on a daemon thread.

    The thread is started by the first dispatch. A task that raises is
    logged and does not stop the worker.

    Parameters
    ----------
    name : str
        Worker thread name.

    Examples
    --------
    >>> results = []
    >>> dispatcher = SerialDispatcher()
    >>> dispatcher.dispatch(lambda: results.append(1))
    >>> dispatcher.dispatch(lambda: results.append(2))
    >>> dispatcher.drain()
    >>> results
    [1, 2]
    >>> dispatcher.shutdown()
    """

    def __init__(self, name: str = "autotag-worker") -> None:
        self.name = name
        self._queue: queue.Queue[Task | None] = queue.Queue()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stopped = False

    @property
    def is_worker_thread(self) -> bool:
        """Whether the caller is running on the worker thread."""
        return threading.current_thread() is self._thread

    def dispatch(self, task: Task) -> None:
        """Queue a task; tasks queued after shutdown are dropped."""
        with self._lock:
            if self._stopped:
                logger.debug("Dispatcher %s stopped, dropping task", self.name)
                return
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._run, name=self.name, daemon=True
                )
                self._thread.start()
            self._queue.put(task)

    def drain(self) -> None:
        """Block until every queued task, including tasks they queue, is done.

        Raises
        ------
        RuntimeError
            If called from the worker thread itself.
        """
        if self.is_worker_thread:
            raise RuntimeError("drain() called from the worker thread")
        self._queue.join()

    def shutdown(self, timeout: float | None = 5.0) -> None:
        """Stop accepting tasks and let the worker finish the queued ones."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            thread = self._thread
            if thread is not None:
                self._queue.put(None)
        if thread is not None and not self.is_worker_thread:
            thread.join(timeout)

    def _run(self) -> None:
        while True:
            task = self._queue.get()
            try:
                if task is None:
                    return
                task()
            except Exception:
                logger.exception("Task on %s failed", self.name)
            finally:
                self._queue.task_done()


class FrequencyLimitedDispatcher:
    """Runs a target on a dispatcher at most once per interval.

    The first trigger runs the target straight away; triggers arriving
    before the target has run again are coalesced into a single run
    scheduled ``min_interval`` seconds after the previous one.

    Parameters
    ----------
    target : Callable[[], None]
        Work to run.
    min_interval : float
        Minimum seconds between the starts of two runs.
    dispatcher : SerialDispatcher
        Where the target runs.
    clock : Callable[[], float]
        Monotonic time source.
    """

    def __init__(
        self,
        target: Task,
        min_interval: float,
        dispatcher: SerialDispatcher,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._target = target
        self.min_interval = min_interval
        self._dispatcher = dispatcher
        self._clock = clock
        self._lock = threading.Lock()
        self._scheduled = False
        self._last_run: float | None = None
        self._timer: threading.Timer | None = None

    def dispatch(self) -> None:
        """Request a run of the target."""
        with self._lock:
            if self._scheduled:
                return
            self._scheduled = True
            delay = 0.0
            if self._last_run is not None:
                delay = self._last_run + self.min_interval - self._clock()
            if delay <= 0:
                self._dispatcher.dispatch(self._run)
                return
            self._timer = threading.Timer(delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Drop a run that is waiting for its slot."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._scheduled = False

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            if not self._scheduled:
                return
        self._dispatcher.dispatch(self._run)

    def _run(self) -> None:
        with self._lock:
            self._scheduled = False
            self._last_run = self._clock()
        self._target()


class PeriodicTimer:
    """Calls a callback every ``interval`` seconds on a daemon thread.

    Parameters
    ----------
    interval : float
        Seconds between calls.
    callback : Callable[[], None]
        Called on the timer thread; exceptions are logged.
    name : str
        Timer thread name.
    """

    def __init__(
        self, interval: float, callback: Task, name: str = "autotag-timer"
    ) -> None:
        self.interval = interval
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Stop the timer; a call in progress completes."""
        self._stop.set()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Periodic callback failed")
