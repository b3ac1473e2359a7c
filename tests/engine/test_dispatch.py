"""Tests for the background dispatchers and timer."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

import pytest

from autotag.engine import FrequencyLimitedDispatcher, PeriodicTimer, SerialDispatcher


@pytest.fixture
def dispatcher() -> Iterator[SerialDispatcher]:
    dispatcher = SerialDispatcher("test-worker")
    yield dispatcher
    dispatcher.shutdown()


class TestSerialDispatcher:
    """Tests for SerialDispatcher."""

    def test_runs_in_order(self, dispatcher: SerialDispatcher) -> None:
        """Test tasks run in submission order."""
        results: list[int] = []
        for i in range(10):
            dispatcher.dispatch(lambda i=i: results.append(i))
        dispatcher.drain()
        assert results == list(range(10))

    def test_drain_waits_for_nested_tasks(self, dispatcher: SerialDispatcher) -> None:
        """Test tasks queued by tasks are drained too."""
        results: list[str] = []

        def outer() -> None:
            results.append("outer")
            dispatcher.dispatch(lambda: results.append("inner"))

        dispatcher.dispatch(outer)
        dispatcher.drain()
        assert results == ["outer", "inner"]

    def test_runs_on_worker_thread(self, dispatcher: SerialDispatcher) -> None:
        """Test tasks run on the named worker."""
        names: list[str] = []
        dispatcher.dispatch(lambda: names.append(threading.current_thread().name))
        dispatcher.drain()
        assert names == ["test-worker"]
        assert not dispatcher.is_worker_thread

    def test_failing_task_is_logged(
        self, dispatcher: SerialDispatcher, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a raising task does not stop the worker."""
        results: list[int] = []

        def fail() -> None:
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="autotag.engine.dispatch"):
            dispatcher.dispatch(fail)
            dispatcher.dispatch(lambda: results.append(1))
            dispatcher.drain()

        assert results == [1]
        assert "Task on test-worker failed" in caplog.text

    def test_drain_from_worker_raises(self, dispatcher: SerialDispatcher) -> None:
        """Test draining from the worker itself is refused."""
        errors: list[Exception] = []

        def task() -> None:
            try:
                dispatcher.drain()
            except RuntimeError as e:
                errors.append(e)

        dispatcher.dispatch(task)
        dispatcher.drain()
        assert len(errors) == 1

    def test_dispatch_after_shutdown_is_dropped(self) -> None:
        """Test nothing runs after shutdown."""
        dispatcher = SerialDispatcher()
        results: list[int] = []
        dispatcher.dispatch(lambda: results.append(1))
        dispatcher.shutdown()

        dispatcher.dispatch(lambda: results.append(2))

        assert results == [1]

    def test_drain_without_tasks(self) -> None:
        """Test draining an unused dispatcher returns at once."""
        dispatcher = SerialDispatcher()
        dispatcher.drain()
        dispatcher.shutdown()


class TestFrequencyLimitedDispatcher:
    """Tests for FrequencyLimitedDispatcher."""

    def test_first_trigger_runs_immediately(
        self, dispatcher: SerialDispatcher, fake_clock
    ) -> None:
        """Test the first trigger is not delayed."""
        runs: list[float] = []
        limited = FrequencyLimitedDispatcher(
            lambda: runs.append(fake_clock()), 5.0, dispatcher, clock=fake_clock
        )

        limited.dispatch()
        dispatcher.drain()

        assert runs == [1000.0]

    def test_burst_is_coalesced(
        self, dispatcher: SerialDispatcher, fake_clock
    ) -> None:
        """Test triggers within the interval collapse into one pending run."""
        runs: list[float] = []
        limited = FrequencyLimitedDispatcher(
            lambda: runs.append(fake_clock()), 3600.0, dispatcher, clock=fake_clock
        )
        limited.dispatch()
        dispatcher.drain()

        for _ in range(5):
            limited.dispatch()
        dispatcher.drain()

        assert runs == [1000.0]
        assert limited._timer is not None

        limited.cancel()
        assert limited._timer is None

    def test_runs_again_after_interval(
        self, dispatcher: SerialDispatcher, fake_clock
    ) -> None:
        """Test a trigger after the interval runs straight away."""
        runs: list[float] = []
        limited = FrequencyLimitedDispatcher(
            lambda: runs.append(fake_clock()), 5.0, dispatcher, clock=fake_clock
        )
        limited.dispatch()
        dispatcher.drain()

        fake_clock.advance(6)
        limited.dispatch()
        dispatcher.drain()

        assert runs == [1000.0, 1006.0]

    def test_delayed_run_happens(self, dispatcher: SerialDispatcher) -> None:
        """Test a coalesced run fires after the interval with a real clock."""
        done = threading.Event()
        count: list[int] = []

        def target() -> None:
            count.append(1)
            if len(count) == 2:
                done.set()

        limited = FrequencyLimitedDispatcher(target, 0.05, dispatcher)
        limited.dispatch()
        dispatcher.drain()
        limited.dispatch()
        limited.dispatch()

        assert done.wait(5.0)
        dispatcher.drain()
        assert len(count) == 2


class TestPeriodicTimer:
    """Tests for PeriodicTimer."""

    def test_fires_repeatedly_until_cancelled(self) -> None:
        """Test the callback is called at the interval."""
        calls: list[int] = []
        fired = threading.Event()

        def callback() -> None:
            calls.append(1)
            if len(calls) >= 3:
                fired.set()

        timer = PeriodicTimer(0.01, callback)
        timer.start()
        try:
            assert fired.wait(5.0)
            assert timer.is_running
        finally:
            timer.cancel()
        assert not timer.is_running

    def test_failing_callback_keeps_running(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a raising callback is logged and the timer continues."""
        calls: list[int] = []
        fired = threading.Event()

        def callback() -> None:
            calls.append(1)
            if len(calls) >= 3:
                fired.set()
            raise ValueError("boom")

        timer = PeriodicTimer(0.01, callback)
        with caplog.at_level(logging.ERROR, logger="autotag.engine.dispatch"):
            timer.start()
            try:
                assert fired.wait(5.0)
            finally:
                timer.cancel()

        assert "Periodic callback failed" in caplog.text
