"""Tests for debouncing and waiting helpers."""

import time

import pytest
from utils.timing import Debouncer, wait_until_condition


class TestDebouncer:
    """Test call coalescing."""

    def setup_method(self):
        """Set up test fixtures."""
        self.calls = []

    def test_burst_runs_once(self):
        debouncer = Debouncer(lambda: self.calls.append(1), delay=0.05)
        for _ in range(5):
            debouncer.trigger()

        wait_until_condition(lambda: self.calls, timeout=2, interval=0.01)
        time.sleep(0.1)

        assert self.calls == [1]
        assert not debouncer.pending

    def test_flush_runs_immediately(self):
        debouncer = Debouncer(lambda: self.calls.append(1), delay=60)
        debouncer.trigger()

        assert debouncer.pending
        debouncer.flush()

        assert self.calls == [1]
        assert not debouncer.pending

    def test_flush_without_pending_call(self):
        debouncer = Debouncer(lambda: self.calls.append(1), delay=60)
        debouncer.flush()

        assert self.calls == []

    def test_cancel(self):
        debouncer = Debouncer(lambda: self.calls.append(1), delay=60)
        debouncer.trigger()
        debouncer.cancel()
        debouncer.flush()

        assert self.calls == []

    def test_superseded_timer_keeps_new_call_pending(self):
        """Test a late callback from a replaced timer does not drop the newer call."""
        debouncer = Debouncer(lambda: self.calls.append(1), delay=60)
        debouncer.trigger()
        stale_generation = debouncer._generation
        debouncer.trigger()

        debouncer._fire(stale_generation)

        assert self.calls == []
        assert debouncer.pending
        debouncer.flush()
        assert self.calls == [1]

    def test_callback_after_flush_does_not_repeat(self):
        debouncer = Debouncer(lambda: self.calls.append(1), delay=60)
        debouncer.trigger()
        generation = debouncer._generation
        debouncer.flush()

        debouncer._fire(generation)

        assert self.calls == [1]

    def test_errors_are_logged(self, caplog):
        """Test a failing call does not propagate."""
        def fail():
            raise RuntimeError("disk full")

        debouncer = Debouncer(fail, delay=60)
        debouncer.trigger()
        debouncer.flush()

        assert "disk full" in caplog.text


class TestWaitUntilCondition:
    """Test bounded polling."""

    def test_returns_when_true(self):
        wait_until_condition(lambda: True, timeout=0)

    def test_times_out(self):
        with pytest.raises(TimeoutError):
            wait_until_condition(lambda: False, timeout=0.05, interval=0.01)

    def test_waits_for_change(self):
        start = time.monotonic()
        wait_until_condition(lambda: time.monotonic() - start > 0.05, timeout=2, interval=0.01)
