"""Debouncing and bounded waiting helpers."""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Coalesces bursts of calls into one invocation of ``func``.

    Every ``trigger()`` cancels the pending timer and schedules a new one, so
    ``func`` runs once, ``delay`` seconds after the last call of a burst.
    """

    def __init__(self, func: Callable[[], None], delay: float = 1.0):
        self.func = func
        self.delay = delay
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._lock = threading.Lock()

    def trigger(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def flush(self):
        """Run a pending call now instead of waiting for the timer."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            self._call()

    def cancel(self):
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def _fire(self, generation: int):
        with self._lock:
            # Superseded by a later trigger, or already flushed or cancelled
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        self._call()

    def _call(self):
        try:
            self.func()
        except Exception as e:
            logger.error(f"Debounced call failed: {e}")


def wait_until_condition(
    condition: Callable[[], bool],
    timeout: float,
    interval: float = 0.1
):
    """
    Poll ``condition`` until it holds.

    Raises:
        TimeoutError: If the condition is still false after ``timeout`` seconds
    """
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() >= deadline:
            raise TimeoutError(f"Condition not met within {timeout}s")
        time.sleep(interval)
