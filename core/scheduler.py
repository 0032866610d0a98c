"""
Timer scheduling and clock abstractions for background jobs.
The aggregator depends on these interfaces so tests can drive it without real timers.
"""

import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List
import logging

logger = logging.getLogger(__name__)

class Clock:
    """Wall-clock time for expiry math, monotonic time for staleness checks."""

    def now(self) -> datetime:
        return datetime.now()

    def monotonic(self) -> float:
        return time.monotonic()

class Scheduler(ABC):
    """Contract for running callbacks later or periodically."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        """Run callback once after delay seconds, without blocking the caller."""
        pass

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> None:
        """Run callback every interval seconds until shutdown."""
        pass

    @abstractmethod
    def shutdown(self) -> None:
        """Cancel every pending callback."""
        pass

class ThreadScheduler(Scheduler):
    """Scheduler backed by daemon threading.Timer objects."""

    def __init__(self):
        self._timers: List[threading.Timer] = []
        self._lock = threading.Lock()
        self._stopped = False

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        self._start_timer(delay, self._guarded(callback))

    def call_every(self, interval: float, callback: Callable[[], None]) -> None:
        def tick():
            # Reschedule first so a slow callback does not stretch the period
            if not self._stopped:
                self._start_timer(interval, tick)
            self._guarded(callback)()
        self._start_timer(interval, tick)

    def shutdown(self) -> None:
        with self._lock:
            self._stopped = True
            for timer in self._timers:
                timer.cancel()
            self._timers.clear()

    def _start_timer(self, delay: float, func: Callable[[], None]) -> None:
        with self._lock:
            if self._stopped:
                return
            self._timers = [t for t in self._timers if t.is_alive()]
            timer = threading.Timer(delay, func)
            timer.daemon = True
            self._timers.append(timer)
            timer.start()

    @staticmethod
    def _guarded(callback: Callable[[], None]) -> Callable[[], None]:
        def run():
            try:
                callback()
            except Exception as e:
                logger.error(f"Scheduled callback failed: {e}")
        return run
