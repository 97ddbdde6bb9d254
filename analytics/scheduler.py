"""
Periodic tick sources: the detection tick and the session clock.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SessionClock:
    """Whole seconds since session start. Only ever increases."""
    def __init__(self):
        self._seconds = 0
        self._lock = threading.Lock()

    def tick(self) -> int:
        with self._lock:
            self._seconds += 1
            return self._seconds

    @property
    def seconds(self) -> int:
        return self._seconds


class PeriodicTask:
    """
    Call `fn` every `interval` seconds on a daemon thread until stopped.

    The first call happens one interval after start. Exceptions from `fn` are
    logged and do not stop the task.
    """
    def __init__(self, interval: float, fn: Callable[[], object], name: str = "periodic"):
        self.interval = float(interval)
        self.fn = fn
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout)
        self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.fn()
            except Exception:
                logger.exception(f"[scheduler] {self.name} tick failed")


class Scheduler:
    """Drives the detection tick and the clock tick independently."""
    def __init__(self, on_detect: Callable[[], object], clock: SessionClock,
                 detect_interval: float = 1.0, clock_interval: float = 1.0):
        self.clock = clock
        self._detect = PeriodicTask(detect_interval, on_detect, name="detect-tick")
        self._clock = PeriodicTask(clock_interval, clock.tick, name="clock-tick")

    @property
    def running(self) -> bool:
        return self._detect.running or self._clock.running

    def start(self) -> None:
        self._clock.start()
        self._detect.start()
        logger.debug("[scheduler] started")

    def stop(self) -> None:
        self._detect.stop()
        self._clock.stop()
        logger.debug("[scheduler] stopped")
