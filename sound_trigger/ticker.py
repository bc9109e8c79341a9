"""Periodic tick sources that drive frame processing."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

log = logging.getLogger(__name__)


class IntervalTicker:
    """Call a function ``rate_hz`` times per second on a worker thread.

    Calls never overlap. Once :meth:`stop` returns no further call starts,
    and ``stop`` may be invoked from inside the callback itself.
    """

    def __init__(self, rate_hz: float = 60.0) -> None:
        if rate_hz <= 0:
            raise ValueError("rate_hz must be > 0")
        self.interval = 1.0 / rate_hz
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop.is_set()

    def start(self, callback: Callable[[], None]) -> None:
        if self.running:
            return
        self._stop = threading.Event()
        stop = self._stop

        def _run() -> None:
            while not stop.wait(self.interval):
                with self._lock:
                    if stop.is_set():
                        break
                    callback()

        self._thread = threading.Thread(target=_run, name="sound-trigger-tick", daemon=True)
        self._thread.start()
        log.debug("Ticker started at %.1f Hz", 1.0 / self.interval)

    def stop(self) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        # wait out a callback in flight
        with self._lock:
            self._thread = None
        if thread is not threading.current_thread():
            thread.join()
        log.debug("Ticker stopped")


class ManualTicker:
    """Tick source that only fires when :meth:`tick` is called."""

    def __init__(self) -> None:
        self._callback: Optional[Callable[[], None]] = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        if self._callback is None:
            self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def tick(self, count: int = 1) -> None:
        for _ in range(count):
            if self._callback is None:
                return
            self._callback()
