from __future__ import annotations

import threading
from typing import Callable

import structlog

from scopehealth.core.contract import (
    DEFAULT_UPDATE_INTERVAL,
    MAX_UPDATE_INTERVAL,
    MIN_UPDATE_INTERVAL,
)
from scopehealth.core.engine import HealthEngine, SweepResult

logger = structlog.get_logger(__name__)


def clamp_interval(seconds: float) -> float:
    return float(max(MIN_UPDATE_INTERVAL, min(MAX_UPDATE_INTERVAL, seconds)))


class HealthMonitor:
    """
    Periodic driver for `HealthEngine.update_all`.

    `start` runs one sweep immediately, then one per interval on a daemon
    thread. `stop` prevents further sweeps; a sweep already running finishes.
    """

    def __init__(self, engine: HealthEngine, interval: float = DEFAULT_UPDATE_INTERVAL) -> None:
        self.engine = engine
        self._interval = clamp_interval(interval)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self.sweeps = 0
        self.last_result: SweepResult | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> SweepResult | None:
        """One sweep. Errors escaping the engine are logged, never raised."""
        try:
            result = self.engine.update_all()
        except Exception:
            logger.exception("monitor_tick_failed")
            return None
        self.sweeps += 1
        self.last_result = result
        return result

    def _run(
        self,
        stop: threading.Event,
        max_sweeps: int | None = None,
        on_sweep: Callable[[SweepResult], None] | None = None,
    ) -> int:
        done = 0
        while not stop.is_set():
            result = self.tick()
            done += 1
            if result is not None and on_sweep is not None:
                on_sweep(result)
            if max_sweeps is not None and done >= max_sweeps:
                break
            if stop.wait(self._interval):
                break
        return done

    def run(
        self,
        max_sweeps: int | None = None,
        on_sweep: Callable[[SweepResult], None] | None = None,
    ) -> int:
        """
        Sweep in the calling thread, one per interval, until `stop` is called
        or `max_sweeps` have run. No wait follows the last sweep.

        Returns the number of sweeps attempted.
        """
        with self._lock:
            if self.running:
                raise RuntimeError("monitor already running in the background")
            self._stop = threading.Event()
            stop = self._stop
        logger.info("monitor_running", interval=self._interval, max_sweeps=max_sweeps)
        return self._run(stop, max_sweeps, on_sweep)

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._stop = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop,),
                name="scopehealth-monitor",
                daemon=True,
            )
            self._thread.start()
        logger.info("monitor_started", interval=self._interval)

    def stop(self, timeout: float | None = None) -> None:
        with self._lock:
            thread = self._thread
            self._stop.set()
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("monitor_stopped", sweeps=self.sweeps)

    def set_interval(self, seconds: float) -> float:
        """Clamp and apply a new interval, restarting the timer if it is running."""
        self._interval = clamp_interval(seconds)
        if self.running:
            self.stop()
            self.start()
        return self._interval
