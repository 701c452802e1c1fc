"""Background thread that drives ``Mouse.update`` at a fixed rate."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .mouse import Mouse

logger = logging.getLogger(__name__)


class PhysicsLoop:
    """Tick a mouse every ``1 / update_rate_hz`` wall seconds.

    Each tick advances ``sim_speed / update_rate_hz`` simulated seconds, so
    ``sim_speed`` > 1 runs faster than real time. While paused no ticks are
    issued. An exception raised by ``update`` ends the loop and is re-raised
    by ``stop``.
    """

    def __init__(self, mouse: Mouse, update_rate_hz: float = 1000.0, sim_speed: float = 1.0) -> None:
        assert update_rate_hz > 0.0, "update_rate_hz must be > 0"
        assert sim_speed > 0.0, "sim_speed must be > 0"
        self.mouse = mouse
        self.update_rate_hz = float(update_rate_hz)
        self._sim_speed = float(sim_speed)
        self._paused = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None
        self.ticks = 0

    @property
    def period(self) -> float:
        return 1.0 / self.update_rate_hz

    @property
    def sim_speed(self) -> float:
        return self._sim_speed

    @sim_speed.setter
    def sim_speed(self, value: float) -> None:
        if not value > 0.0:
            raise ValueError(f"sim_speed must be > 0, got {value!r}")
        self._sim_speed = float(value)

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def pause(self) -> None:
        self._paused.set()

    def resume(self) -> None:
        self._paused.clear()

    def step(self, n: int = 1) -> None:
        """Issue ``n`` ticks synchronously; only allowed while the thread is not running."""
        if self.running:
            raise RuntimeError("step() cannot be used while the loop thread is running")
        for _ in range(int(n)):
            self._tick()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("PhysicsLoop already running")
        self._stop.clear()
        self._error = None
        self._thread = threading.Thread(target=self._run, name="mouse-physics", daemon=True)
        self._thread.start()
        logger.info("Physics loop started at %.1f Hz (sim speed %.2fx)", self.update_rate_hz, self._sim_speed)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                raise TimeoutError("Physics loop did not stop in time")
            self._thread = None
        logger.info("Physics loop stopped after %d ticks", self.ticks)
        if self._error is not None:
            error, self._error = self._error, None
            raise error

    def _tick(self) -> None:
        self.mouse.update(self._sim_speed * self.period)
        self.ticks += 1

    def _run(self) -> None:
        next_t = time.perf_counter()
        try:
            while not self._stop.is_set():
                if not self._paused.is_set():
                    self._tick()
                next_t += self.period
                delay = next_t - time.perf_counter()
                if delay > 0.0:
                    self._stop.wait(delay)
                else:
                    # Fell behind; do not try to catch up with a burst of ticks
                    next_t = time.perf_counter()
        except Exception as exc:
            logger.exception("Physics loop aborted")
            self._error = exc
