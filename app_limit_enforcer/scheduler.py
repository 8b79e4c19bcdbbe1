import time
import logging
import threading
from typing import Callable

from .config import SCHEDULER_JOIN_TIMEOUT_SEC


class PeriodicTimer:
    """Runs ``callback`` on a background thread every ``interval_sec`` seconds.

    The first fire happens immediately on start. Fires never overlap: the
    next one is scheduled only after the previous returns, and a thread
    started after stop() waits for a fire still running on the old one.
    Exceptions from the callback are logged and the timer keeps going.
    """

    def __init__(
        self,
        interval_sec: float,
        callback: Callable[[], None],
        logger: logging.Logger,
        name: str = "PeriodicTimer",
    ):
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._interval = float(interval_sec)
        self._callback = callback
        self._logger = logger
        self._name = name
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._run_lock = threading.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                if not self._stop_event.is_set():
                    return
                previous = self._thread
            else:
                previous = None

        if previous is not None and previous is not threading.current_thread():
            previous.join(timeout=SCHEDULER_JOIN_TIMEOUT_SEC)

        with self._lock:
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._run, args=(stop_event,), name=self._name, daemon=True
            )
            self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def close(self) -> None:
        self.stop()
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=SCHEDULER_JOIN_TIMEOUT_SEC)

    def _run(self, stop_event: threading.Event) -> None:
        next_fire = time.monotonic()
        while not stop_event.is_set():
            with self._run_lock:
                # A restarted timer waits here for the previous thread's fire.
                if stop_event.is_set():
                    break
                try:
                    self._callback()
                except Exception:
                    self._logger.exception(f"{self._name} callback failed")

            next_fire += self._interval
            delay = next_fire - time.monotonic()
            if delay < 0:
                # Overran; skip missed fires instead of bursting.
                next_fire = time.monotonic()
                delay = 0
            stop_event.wait(delay)
