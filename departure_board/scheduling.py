"""Background refresh loop and debounced calls."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)


class RefreshLoop:
    """Background thread that calls a function on a fixed interval."""

    def __init__(self, callback: Callable[[], Any], interval_seconds: float) -> None:
        self._callback = callback
        self._interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread; the first call happens immediately."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the thread to stop after the current call."""
        self._stop_event.set()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self._callback()
            except Exception:
                logger.exception("Refresh callback failed")
            self._stop_event.wait(timeout=self._interval_seconds)


class Debouncer:
    """Delay a call until no new call arrived for `delay_seconds`.

    Every call() cancels the previously scheduled one, so only the last call
    in a burst runs.
    """

    def __init__(self, func: Callable[..., Any], delay_seconds: float) -> None:
        self._func = func
        self._delay_seconds = delay_seconds
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def call(self, *args: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay_seconds, self._func, args=args)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


__all__ = ["Debouncer", "RefreshLoop"]
