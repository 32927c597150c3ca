from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

log = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule(self, period_ms: int, callback: Callable[[], None]) -> Cancellable: ...


class _ThreadTimer:
    def __init__(self, period_s: float, callback: Callable[[], None]) -> None:
        self._period_s = period_s
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name="ClipKeepTimer", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)

    def _run(self) -> None:
        while not self._stop_event.wait(self._period_s):
            try:
                self._callback()
            except Exception:
                log.debug("scheduled callback failed", exc_info=True)


class ThreadScheduler:
    """Runs each schedule on its own daemon thread.

    Firings of one schedule never overlap: the next wait starts only after the
    callback returns.
    """

    def schedule(self, period_ms: int, callback: Callable[[], None]) -> Cancellable:
        if period_ms <= 0:
            raise ValueError("period_ms must be > 0")
        timer = _ThreadTimer(period_ms / 1000.0, callback)
        timer.start()
        return timer
