import logging
import threading
from typing import Callable

from livequiz.models import now_ms

logger = logging.getLogger(__name__)


class AdvanceTimer:
    """One-shot, cancelable delayed callback.

    The callback receives the timer itself so the owner can tell a live
    timer from one it has already replaced.
    """

    def __init__(self, delay_ms: int, callback: Callable, spawn: Callable):
        self.delay_ms = delay_ms
        self._callback = callback
        self._spawn = spawn
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self) -> 'AdvanceTimer':
        self._spawn(self._run)
        return self

    def cancel(self) -> None:
        self._cancelled.set()

    def _run(self) -> None:
        # wait() returns True as soon as cancel() is called
        if self._cancelled.wait(self.delay_ms / 1000.0):
            return
        try:
            self._callback(self)
        except Exception:
            logger.exception(f"[timer-error] delay={self.delay_ms}ms")


def make_timer_factory(socketio):
    """Timers run as Socket.IO background tasks so they follow the server's async mode."""

    def _factory(delay_ms: int, callback: Callable) -> AdvanceTimer:
        return AdvanceTimer(delay_ms, callback, socketio.start_background_task).start()

    return _factory


def start_idle_sweeper(socketio, registry, max_idle_sec: int, interval_sec: int) -> None:
    """Periodically end and drop sessions with no activity for ``max_idle_sec``."""
    if max_idle_sec <= 0:
        return

    def _worker():
        while True:
            socketio.sleep(max(1, interval_sec))
            reaped = registry.sweep_idle(max_idle_sec * 1000, now_ms())
            if reaped:
                logger.info(f"[sweep] reaped={len(reaped)} codes={','.join(reaped)}")

    socketio.start_background_task(_worker)
