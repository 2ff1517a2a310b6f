from typing import Callable, Hashable, Protocol

from PySide6.QtCore import QObject, QTimer

from airdraw.core.logger import get_logger

logger = get_logger("Scheduler")


class Scheduler(Protocol):
    def schedule(self, callback: Callable[[], None]) -> Hashable:
        """Run `callback` once at the next refresh. Returns a cancel token."""
        ...

    def cancel(self, token: Hashable) -> None:
        ...


class QtScheduler:
    """Single-shot QTimer per iteration, approximates the display refresh."""

    def __init__(self, interval_ms: int = 16, parent: QObject = None):
        self.interval_ms = interval_ms
        self._parent = parent
        self._timers = {}
        self._next_token = 0

    def schedule(self, callback: Callable[[], None]) -> int:
        self._next_token += 1
        token = self._next_token

        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(self.interval_ms)

        def fire(token=token):
            done = self._timers.pop(token, None)
            if done is not None:
                done.deleteLater()
            callback()

        timer.timeout.connect(fire)
        self._timers[token] = timer
        timer.start()
        return token

    def cancel(self, token: int) -> None:
        timer = self._timers.pop(token, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()


class LoopHandle:
    """
    Self-rescheduling periodic task.

    `stop()` cancels the pending continuation and takes effect exactly once;
    an iteration that is running when it is called does not reschedule.
    """

    def __init__(self, scheduler: Scheduler, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._callback = callback
        self._token = None
        self.started = False
        self.stopped = False

    @property
    def running(self) -> bool:
        return self.started and not self.stopped

    def start(self):
        if self.started:
            raise RuntimeError("loop already started")
        self.started = True
        self._token = self._scheduler.schedule(self._run)

    def _run(self):
        self._token = None
        if self.stopped:
            return
        try:
            self._callback()
        finally:
            if not self.stopped:
                self._token = self._scheduler.schedule(self._run)

    def stop(self) -> bool:
        """Returns False when the loop was already stopped."""
        if self.stopped:
            return False
        self.stopped = True
        if self._token is not None:
            self._scheduler.cancel(self._token)
            self._token = None
        logger.debug("Loop stopped")
        return True
