from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from PySide6.QtCore import QObject, QRunnable, Qt, QThreadPool, Signal

from airdraw.core.logger import get_logger

logger = get_logger("Tasks")


@dataclass(frozen=True)
class TaskOutcome:
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TaskRunner(Protocol):
    def __call__(self, job: Callable[[], Any], done: Callable[[TaskOutcome], None]) -> None:
        """Run `job` off the GUI thread, then call `done` on the GUI thread."""
        ...


def run_job(job: Callable[[], Any]) -> TaskOutcome:
    try:
        return TaskOutcome(value=job())
    except Exception as e:
        logger.debug("Background job failed: %s", e)
        return TaskOutcome(error=e)


class _TaskSignals(QObject):
    finished = Signal(object)


class _Task(QRunnable):
    def __init__(self, job: Callable[[], Any]):
        super().__init__()
        self.job = job
        # Created on the GUI thread, so queued emissions land there
        self.signals = _TaskSignals()
        self.setAutoDelete(False)

    def run(self):
        self.signals.finished.emit(run_job(self.job))


class QtTaskRunner:
    def __init__(self, pool: QThreadPool = None):
        self._pool = pool or QThreadPool.globalInstance()
        self._pending = set()

    def __call__(self, job: Callable[[], Any], done: Callable[[TaskOutcome], None]) -> None:
        task = _Task(job)
        self._pending.add(task)

        def finish(outcome, task=task):
            self._pending.discard(task)
            done(outcome)

        task.signals.finished.connect(finish, Qt.QueuedConnection)
        self._pool.start(task)

    def wait(self, timeout_ms: int = 3000) -> bool:
        return self._pool.waitForDone(timeout_ms)
