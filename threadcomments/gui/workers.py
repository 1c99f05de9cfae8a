"""QThread workers for background operations."""

import logging
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from threadcomments.core.exceptions import ThreadCommentsError

logger = logging.getLogger("threadcomments")


class TaskWorker(QThread):
    """Background worker running one blocking call (API request).

    Emits signals to the main thread - completion handlers never run on the
    worker thread.
    """
    result_ready = pyqtSignal(object)
    error_occurred = pyqtSignal(object)   # exception instance

    def __init__(self, parent=None):
        super().__init__(parent)
        self._task: Optional[Callable] = None
        self._stopped = False

    def configure(self, task: Callable):
        """Configure the callable to run, then call start()."""
        self._task = task
        self._stopped = False

    def stop(self):
        """Request the worker to drop its result."""
        self._stopped = True

    def run(self):
        """Execute the configured task."""
        if self._task is None:
            return
        try:
            result = self._task()
            if not self._stopped:
                self.result_ready.emit(result)
        except ThreadCommentsError as e:
            if not self._stopped:
                self.error_occurred.emit(e)
                logger.error(f"Task error: {e}")
        except Exception as e:
            if not self._stopped:
                self.error_occurred.emit(ThreadCommentsError(f"Unexpected error: {e}"))
                logger.exception(f"Unexpected task error: {e}")


class QtTaskRunner(QObject):
    """Task runner for ThreadCommentsHandlers backed by TaskWorker threads.

    Results are delivered in completion order. A task started with a key
    stops the running task with the same key, so its result is discarded.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._workers: set[TaskWorker] = set()      # kept to prevent GC
        self._keyed: dict[str, TaskWorker] = {}

    def __call__(self, task: Callable, on_done: Callable, on_error: Callable,
                 key: Optional[str] = None) -> None:
        if key is not None:
            previous = self._keyed.get(key)
            if previous is not None and previous.isRunning():
                logger.debug(f"Stopping stale task '{key}'")
                previous.stop()

        worker = TaskWorker(self)
        worker.result_ready.connect(on_done)
        worker.error_occurred.connect(on_error)
        worker.finished.connect(lambda w=worker: self._on_finished(w))
        worker.configure(task)
        self._workers.add(worker)
        if key is not None:
            self._keyed[key] = worker
        worker.start()

    def _on_finished(self, worker: TaskWorker):
        self._workers.discard(worker)
        for key, keyed in list(self._keyed.items()):
            if keyed is worker:
                del self._keyed[key]
        worker.deleteLater()

    def stop_all(self, timeout_ms: int = 2000):
        """Stop every running worker and wait for it (used on shutdown)."""
        for worker in list(self._workers):
            if worker.isRunning():
                worker.stop()
                worker.wait(timeout_ms)
