from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot
from loguru import logger


@dataclass
class _Callbacks:
    on_done: Callable[[Any], None]
    on_progress: Callable[[Any], None] | None
    on_error: Callable[[BaseException], None] | None


class _Task(QRunnable):
    """QRunnable running one submitted callable.

    Results are forwarded by emitting the runner's signals from the worker
    thread; the runner lives on the UI thread, so delivery is queued there.
    """

    def __init__(
        self, *, fn: Callable[[Callable[[Any], None]], Any], token: int, runner: "TaskRunner"
    ) -> None:
        super().__init__()
        self._fn = fn
        self._token = token
        self._runner = runner

    def _report(self, value: Any) -> None:
        self._runner.progressed.emit(self._token, value)

    def run(self) -> None:  # type: ignore[override]
        try:
            result = self._fn(self._report)
        except Exception as ex:  # worker boundary: hand every failure to the UI thread
            logger.error("Background task {} failed: {}", self._token, ex)
            self._runner.failed.emit(self._token, ex)
            return
        self._runner.finished.emit(self._token, result)


class TaskRunner(QObject):
    """Dispatches callables to a thread pool and posts results to the UI thread.

    Each submitted callable receives a `report(value)` function for progress
    updates. `on_done`, `on_progress` and `on_error` run on the thread that
    owns the runner, in the order the worker emitted them.
    """

    finished = Signal(int, object)
    progressed = Signal(int, object)
    failed = Signal(int, object)

    def __init__(self, pool: QThreadPool | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._pool = pool or QThreadPool.globalInstance()
        self._callbacks: dict[int, _Callbacks] = {}
        self._next_token = 0
        self.finished.connect(self._on_finished)
        self.progressed.connect(self._on_progressed)
        self.failed.connect(self._on_failed)

    @property
    def pending(self) -> int:
        """Tasks submitted whose completion has not been delivered yet."""
        return len(self._callbacks)

    def submit(
        self,
        fn: Callable[[Callable[[Any], None]], Any],
        *,
        on_done: Callable[[Any], None],
        on_progress: Callable[[Any], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self._next_token += 1
        token = self._next_token
        self._callbacks[token] = _Callbacks(on_done, on_progress, on_error)
        self._pool.start(_Task(fn=fn, token=token, runner=self))

    def wait_for_done(self, msecs: int = -1) -> bool:
        """Block until the pool is idle; queued deliveries still need the event loop."""
        return self._pool.waitForDone(msecs)

    @Slot(int, object)
    def _on_finished(self, token: int, result: Any) -> None:
        callbacks = self._callbacks.pop(token, None)
        if callbacks is not None:
            callbacks.on_done(result)

    @Slot(int, object)
    def _on_progressed(self, token: int, value: Any) -> None:
        callbacks = self._callbacks.get(token)
        if callbacks is not None and callbacks.on_progress is not None:
            callbacks.on_progress(value)

    @Slot(int, object)
    def _on_failed(self, token: int, error: Any) -> None:
        callbacks = self._callbacks.pop(token, None)
        if callbacks is None:
            return
        if callbacks.on_error is not None:
            callbacks.on_error(error)
        else:
            logger.error("Unhandled background task error: {}", error)
