"""Turns finalized Work intervals into saved time entries.

Delivery is at-most-once: the engine has already moved on when
``session_finalized`` fires, and a failed save is reported once and
dropped.  With ``background=True`` the store call runs on the global
``QThreadPool`` and its outcome is delivered back on the GUI thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal

from ..timer.engine import TimerEngine
from ..timer.models import SessionFinalized, SessionPhase
from .types import ApiError, TimeEntryPayload, TimeEntryStore

logger = logging.getLogger(__name__)


def _guarded(call: Callable[[], Any]) -> Any:
    """Run a store call; an exception it raises becomes an ApiError."""
    try:
        return call()
    except Exception as e:
        logger.exception("store call raised")
        return ApiError(500, str(e) or type(e).__name__)


class _JobSignals(QObject):
    done = pyqtSignal(object, object)  # job, result


class _StoreJob(QRunnable):
    """Runs one store call off the GUI thread."""

    def __init__(
        self,
        fn: Callable[[], Any],
        on_done: Callable[[Any], None],
    ) -> None:
        super().__init__()
        self.setAutoDelete(False)
        self.signals = _JobSignals()
        self.on_done = on_done
        self._fn = fn

    def run(self) -> None:
        self.signals.done.emit(self, _guarded(self._fn))


class SessionRecorder(QObject):
    """Saves each ``session_finalized`` event through a :class:`TimeEntryStore`.

    Signals
    -------
    saved(entry: TimeEntry, event: SessionFinalized)
    save_failed(error: ApiError, event: SessionFinalized)
    deleted(entry_id: str)
    delete_failed(error: ApiError, entry_id: str)
    """

    saved = pyqtSignal(object, object)
    save_failed = pyqtSignal(object, object)
    deleted = pyqtSignal(str)
    delete_failed = pyqtSignal(object, str)

    def __init__(
        self,
        store: TimeEntryStore,
        parent: QObject | None = None,
        *,
        background: bool = False,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._background = background
        self._pending: set[_StoreJob] = set()

    @property
    def store(self) -> TimeEntryStore:
        return self._store

    def attach(self, engine: TimerEngine) -> None:
        engine.session_finalized.connect(self.record)

    # ── saving ────────────────────────────────────────────────────────

    def record(self, event: SessionFinalized) -> None:
        if event.phase != SessionPhase.WORK or event.duration_seconds <= 0:
            return
        if event.task_id is None:
            logger.warning("finalized session has no task; not saved")
            self.save_failed.emit(ApiError(400, "No task selected"), event)
            return

        payload = TimeEntryPayload.from_event(event)
        self.submit(
            lambda: self._store.save(payload),
            lambda result: self._on_saved(result, event),
        )

    def _on_saved(self, result: Any, event: SessionFinalized) -> None:
        if isinstance(result, ApiError):
            logger.warning("time entry lost: %s", result)
            self.save_failed.emit(result, event)
        else:
            logger.info("time entry %s saved (%ds)", result.id, event.duration_seconds)
            self.saved.emit(result, event)

    # ── deleting ──────────────────────────────────────────────────────

    def delete_entry(self, entry_id: str) -> None:
        self.submit(
            lambda: self._store.delete(entry_id),
            lambda result: self._on_deleted(result, entry_id),
        )

    def _on_deleted(self, result: Any, entry_id: str) -> None:
        if isinstance(result, ApiError):
            self.delete_failed.emit(result, entry_id)
        else:
            self.deleted.emit(entry_id)

    # ── internal ──────────────────────────────────────────────────────

    def submit(
        self,
        call: Callable[[], Any],
        on_done: Callable[[Any], None],
    ) -> None:
        """Run *call* like a store call and hand its result to *on_done*
        on the GUI thread.  Exceptions arrive as ApiError."""
        if not self._background:
            on_done(_guarded(call))
            return

        job = _StoreJob(call, on_done)
        self._pending.add(job)
        job.signals.done.connect(self._on_job_done)
        QThreadPool.globalInstance().start(job)

    def _on_job_done(self, job: _StoreJob, result: Any) -> None:
        self._pending.discard(job)
        job.on_done(result)
