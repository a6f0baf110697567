"""One-second tick source for :class:`TimerEngine`.

The scheduler follows the engine's run state: it arms its ``QTimer`` when
the engine enters RUNNING and disarms it on any other state, so no tick
can arrive after ``stop()``, ``reset()`` or ``change_mode()``.  Ticks are
delivered on the Qt event loop, the same thread that dispatches commands.
"""

from __future__ import annotations

from PyQt6.QtCore import QObject, QTimer

from .engine import TimerEngine
from .models import RunState, TimerState

TICK_INTERVAL_MS = 1000


class TickScheduler(QObject):
    """Drives ``engine.tick()`` at 1 Hz while the engine is running."""

    def __init__(
        self,
        engine: TimerEngine,
        parent: QObject | None = None,
        *,
        interval_ms: int = TICK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(interval_ms)
        self._qt_timer.timeout.connect(self._on_timeout)
        engine.state_changed.connect(self._on_state_changed)
        self._on_state_changed(engine.state)

    @property
    def is_active(self) -> bool:
        return self._qt_timer.isActive()

    def _on_state_changed(self, state: TimerState) -> None:
        if state.run_state == RunState.RUNNING:
            if not self._qt_timer.isActive():
                self._qt_timer.start()
        else:
            self._qt_timer.stop()

    def _on_timeout(self) -> None:
        self._engine.tick()
