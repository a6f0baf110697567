"""User-visible messages for timer and persistence events.

A *notifier* is anything with ``notify(message, *, type, duration_ms)``.
:class:`SessionNotifier` subscribes to the engine and the recorder and
turns their signals into messages (and sounds); the sinks decide where
the message ends up.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from PyQt6.QtCore import QObject
from PyQt6.QtWidgets import QStatusBar, QSystemTrayIcon

from ..persistence.recorder import SessionRecorder
from ..persistence.types import ApiError, TimeEntry
from ..timer.engine import TimerEngine
from ..timer.models import (
    CommandResult,
    ErrorKind,
    PhaseTransition,
    RunState,
    SessionFinalized,
    SessionPhase,
    TimerMode,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 3000
BREAK_NOTICE_MS = 5000


class NotifyType(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


class Notifier(Protocol):
    def notify(
        self,
        message: str,
        *,
        type: NotifyType = NotifyType.INFO,
        duration_ms: int | None = None,
    ) -> None: ...


class SoundPlayer(Protocol):
    def play(self, name: str) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════
#  SINKS
# ═══════════════════════════════════════════════════════════════════════════


_LOG_LEVELS = {
    NotifyType.SUCCESS: logging.INFO,
    NotifyType.INFO: logging.INFO,
    NotifyType.WARNING: logging.WARNING,
    NotifyType.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Writes every message to this module's logger."""

    def notify(self, message, *, type=NotifyType.INFO, duration_ms=None):
        logger.log(_LOG_LEVELS[type], "[%s] %s", type.value, message)


class StatusBarNotifier:
    """Shows messages in a window's status bar."""

    def __init__(self, status_bar: QStatusBar) -> None:
        self._bar = status_bar

    def notify(self, message, *, type=NotifyType.INFO, duration_ms=None):
        self._bar.showMessage(message, duration_ms or DEFAULT_DURATION_MS)


_TRAY_ICONS = {
    NotifyType.SUCCESS: QSystemTrayIcon.MessageIcon.Information,
    NotifyType.INFO: QSystemTrayIcon.MessageIcon.Information,
    NotifyType.WARNING: QSystemTrayIcon.MessageIcon.Warning,
    NotifyType.ERROR: QSystemTrayIcon.MessageIcon.Critical,
}


class TrayNotifier:
    """Native desktop notifications through the system tray icon."""

    def __init__(self, tray: QSystemTrayIcon, title: str = "FocusBoard") -> None:
        self._tray = tray
        self._title = title
        self.enabled = True

    def notify(self, message, *, type=NotifyType.INFO, duration_ms=None):
        if not self.enabled or not self._tray.isVisible():
            return
        self._tray.showMessage(
            self._title, message, _TRAY_ICONS[type],
            duration_ms or DEFAULT_DURATION_MS,
        )


class MultiNotifier:
    """Fans one message out to several sinks."""

    def __init__(self, *sinks: Notifier) -> None:
        self._sinks = list(sinks)

    def add(self, sink: Notifier) -> None:
        self._sinks.append(sink)

    def notify(self, message, *, type=NotifyType.INFO, duration_ms=None):
        for sink in self._sinks:
            sink.notify(message, type=type, duration_ms=duration_ms)


# ═══════════════════════════════════════════════════════════════════════════
#  EVENT → MESSAGE GLUE
# ═══════════════════════════════════════════════════════════════════════════


def start_message(mode: TimerMode, phase: SessionPhase) -> str:
    if mode == TimerMode.STOPWATCH:
        return "Stopwatch started!"
    return {
        SessionPhase.WORK: "Pomodoro work session started!",
        SessionPhase.SHORT_BREAK: "Short break started.",
        SessionPhase.LONG_BREAK: "Long break started.",
    }[phase]


def _mode_label(mode: TimerMode) -> str:
    return "Pomodoro" if mode == TimerMode.POMODORO else "Stopwatch"


class SessionNotifier(QObject):
    """Connects engine and recorder signals to a :class:`Notifier`."""

    def __init__(
        self,
        notifier: Notifier,
        parent: QObject | None = None,
        *,
        sounds: SoundPlayer | None = None,
    ) -> None:
        super().__init__(parent)
        self._notifier = notifier
        self._sounds = sounds

    def attach(self, engine: TimerEngine, recorder: SessionRecorder | None = None) -> None:
        engine.command_accepted.connect(self._on_command_accepted)
        engine.command_rejected.connect(self._on_command_rejected)
        engine.phase_changed.connect(self._on_phase_changed)
        engine.session_discarded.connect(self._on_session_discarded)
        if recorder is not None:
            recorder.saved.connect(self._on_saved)
            recorder.save_failed.connect(self._on_save_failed)
            recorder.deleted.connect(self._on_deleted)
            recorder.delete_failed.connect(self._on_delete_failed)

    # ── engine ────────────────────────────────────────────────────────

    def _on_command_accepted(self, result: CommandResult) -> None:
        state = result.state
        if result.command == "start":
            self._notify(start_message(state.mode, state.phase), NotifyType.SUCCESS)
            self._play("session_start")
        elif result.command == "pause_toggle":
            paused = state.run_state == RunState.PAUSED
            self._notify("Timer paused" if paused else "Timer resumed")
        elif result.command == "reset":
            self._notify("Timer reset")
        elif result.command == "change_mode":
            self._notify(f"Switched to {_mode_label(state.mode)} mode")

    def _on_command_rejected(self, result: CommandResult) -> None:
        if result.error == ErrorKind.NO_TASK_SELECTED:
            label = _mode_label(result.state.mode)
            self._notify(
                f"Please select a task to start a {label} work session.",
                NotifyType.WARNING,
            )
            self._play("alert")
        elif result.command == "start" and result.state.run_state == RunState.RUNNING:
            self._notify("Timer is already running.")
        else:
            logger.debug("unannounced rejection: %s (%s)", result.command, result.reason)

    def _on_phase_changed(self, transition: PhaseTransition) -> None:
        if transition.previous == SessionPhase.WORK:
            self._play("session_complete")
            if transition.current == SessionPhase.LONG_BREAK:
                self._notify("Time for a long break! 🎉", duration_ms=BREAK_NOTICE_MS)
            else:
                self._notify("Time for a short break! 👍", duration_ms=BREAK_NOTICE_MS)
        else:
            which = "Short" if transition.previous == SessionPhase.SHORT_BREAK else "Long"
            self._play("break_finished")
            self._notify(f"{which} break finished! Time for work.")

    def _on_session_discarded(self, _phase: SessionPhase) -> None:
        self._notify("Session too short, not recorded.")

    # ── recorder ──────────────────────────────────────────────────────

    def _on_saved(self, _entry: TimeEntry, event: SessionFinalized) -> None:
        if event.is_pomodoro_session and event.naturally_completed:
            self._notify("Pomodoro work session completed & saved!", NotifyType.SUCCESS)
        else:
            self._notify("Time entry saved!", NotifyType.SUCCESS)

    def _on_save_failed(self, error: ApiError, _event: SessionFinalized) -> None:
        self._notify(f"Failed to save time entry: {error.message}", NotifyType.ERROR)
        self._play("alert")

    def _on_deleted(self, _entry_id: str) -> None:
        self._notify("Entry deleted", NotifyType.SUCCESS)

    def _on_delete_failed(self, error: ApiError, _entry_id: str) -> None:
        self._notify(f"Failed to delete entry: {error.message}", NotifyType.ERROR)

    # ── helpers ───────────────────────────────────────────────────────

    def _notify(
        self,
        message: str,
        type: NotifyType = NotifyType.INFO,
        duration_ms: int | None = None,
    ) -> None:
        self._notifier.notify(message, type=type, duration_ms=duration_ms)

    def _play(self, name: str) -> None:
        if self._sounds is not None:
            self._sounds.play(name)
