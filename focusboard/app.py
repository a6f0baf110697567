"""Main application window for FocusBoard."""

from __future__ import annotations

import logging
from collections.abc import Callable

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QAction, QColor, QIcon, QImage, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import (
    QApplication, QInputDialog, QMainWindow, QMenu, QMessageBox,
    QStatusBar, QSystemTrayIcon, QVBoxLayout, QWidget,
)

from .audio.sounds import SoundManager
from .notifications.notifier import (
    LoggingNotifier, MultiNotifier, NotifyType, SessionNotifier,
    StatusBarNotifier, TrayNotifier,
)
from .persistence.api import TimeEntryApiClient
from .persistence.local import LocalTimeEntryStore
from .persistence.recorder import SessionRecorder
from .persistence.types import ApiError, TimeEntryStore
from .settings import STORAGE_API, Settings, load_settings, save_settings
from .timer.engine import TimerEngine, utc_now
from .timer.models import RunState, SessionPhase, TimerState
from .timer.scheduler import TickScheduler
from .ui.styles import build_stylesheet
from .ui.time_entries import TimeEntriesWidget
from .ui.timer_widget import TimerWidget, format_seconds

logger = logging.getLogger(__name__)

QUIT_PROMPT = "A work session is active. Stop and save it before quitting?"


def make_store(settings: Settings) -> TimeEntryStore:
    """The REST client when configured with a user, else the local database."""
    if settings.storage_backend == STORAGE_API and settings.api_user_id:
        return TimeEntryApiClient(
            settings.api_base_url,
            settings.api_user_id,
            timeout=settings.api_timeout_seconds,
        )
    if settings.storage_backend == STORAGE_API:
        logger.warning("api storage selected but no api_user_id; using local store")
    return LocalTimeEntryStore()


# ── tray‑icon image generation ────────────────────────────────────────────


def _make_tray_icon(state: TimerState) -> QIcon:
    """32×32 template icon: outline when idle, filled while working,
    dotted during breaks, bars when paused."""
    size = 64
    img = QImage(size, size, QImage.Format.Format_ARGB32_Premultiplied)
    img.fill(Qt.GlobalColor.transparent)
    p = QPainter(img)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    colour = QColor(0, 0, 0, 220)
    cx, cy, r = size // 2, size // 2, size // 2 - 4

    if state.run_state == RunState.PAUSED:
        p.setPen(Qt.PenStyle.NoPen)
        p.setBrush(colour)
        p.drawRoundedRect(cx - 14, cy - 14, 8, 28, 3, 3)
        p.drawRoundedRect(cx + 6, cy - 14, 8, 28, 3, 3)
    elif state.run_state == RunState.RUNNING and state.phase == SessionPhase.WORK:
        p.setPen(Qt.PenStyle.NoPen)
        p.setBrush(colour)
        p.drawEllipse(cx - r, cy - r, r * 2, r * 2)
    else:
        p.setPen(QPen(colour, 4))
        p.setBrush(Qt.BrushStyle.NoBrush)
        p.drawEllipse(cx - r, cy - r, r * 2, r * 2)
        if state.phase.is_break:
            p.setPen(Qt.PenStyle.NoPen)
            p.setBrush(colour)
            p.drawEllipse(cx - 6, cy - 6, 12, 12)
    p.end()

    img.setDevicePixelRatio(2.0)
    return QIcon(QPixmap.fromImage(img))


class FocusBoardApp(QMainWindow):
    """Main application window: timer card plus recent entries."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: TimeEntryStore | None = None,
        clock: Callable | None = None,
        confirm: Callable[[str], bool] | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("FocusBoard")
        self.setMinimumSize(480, 640)

        self._settings: Settings = settings or load_settings()
        self._confirm = confirm

        self._geometry_save_timer = QTimer(self)
        self._geometry_save_timer.setSingleShot(True)
        self._geometry_save_timer.setInterval(500)
        self._geometry_save_timer.timeout.connect(self._save_geometry)

        # ── engine + collaborators ────────────────────────────────────
        self._store: TimeEntryStore = store or make_store(self._settings)
        self._engine = TimerEngine(
            self,
            durations=self._settings.durations(),
            mode=self._settings.timer_mode(),
            clock=clock or utc_now,
        )
        self._scheduler = TickScheduler(self._engine, self)
        self._recorder = SessionRecorder(
            self._store, self,
            background=self._settings.save_in_background,
        )
        self._recorder.attach(self._engine)
        self._entries_generation = 0

        self._sounds: SoundManager | None = None
        if self._settings.sound_enabled:
            self._sounds = SoundManager(self)
            self._sounds.set_volume(self._settings.sound_volume)

        # ── widgets ───────────────────────────────────────────────────
        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(20, 16, 20, 12)
        layout.setSpacing(12)

        self._timer_widget = TimerWidget(self._engine, central, confirm=confirm)
        layout.addWidget(self._timer_widget)

        self._entries_widget = TimeEntriesWidget(central)
        self._entries_widget.set_task_lookup(self._timer_widget.task_title)
        self._entries_widget.delete_requested.connect(self._on_delete_requested)
        layout.addWidget(self._entries_widget, 1)

        self.setCentralWidget(central)
        self.setStyleSheet(build_stylesheet())

        self._status_bar = QStatusBar(self)
        self.setStatusBar(self._status_bar)
        self._status_bar.showMessage("Ready to focus!")

        # ── system tray icon ──────────────────────────────────────────
        self._tray_icon = QSystemTrayIcon(self)
        self._tray_icon.setIcon(_make_tray_icon(self._engine.state))
        self._tray_icon.setToolTip("FocusBoard — Ready")
        self._tray_icon.activated.connect(self._on_tray_activated)
        self._build_tray_menu()
        if QSystemTrayIcon.isSystemTrayAvailable():
            self._tray_icon.show()

        # ── notifications ─────────────────────────────────────────────
        self._tray_notifier = TrayNotifier(self._tray_icon)
        self._tray_notifier.enabled = self._settings.notifications_enabled
        self._notifier = MultiNotifier(
            LoggingNotifier(),
            StatusBarNotifier(self._status_bar),
            self._tray_notifier,
        )
        self._session_notifier = SessionNotifier(self._notifier, self, sounds=self._sounds)
        self._session_notifier.attach(self._engine, self._recorder)

        # ── menu bar ──────────────────────────────────────────────────
        self._build_menu_bar()

        # ── wire signals ──────────────────────────────────────────────
        self._engine.state_changed.connect(self._on_state_changed)
        self._recorder.saved.connect(lambda *_: self.refresh_entries())
        self._recorder.deleted.connect(lambda *_: self.refresh_entries())
        self._on_state_changed(self._engine.state)

        self._restore_geometry()
        self.refresh_tasks()
        self.refresh_entries()

    # ══════════════════════════════════════════════════════════════════
    #  ACCESSORS
    # ══════════════════════════════════════════════════════════════════

    @property
    def engine(self) -> TimerEngine:
        return self._engine

    @property
    def recorder(self) -> SessionRecorder:
        return self._recorder

    @property
    def timer_widget(self) -> TimerWidget:
        return self._timer_widget

    @property
    def entries_widget(self) -> TimeEntriesWidget:
        return self._entries_widget

    # ══════════════════════════════════════════════════════════════════
    #  DATA
    # ══════════════════════════════════════════════════════════════════

    def refresh_tasks(self) -> None:
        tasks = self._store.list_tasks()
        if isinstance(tasks, ApiError):
            self._notifier.notify(f"Failed to load tasks: {tasks.message}", type=NotifyType.ERROR)
            return
        self._timer_widget.set_tasks(tasks)

    def refresh_entries(self) -> None:
        """Reload the entries list through the recorder's worker path."""
        self._entries_generation += 1
        generation = self._entries_generation
        self._entries_widget.set_loading()
        self._recorder.submit(
            self._store.list_entries,
            lambda entries: self._on_entries_loaded(entries, generation),
        )

    def _on_entries_loaded(self, entries, generation: int) -> None:
        if generation != self._entries_generation:
            return
        if isinstance(entries, ApiError):
            self._entries_widget.set_error("Failed to load time entries")
            self._notifier.notify("Failed to load time entries", type=NotifyType.ERROR)
            return
        self._entries_widget.set_entries(entries)

    def _on_delete_requested(self, entry_id: str) -> None:
        self._recorder.delete_entry(entry_id)

    def _new_task(self) -> None:
        if not isinstance(self._store, LocalTimeEntryStore):
            return
        title, ok = QInputDialog.getText(self, "New Task", "Task title:")
        if not ok or not title.strip():
            return
        task = self._store.add_task(title)
        self.refresh_tasks()
        self._timer_widget.select_task(task.id)

    # ══════════════════════════════════════════════════════════════════
    #  TRAY
    # ══════════════════════════════════════════════════════════════════

    def _build_tray_menu(self) -> None:
        menu = QMenu(self)

        self._tray_start_action = menu.addAction("Start")
        self._tray_start_action.triggered.connect(self._toggle_start)

        self._tray_stop_action = menu.addAction("Stop")
        self._tray_stop_action.triggered.connect(self._engine.stop)

        menu.addSeparator()
        show_action = menu.addAction("Show FocusBoard")
        show_action.triggered.connect(self._show_window)

        menu.addSeparator()
        quit_action = menu.addAction("Quit")
        quit_action.triggered.connect(self._quit_with_confirm)

        self._tray_icon.setContextMenu(menu)

    def _toggle_start(self) -> None:
        if self._engine.state.run_state == RunState.IDLE:
            self._engine.start()
        else:
            self._engine.pause_toggle()

    def _on_tray_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self._show_window()

    def _show_window(self) -> None:
        self.show()
        self.raise_()
        self.activateWindow()

    def _on_state_changed(self, state: TimerState) -> None:
        self._tray_icon.setIcon(_make_tray_icon(state))
        if state.run_state == RunState.IDLE:
            self._tray_start_action.setText("Start")
            self._tray_icon.setToolTip("FocusBoard — Ready")
        else:
            running = state.run_state == RunState.RUNNING
            self._tray_start_action.setText("Pause" if running else "Resume")
            self._tray_icon.setToolTip(
                f"FocusBoard — {format_seconds(state.remaining_or_elapsed_seconds)}"
            )
        self._tray_stop_action.setEnabled(state.is_active)

    # ══════════════════════════════════════════════════════════════════
    #  MENU BAR
    # ══════════════════════════════════════════════════════════════════

    def _build_menu_bar(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("File")
        new_task = QAction("New Task…", self)
        new_task.setShortcut("Ctrl+N")
        new_task.setEnabled(isinstance(self._store, LocalTimeEntryStore))
        new_task.triggered.connect(self._new_task)
        file_menu.addAction(new_task)

        refresh = QAction("Refresh", self)
        refresh.setShortcut("Ctrl+R")
        refresh.triggered.connect(self.refresh_tasks)
        refresh.triggered.connect(self.refresh_entries)
        file_menu.addAction(refresh)

        file_menu.addSeparator()
        quit_action = QAction("Quit", self)
        quit_action.setMenuRole(QAction.MenuRole.QuitRole)
        quit_action.setShortcut("Ctrl+Q")
        quit_action.triggered.connect(self._quit_with_confirm)
        file_menu.addAction(quit_action)

    # ══════════════════════════════════════════════════════════════════
    #  WINDOW STATE
    # ══════════════════════════════════════════════════════════════════

    def _restore_geometry(self) -> None:
        s = self._settings
        if s.window_x is not None and s.window_y is not None:
            self.move(s.window_x, s.window_y)
        if s.window_width and s.window_height:
            self.resize(s.window_width, s.window_height)

    def _save_geometry(self) -> None:
        if not self.isVisible():
            return
        pos = self.pos()
        size = self.size()
        self._settings.window_x = pos.x()
        self._settings.window_y = pos.y()
        self._settings.window_width = size.width()
        self._settings.window_height = size.height()
        save_settings(self._settings)

    def _ask(self, question: str) -> bool:
        if self._confirm is not None:
            return self._confirm(question)
        reply = QMessageBox.question(
            self, "Quit FocusBoard?", question,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.Yes,
        )
        return reply == QMessageBox.StandardButton.Yes

    def _finish_active_session(self) -> None:
        """Offer to save an active work session before the window goes away."""
        state = self._engine.state
        if state.is_active and state.phase == SessionPhase.WORK and self._ask(QUIT_PROMPT):
            self._engine.stop()

    def _quit_with_confirm(self) -> None:
        self._finish_active_session()
        self._quit_app()

    def _quit_app(self) -> None:
        self._save_geometry()
        self._tray_icon.hide()
        QApplication.instance().quit()

    # ══════════════════════════════════════════════════════════════════
    #  WINDOW EVENTS
    # ══════════════════════════════════════════════════════════════════

    def closeEvent(self, event) -> None:  # type: ignore[override]
        """Minimize to tray, leaving the timer running; without a tray, quit."""
        if self._settings.minimize_to_tray and self._tray_icon.isVisible():
            self._save_geometry()
            event.ignore()
            self.hide()
            return
        self._finish_active_session()
        event.accept()
        self._quit_app()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._geometry_save_timer.start()

    def moveEvent(self, event) -> None:  # type: ignore[override]
        super().moveEvent(event)
        self._geometry_save_timer.start()

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        """Space starts / pauses / resumes, Escape resets."""
        if not event.modifiers():
            if event.key() == Qt.Key.Key_Space:
                self._on_space()
                event.accept()
                return
            if event.key() == Qt.Key.Key_Escape:
                self._on_escape()
                event.accept()
                return
        super().keyPressEvent(event)

    def _on_space(self) -> None:
        self._toggle_start()

    def _on_escape(self) -> None:
        if self._engine.state.is_active:
            self._timer_widget.request_reset()
