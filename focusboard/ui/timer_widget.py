"""Main timer card.

Layout (top → bottom):
    - Pomodoro / Stopwatch mode toggle
    - Session label + sub message
    - Large mm:ss display and phase progress bar
    - Task selector (replaced by "Taking a break..." during breaks)
    - Start / Pause-Resume / Stop / Reset
    - Pomodoro counters (cycle + total)

The widget only reads ``engine.state`` and dispatches commands.  Any
prompt before throwing away an active session happens here, before the
engine is called.
"""

from __future__ import annotations

from collections.abc import Callable

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QComboBox, QFrame, QProgressBar, QMessageBox, QButtonGroup,
)

from ..persistence.types import TaskSummary
from ..timer.engine import TimerEngine
from ..timer.models import RunState, SessionPhase, TimerMode, TimerState
from .styles import time_color

Confirm = Callable[[str], bool]

SESSION_LABELS: dict[SessionPhase, tuple[str, str]] = {
    SessionPhase.WORK:        ("Work Session", "Time to focus!"),
    SessionPhase.SHORT_BREAK: ("Short Break", "Take a quick breather."),
    SessionPhase.LONG_BREAK:  ("Long Break", "Time for a longer rest."),
}

RESET_PROMPT = "Active work session. Save before resetting?"
MODE_PROMPT = (
    "A timer session is active. Changing mode will stop the current "
    "session. Continue?"
)


def format_seconds(seconds: int) -> str:
    """``mm:ss``, or ``h:mm:ss`` once an hour has passed."""
    hours, rest = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class TimerWidget(QWidget):
    """The timer card: display, task selector and controls."""

    def __init__(
        self,
        engine: TimerEngine,
        parent: QWidget | None = None,
        *,
        confirm: Confirm | None = None,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._confirm: Confirm = confirm or self._ask
        self._tasks: list[TaskSummary] = []
        self._build_ui()
        self._connect_signals()
        self._on_state_changed(engine.state)

    # ── build ─────────────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)

        card = QFrame(self)
        card.setObjectName("card")
        root.addWidget(card)

        layout = QVBoxLayout(card)
        layout.setContentsMargins(24, 20, 24, 20)
        layout.setSpacing(10)

        # ── mode toggle ──────────────────────────────────────────────
        mode_row = QHBoxLayout()
        mode_row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._mode_group = QButtonGroup(self)
        self._mode_group.setExclusive(True)
        self._mode_buttons: dict[TimerMode, QPushButton] = {}
        for mode, text in ((TimerMode.POMODORO, "Pomodoro"), (TimerMode.STOPWATCH, "Stopwatch")):
            btn = QPushButton(text, card)
            btn.setObjectName("modeButton")
            btn.setCheckable(True)
            self._mode_group.addButton(btn)
            self._mode_buttons[mode] = btn
            mode_row.addWidget(btn)
        layout.addLayout(mode_row)

        # ── labels + display ─────────────────────────────────────────
        self._session_label = QLabel(card)
        self._session_label.setObjectName("sessionLabel")
        self._session_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._session_label)

        self._sub_label = QLabel(card)
        self._sub_label.setObjectName("subLabel")
        self._sub_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._sub_label)

        self._time_label = QLabel("25:00", card)
        self._time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._time_label)

        self._progress = QProgressBar(card)
        self._progress.setRange(0, 1000)
        self._progress.setTextVisible(False)
        self._progress.setMaximumHeight(6)
        layout.addWidget(self._progress)

        # ── task selector / break badge ──────────────────────────────
        self._task_combo = QComboBox(card)
        self._task_combo.setPlaceholderText("Select a task...")
        layout.addWidget(self._task_combo)

        self._break_label = QLabel("Taking a break...", card)
        self._break_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._break_label)

        # ── controls ─────────────────────────────────────────────────
        btn_row = QHBoxLayout()
        btn_row.setSpacing(10)
        btn_row.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._start_btn = QPushButton("Start", card)
        self._start_btn.setObjectName("primaryButton")
        self._pause_btn = QPushButton("Pause", card)
        self._stop_btn = QPushButton("Stop", card)
        self._stop_btn.setObjectName("dangerButton")
        self._reset_btn = QPushButton("Reset", card)

        for btn in (self._start_btn, self._pause_btn, self._stop_btn, self._reset_btn):
            btn_row.addWidget(btn)
        layout.addLayout(btn_row)

        # ── pomodoro counters ────────────────────────────────────────
        self._counter_label = QLabel(card)
        self._counter_label.setObjectName("counterLabel")
        self._counter_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._counter_label)

    # ── signals ───────────────────────────────────────────────────────────

    def _connect_signals(self) -> None:
        self._start_btn.clicked.connect(self._engine.start)
        self._pause_btn.clicked.connect(self._engine.pause_toggle)
        self._stop_btn.clicked.connect(self._engine.stop)
        self._reset_btn.clicked.connect(self.request_reset)
        for mode, btn in self._mode_buttons.items():
            btn.clicked.connect(lambda _checked, m=mode: self._on_mode_clicked(m))
        self._task_combo.currentIndexChanged.connect(self._on_task_index_changed)

        self._engine.state_changed.connect(self._on_state_changed)

    # ── tasks ─────────────────────────────────────────────────────────────

    def set_tasks(self, tasks: list[TaskSummary]) -> None:
        """Repopulate the selector, keeping the engine's selection if present."""
        self._tasks = list(tasks)
        selected = self._engine.state.selected_task_id
        self._task_combo.blockSignals(True)
        self._task_combo.clear()
        for task in self._tasks:
            self._task_combo.addItem(task.display_name, task.id)
        index = self._task_combo.findData(selected) if selected else -1
        self._task_combo.setCurrentIndex(index)
        self._task_combo.blockSignals(False)
        if selected and index < 0:
            self._engine.select_task(None)

    def select_task(self, task_id: str | None) -> None:
        index = self._task_combo.findData(task_id) if task_id else -1
        self._task_combo.setCurrentIndex(index)

    def task_title(self, task_id: str) -> str | None:
        for task in self._tasks:
            if task.id == task_id:
                return task.title
        return None

    # ── slots ─────────────────────────────────────────────────────────────

    def _on_task_index_changed(self, index: int) -> None:
        task_id = self._task_combo.itemData(index) if index >= 0 else None
        result = self._engine.select_task(task_id)
        if not result.accepted:
            self.select_task(self._engine.state.selected_task_id)

    def request_reset(self) -> None:
        """Reset, first offering to save an active work session."""
        state = self._engine.state
        if (
            state.is_active
            and state.phase == SessionPhase.WORK
            and state.selected_task_id is not None
            and self._confirm(RESET_PROMPT)
        ):
            self._engine.stop()
        self._engine.reset()

    def _on_mode_clicked(self, mode: TimerMode) -> None:
        state = self._engine.state
        if mode == state.mode:
            return
        if state.is_active and not self._confirm(MODE_PROMPT):
            self._mode_buttons[state.mode].setChecked(True)
            return
        self._engine.change_mode(mode)

    def _ask(self, question: str) -> bool:
        answer = QMessageBox.question(
            self, "FocusBoard", question,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        return answer == QMessageBox.StandardButton.Yes

    def _on_state_changed(self, state: TimerState) -> None:
        idle = state.run_state == RunState.IDLE
        running = state.run_state == RunState.RUNNING
        pomodoro = state.mode == TimerMode.POMODORO
        on_break = state.phase.is_break

        # ── mode toggle ──────────────────────────────────────────────
        self._mode_buttons[state.mode].setChecked(True)

        # ── labels ───────────────────────────────────────────────────
        if pomodoro:
            title, sub = SESSION_LABELS[state.phase]
        else:
            title, sub = "Stopwatch", "Tracking..." if not idle else ""
        self._session_label.setText(title)
        self._sub_label.setText(sub)

        # ── display ──────────────────────────────────────────────────
        self._time_label.setText(format_seconds(state.remaining_or_elapsed_seconds))
        self._time_label.setStyleSheet(
            "font-size: 56px; font-weight: 700; font-family: Menlo, monospace;"
            f" color: {time_color(state.mode, state.phase)};"
        )
        self._progress.setVisible(pomodoro)
        self._progress.setValue(int(self._engine.percent_complete * 1000))

        # ── task selector ────────────────────────────────────────────
        self._task_combo.setVisible(not on_break)
        self._break_label.setVisible(on_break)
        self._task_combo.setEnabled(not (running and not on_break))

        # ── controls ─────────────────────────────────────────────────
        self._start_btn.setVisible(idle)
        self._start_btn.setEnabled(on_break or state.selected_task_id is not None)
        self._pause_btn.setVisible(not idle)
        self._pause_btn.setText("Pause" if running else "Resume")
        self._stop_btn.setVisible(not idle)

        # ── counters ─────────────────────────────────────────────────
        self._counter_label.setVisible(pomodoro)
        self._counter_label.setText(
            f"Pomodoros this cycle: {state.pomodoros_in_cycle} / "
            f"{state.pomodoros_per_long_break}    "
            f"Total completed: {state.completed_pomodoro_count}"
        )
