"""Recent time entries, newest first, each with a delete button."""

from __future__ import annotations

from collections.abc import Callable

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QFrame, QPushButton, QSizePolicy,
)

from ..persistence.types import TimeEntry

MAX_ROWS = 10


def format_duration(seconds: int | None) -> str:
    if not seconds:
        return "0m"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


class TimeEntriesWidget(QWidget):
    """Lists recent entries; asks the owner to delete via ``delete_requested``."""

    delete_requested = pyqtSignal(str)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._task_title: Callable[[str], str | None] = lambda _id: None
        self._row_widgets: list[QWidget] = []
        self._build_ui()

    # ── build ─────────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 8, 0, 0)
        layout.setSpacing(4)

        header = QLabel("Recent Time Entries")
        header.setObjectName("sessionLabel")
        layout.addWidget(header)

        self._rows_container = QVBoxLayout()
        self._rows_container.setSpacing(2)
        layout.addLayout(self._rows_container)

        self._status_label = QLabel("No time entries yet.")
        self._status_label.setObjectName("subLabel")
        self._status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._status_label)
        layout.addStretch(1)

    # ── refresh ───────────────────────────────────────────────────────

    def set_task_lookup(self, lookup: Callable[[str], str | None]) -> None:
        self._task_title = lookup

    def set_loading(self) -> None:
        self._clear_rows()
        self._status_label.setText("Loading...")
        self._status_label.setVisible(True)

    def set_error(self, message: str) -> None:
        self._clear_rows()
        self._status_label.setText(message)
        self._status_label.setVisible(True)

    def set_entries(self, entries: list[TimeEntry]) -> None:
        self._clear_rows()
        recent = sorted(entries, key=lambda e: e.start_time, reverse=True)[:MAX_ROWS]
        if not recent:
            self._status_label.setText("No time entries yet.")
            self._status_label.setVisible(True)
            return

        self._status_label.setVisible(False)
        for entry in recent:
            row = self._make_row(entry)
            self._rows_container.addWidget(row)
            self._row_widgets.append(row)

    @property
    def row_count(self) -> int:
        return len(self._row_widgets)

    def _clear_rows(self) -> None:
        for w in self._row_widgets:
            w.setParent(None)
            w.deleteLater()
        self._row_widgets.clear()

    # ── row builder ───────────────────────────────────────────────────

    def _make_row(self, entry: TimeEntry) -> QWidget:
        frame = QFrame(self)
        row = QHBoxLayout(frame)
        row.setContentsMargins(8, 4, 8, 4)
        row.setSpacing(8)

        title = self._task_title(entry.task_id) or "Unknown task"
        if entry.is_pomodoro_session:
            title = f"🍅 {title}"
        task_lbl = QLabel(title)
        task_lbl.setSizePolicy(
            QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred,
        )

        dur_lbl = QLabel(format_duration(entry.duration_seconds))
        dur_lbl.setAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)

        when = entry.start_time.astimezone().strftime("%b %d, %H:%M")
        when_lbl = QLabel(when)
        when_lbl.setObjectName("subLabel")

        delete_btn = QPushButton("Delete")
        delete_btn.setObjectName("dangerButton")
        delete_btn.clicked.connect(
            lambda _checked=False, eid=entry.id: self.delete_requested.emit(eid)
        )

        row.addWidget(task_lbl)
        row.addWidget(dur_lbl)
        row.addWidget(when_lbl)
        row.addWidget(delete_btn)
        return frame
