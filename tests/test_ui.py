"""Tests for the timer card, the entries list and the main window wiring."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest
from PyQt6.QtGui import QCloseEvent
from PyQt6.QtTest import QTest

from focusboard.app import QUIT_PROMPT, FocusBoardApp, make_store
from focusboard.persistence.api import TimeEntryApiClient
from focusboard.persistence.local import LocalTimeEntryStore
from focusboard.persistence.recorder import SessionRecorder
from focusboard.persistence.types import ApiError, TaskSummary, TimeEntry
from focusboard.settings import Settings
from focusboard.timer.models import RunState, SessionPhase, TimerMode
from focusboard.ui.time_entries import MAX_ROWS, TimeEntriesWidget, format_duration
from focusboard.ui.timer_widget import (
    MODE_PROMPT, RESET_PROMPT, TimerWidget, format_seconds,
)

from helpers import TASK_ID, FakeStore, SignalCollector, complete_phase

TASKS = [
    TaskSummary(TASK_ID, "Write report", "Q1"),
    TaskSummary("task-2", "Inbox zero"),
]


class Answers:
    """Scripted confirm hook; records every question asked."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.asked: list[str] = []

    def __call__(self, question: str) -> bool:
        self.asked.append(question)
        return self.answer


# ═══════════════════════════════════════════════════════════════════════
#  FORMATTING
# ═══════════════════════════════════════════════════════════════════════


class TestFormatting:
    @pytest.mark.parametrize("seconds, text", [
        (0, "00:00"), (59, "00:59"), (1500, "25:00"), (3725, "1:02:05"), (-3, "00:00"),
    ])
    def test_format_seconds(self, seconds, text):
        assert format_seconds(seconds) == text

    @pytest.mark.parametrize("seconds, text", [
        (None, "0m"), (45, "45s"), (600, "10m 00s"), (3900, "1h 05m"),
    ])
    def test_format_duration(self, seconds, text):
        assert format_duration(seconds) == text


# ═══════════════════════════════════════════════════════════════════════
#  TIMER WIDGET
# ═══════════════════════════════════════════════════════════════════════


class TestTimerWidget:
    @pytest.fixture
    def answers(self):
        return Answers()

    @pytest.fixture
    def widget(self, engine, answers):
        w = TimerWidget(engine, confirm=answers)
        w.set_tasks(TASKS)
        return w

    def test_start_disabled_without_task(self, widget):
        assert not widget._start_btn.isEnabled()

    def test_selecting_task_updates_engine(self, widget, engine):
        widget.select_task(TASK_ID)
        assert engine.state.selected_task_id == TASK_ID
        assert widget._start_btn.isEnabled()

    def test_task_labels_include_project(self, widget):
        assert widget._task_combo.itemText(0) == "Q1 / Write report"
        assert widget.task_title(TASK_ID) == "Write report"
        assert widget.task_title("missing") is None

    def test_running_work_locks_task_selector(self, widget, engine):
        widget.select_task(TASK_ID)
        widget._start_btn.click()
        assert engine.state.run_state == RunState.RUNNING
        assert not widget._task_combo.isEnabled()
        assert widget._start_btn.isHidden()
        assert not widget._pause_btn.isHidden()

    def test_pause_button_label(self, widget, engine):
        widget.select_task(TASK_ID)
        engine.start()
        widget._pause_btn.click()
        assert widget._pause_btn.text() == "Resume"

    def test_break_hides_task_selector(self, widget, engine, clock):
        widget.select_task(TASK_ID)
        engine.start()
        complete_phase(engine, clock)
        assert widget._task_combo.isHidden()
        assert not widget._break_label.isHidden()
        assert widget._session_label.text() == "Short Break"
        assert widget._time_label.text() == "05:00"

    def test_counter_label(self, widget, engine, clock):
        widget.select_task(TASK_ID)
        engine.start()
        complete_phase(engine, clock)
        assert "Pomodoros this cycle: 1 / 4" in widget._counter_label.text()

    def test_set_tasks_drops_vanished_selection(self, widget, engine):
        widget.select_task("task-2")
        widget.set_tasks(TASKS[:1])
        assert engine.state.selected_task_id is None

    def test_reset_confirmed_saves_first(self, widget, engine, answers, clock):
        store = FakeStore()
        SessionRecorder(store).attach(engine)
        widget.select_task(TASK_ID)
        engine.start()
        clock.advance(40)

        widget._reset_btn.click()

        assert answers.asked == [RESET_PROMPT]
        assert [p.duration_seconds for p in store.saved] == [40]
        assert engine.state.run_state == RunState.IDLE

    def test_reset_declined_discards(self, engine, clock):
        answers = Answers(False)
        widget = TimerWidget(engine, confirm=answers)
        widget.set_tasks(TASKS)
        store = FakeStore()
        SessionRecorder(store).attach(engine)
        widget.select_task(TASK_ID)
        engine.start()
        clock.advance(40)

        widget.request_reset()

        assert answers.asked == [RESET_PROMPT]
        assert store.saved == []
        assert engine.state.run_state == RunState.IDLE

    def test_reset_when_idle_does_not_ask(self, widget, answers):
        widget.request_reset()
        assert answers.asked == []

    def test_mode_switch_idle_does_not_ask(self, widget, engine, answers):
        widget._mode_buttons[TimerMode.STOPWATCH].click()
        assert answers.asked == []
        assert engine.state.mode == TimerMode.STOPWATCH
        assert widget._session_label.text() == "Stopwatch"
        assert widget._progress.isHidden()

    def test_mode_switch_declined_keeps_session(self, engine, clock):
        answers = Answers(False)
        widget = TimerWidget(engine, confirm=answers)
        widget.set_tasks(TASKS)
        widget.select_task(TASK_ID)
        engine.start()

        widget._mode_buttons[TimerMode.STOPWATCH].click()

        assert answers.asked == [MODE_PROMPT]
        assert engine.state.mode == TimerMode.POMODORO
        assert engine.state.run_state == RunState.RUNNING
        assert widget._mode_buttons[TimerMode.POMODORO].isChecked()

    def test_mode_switch_confirmed(self, widget, engine, answers, clock):
        widget.select_task(TASK_ID)
        engine.start()
        clock.advance(5)
        widget._mode_buttons[TimerMode.STOPWATCH].click()
        assert answers.asked == [MODE_PROMPT]
        assert engine.state.mode == TimerMode.STOPWATCH
        assert engine.state.run_state == RunState.IDLE


# ═══════════════════════════════════════════════════════════════════════
#  TIME ENTRIES
# ═══════════════════════════════════════════════════════════════════════


def _entry(i: int, pomodoro: bool = False) -> TimeEntry:
    start = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc) + timedelta(hours=i)
    return TimeEntry(
        id=f"e{i}", task_id=TASK_ID, start_time=start,
        end_time=start + timedelta(minutes=25), duration_seconds=1500,
        is_pomodoro_session=pomodoro,
    )


@pytest.mark.usefixtures("qapp")
class TestTimeEntriesWidget:
    def test_empty(self):
        w = TimeEntriesWidget()
        w.set_entries([])
        assert w.row_count == 0
        assert w._status_label.text() == "No time entries yet."

    def test_caps_rows(self):
        w = TimeEntriesWidget()
        w.set_entries([_entry(i) for i in range(MAX_ROWS + 5)])
        assert w.row_count == MAX_ROWS

    def test_loading_and_error(self):
        w = TimeEntriesWidget()
        w.set_entries([_entry(1)])
        w.set_loading()
        assert w.row_count == 0
        w.set_error("Failed to load time entries")
        assert w._status_label.text() == "Failed to load time entries"

    def test_delete_button_emits_id(self):
        from PyQt6.QtWidgets import QPushButton
        w = TimeEntriesWidget()
        requested = SignalCollector()
        w.delete_requested.connect(requested)
        w.set_entries([_entry(3)])
        w._row_widgets[0].findChild(QPushButton).click()
        assert requested.items == ["e3"]

    def test_pomodoro_rows_marked(self):
        from PyQt6.QtWidgets import QLabel
        w = TimeEntriesWidget()
        w.set_task_lookup({TASK_ID: "Write report"}.get)
        w.set_entries([_entry(1, pomodoro=True)])
        labels = [lbl.text() for lbl in w._row_widgets[0].findChildren(QLabel)]
        assert "🍅 Write report" in labels


# ═══════════════════════════════════════════════════════════════════════
#  MAIN WINDOW
# ═══════════════════════════════════════════════════════════════════════


class TestMakeStore:
    def test_local_by_default(self):
        assert isinstance(make_store(Settings()), LocalTimeEntryStore)

    def test_api_with_user(self):
        s = Settings(storage_backend="api", api_user_id="u-1")
        assert isinstance(make_store(s), TimeEntryApiClient)

    def test_api_without_user_falls_back(self):
        s = Settings(storage_backend="api")
        assert isinstance(make_store(s), LocalTimeEntryStore)


@pytest.mark.usefixtures("qapp")
class TestFocusBoardApp:
    @pytest.fixture
    def store(self):
        return FakeStore(tasks=TASKS)

    @pytest.fixture
    def answers(self):
        return Answers()

    @pytest.fixture
    def app(self, store, clock, answers):
        settings = Settings(sound_enabled=False, save_in_background=False)
        return FocusBoardApp(settings, store=store, clock=clock, confirm=answers)

    def test_tasks_loaded(self, app):
        assert app.timer_widget._task_combo.count() == len(TASKS)

    def test_space_toggles(self, app):
        app.timer_widget.select_task(TASK_ID)
        app._on_space()
        assert app.engine.state.run_state == RunState.RUNNING
        app._on_space()
        assert app.engine.state.run_state == RunState.PAUSED

    def test_space_without_task_does_not_start(self, app):
        app._on_space()
        assert app.engine.state.run_state == RunState.IDLE
        assert "select a task" in app.statusBar().currentMessage()

    def test_escape_resets(self, app, answers):
        app.timer_widget.select_task(TASK_ID)
        app.engine.start()
        app._on_escape()
        assert app.engine.state.run_state == RunState.IDLE
        assert answers.asked == [RESET_PROMPT]

    def test_saved_entry_is_listed(self, app, clock):
        app.timer_widget.select_task(TASK_ID)
        app.engine.start()
        clock.advance(90)
        app.engine.stop()
        assert app.entries_widget.row_count == 1

    def test_delete_refreshes_list(self, app, store, clock):
        app.timer_widget.select_task(TASK_ID)
        app.engine.start()
        clock.advance(90)
        app.engine.stop()

        app.entries_widget.delete_requested.emit("e1")

        assert store.deleted == ["e1"]
        assert app.entries_widget.row_count == 0

    def test_phase_completion_via_scheduler(self, app, clock):
        app.timer_widget.select_task(TASK_ID)
        app.engine.start()
        assert app._scheduler.is_active
        clock.advance(1500)
        app._scheduler._on_timeout()
        assert app.engine.state.phase == SessionPhase.SHORT_BREAK
        assert not app._scheduler.is_active

    def test_quit_idle_does_not_ask(self, app, answers):
        called: list[bool] = []
        app._quit_app = lambda: called.append(True)
        app._quit_with_confirm()
        assert called == [True]
        assert answers.asked == []

    def test_quit_during_work_offers_save(self, app, store, answers, clock):
        called: list[bool] = []
        app._quit_app = lambda: called.append(True)
        app.timer_widget.select_task(TASK_ID)
        app.engine.start()
        clock.advance(60)

        app._quit_with_confirm()

        assert len(answers.asked) == 1
        assert [p.duration_seconds for p in store.saved] == [60]
        assert called == [True]

    def test_task_load_failure_is_reported(self, clock):
        class BrokenStore(FakeStore):
            def list_tasks(self):
                return ApiError(500, "down")

        app = FocusBoardApp(
            Settings(sound_enabled=False, save_in_background=False),
            store=BrokenStore(), clock=clock, confirm=Answers(),
        )
        assert app.timer_widget._task_combo.count() == 0
        assert "Failed to load tasks" in app.statusBar().currentMessage()

    def test_close_with_tray_hides_and_keeps_running(self, app, answers, clock):
        app._tray_icon.isVisible = lambda: True
        quit_calls: list[bool] = []
        app._quit_app = lambda: quit_calls.append(True)
        app.timer_widget.select_task(TASK_ID)
        app.engine.start()
        event = QCloseEvent()

        app.closeEvent(event)

        assert not event.isAccepted()
        assert answers.asked == []
        assert quit_calls == []
        assert app.engine.state.run_state == RunState.RUNNING

    def test_close_without_tray_offers_save_and_quits(self, app, store, answers, clock):
        app._tray_icon.isVisible = lambda: False
        quit_calls: list[bool] = []
        app._quit_app = lambda: quit_calls.append(True)
        app.timer_widget.select_task(TASK_ID)
        app.engine.start()
        clock.advance(30)
        event = QCloseEvent()

        app.closeEvent(event)

        assert event.isAccepted()
        assert answers.asked == [QUIT_PROMPT]
        assert [p.duration_seconds for p in store.saved] == [30]
        assert quit_calls == [True]

    def test_entries_load_off_the_gui_thread(self, clock):
        class ThreadNotingStore(FakeStore):
            def __init__(self):
                super().__init__(tasks=TASKS)
                self.threads: list[threading.Thread] = []

            def list_entries(self, **kwargs):
                self.threads.append(threading.current_thread())
                return super().list_entries(**kwargs)

        store = ThreadNotingStore()
        app = FocusBoardApp(
            Settings(sound_enabled=False, save_in_background=True),
            store=store, clock=clock, confirm=Answers(),
        )
        app.timer_widget.select_task(TASK_ID)
        app.engine.start()
        clock.advance(90)
        app.engine.stop()
        for _ in range(200):
            if app.entries_widget.row_count == 1:
                break
            QTest.qWait(10)

        assert app.entries_widget.row_count == 1
        assert store.threads
        assert threading.main_thread() not in store.threads
