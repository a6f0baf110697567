"""Tests for SessionRecorder: finalized work sessions to saved time entries."""

from datetime import datetime, timedelta, timezone

import pytest
from PyQt6.QtTest import QTest

from focusboard.persistence.recorder import SessionRecorder
from focusboard.persistence.types import ApiError
from focusboard.timer.models import (
    ErrorKind, RunState, SessionFinalized, SessionPhase, TimerMode,
)

from helpers import TASK_ID, FakeStore, SignalCollector, complete_phase


class RaisingStore(FakeStore):
    """A store whose save blows up instead of returning an ApiError."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    def save(self, entry):
        self.calls += 1
        raise RuntimeError("disk on fire")


def _event(**overrides) -> SessionFinalized:
    start = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)
    fields = dict(
        phase=SessionPhase.WORK,
        mode=TimerMode.POMODORO,
        task_id=TASK_ID,
        started_at=start,
        ended_at=start + timedelta(seconds=10),
        duration_seconds=10,
        naturally_completed=False,
    )
    fields.update(overrides)
    return SessionFinalized(**fields)


# ═══════════════════════════════════════════════════════════════════════════
#  ENGINE → STORE
# ═══════════════════════════════════════════════════════════════════════════


class TestRecordFromEngine:

    @pytest.fixture
    def store(self):
        return FakeStore()

    @pytest.fixture
    def recorder(self, qapp, store, engine_with_task):
        rec = SessionRecorder(store)
        rec.attach(engine_with_task)
        return rec

    def test_stop_after_ten_seconds_saves_once(self, recorder, store, engine_with_task, clock):
        engine_with_task.start()
        started = clock.now
        clock.advance(10)
        engine_with_task.stop()

        assert len(store.saved) == 1
        payload = store.saved[0]
        assert payload.task_id == TASK_ID
        assert payload.duration_seconds == 10
        assert payload.is_pomodoro_session is True
        assert payload.start_time == started.isoformat()
        assert payload.end_time == (started + timedelta(seconds=10)).isoformat()

    def test_stop_at_zero_seconds_never_saves(self, recorder, store, engine_with_task):
        engine_with_task.start()
        engine_with_task.stop()
        assert store.saved == []

    def test_scenario_stop_at_five_seconds(self, recorder, store, engine_with_task, clock):
        finalized = SignalCollector()
        engine_with_task.session_finalized.connect(finalized)
        engine_with_task.start()
        clock.advance(5)
        engine_with_task.stop()

        assert len(finalized) == 1
        assert finalized.last.duration_seconds == 5
        assert finalized.last.naturally_completed is False
        assert len(store.saved) == 1
        assert engine_with_task.state.run_state == RunState.IDLE
        assert engine_with_task.state.completed_pomodoro_count == 0

    def test_breaks_are_never_saved(self, recorder, store, engine_with_task, clock):
        engine_with_task.start()
        complete_phase(engine_with_task, clock)
        assert len(store.saved) == 1

        engine_with_task.start()
        clock.advance(60)
        engine_with_task.stop()
        assert engine_with_task.state.phase == SessionPhase.WORK
        assert len(store.saved) == 1

    def test_completed_break_is_not_saved(self, qapp, store, short_engine, clock):
        SessionRecorder(store).attach(short_engine)
        short_engine.start()
        complete_phase(short_engine, clock)
        short_engine.start()
        complete_phase(short_engine, clock)
        assert short_engine.state.phase == SessionPhase.WORK
        assert len(store.saved) == 1

    def test_stopwatch_entries_are_not_pomodoro(self, qapp, store, stopwatch, clock):
        SessionRecorder(store).attach(stopwatch)
        stopwatch.start()
        clock.advance(90)
        stopwatch.stop()
        assert store.saved[0].is_pomodoro_session is False
        assert store.saved[0].duration_seconds == 90

    def test_saved_signal_carries_entry_and_event(self, recorder, engine_with_task, clock):
        saved = SignalCollector()
        recorder.saved.connect(saved)
        engine_with_task.start()
        clock.advance(10)
        engine_with_task.stop()

        entry, event = saved.last
        assert entry.id == "e1"
        assert event.duration_seconds == 10


# ═══════════════════════════════════════════════════════════════════════════
#  FAILURES
# ═══════════════════════════════════════════════════════════════════════════


class TestRecordFailures:

    def test_failed_save_is_reported_once(self, qapp, engine_with_task, clock):
        store = FakeStore(fail_with=ApiError(503, "Service unavailable"))
        rec = SessionRecorder(store)
        rec.attach(engine_with_task)
        failed = SignalCollector()
        rec.save_failed.connect(failed)

        engine_with_task.start()
        clock.advance(10)
        engine_with_task.stop()

        assert len(failed) == 1
        error, event = failed.last
        assert error.status_code == 503
        assert error.kind == ErrorKind.PERSISTENCE_FAILURE
        assert event.duration_seconds == 10
        assert len(store.saved) == 1

    def test_engine_state_unaffected_by_failure(self, qapp, engine_with_task, clock):
        store = FakeStore(fail_with=ApiError(500, "boom"))
        SessionRecorder(store).attach(engine_with_task)
        engine_with_task.start()
        complete_phase(engine_with_task, clock)

        s = engine_with_task.state
        assert s.phase == SessionPhase.SHORT_BREAK
        assert s.completed_pomodoro_count == 1

    def test_event_without_task_is_not_sent(self, qapp):
        store = FakeStore()
        rec = SessionRecorder(store)
        failed = SignalCollector()
        rec.save_failed.connect(failed)

        rec.record(_event(task_id=None))

        assert store.saved == []
        assert failed.last[0].status_code == 400

    @pytest.mark.parametrize("background", [False, True])
    def test_raising_store_is_reported_once(self, qapp, engine_with_task, clock, background):
        store = RaisingStore()
        rec = SessionRecorder(store, background=background)
        rec.attach(engine_with_task)
        failed = SignalCollector()
        rec.save_failed.connect(failed)

        engine_with_task.start()
        clock.advance(10)
        result = engine_with_task.stop()
        for _ in range(100):
            if len(failed):
                break
            QTest.qWait(10)

        assert result.accepted
        assert engine_with_task.state.run_state == RunState.IDLE
        assert len(failed) == 1
        error, event = failed.last
        assert error.status_code == 500
        assert "disk on fire" in error.message
        assert event.duration_seconds == 10
        assert store.calls == 1
        assert rec._pending == set()

    @pytest.mark.parametrize("overrides", [
        {"duration_seconds": 0},
        {"phase": SessionPhase.SHORT_BREAK},
    ])
    def test_ineligible_events_are_ignored(self, qapp, overrides):
        store = FakeStore()
        SessionRecorder(store).record(_event(**overrides))
        assert store.saved == []


# ═══════════════════════════════════════════════════════════════════════════
#  DELETE
# ═══════════════════════════════════════════════════════════════════════════


class TestDeleteEntry:

    def test_delete_success(self, qapp):
        store = FakeStore()
        rec = SessionRecorder(store)
        deleted = SignalCollector()
        rec.deleted.connect(deleted)
        rec.delete_entry("e7")
        assert store.deleted == ["e7"]
        assert deleted.items == ["e7"]

    def test_delete_failure(self, qapp):
        rec = SessionRecorder(FakeStore(fail_with=ApiError(404, "Time entry not found")))
        failed = SignalCollector()
        rec.delete_failed.connect(failed)
        rec.delete_entry("missing")
        error, entry_id = failed.last
        assert error.status_code == 404
        assert entry_id == "missing"


# ═══════════════════════════════════════════════════════════════════════════
#  BACKGROUND SAVES
# ═══════════════════════════════════════════════════════════════════════════


class TestBackgroundSave:

    def test_result_delivered_on_gui_thread(self, qapp):
        store = FakeStore()
        rec = SessionRecorder(store, background=True)
        saved = SignalCollector()
        rec.saved.connect(saved)

        rec.record(_event())
        for _ in range(100):
            if len(saved):
                break
            QTest.qWait(10)

        assert len(saved) == 1
        assert len(store.saved) == 1
        assert rec._pending == set()
