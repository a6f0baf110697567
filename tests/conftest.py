"""Shared pytest fixtures for FocusBoard tests."""

import sys
import pytest

from PyQt6.QtWidgets import QApplication

from focusboard.database.db import configure_engine, init_db
from focusboard.timer.engine import TimerEngine
from focusboard.timer.models import TimerDurations, TimerMode

from helpers import TASK_ID, FakeClock


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Never read or write the real settings file."""
    monkeypatch.setattr("focusboard.settings.SETTINGS_PATH", tmp_path / "settings.json")
    yield tmp_path / "settings.json"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(qapp, clock):
    """Pomodoro engine on a fake clock, default durations, no task selected."""
    return TimerEngine(parent=None, clock=clock)


@pytest.fixture
def engine_with_task(engine):
    engine.select_task(TASK_ID)
    return engine


@pytest.fixture
def stopwatch(qapp, clock):
    """Stopwatch engine on a fake clock with a task selected."""
    e = TimerEngine(parent=None, mode=TimerMode.STOPWATCH, clock=clock)
    e.select_task(TASK_ID)
    return e


@pytest.fixture
def short_engine(qapp, clock):
    """Pomodoro engine with tiny phases: 10 s work, 3 s / 6 s breaks."""
    e = TimerEngine(
        parent=None,
        durations=TimerDurations(work=10, short_break=3, long_break=6),
        clock=clock,
    )
    e.select_task(TASK_ID)
    return e
