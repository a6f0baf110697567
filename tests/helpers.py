"""Shared test helpers for FocusBoard."""

from datetime import datetime, timedelta, timezone

from focusboard.persistence.types import ApiError, Deleted, TimeEntry, TimeEntryPayload
from focusboard.timer.engine import TimerEngine
from focusboard.timer.models import RunState

TASK_ID = "task-1"


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 4, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def tick_seconds(engine: TimerEngine, clock: FakeClock, n: int) -> None:
    """Advance the clock one second at a time, ticking after each step."""
    for _ in range(n):
        clock.advance(1)
        engine.tick()
        if engine.state.run_state != RunState.RUNNING:
            break


def complete_phase(engine: TimerEngine, clock: FakeClock) -> None:
    """Jump to the end of the running countdown with a single tick."""
    clock.advance(engine.target_seconds)
    engine.tick()


class FakeStore:
    """In-memory time-entry store: records calls, returns a canned result
    or the configured ApiError."""

    def __init__(self, *, fail_with: ApiError | None = None, tasks=None):
        self.saved: list[TimeEntryPayload] = []
        self.deleted: list[str] = []
        self.fail_with = fail_with
        self.tasks = list(tasks or [])

    def save(self, entry):
        self.saved.append(entry)
        if self.fail_with:
            return self.fail_with
        return TimeEntry(
            id=f"e{len(self.saved)}",
            task_id=entry.task_id,
            start_time=datetime.fromisoformat(entry.start_time),
            end_time=datetime.fromisoformat(entry.end_time),
            duration_seconds=entry.duration_seconds,
            is_pomodoro_session=entry.is_pomodoro_session,
        )

    def delete(self, entry_id):
        self.deleted.append(entry_id)
        return self.fail_with or Deleted(entry_id)

    def list_entries(self, *, task_id=None, date_from=None, date_to=None):
        return [
            TimeEntry(
                id=f"e{i + 1}",
                task_id=p.task_id,
                start_time=datetime.fromisoformat(p.start_time),
                end_time=datetime.fromisoformat(p.end_time),
                duration_seconds=p.duration_seconds,
                is_pomodoro_session=p.is_pomodoro_session,
            )
            for i, p in enumerate(self.saved)
            if f"e{i + 1}" not in self.deleted
        ]

    def list_tasks(self):
        return list(self.tasks)
