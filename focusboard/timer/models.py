"""Value types shared by the timer engine and its collaborators.

Everything here is immutable: the engine hands out snapshots and event
objects, never references to its own mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


# ── enums ─────────────────────────────────────────────────────────────────


class TimerMode(Enum):
    POMODORO = "pomodoro"
    STOPWATCH = "stopwatch"


class SessionPhase(Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def is_break(self) -> bool:
        return self is not SessionPhase.WORK


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class ErrorKind(Enum):
    NO_TASK_SELECTED = "no_task_selected"
    INVALID_TRANSITION = "invalid_transition"
    PERSISTENCE_FAILURE = "persistence_failure"


# ── configuration ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerDurations:
    """Pomodoro phase lengths in seconds."""

    work: int = 25 * 60
    short_break: int = 5 * 60
    long_break: int = 15 * 60
    pomodoros_per_long_break: int = 4

    def for_phase(self, phase: SessionPhase) -> int:
        if phase == SessionPhase.SHORT_BREAK:
            return self.short_break
        if phase == SessionPhase.LONG_BREAK:
            return self.long_break
        return self.work


DEFAULT_DURATIONS = TimerDurations()


# ── snapshot ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerState:
    """Externally observable snapshot of the engine."""

    mode: TimerMode
    phase: SessionPhase
    run_state: RunState
    remaining_or_elapsed_seconds: int
    session_started_at: datetime | None
    selected_task_id: str | None
    completed_pomodoro_count: int
    pomodoros_per_long_break: int = DEFAULT_DURATIONS.pomodoros_per_long_break

    @property
    def is_active(self) -> bool:
        """True while running or paused."""
        return self.run_state != RunState.IDLE

    @property
    def is_counting_down(self) -> bool:
        return self.mode == TimerMode.POMODORO

    @property
    def pomodoros_in_cycle(self) -> int:
        return self.completed_pomodoro_count % self.pomodoros_per_long_break


# ── command results ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single engine command.

    ``accepted`` is False when the command was refused; the engine state
    is then exactly what it was before the call.
    """

    command: str
    accepted: bool
    state: TimerState
    error: ErrorKind | None = None
    reason: str = ""

    def __bool__(self) -> bool:
        return self.accepted


# ── events ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SessionFinalized:
    """A Work interval that ended with a positive measured duration."""

    phase: SessionPhase
    mode: TimerMode
    task_id: str | None
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    naturally_completed: bool

    @property
    def is_pomodoro_session(self) -> bool:
        return self.mode == TimerMode.POMODORO


@dataclass(frozen=True)
class PhaseTransition:
    """Emitted when a phase runs to completion and the next one is queued."""

    previous: SessionPhase
    current: SessionPhase
    mode: TimerMode
    completed_pomodoro_count: int
