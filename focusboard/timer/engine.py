"""Session timer state machine for FocusBoard.

Run states
----------
IDLE      Nothing running; waiting for ``start()``.
RUNNING   Counting down (Pomodoro) or up (Stopwatch).
PAUSED    Frozen; ``session_started_at`` is kept.

Phase transitions (Pomodoro)
----------------------------
WORK → SHORT_BREAK | LONG_BREAK   countdown reaches 0 (every 4th → long)
SHORT_BREAK | LONG_BREAK → WORK   countdown reaches 0
any → WORK                        stop / reset / change_mode

Every completed phase lands in IDLE; the next phase needs a manual
``start()``.  Stopwatch mode never leaves WORK.

Time keeping
------------
The engine never counts ticks.  Each ``tick()`` recomputes the measured
time from the injected clock::

    elapsed = now - session_started_at - time spent paused

so a late or dropped tick cannot make the display drift.  The engine
does not own a timer either; :class:`~focusboard.timer.scheduler.TickScheduler`
calls ``tick()`` once a second while the run state is RUNNING.

Commands never raise.  Each returns a :class:`CommandResult`; a refused
command leaves the state untouched and is also echoed on
``command_rejected``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from PyQt6.QtCore import QObject, pyqtSignal

from .models import (
    CommandResult,
    DEFAULT_DURATIONS,
    ErrorKind,
    PhaseTransition,
    RunState,
    SessionFinalized,
    SessionPhase,
    TimerDurations,
    TimerMode,
    TimerState,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimerEngine(QObject):
    """Pomodoro / stopwatch engine.

    Signals
    -------
    state_changed(state: TimerState)
        Emitted after every accepted command and every tick-driven
        transition.
    ticked(seconds: int)
        Emitted on each accepted tick with the new counter value.
    phase_changed(transition: PhaseTransition)
        Emitted when a phase runs to completion.
    session_finalized(event: SessionFinalized)
        Emitted once per Work interval with a positive duration.
    session_discarded(phase: SessionPhase)
        Emitted when a Work interval ends after 0 seconds.
    command_accepted(result: CommandResult)
        Emitted after a user command changes the state.
    command_rejected(result: CommandResult)
        Emitted when a user command is refused.
    """

    state_changed = pyqtSignal(object)
    ticked = pyqtSignal(int)
    phase_changed = pyqtSignal(object)
    session_finalized = pyqtSignal(object)
    session_discarded = pyqtSignal(object)
    command_accepted = pyqtSignal(object)
    command_rejected = pyqtSignal(object)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        durations: TimerDurations = DEFAULT_DURATIONS,
        mode: TimerMode = TimerMode.POMODORO,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(parent)

        # ── configuration ─────────────────────────────────────────────
        self._durations: TimerDurations = durations
        self._clock: Clock = clock

        # ── mode / phase / run state ──────────────────────────────────
        self._mode: TimerMode = mode
        self._phase: SessionPhase = SessionPhase.WORK
        self._run_state: RunState = RunState.IDLE
        self._completed_pomodoros: int = 0
        self._task_id: str | None = None

        # ── measured time ─────────────────────────────────────────────
        self._counter: int = self._default_counter()
        self._started_at: datetime | None = None
        self._target: int | None = None
        self._paused_at: datetime | None = None
        self._paused_total: timedelta = timedelta(0)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def state(self) -> TimerState:
        return TimerState(
            mode=self._mode,
            phase=self._phase,
            run_state=self._run_state,
            remaining_or_elapsed_seconds=self._counter,
            session_started_at=self._started_at,
            selected_task_id=self._task_id,
            completed_pomodoro_count=self._completed_pomodoros,
            pomodoros_per_long_break=self._durations.pomodoros_per_long_break,
        )

    def get_state(self) -> TimerState:
        return self.state

    @property
    def durations(self) -> TimerDurations:
        return self._durations

    @property
    def target_seconds(self) -> int:
        """Countdown length of the current phase (0 in Stopwatch mode)."""
        if self._mode == TimerMode.STOPWATCH:
            return 0
        if self._target is not None:
            return self._target
        return self._durations.for_phase(self._phase)

    @property
    def percent_complete(self) -> float:
        """0.0 → 1.0 progress through the current Pomodoro phase."""
        target = self.target_seconds
        if target <= 0:
            return 0.0
        elapsed = target - self._counter
        return max(0.0, min(1.0, elapsed / target))

    def set_durations(self, durations: TimerDurations) -> None:
        """Replace phase lengths.  A started phase keeps its old target."""
        self._durations = durations
        if self._run_state == RunState.IDLE:
            self._counter = self._default_counter()
            self.state_changed.emit(self.state)

    # ══════════════════════════════════════════════════════════════════
    #  COMMANDS
    # ══════════════════════════════════════════════════════════════════

    def start(self) -> CommandResult:
        """Start a fresh phase from IDLE or resume from PAUSED."""
        if self._run_state == RunState.RUNNING:
            return self._reject(
                "start", ErrorKind.INVALID_TRANSITION, "timer is already running",
            )
        if self._phase == SessionPhase.WORK and self._task_id is None:
            return self._reject(
                "start", ErrorKind.NO_TASK_SELECTED,
                "a task must be selected before a work session",
            )

        now = self._clock()
        if self._run_state == RunState.PAUSED:
            self._paused_total += now - self._paused_at
            self._paused_at = None
        else:
            self._started_at = now
            self._paused_at = None
            self._paused_total = timedelta(0)
            self._counter = self._default_counter()
            self._target = self._counter if self._mode == TimerMode.POMODORO else None

        self._run_state = RunState.RUNNING
        logger.debug("start: %s/%s", self._mode.value, self._phase.value)
        return self._accept("start")

    def pause_toggle(self) -> CommandResult:
        """Flip RUNNING ⇄ PAUSED.  Counters are left as they are."""
        if self._run_state == RunState.IDLE:
            return self._reject(
                "pause_toggle", ErrorKind.INVALID_TRANSITION, "timer is idle",
            )

        now = self._clock()
        if self._run_state == RunState.RUNNING:
            self._paused_at = now
            self._run_state = RunState.PAUSED
        else:
            self._paused_total += now - self._paused_at
            self._paused_at = None
            self._run_state = RunState.RUNNING
        logger.debug("pause_toggle: now %s", self._run_state.value)
        return self._accept("pause_toggle")

    def stop(self) -> CommandResult:
        """End the active phase early and return to IDLE.

        A Stopwatch interval always counts as naturally completed, as
        does a Pomodoro Work phase with at most one second left; the
        latter moves on to its break exactly as if the countdown had run
        out.
        """
        if self._run_state == RunState.IDLE:
            return self._reject("stop", ErrorKind.INVALID_TRANSITION, "timer is idle")

        self._stop_active(self._clock())
        return self._accept("stop")

    def reset(self) -> CommandResult:
        """Discard everything and return to an idle Work phase.

        Callers confirm with the user before resetting an active Work
        session; nothing is persisted here.
        """
        self._phase = SessionPhase.WORK
        self._run_state = RunState.IDLE
        self._completed_pomodoros = 0
        self._clear_session()
        logger.debug("reset")
        return self._accept("reset")

    def change_mode(self, new_mode: TimerMode) -> CommandResult:
        """Switch between Pomodoro and Stopwatch.

        An active session is stopped first (persisting a Work interval
        where applicable).
        """
        if new_mode == self._mode:
            return self._accept("change_mode", emit=False)

        if self._run_state != RunState.IDLE:
            self._stop_active(self._clock(), announce=False)

        self._mode = new_mode
        self._phase = SessionPhase.WORK
        self._run_state = RunState.IDLE
        self._clear_session()
        logger.debug("change_mode: %s", new_mode.value)
        return self._accept("change_mode")

    def select_task(self, task_id: str | None) -> CommandResult:
        """Attribute the next Work interval to *task_id*."""
        if (
            self._run_state == RunState.RUNNING
            and self._phase == SessionPhase.WORK
        ):
            return self._reject(
                "select_task", ErrorKind.INVALID_TRANSITION,
                "cannot change task while a work session is running",
            )
        self._task_id = task_id
        return self._accept("select_task")

    # ══════════════════════════════════════════════════════════════════
    #  TICK
    # ══════════════════════════════════════════════════════════════════

    def tick(self) -> CommandResult:
        """Advance the clock-driven counter.  Called by the scheduler."""
        if self._run_state != RunState.RUNNING:
            return CommandResult(
                "tick", False, self.state,
                ErrorKind.INVALID_TRANSITION, "timer is not running",
            )

        now = self._clock()
        elapsed = self._elapsed(now)

        if self._mode == TimerMode.STOPWATCH:
            self._counter = elapsed
            self.ticked.emit(self._counter)
            self.state_changed.emit(self.state)
            return CommandResult("tick", True, self.state)

        remaining = max(0, self.target_seconds - elapsed)
        self._counter = remaining
        self.ticked.emit(remaining)

        if remaining == 0:
            self._complete_phase(now)
        else:
            self.state_changed.emit(self.state)
        return CommandResult("tick", True, self.state)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — transitions
    # ══════════════════════════════════════════════════════════════════

    def _stop_active(self, now: datetime, *, announce: bool = True) -> None:
        """End the active phase.  With *announce* False a finished Work
        phase is counted but no break is queued or announced."""
        if self._phase.is_break:
            logger.debug("stop: %s abandoned", self._phase.value)
            self._to_idle_work()
            return

        if self._mode == TimerMode.POMODORO:
            remaining = self.target_seconds - self._elapsed(now)
            if remaining <= 1 and announce:
                self._counter = 0
                self._complete_phase(now)
                return
            if remaining <= 1:
                self._finalize_work(now, naturally_completed=True)
                self._completed_pomodoros += 1
            else:
                self._finalize_work(now, naturally_completed=False)
        else:
            self._finalize_work(now, naturally_completed=True)
        self._to_idle_work()

    def _complete_phase(self, now: datetime) -> None:
        """Countdown hit zero: close the phase and queue the next one."""
        previous = self._phase

        if previous == SessionPhase.WORK:
            self._finalize_work(now, naturally_completed=True)
            self._completed_pomodoros += 1
            if self._completed_pomodoros % self._durations.pomodoros_per_long_break == 0:
                self._phase = SessionPhase.LONG_BREAK
            else:
                self._phase = SessionPhase.SHORT_BREAK
        else:
            self._phase = SessionPhase.WORK

        self._run_state = RunState.IDLE
        self._clear_session()
        logger.info(
            "phase complete: %s -> %s (pomodoros=%d)",
            previous.value, self._phase.value, self._completed_pomodoros,
        )
        self.phase_changed.emit(PhaseTransition(
            previous=previous,
            current=self._phase,
            mode=self._mode,
            completed_pomodoro_count=self._completed_pomodoros,
        ))
        self.state_changed.emit(self.state)

    def _finalize_work(self, now: datetime, *, naturally_completed: bool) -> None:
        duration = self._elapsed(now)
        if duration <= 0:
            logger.info("work session under one second, not recorded")
            self.session_discarded.emit(SessionPhase.WORK)
            return
        event = SessionFinalized(
            phase=SessionPhase.WORK,
            mode=self._mode,
            task_id=self._task_id,
            started_at=self._started_at,
            ended_at=now,
            duration_seconds=duration,
            naturally_completed=naturally_completed,
        )
        logger.info(
            "session finalized: %ds task=%s natural=%s",
            duration, self._task_id, naturally_completed,
        )
        self.session_finalized.emit(event)

    def _to_idle_work(self) -> None:
        self._phase = SessionPhase.WORK
        self._run_state = RunState.IDLE
        self._clear_session()

    def _clear_session(self) -> None:
        self._started_at = None
        self._target = None
        self._paused_at = None
        self._paused_total = timedelta(0)
        self._counter = self._default_counter()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — helpers
    # ══════════════════════════════════════════════════════════════════

    def _elapsed(self, now: datetime) -> int:
        """Whole seconds spent running in the current phase."""
        if self._started_at is None:
            return 0
        end = self._paused_at if self._paused_at is not None else now
        active = end - self._started_at - self._paused_total
        return max(0, int(active.total_seconds()))

    def _default_counter(self) -> int:
        if self._mode == TimerMode.STOPWATCH:
            return 0
        return self._durations.for_phase(self._phase)

    def _accept(self, command: str, *, emit: bool = True) -> CommandResult:
        result = CommandResult(command, True, self.state)
        if emit:
            self.state_changed.emit(result.state)
            self.command_accepted.emit(result)
        return result

    def _reject(self, command: str, error: ErrorKind, reason: str) -> CommandResult:
        result = CommandResult(command, False, self.state, error, reason)
        logger.info("%s rejected: %s", command, reason)
        self.command_rejected.emit(result)
        return result
