"""Timer package."""

from .engine import TimerEngine, utc_now
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
from .scheduler import TickScheduler

__all__ = [
    "TimerEngine",
    "TickScheduler",
    "utc_now",
    "CommandResult",
    "DEFAULT_DURATIONS",
    "ErrorKind",
    "PhaseTransition",
    "RunState",
    "SessionFinalized",
    "SessionPhase",
    "TimerDurations",
    "TimerMode",
    "TimerState",
]
