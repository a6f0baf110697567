"""UI package."""

from .timer_widget import TimerWidget
from .time_entries import TimeEntriesWidget

__all__ = [
    "TimerWidget",
    "TimeEntriesWidget",
]
