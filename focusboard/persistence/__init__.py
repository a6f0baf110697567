"""Time-entry persistence: stores and the session recorder."""

from .api import TimeEntryApiClient
from .local import LocalTimeEntryStore
from .recorder import SessionRecorder
from .types import (
    ApiError,
    Deleted,
    TaskSummary,
    TimeEntry,
    TimeEntryPayload,
    TimeEntryStore,
    is_api_error,
)

__all__ = [
    "TimeEntryApiClient",
    "LocalTimeEntryStore",
    "SessionRecorder",
    "ApiError",
    "Deleted",
    "TaskSummary",
    "TimeEntry",
    "TimeEntryPayload",
    "TimeEntryStore",
    "is_api_error",
]
