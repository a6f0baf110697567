"""Records exchanged with the time-entry persistence service."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Protocol, Union

from ..timer.models import ErrorKind, SessionFinalized


@dataclass(frozen=True)
class TimeEntryPayload:
    """Body of a create request.  Timestamps are ISO-8601 strings."""

    task_id: str
    start_time: str
    end_time: str
    duration_seconds: int
    is_pomodoro_session: bool

    @classmethod
    def from_event(cls, event: SessionFinalized) -> "TimeEntryPayload":
        return cls(
            task_id=event.task_id,
            start_time=event.started_at.isoformat(),
            end_time=event.ended_at.isoformat(),
            duration_seconds=event.duration_seconds,
            is_pomodoro_session=event.is_pomodoro_session,
        )

    def to_json(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TimeEntry:
    """A stored work interval as returned by the service."""

    id: str
    task_id: str
    start_time: datetime
    end_time: datetime | None
    duration_seconds: int | None
    is_pomodoro_session: bool

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "TimeEntry":
        end = data.get("end_time")
        return cls(
            id=str(data["id"]),
            task_id=str(data["task_id"]),
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(end) if end else None,
            duration_seconds=data.get("duration_seconds"),
            is_pomodoro_session=bool(data.get("is_pomodoro_session", False)),
        )


@dataclass(frozen=True)
class TaskSummary:
    """The slice of a task the timer's task selector needs."""

    id: str
    title: str
    project_name: str | None = None
    status: str = "todo"

    @property
    def display_name(self) -> str:
        if self.project_name:
            return f"{self.project_name} / {self.title}"
        return self.title


@dataclass(frozen=True)
class ApiError:
    """Failure returned (never raised) by a persistence store."""

    status_code: int
    message: str
    kind: ErrorKind = ErrorKind.PERSISTENCE_FAILURE

    def __str__(self) -> str:
        return f"{self.message} (status {self.status_code})"


@dataclass(frozen=True)
class Deleted:
    entry_id: str


SaveResult = Union[TimeEntry, ApiError]
DeleteResult = Union[Deleted, ApiError]


def is_api_error(obj: object) -> bool:
    return isinstance(obj, ApiError)


class TimeEntryStore(Protocol):
    """What :class:`~focusboard.persistence.recorder.SessionRecorder` needs."""

    def save(self, entry: TimeEntryPayload) -> SaveResult: ...

    def delete(self, entry_id: str) -> DeleteResult: ...

    def list_entries(
        self,
        *,
        task_id: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[TimeEntry] | ApiError: ...

    def list_tasks(self) -> list[TaskSummary] | ApiError: ...
