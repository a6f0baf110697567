"""Offline time-entry store backed by the local SQLite database.

Implements the same contract as :class:`TimeEntryApiClient` so the app
can run without the dashboard API.  Timestamps are stored as naive UTC
and handed back timezone-aware.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from ..database.db import get_session
from ..database.models import Task, TimeEntry as TimeEntryRow
from .types import (
    ApiError,
    Deleted,
    DeleteResult,
    SaveResult,
    TaskSummary,
    TimeEntry,
    TimeEntryPayload,
)

logger = logging.getLogger(__name__)

_DB_ERROR_STATUS = 500
_NOT_FOUND_STATUS = 404


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_aware(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def _entry_from_row(row: TimeEntryRow) -> TimeEntry:
    return TimeEntry(
        id=row.id,
        task_id=row.task_id,
        start_time=_to_aware(row.start_time),
        end_time=_to_aware(row.end_time),
        duration_seconds=row.duration_seconds,
        is_pomodoro_session=row.is_pomodoro_session,
    )


class LocalTimeEntryStore:
    """SQLite-backed time entries and tasks."""

    def save(self, entry: TimeEntryPayload) -> SaveResult:
        try:
            with get_session() as db:
                row = TimeEntryRow(
                    task_id=entry.task_id,
                    start_time=_to_naive_utc(datetime.fromisoformat(entry.start_time)),
                    end_time=_to_naive_utc(datetime.fromisoformat(entry.end_time)),
                    duration_seconds=entry.duration_seconds,
                    is_pomodoro_session=entry.is_pomodoro_session,
                )
                db.add(row)
                db.flush()
                return _entry_from_row(row)
        except SQLAlchemyError as e:
            logger.warning("could not save time entry: %s", e)
            return ApiError(_DB_ERROR_STATUS, f"Database error: {e}")

    def delete(self, entry_id: str) -> DeleteResult:
        try:
            with get_session() as db:
                row = db.get(TimeEntryRow, entry_id)
                if row is None:
                    return ApiError(_NOT_FOUND_STATUS, "Time entry not found")
                db.delete(row)
        except SQLAlchemyError as e:
            logger.warning("could not delete time entry %s: %s", entry_id, e)
            return ApiError(_DB_ERROR_STATUS, f"Database error: {e}")
        return Deleted(entry_id)

    def list_entries(
        self,
        *,
        task_id: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[TimeEntry] | ApiError:
        try:
            with get_session() as db:
                query = db.query(TimeEntryRow)
                if task_id:
                    query = query.filter(TimeEntryRow.task_id == task_id)
                if date_from:
                    query = query.filter(TimeEntryRow.start_time >= _to_naive_utc(date_from))
                if date_to:
                    query = query.filter(TimeEntryRow.start_time <= _to_naive_utc(date_to))
                rows = query.order_by(TimeEntryRow.start_time.desc()).all()
                return [_entry_from_row(r) for r in rows]
        except SQLAlchemyError as e:
            logger.warning("could not list time entries: %s", e)
            return ApiError(_DB_ERROR_STATUS, f"Database error: {e}")

    # ── tasks ─────────────────────────────────────────────────────────

    def list_tasks(self) -> list[TaskSummary] | ApiError:
        try:
            with get_session() as db:
                rows = (
                    db.query(Task)
                    .filter(Task.status != "done")
                    .order_by(Task.created_at)
                    .all()
                )
                return [
                    TaskSummary(r.id, r.title, r.project_name, r.status)
                    for r in rows
                ]
        except SQLAlchemyError as e:
            logger.warning("could not list tasks: %s", e)
            return ApiError(_DB_ERROR_STATUS, f"Database error: {e}")

    def add_task(self, title: str, project_name: str | None = None) -> TaskSummary:
        """Create a local task.  Raises ``ValueError`` on an empty title."""
        title = title.strip()
        if not title:
            raise ValueError("task title must not be empty")
        with get_session() as db:
            row = Task(title=title, project_name=project_name)
            db.add(row)
            db.flush()
            return TaskSummary(row.id, row.title, row.project_name, row.status)
