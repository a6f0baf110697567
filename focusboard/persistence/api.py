"""REST client for the dashboard's time-entry API.

Every request carries the ``X-User-Id`` header.  Failures (non-2xx
responses, timeouts, refused connections, unparseable or misshapen
bodies) come back as :class:`ApiError` values rather than exceptions,
mirroring the service's own ``{status: "error", statusCode, message}`` envelope.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

import requests

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

DEFAULT_TIMEOUT = 10.0

_NETWORK_ERROR_STATUS = 500


class TimeEntryApiClient:
    """Talks to ``/time-entries`` and ``/tasks`` on the dashboard API.

    Usage::

        client = TimeEntryApiClient("http://localhost:8080/api", user_id)
        result = client.save(payload)
        if isinstance(result, ApiError):
            ...
    """

    def __init__(
        self,
        base_url: str,
        user_id: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        http: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._user_id = user_id
        self._timeout = timeout
        self._http = http or requests.Session()

    # ── time entries ──────────────────────────────────────────────────

    def save(self, entry: TimeEntryPayload) -> SaveResult:
        body = self._request("POST", "/time-entries", json=entry.to_json())
        if isinstance(body, ApiError):
            return body
        if not body:
            return ApiError(_NETWORK_ERROR_STATUS, "Empty response to /time-entries")
        return _decode("/time-entries", lambda: TimeEntry.from_json(body))

    def delete(self, entry_id: str) -> DeleteResult:
        body = self._request("DELETE", f"/time-entries/{entry_id}")
        if isinstance(body, ApiError):
            return body
        return Deleted(entry_id)

    def list_entries(
        self,
        *,
        task_id: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[TimeEntry] | ApiError:
        params: dict[str, str] = {}
        if task_id:
            params["task_id"] = task_id
        if date_from:
            params["date_from"] = date_from.isoformat()
        if date_to:
            params["date_to"] = date_to.isoformat()

        body = self._request("GET", "/time-entries", params=params or None)
        if isinstance(body, ApiError):
            return body
        return _decode(
            "/time-entries",
            lambda: [TimeEntry.from_json(item) for item in body or []],
        )

    # ── tasks (read-only, for the selector) ───────────────────────────

    def list_tasks(self) -> list[TaskSummary] | ApiError:
        body = self._request("GET", "/tasks")
        if isinstance(body, ApiError):
            return body
        return _decode("/tasks", lambda: [
            TaskSummary(
                id=str(item["id"]),
                title=item["title"],
                project_name=item.get("project_name"),
                status=item.get("status", "todo"),
            )
            for item in body or []
        ])

    # ── internal ──────────────────────────────────────────────────────

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Perform one request; return the decoded body or an ApiError."""
        url = f"{self._base_url}{endpoint}"
        headers = {"X-User-Id": self._user_id}
        try:
            response = self._http.request(
                method, url, headers=headers, timeout=self._timeout, **kwargs,
            )
        except requests.exceptions.Timeout:
            logger.warning("%s %s timed out", method, endpoint)
            return ApiError(_NETWORK_ERROR_STATUS, f"Request to {endpoint} timed out")
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            return ApiError(_NETWORK_ERROR_STATUS, str(e) or f"Network error on {endpoint}")

        if not response.ok:
            message = f"API request to {endpoint} failed with status {response.status_code}"
            try:
                data = response.json()
                if isinstance(data, dict) and isinstance(data.get("message"), str):
                    message = data["message"]
            except (json.JSONDecodeError, ValueError):
                pass
            logger.warning("%s %s -> %s: %s", method, endpoint, response.status_code, message)
            return ApiError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            logger.warning("%s %s returned a non-JSON body", method, endpoint)
            return ApiError(response.status_code, f"Invalid JSON from {endpoint}")


def _decode(endpoint: str, build: Callable[[], Any]) -> Any:
    """Build typed values from a 2xx body, or an ApiError if it has the wrong shape."""
    try:
        return build()
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning("unexpected response shape from %s: %r", endpoint, e)
        return ApiError(_NETWORK_ERROR_STATUS, f"Invalid response from {endpoint}")
