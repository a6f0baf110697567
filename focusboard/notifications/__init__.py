"""Notification sinks and the timer → message glue."""

from .notifier import (
    LoggingNotifier,
    MultiNotifier,
    Notifier,
    NotifyType,
    SessionNotifier,
    StatusBarNotifier,
    TrayNotifier,
)

__all__ = [
    "LoggingNotifier",
    "MultiNotifier",
    "Notifier",
    "NotifyType",
    "SessionNotifier",
    "StatusBarNotifier",
    "TrayNotifier",
]
