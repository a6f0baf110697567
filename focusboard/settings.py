"""Application settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/FocusBoard/settings.json

Usage::

    settings = load_settings()
    settings.sound_volume = 50
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path

from .timer.models import TimerDurations, TimerMode

logger = logging.getLogger(__name__)

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "FocusBoard"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"

STORAGE_LOCAL = "local"
STORAGE_API = "api"


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── timer ─────────────────────────────────────────────────────────
    work_duration: int = 25 * 60           # seconds
    short_break_duration: int = 5 * 60
    long_break_duration: int = 15 * 60
    pomodoros_per_long_break: int = 4
    default_mode: str = TimerMode.POMODORO.value

    # ── storage ───────────────────────────────────────────────────────
    storage_backend: str = STORAGE_LOCAL   # local | api
    api_base_url: str = "http://localhost:8080/api"
    api_user_id: str = ""
    api_timeout_seconds: float = 10.0
    save_in_background: bool = True

    # ── audio / notifications ─────────────────────────────────────────
    sound_enabled: bool = True
    sound_volume: int = 70                 # 0-100
    notifications_enabled: bool = True
    minimize_to_tray: bool = True

    # ── window ────────────────────────────────────────────────────────
    window_x: int | None = None
    window_y: int | None = None
    window_width: int = 520
    window_height: int = 760

    # ── diagnostics ───────────────────────────────────────────────────
    log_level: str = "INFO"

    def durations(self) -> TimerDurations:
        return TimerDurations(
            work=max(60, self.work_duration),
            short_break=max(60, self.short_break_duration),
            long_break=max(60, self.long_break_duration),
            pomodoros_per_long_break=max(1, self.pomodoros_per_long_break),
        )

    def timer_mode(self) -> TimerMode:
        try:
            return TimerMode(self.default_mode)
        except ValueError:
            return TimerMode.POMODORO


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if SETTINGS_PATH.exists():
            data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
            # Only use keys that exist in the dataclass
            valid_keys = {f.name for f in fields(Settings)}
            filtered = {k: v for k, v in data.items() if k in valid_keys}
            return Settings(**filtered)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("ignoring unreadable settings file %s: %s", SETTINGS_PATH, e)
    return Settings()


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
