"""QSS stylesheet and phase colours for FocusBoard."""

from __future__ import annotations

from ..timer.models import SessionPhase, TimerMode

PALETTE: dict[str, str] = {
    "bg":           "#F7F8FA",
    "bg_secondary": "#FFFFFF",
    "accent":       "#2563EB",
    "text":         "#1F2937",
    "text_muted":   "#6B7280",
    "success":      "#16A34A",
    "danger":       "#DC2626",
    "border":       "#E5E7EB",
}

# Countdown colour per phase; the stopwatch uses plain text colour.
PHASE_COLORS: dict[SessionPhase, str] = {
    SessionPhase.WORK:        "#2563EB",   # blue
    SessionPhase.SHORT_BREAK: "#16A34A",   # green
    SessionPhase.LONG_BREAK:  "#16A34A",
}


def time_color(mode: TimerMode, phase: SessionPhase) -> str:
    if mode == TimerMode.STOPWATCH:
        return PALETTE["text"]
    return PHASE_COLORS[phase]


def build_stylesheet(palette: dict[str, str] = PALETTE) -> str:
    p = palette
    return f"""
    QWidget {{
        background-color: {p['bg']};
        color: {p['text']};
        font-size: 14px;
    }}

    QFrame#card {{
        background-color: {p['bg_secondary']};
        border: 1px solid {p['border']};
        border-radius: 12px;
    }}

    QPushButton {{
        background-color: {p['bg_secondary']};
        border: 1px solid {p['border']};
        border-radius: 8px;
        padding: 8px 18px;
        font-weight: 600;
    }}

    QPushButton:hover {{
        border-color: {p['accent']};
    }}

    QPushButton:disabled {{
        color: {p['text_muted']};
    }}

    QPushButton#primaryButton {{
        background-color: {p['accent']};
        color: {p['bg_secondary']};
        border: none;
        padding: 10px 32px;
    }}

    QPushButton#dangerButton {{
        color: {p['danger']};
    }}

    QPushButton#modeButton:checked {{
        background-color: {p['accent']};
        color: {p['bg_secondary']};
        border: none;
    }}

    QComboBox, QLineEdit {{
        background-color: {p['bg_secondary']};
        border: 1px solid {p['border']};
        border-radius: 8px;
        padding: 6px 12px;
    }}

    QLabel#sessionLabel {{
        font-size: 18px;
        font-weight: 600;
    }}

    QLabel#subLabel, QLabel#counterLabel {{
        font-size: 12px;
        color: {p['text_muted']};
    }}

    QStatusBar {{
        color: {p['text_muted']};
        font-size: 12px;
        border-top: 1px solid {p['border']};
    }}
    """
