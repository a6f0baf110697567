"""Sound synthesis and playback using numpy + QSoundEffect.

Sounds are synthesised as WAV files (sine waves shaped by an ADSR
envelope) and cached in the app support directory on first launch.

Sound names
-----------
- ``session_start``     short ascending chime
- ``session_complete``  arpeggio when a work phase runs out
- ``break_finished``    soft bell when a break is over
- ``alert``             double tap for warnings and failed saves
"""

from __future__ import annotations

import io
import wave
from collections.abc import Callable
from pathlib import Path

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

from ..settings import APP_SUPPORT_DIR


SOUNDS_DIR = APP_SUPPORT_DIR / "sounds"

SOUND_NAMES = (
    "session_start",
    "session_complete",
    "break_finished",
    "alert",
)

SAMPLE_RATE = 44100


# ═══════════════════════════════════════════════════════════════════════════
#  WAV SYNTHESIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _envelope(
    length: int,
    attack: int = 200,
    decay: int = 400,
    sustain_level: float = 0.7,
    release: int = 800,
) -> np.ndarray:
    """ADSR envelope (all durations in samples)."""
    env = np.full(length, sustain_level, dtype=np.float64)
    a = min(attack, length)
    if a > 0:
        env[:a] = np.linspace(0.0, 1.0, a)
    d_end = min(a + decay, length)
    if d_end > a:
        env[a:d_end] = np.linspace(1.0, sustain_level, d_end - a)
    r_start = max(length - release, d_end)
    if r_start < length:
        env[r_start:] = np.linspace(sustain_level, 0.0, length - r_start)
    return env


def _tone(freq: float, duration_s: float, amplitude: float = 0.5) -> np.ndarray:
    t = np.linspace(0, duration_s, int(SAMPLE_RATE * duration_s), endpoint=False)
    return np.sin(2 * np.pi * freq * t) * amplitude


def _silence(duration_s: float) -> np.ndarray:
    return np.zeros(int(SAMPLE_RATE * duration_s))


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Float samples in -1..1 → mono 16-bit PCM WAV."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


def _arpeggio(notes: list[float], note_s: float, gap_s: float, tail_s: float) -> np.ndarray:
    parts: list[np.ndarray] = []
    for i, freq in enumerate(notes):
        last = i == len(notes) - 1
        tone = _tone(freq, tail_s if last else note_s)
        parts.append(tone * _envelope(len(tone), attack=80, decay=250,
                                      sustain_level=0.4, release=500 if last else 250))
        if not last:
            parts.append(_silence(gap_s))
    return np.concatenate(parts)


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND GENERATORS
# ═══════════════════════════════════════════════════════════════════════════


def generate_session_start() -> bytes:
    """C5 → E5 → G5."""
    samples = _arpeggio([523.25, 659.25, 783.99], 0.12, 0.03, 0.12)
    return _to_wav_bytes(np.concatenate([samples, _silence(0.05)]))


def generate_session_complete() -> bytes:
    """C5 → E5 → G5 → C6, last note held."""
    return _to_wav_bytes(_arpeggio([523.25, 659.25, 783.99, 1046.50], 0.10, 0.02, 0.35))


def generate_break_finished() -> bytes:
    """A4 bell with an octave overtone."""
    duration = 1.0
    bell = _tone(440.0, duration, 0.35) + _tone(880.0, duration, 0.08)
    env = _envelope(
        len(bell),
        attack=int(SAMPLE_RATE * 0.08),
        decay=int(SAMPLE_RATE * 0.3),
        sustain_level=0.25,
        release=int(SAMPLE_RATE * 0.55),
    )
    return _to_wav_bytes(bell * env)


def generate_alert() -> bytes:
    """Two short 800 Hz taps."""
    tap = _tone(800.0, 0.04, 0.35)
    tap = tap * _envelope(len(tap), attack=40, decay=100, sustain_level=0.2, release=200)
    return _to_wav_bytes(np.concatenate([tap, _silence(0.08), tap, _silence(0.05)]))


_GENERATORS: dict[str, Callable[[], bytes]] = {
    "session_start": generate_session_start,
    "session_complete": generate_session_complete,
    "break_finished": generate_break_finished,
    "alert": generate_alert,
}


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class SoundManager(QObject):
    """Caches, loads and plays the notification sounds.

    Usage::

        mgr = SoundManager(parent=self)
        mgr.set_volume(70)
        mgr.play("session_complete")
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
    ) -> None:
        super().__init__(parent)
        self._enabled = True
        self._volume = 0.7  # 0.0–1.0
        self._sounds_dir = sounds_dir or SOUNDS_DIR
        self._effects: dict[str, QSoundEffect] = {}

        self._ensure_wav_files()
        self._load_effects()

    # ── public API ────────────────────────────────────────────────────

    def set_volume(self, level: int) -> None:
        """Set volume (0-100)."""
        self._volume = max(0, min(level, 100)) / 100.0
        for effect in self._effects.values():
            effect.setVolume(self._volume)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def play(self, name: str) -> None:
        """Play a sound by name.  No-op if disabled or name unknown."""
        if not self._enabled:
            return
        effect = self._effects.get(name)
        if effect is not None:
            effect.play()

    @property
    def volume(self) -> int:
        return round(self._volume * 100)

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ── internal ──────────────────────────────────────────────────────

    def _ensure_wav_files(self) -> None:
        self._sounds_dir.mkdir(parents=True, exist_ok=True)
        for name, generate in _GENERATORS.items():
            path = self._sounds_dir / f"{name}.wav"
            if not path.exists():
                path.write_bytes(generate())

    def _load_effects(self) -> None:
        for name in SOUND_NAMES:
            path = self._sounds_dir / f"{name}.wav"
            if path.exists():
                effect = QSoundEffect(self)
                effect.setSource(QUrl.fromLocalFile(str(path)))
                effect.setVolume(self._volume)
                self._effects[name] = effect
