# combatreflex/core/audio.py
from __future__ import annotations

import io
import logging
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

log = logging.getLogger(__name__)

SAMPLE_RATE = 44100


@dataclass(frozen=True)
class Tone:
    wave: str            # sine | square | triangle
    freq: float          # Hz
    duration: float      # s
    attack: float        # s
    decay: float         # s
    volume: float = 0.5
    end_freq: Optional[float] = None
    start: float = 0.0   # offset inside the cue, s


# Cue name -> tones. Names match the play_* methods below.
CUES: Dict[str, List[Tone]] = {
    "punch": [Tone("square", 800, 0.10, 0.01, 0.09, volume=0.4)],
    "kick": [Tone("sine", 400, 0.20, 0.02, 0.18, volume=0.6)],
    "session_start": [
        Tone("sine", 400, 0.15, 0.02, 0.13, end_freq=500),
        Tone("sine", 500, 0.15, 0.02, 0.13, end_freq=600, start=0.2),
    ],
    "session_end": [
        Tone("sine", 600, 0.15, 0.02, 0.13, end_freq=500),
        Tone("sine", 500, 0.15, 0.02, 0.13, end_freq=400, start=0.2),
    ],
    "warning": [Tone("sine", 500, 0.08, 0.01, 0.07, start=i * 0.18) for i in range(3)],
    "countdown": [Tone("triangle", 600, 0.10, 0.01, 0.09)],
}


def render_tone(t: Tone, sr: int = SAMPLE_RATE) -> np.ndarray:
    n = max(1, int(round(t.duration * sr)))

    # linear sweep -> integrate instantaneous frequency for the phase
    f1 = t.end_freq if t.end_freq is not None else t.freq
    freq = np.linspace(t.freq, f1, n)
    phase = 2 * np.pi * np.cumsum(freq) / sr

    if t.wave == "square":
        sig = np.sign(np.sin(phase))
    elif t.wave == "triangle":
        sig = 2 / np.pi * np.arcsin(np.sin(phase))
    else:
        sig = np.sin(phase)

    # attack up to 1, then decay back to 0
    env = np.zeros(n)
    a = max(1, int(t.attack * sr))
    d = max(1, int(t.decay * sr))
    env[:a] = np.linspace(0.0, 1.0, a)[: min(a, n)]
    end = min(n, a + d)
    if end > a:
        env[a:end] = np.linspace(1.0, 0.0, end - a)

    return (sig * env * t.volume).astype(np.float32)


def render_cue(tones: Sequence[Tone], sr: int = SAMPLE_RATE) -> np.ndarray:
    total = max(t.start + t.duration for t in tones)
    out = np.zeros(int(round(total * sr)) + 1, dtype=np.float32)
    for t in tones:
        chunk = render_tone(t, sr)
        i = int(round(t.start * sr))
        out[i:i + len(chunk)] += chunk[: len(out) - i]
    return np.clip(out, -1.0, 1.0)


def to_wav_bytes(samples: np.ndarray, sr: int = SAMPLE_RATE) -> bytes:
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype("<i2")
    buf = io.BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(sr)
        w.writeframes(pcm.tobytes())
    return buf.getvalue()


class CueSounds:
    """
    Cue player. Every play_* is fire-and-forget and does nothing until
    init() has succeeded (no audio device, no QApplication, ...).
    """

    def __init__(self, cache_dir: Optional[Path] = None):
        self.cache_dir = cache_dir
        self._effects: Dict[str, object] = {}
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def init(self) -> bool:
        if self._ready:
            return True
        try:
            from PySide6.QtCore import QUrl
            from PySide6.QtMultimedia import QSoundEffect

            from combatreflex.core.storage import app_data_dir

            base = Path(self.cache_dir) if self.cache_dir else app_data_dir() / "sounds"
            base.mkdir(parents=True, exist_ok=True)

            for name, tones in CUES.items():
                path = base / f"{name}.wav"
                path.write_bytes(to_wav_bytes(render_cue(tones)))
                fx = QSoundEffect()
                fx.setSource(QUrl.fromLocalFile(str(path)))
                fx.setVolume(0.9)
                self._effects[name] = fx

            self._ready = True
        except Exception as e:
            log.warning("Audio unavailable, continuing silently: %r", e)
            self._effects.clear()
            self._ready = False
        return self._ready

    def _play(self, name: str) -> None:
        if not self._ready:
            log.debug("Audio not ready, skipping %s", name)
            return
        fx = self._effects.get(name)
        if fx is not None:
            fx.play()

    def play_punch(self) -> None:
        self._play("punch")

    def play_kick(self) -> None:
        self._play("kick")

    def play_session_start(self) -> None:
        self._play("session_start")

    def play_session_end(self) -> None:
        self._play("session_end")

    def play_warning(self) -> None:
        self._play("warning")

    def play_countdown(self) -> None:
        self._play("countdown")
