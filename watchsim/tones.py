"""Synthetic cue tones rendered to small mono WAV files."""

from __future__ import annotations

import logging
import math
import wave
from dataclasses import dataclass
from pathlib import Path

from .cues import AudioCue

_LOGGER = logging.getLogger("watchsim.tones")
_SAMPLE_RATE = 48_000


@dataclass(frozen=True, slots=True)
class _Tone:
    frequency_hz: float
    max_amplitude: int
    duration_seconds: float
    decay_rate: float
    fade_in_seconds: float
    repeats: int = 1
    gap_seconds: float = 0.0


def _tone_for(cue: AudioCue) -> _Tone:
    if cue is AudioCue.ALARM:
        # Urgent, higher pitch, repeated
        return _Tone(880, 30_000, 0.25, 3.0, 0.02, repeats=4, gap_seconds=0.15)
    if cue is AudioCue.BEEP:
        return _Tone(1_000, 22_000, 0.08, 2.0, 0.005)
    if cue is AudioCue.HEARTBEAT:
        # Low "lub-dub"
        return _Tone(60, 32_000, 0.12, 6.0, 0.01, repeats=2, gap_seconds=0.18)
    if cue is AudioCue.CHARGE:
        return _Tone(660, 24_000, 0.2, 4.0, 0.01, repeats=2, gap_seconds=0.05)
    if cue is AudioCue.DISCHARGE:
        return _Tone(440, 24_000, 0.2, 4.0, 0.01)
    return _Tone(720, 30_000, 0.22, 4.5, 0.01)


def _write_tone(wav_file: wave.Wave_write, tone: _Tone) -> None:
    samples = max(1, int(_SAMPLE_RATE * tone.duration_seconds))
    fade_in_samples = max(1, int(_SAMPLE_RATE * tone.fade_in_seconds))
    gap = b"\x00\x00" * int(_SAMPLE_RATE * tone.gap_seconds)
    frames = bytearray()
    for i in range(samples):
        t = i / _SAMPLE_RATE
        decay = math.exp(-tone.decay_rate * t / tone.duration_seconds)
        fade_in = min(1.0, i / fade_in_samples)
        angle = 2 * math.pi * tone.frequency_hz * t
        value = int(fade_in * decay * tone.max_amplitude * math.sin(angle))
        frames += value.to_bytes(2, byteorder="little", signed=True)
    for index in range(tone.repeats):
        wav_file.writeframes(bytes(frames))
        if gap and index < tone.repeats - 1:
            wav_file.writeframes(gap)


def render_cue_sample(cue: AudioCue, destination: Path) -> Path | None:
    """Render the synthetic tone for a cue to the provided path."""
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with wave.open(str(destination), "wb") as wav_file:
            wav_file.setnchannels(1)
            wav_file.setsampwidth(2)
            wav_file.setframerate(_SAMPLE_RATE)
            _write_tone(wav_file, _tone_for(cue))
        return destination
    except OSError as exc:
        _LOGGER.debug("[audio] Unable to create %s sample at %s: %s", cue.value, destination, exc)
        return None


def ensure_cue_sample(cue: AudioCue, cache_dir: Path) -> Path | None:
    path = cache_dir / f"{cue.value}.wav"
    if path.exists():
        return path
    return render_cue_sample(cue, path)
