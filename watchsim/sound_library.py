"""Cue sound catalog and resolution helpers for rendered and custom sounds."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .cues import AudioCue
from .tones import ensure_cue_sample

_DEFAULT_CUSTOM_DIR = Path.home() / ".local" / "share" / "watchsim" / "sounds"
_ALLOWED_EXTENSIONS = (".wav", ".ogg")


@dataclass(frozen=True)
class CueSound:
    cue: AudioCue
    label: str
    path: Path
    built_in: bool


class CueLibrary:
    """Resolve cue kinds to concrete files.

    A file named after the cue (``alarm.wav``, ``notify.ogg`` ...) in the
    custom directory overrides the rendered tone for that cue.
    """

    def __init__(self, *, custom_dir: Path | None = None, cache_dir: Path | None = None) -> None:
        self.custom_dir = custom_dir or _DEFAULT_CUSTOM_DIR
        self.cache_dir = cache_dir or self.custom_dir / ".rendered"

    def custom_sounds(self) -> list[CueSound]:
        sounds: list[CueSound] = []
        for cue in AudioCue:
            path = self._find_custom(cue)
            if path is None:
                continue
            sounds.append(
                CueSound(
                    cue=cue,
                    label=path.stem.replace("_", " ").replace("-", " ").title(),
                    path=path,
                    built_in=False,
                )
            )
        return sounds

    def _find_custom(self, cue: AudioCue) -> Path | None:
        if not self.custom_dir.exists():
            return None
        for suffix in _ALLOWED_EXTENSIONS:
            candidate = self.custom_dir / f"{cue.value}{suffix}"
            if candidate.is_file():
                return candidate.resolve()
        return None

    def resolve(self, cue: AudioCue) -> CueSound | None:
        """Resolve a cue to a custom file, falling back to its rendered tone."""
        custom = self._find_custom(cue)
        if custom is not None:
            return CueSound(cue=cue, label=custom.stem, path=custom, built_in=False)

        rendered = ensure_cue_sample(cue, self.cache_dir)
        if rendered is None:
            return None
        return CueSound(cue=cue, label=f"{cue.value} tone", path=rendered, built_in=True)
