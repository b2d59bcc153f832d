"""Music player state: a fixed playlist with play/pause and track skipping."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Track:
    id: int
    title: str
    artist: str
    duration: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "artist": self.artist, "duration": self.duration}


DEFAULT_PLAYLIST = (
    Track(1, "MindScape Theme", "AI Composer", "3:45"),
    Track(2, "Relaxing Waves", "Nature Sounds", "5:20"),
    Track(3, "Focus Mode", "Productivity", "4:30"),
)


@dataclass(frozen=True, slots=True)
class MusicState:
    track_index: int
    playing: bool
    track: Track

    def to_dict(self) -> dict[str, Any]:
        return {"track_index": self.track_index, "playing": self.playing, "track": self.track.to_dict()}


class MusicPlayer:
    """Track selection and play state only; no audio is decoded."""

    def __init__(self, playlist: Sequence[Track] = DEFAULT_PLAYLIST, logger: logging.Logger | None = None) -> None:
        if not playlist:
            raise ValueError("Playlist must contain at least one track")
        self._playlist = tuple(playlist)
        self._index = 0
        self._playing = False
        self._logger = logger or LOGGER

    @property
    def playlist(self) -> tuple[Track, ...]:
        return self._playlist

    @property
    def current_track(self) -> Track:
        return self._playlist[self._index]

    @property
    def playing(self) -> bool:
        return self._playing

    def state(self) -> MusicState:
        return MusicState(track_index=self._index, playing=self._playing, track=self.current_track)

    def play_pause(self) -> bool:
        self._playing = not self._playing
        self._logger.debug(
            "[media] %s '%s'", "Playing" if self._playing else "Paused", self.current_track.title
        )
        return self._playing

    def pause(self) -> None:
        self._playing = False

    def next_track(self) -> Track:
        self._index = (self._index + 1) % len(self._playlist)
        return self.current_track

    def previous_track(self) -> Track:
        self._index = (self._index - 1) % len(self._playlist)
        return self.current_track
