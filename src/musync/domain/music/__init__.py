"""Music bounded context: songs and playback phases."""

from musync.domain.music.entities import Song
from musync.domain.music.value_objects import PlaybackPhase, TeardownReason

__all__ = [
    "Song",
    "PlaybackPhase",
    "TeardownReason",
]
