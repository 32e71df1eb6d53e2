"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from enum import Enum


class PlaybackPhase(Enum):
    """Phase of a guild's playback driver, with enforced transitions.

    State transitions:
    - IDLE -> RESOLVING (song enqueued on a stopped queue)
    - RESOLVING -> PLAYING (stream address obtained)
    - RESOLVING -> ADVANCING (stream resolution failed, or skipped while resolving)
    - PLAYING -> ADVANCING (sink reported completion)
    - ADVANCING -> RESOLVING (queue still has songs)
    - ADVANCING -> IDLE (queue exhausted)
    """

    IDLE = "idle"
    RESOLVING = "resolving"
    PLAYING = "playing"
    ADVANCING = "advancing"

    def can_transition_to(self, target: PlaybackPhase) -> bool:
        """Check if transition to target phase is valid."""
        valid_transitions = {
            PlaybackPhase.IDLE: {PlaybackPhase.RESOLVING},
            PlaybackPhase.RESOLVING: {PlaybackPhase.PLAYING, PlaybackPhase.ADVANCING},
            PlaybackPhase.PLAYING: {PlaybackPhase.ADVANCING},
            PlaybackPhase.ADVANCING: {PlaybackPhase.RESOLVING, PlaybackPhase.IDLE},
        }
        return target in valid_transitions.get(self, set())


class TeardownReason(Enum):
    """Reasons a guild session can be destroyed."""

    STOPPED = "stopped"
    INACTIVITY = "inactivity"
    SHUTDOWN = "shutdown"
    DISCONNECTED = "disconnected"
