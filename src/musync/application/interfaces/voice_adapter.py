"""Port interfaces for voice transport and the audio sink."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from musync.domain.shared.types import ChannelIdField, DiscordSnowflake

FinishedCallback = Callable[[Exception | None], None]
"""Called once per ``AudioPlayer.play`` when the stream ends or is stopped."""


class AudioPlayer(ABC):
    """Audio sink consuming one playable resource at a time."""

    @abstractmethod
    def play(self, stream_url: str, on_finished: FinishedCallback) -> None:
        """Start streaming *stream_url*.

        *on_finished* is invoked exactly once on the event loop, either on
        natural end of the stream or after ``stop()``.

        Raises:
            PlaybackError: If the sink cannot start the resource.
        """
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop the current resource, triggering its finished callback."""
        ...

    @abstractmethod
    def pause(self) -> bool:
        ...

    @abstractmethod
    def resume(self) -> bool:
        ...

    @property
    @abstractmethod
    def is_paused(self) -> bool:
        ...


class VoiceConnection(ABC):
    """Transport link to one voice channel."""

    @property
    @abstractmethod
    def channel_id(self) -> ChannelIdField:
        ...

    @property
    @abstractmethod
    def is_destroyed(self) -> bool:
        ...

    @abstractmethod
    def subscribe(self, player: AudioPlayer) -> None:
        """Route *player*'s output to this connection."""
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Leave the channel. Calling it again is a no-op."""
        ...


class VoiceGateway(ABC):
    """Factory for voice connections and audio players."""

    @abstractmethod
    async def connect(
        self, guild_id: DiscordSnowflake, channel_id: ChannelIdField
    ) -> VoiceConnection:
        """Join a voice channel.

        Raises:
            VoiceConnectionError: If the channel could not be joined.
        """
        ...

    @abstractmethod
    def create_player(self, guild_id: DiscordSnowflake) -> AudioPlayer:
        ...
