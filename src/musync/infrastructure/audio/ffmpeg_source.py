"""
FFmpeg Audio Source

Builds discord.py audio sources for direct stream addresses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import discord

from musync.config.settings import AudioSettings
from musync.domain.shared.exceptions import PlaybackError
from musync.domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FFmpegConfig:
    """Configuration for FFmpeg audio processing."""

    before_options: str = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    options: str = "-vn"
    default_volume: float = 0.5

    @classmethod
    def from_settings(cls, settings: AudioSettings) -> FFmpegConfig:
        return cls(
            before_options=settings.ffmpeg_before_options,
            options=settings.ffmpeg_options,
            default_volume=settings.default_volume,
        )


class FFmpegSourceFactory:
    """Creates FFmpeg sources at the configured volume.

    Stream addresses expire quickly, so the reconnect flags in
    ``before_options`` let FFmpeg recover from dropped HTTP connections
    mid-song instead of ending the track early.
    """

    def __init__(self, config: FFmpegConfig | None = None) -> None:
        self._config = config or FFmpegConfig()

    @property
    def config(self) -> FFmpegConfig:
        return self._config

    def __call__(self, stream_url: str) -> discord.PCMVolumeTransformer:
        """Create an audio source for a stream address.

        Raises:
            PlaybackError: If FFmpeg could not be started.
        """
        try:
            source = discord.FFmpegPCMAudio(
                stream_url,
                before_options=self._config.before_options,
                options=self._config.options,
            )
        except discord.ClientException as e:
            raise PlaybackError(ErrorMessages.PLAYER_REJECTED_SOURCE.format(error=e)) from e

        return discord.PCMVolumeTransformer(source, volume=self._config.default_volume)
