"""Discord voice gateway implementing VoiceGateway, VoiceConnection and AudioPlayer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import discord

from musync.application.interfaces.voice_adapter import (
    AudioPlayer,
    FinishedCallback,
    VoiceConnection,
    VoiceGateway,
)
from musync.config.settings import AudioSettings
from musync.domain.shared.exceptions import PlaybackError, VoiceConnectionError
from musync.domain.shared.messages import ErrorMessages, LogTemplates
from musync.infrastructure.audio.ffmpeg_source import FFmpegConfig, FFmpegSourceFactory

logger = logging.getLogger(__name__)

SourceFactory = Callable[[str], discord.AudioSource]


class DiscordAudioPlayer(AudioPlayer):
    """Plays stream addresses through the voice client it is subscribed to."""

    def __init__(self, guild_id: int, source_factory: SourceFactory) -> None:
        self._guild_id = guild_id
        self._source_factory = source_factory
        self._voice_client: discord.VoiceClient | None = None

    @property
    def voice_client(self) -> discord.VoiceClient | None:
        return self._voice_client

    def bind(self, voice_client: discord.VoiceClient | None) -> None:
        self._voice_client = voice_client

    def play(self, stream_url: str, on_finished: FinishedCallback) -> None:
        vc = self._voice_client
        if vc is None or not vc.is_connected():
            raise PlaybackError(ErrorMessages.PLAYER_NOT_CONNECTED.format(guild_id=self._guild_id))

        if vc.is_playing() or vc.is_paused():
            vc.stop()

        source = self._source_factory(stream_url)
        loop = asyncio.get_running_loop()
        guild_id = self._guild_id

        # Runs on discord.py's audio thread.
        def after_callback(error: Exception | None = None) -> None:
            logger.debug(LogTemplates.TRACK_ENDED, guild_id, error)
            if error:
                logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, error)
            try:
                loop.call_soon_threadsafe(on_finished, error)
            except RuntimeError:
                # Event loop already closed during shutdown.
                logger.debug(LogTemplates.PLAYBACK_ERROR, guild_id, "event loop closed")

        try:
            vc.play(source, after=after_callback)
        except discord.ClientException as e:
            source.cleanup()
            raise PlaybackError(ErrorMessages.PLAYER_REJECTED_SOURCE.format(error=e)) from e

        logger.debug(LogTemplates.PLAYBACK_STARTED, guild_id)

    def stop(self) -> None:
        vc = self._voice_client
        if vc is None:
            return
        if vc.is_playing() or vc.is_paused():
            vc.stop()
            logger.info(LogTemplates.PLAYBACK_STOPPED, self._guild_id)

    def pause(self) -> bool:
        vc = self._voice_client
        if vc is not None and vc.is_playing():
            vc.pause()
            logger.info(LogTemplates.PLAYBACK_PAUSED, self._guild_id)
            return True
        return False

    def resume(self) -> bool:
        vc = self._voice_client
        if vc is not None and vc.is_paused():
            vc.resume()
            logger.info(LogTemplates.PLAYBACK_RESUMED, self._guild_id)
            return True
        return False

    @property
    def is_paused(self) -> bool:
        return self._voice_client is not None and self._voice_client.is_paused()


class DiscordVoiceConnection(VoiceConnection):
    """Owns one ``discord.VoiceClient`` until ``destroy`` is called."""

    def __init__(self, guild_id: int, voice_client: discord.VoiceClient) -> None:
        self._guild_id = guild_id
        self._voice_client = voice_client
        self._channel_id = voice_client.channel.id
        self._destroyed = False
        self._player: DiscordAudioPlayer | None = None

    @property
    def channel_id(self) -> int:
        return self._channel_id

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._voice_client

    def subscribe(self, player: AudioPlayer) -> None:
        if not isinstance(player, DiscordAudioPlayer):
            raise TypeError(f"Cannot subscribe {type(player).__name__} to a Discord voice client")
        player.bind(self._voice_client)
        self._player = player

    async def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True

        if self._player is not None:
            self._player.bind(None)
            self._player = None

        await self._voice_client.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, self._guild_id)


class DiscordVoiceGateway(VoiceGateway):
    def __init__(
        self,
        bot: discord.Client,
        settings: AudioSettings | None = None,
        source_factory: SourceFactory | None = None,
    ) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._source_factory = source_factory or FFmpegSourceFactory(
            FFmpegConfig.from_settings(self._settings)
        )

    @property
    def connect_timeout(self) -> float:
        return self._settings.connect_timeout_seconds

    async def connect(self, guild_id: int, channel_id: int) -> DiscordVoiceConnection:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            raise VoiceConnectionError(guild_id, channel_id)

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            raise VoiceConnectionError(guild_id, channel_id)

        # A voice client left behind without a session is stale.
        stale = guild.voice_client
        if stale is not None:
            await stale.disconnect(force=True)

        try:
            async with asyncio.timeout(self.connect_timeout):
                vc = await channel.connect(self_deaf=True)
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise VoiceConnectionError(guild_id, channel_id) from e
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise VoiceConnectionError(guild_id, channel_id) from e
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            raise VoiceConnectionError(guild_id, channel_id) from e

        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        return DiscordVoiceConnection(guild_id, vc)

    def create_player(self, guild_id: int) -> DiscordAudioPlayer:
        return DiscordAudioPlayer(guild_id, self._source_factory)
