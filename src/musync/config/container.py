"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the resolver, voice gateway, session registry,
playback driver and command handler. Components are created on first access
and reused for the lifetime of the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.music_commands import MusicCommandHandler
    from ..application.interfaces.audio_resolver import AudioResolver
    from ..application.interfaces.voice_adapter import VoiceGateway
    from ..application.services.playback_driver import PlaybackDriver
    from ..application.services.session_registry import SessionRegistry
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. Fields may be
    pre-populated to substitute fakes in tests.
    """

    settings: Settings
    _bot: Bot | None = None

    # Infrastructure adapters
    _audio_resolver: AudioResolver | None = None
    _voice_gateway: VoiceGateway | None = None

    # Application services
    _session_registry: SessionRegistry | None = None
    _playback_driver: PlaybackDriver | None = None

    # Command handlers
    _music_commands: MusicCommandHandler | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Infrastructure Adapters ===

    @property
    def audio_resolver(self) -> AudioResolver:
        """Get the audio resolver."""
        if self._audio_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._audio_resolver = YtDlpResolver(self.settings.resolver)
        return self._audio_resolver

    @property
    def voice_gateway(self) -> VoiceGateway:
        """Get the voice gateway."""
        if self._voice_gateway is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceGateway

            self._voice_gateway = DiscordVoiceGateway(self.bot, self.settings.audio)
        return self._voice_gateway

    # === Application Services ===

    @property
    def session_registry(self) -> SessionRegistry:
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry(self.voice_gateway)
        return self._session_registry

    @property
    def playback_driver(self) -> PlaybackDriver:
        if self._playback_driver is None:
            from ..application.services.playback_driver import PlaybackDriver

            self._playback_driver = PlaybackDriver(
                session_registry=self.session_registry,
                audio_resolver=self.audio_resolver,
                settings=self.settings.playback,
            )
        return self._playback_driver

    # === Command Handlers ===

    @property
    def music_commands(self) -> MusicCommandHandler:
        if self._music_commands is None:
            from ..application.commands.music_commands import MusicCommandHandler

            self._music_commands = MusicCommandHandler(
                session_registry=self.session_registry,
                playback_driver=self.playback_driver,
                audio_resolver=self.audio_resolver,
            )
        return self._music_commands

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Tear down every active session."""
        if self._session_registry is not None:
            await self._session_registry.drain()
        logger.debug(LogTemplates.BOT_CONTAINER_SHUTDOWN)


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
