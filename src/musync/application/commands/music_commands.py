"""Handlers for the music commands: connect, play, skip, stop, pause, resume, queue, loop."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from musync.domain.music.entities import Song
from musync.domain.shared.exceptions import (
    ResolutionError,
    UserPreconditionError,
    VoiceConnectionError,
)
from musync.domain.shared.messages import DiscordUIMessages, LogTemplates
from musync.domain.shared.types import DiscordSnowflake, NonEmptyStr
from musync.utils.reply import format_queue

if TYPE_CHECKING:
    from ..interfaces.audio_resolver import AudioResolver
    from ..services.guild_session import GuildSession
    from ..services.playback_driver import PlaybackDriver
    from ..services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class CommandStatus(Enum):
    """Status codes for command replies."""

    SUCCESS = "success"
    INFO = "info"
    PRECONDITION_FAILED = "precondition_failed"
    NOT_FOUND = "not_found"
    VOICE_ERROR = "voice_error"


class CommandContext(BaseModel):
    """Who invoked a command and where they are."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    voice_channel_id: DiscordSnowflake | None = None
    voice_channel_name: str | None = None

    @property
    def in_voice(self) -> bool:
        return self.voice_channel_id is not None


class PlayCommand(BaseModel):
    """Request to resolve a query, queue the song and start playback if idle."""

    model_config = ConfigDict(frozen=True, strict=True)

    context: CommandContext
    query: NonEmptyStr

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class CommandReply(BaseModel):
    """The single user-visible reply a command produces."""

    model_config = ConfigDict(frozen=True, strict=True)

    status: CommandStatus
    content: str
    ephemeral: bool = False
    song: Song | None = None

    @property
    def is_success(self) -> bool:
        return self.status in {CommandStatus.SUCCESS, CommandStatus.INFO}

    @classmethod
    def ok(cls, content: str, song: Song | None = None) -> CommandReply:
        return cls(status=CommandStatus.SUCCESS, content=content, song=song)

    @classmethod
    def info(cls, content: str) -> CommandReply:
        return cls(status=CommandStatus.INFO, content=content)

    @classmethod
    def notice(cls, content: str) -> CommandReply:
        """Transient reply only the invoking user sees; no state was changed."""
        return cls(status=CommandStatus.PRECONDITION_FAILED, content=content, ephemeral=True)

    @classmethod
    def error(cls, status: CommandStatus, content: str) -> CommandReply:
        return cls(status=status, content=content)


class MusicCommandHandler:
    """Applies the music commands to the session registry and playback driver.

    Every command first requires the invoking member to be in a voice channel.
    Unmet preconditions raise ``UserPreconditionError`` internally and come
    back as an ephemeral notice without touching any state.
    """

    def __init__(
        self,
        *,
        session_registry: SessionRegistry,
        playback_driver: PlaybackDriver,
        audio_resolver: AudioResolver,
    ) -> None:
        self._registry = session_registry
        self._driver = playback_driver
        self._resolver = audio_resolver

    # ── Preconditions ────────────────────────────────────────────────

    @staticmethod
    def _require_voice(ctx: CommandContext) -> int:
        if ctx.voice_channel_id is None:
            raise UserPreconditionError(DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
        return ctx.voice_channel_id

    def _require_session(
        self, ctx: CommandContext, message: str, *, playing: bool = False
    ) -> GuildSession:
        self._require_voice(ctx)
        session = self._registry.get(ctx.guild_id)
        if session is None or (playing and not session.playing):
            raise UserPreconditionError(message)
        return session

    # ── Commands ─────────────────────────────────────────────────────

    async def connect(self, ctx: CommandContext) -> CommandReply:
        try:
            channel_id = self._require_voice(ctx)
        except UserPreconditionError as e:
            return CommandReply.notice(e.message)

        if self._registry.get(ctx.guild_id) is not None:
            return CommandReply.info(DiscordUIMessages.STATE_ALREADY_CONNECTED)

        try:
            session = await self._registry.get_or_create(ctx.guild_id, channel_id)
        except VoiceConnectionError as e:
            logger.warning(LogTemplates.COMMAND_VOICE_FAILED, "connect", ctx.guild_id, e)
            return CommandReply.error(
                CommandStatus.VOICE_ERROR, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE
            )
        self._driver.arm_idle(session)

        channel_name = ctx.voice_channel_name or str(channel_id)
        return CommandReply.ok(DiscordUIMessages.CONNECTED.format(channel_name=channel_name))

    async def play(self, command: PlayCommand) -> CommandReply:
        ctx = command.context
        try:
            channel_id = self._require_voice(ctx)
        except UserPreconditionError as e:
            return CommandReply.notice(e.message)

        kind = "url" if self._resolver.is_url(command.query) else "search"
        logger.info(LogTemplates.COMMAND_PLAY_RECEIVED, kind, command.query)
        try:
            song = await self._resolver.search(command.query)
        except ResolutionError as e:
            logger.warning(LogTemplates.COMMAND_PLAY_FAILED, command.query, e)
            return CommandReply.error(
                CommandStatus.NOT_FOUND, DiscordUIMessages.ERROR_SONG_NOT_FOUND
            )

        try:
            session = await self._registry.get_or_create(ctx.guild_id, channel_id)
        except VoiceConnectionError as e:
            logger.warning(LogTemplates.COMMAND_VOICE_FAILED, "play", ctx.guild_id, e)
            return CommandReply.error(
                CommandStatus.VOICE_ERROR, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE
            )

        position = session.enqueue(song)
        logger.info(LogTemplates.QUEUE_ENQUEUED, song.title, position, ctx.guild_id)

        if self._driver.ensure_playing(session):
            return CommandReply.ok(DiscordUIMessages.NOW_PLAYING.format(title=song.title), song)
        return CommandReply.ok(DiscordUIMessages.ADDED_TO_QUEUE.format(title=song.title), song)

    async def skip(self, ctx: CommandContext) -> CommandReply:
        try:
            session = self._require_session(
                ctx, DiscordUIMessages.STATE_NOTHING_TO_SKIP, playing=True
            )
        except UserPreconditionError as e:
            return CommandReply.notice(e.message)

        skipped = self._driver.skip(session)
        if skipped is None:
            return CommandReply.notice(DiscordUIMessages.STATE_NOTHING_TO_SKIP)
        return CommandReply.ok(DiscordUIMessages.ACTION_SKIPPED, skipped)

    async def stop(self, ctx: CommandContext) -> CommandReply:
        try:
            session = self._require_session(ctx, DiscordUIMessages.STATE_NOTHING_PLAYING)
        except UserPreconditionError as e:
            return CommandReply.notice(e.message)

        await self._driver.stop(session)
        return CommandReply.ok(DiscordUIMessages.ACTION_STOPPED)

    async def pause(self, ctx: CommandContext) -> CommandReply:
        try:
            session = self._require_session(
                ctx, DiscordUIMessages.STATE_NOTHING_TO_PAUSE, playing=True
            )
        except UserPreconditionError as e:
            return CommandReply.notice(e.message)

        if not self._driver.pause(session):
            return CommandReply.notice(DiscordUIMessages.STATE_NOTHING_TO_PAUSE)
        return CommandReply.ok(DiscordUIMessages.ACTION_PAUSED)

    async def resume(self, ctx: CommandContext) -> CommandReply:
        try:
            session = self._require_session(
                ctx, DiscordUIMessages.STATE_NOTHING_TO_RESUME, playing=True
            )
        except UserPreconditionError as e:
            return CommandReply.notice(e.message)

        if not self._driver.resume(session):
            return CommandReply.notice(DiscordUIMessages.STATE_NOTHING_TO_RESUME)
        return CommandReply.ok(DiscordUIMessages.ACTION_RESUMED)

    async def show_queue(self, ctx: CommandContext) -> CommandReply:
        try:
            session = self._require_session(ctx, DiscordUIMessages.STATE_QUEUE_EMPTY)
            if not session.queue:
                raise UserPreconditionError(DiscordUIMessages.STATE_QUEUE_EMPTY)
        except UserPreconditionError as e:
            return CommandReply.notice(e.message)

        return CommandReply.ok(format_queue(list(session.queue)))

    async def toggle_loop(self, ctx: CommandContext) -> CommandReply:
        try:
            session = self._require_session(ctx, DiscordUIMessages.STATE_NOTHING_TO_LOOP)
        except UserPreconditionError as e:
            return CommandReply.notice(e.message)

        enabled = session.toggle_loop()
        state = "enabled" if enabled else "disabled"
        logger.info(LogTemplates.LOOP_MODE_CHANGED, state, ctx.guild_id)
        return CommandReply.ok(DiscordUIMessages.ACTION_LOOP_TOGGLED.format(state=state))
