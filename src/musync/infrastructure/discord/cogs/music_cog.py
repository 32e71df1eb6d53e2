"""Slash-command music cog delegating to the music command handler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from musync.application.commands.music_commands import CommandContext, PlayCommand
from musync.domain.music.value_objects import TeardownReason
from musync.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from musync.infrastructure.discord.guards.voice_guards import (
    get_command_context,
    send_ephemeral,
    send_reply,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ....application.commands.music_commands import CommandReply, MusicCommandHandler
    from ....config.container import Container

logger = logging.getLogger(__name__)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @property
    def handler(self) -> MusicCommandHandler:
        return self.container.music_commands

    async def _dispatch(
        self,
        interaction: discord.Interaction,
        action: Callable[[CommandContext], Awaitable[CommandReply]],
    ) -> None:
        ctx = await get_command_context(interaction)
        if ctx is None:
            return
        reply = await action(ctx)
        await send_reply(interaction, reply)

    @app_commands.command(name="play", description="Play a song by URL or search query.")
    @app_commands.describe(query="YouTube URL or search query")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        ctx = await get_command_context(interaction)
        if ctx is None:
            return
        if not ctx.in_voice:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
            return

        # Defer early because the search and voice connection can exceed the 3-second deadline
        await interaction.response.defer()

        try:
            reply = await self.handler.play(PlayCommand(context=ctx, query=query))
        except Exception as e:
            logger.exception(LogTemplates.COMMAND_PLAY_ERROR, ctx.guild_id)
            await interaction.edit_original_response(
                content=DiscordUIMessages.ERROR_OCCURRED.format(error=e)
            )
            return

        await send_reply(interaction, reply)

    @app_commands.command(name="connect", description="Connect the bot to your voice channel.")
    async def connect(self, interaction: discord.Interaction) -> None:
        await self._dispatch(interaction, self.handler.connect)

    @app_commands.command(name="skip", description="Skip the current song.")
    async def skip(self, interaction: discord.Interaction) -> None:
        await self._dispatch(interaction, self.handler.skip)

    @app_commands.command(name="stop", description="Stop the music and clear the queue.")
    async def stop(self, interaction: discord.Interaction) -> None:
        await self._dispatch(interaction, self.handler.stop)

    @app_commands.command(name="pause", description="Pause the current song.")
    async def pause(self, interaction: discord.Interaction) -> None:
        await self._dispatch(interaction, self.handler.pause)

    @app_commands.command(name="resume", description="Resume the paused song.")
    async def resume(self, interaction: discord.Interaction) -> None:
        await self._dispatch(interaction, self.handler.resume)

    @app_commands.command(name="queue", description="Show the current queue.")
    async def queue(self, interaction: discord.Interaction) -> None:
        await self._dispatch(interaction, self.handler.show_queue)

    @app_commands.command(name="loop", description="Toggle looping of the current song.")
    async def loop(self, interaction: discord.Interaction) -> None:
        await self._dispatch(interaction, self.handler.toggle_loop)

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ) -> None:
        """Drop the guild's session when someone else disconnects the bot from voice."""
        if self.bot.user is None or member.id != self.bot.user.id:
            return
        if before.channel is None or after.channel is not None:
            return

        registry = self.container.session_registry
        session = registry.get(member.guild.id)
        if session is None or session.connection.is_destroyed:
            return

        logger.info(LogTemplates.VOICE_DISCONNECTED_EXTERNALLY, member.guild.id)
        await registry.remove(
            member.guild.id, expected=session, reason=TeardownReason.DISCONNECTED
        )


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
