"""Reusable guard functions for Discord slash commands.

These are free functions that accept the interaction explicitly rather than
relying on a specific cog instance, making them usable from any cog.
"""

from __future__ import annotations

import discord

from musync.application.commands.music_commands import CommandContext, CommandReply
from musync.domain.shared.messages import DiscordUIMessages


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message, handling both fresh and already-responded interactions."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


async def send_reply(interaction: discord.Interaction, reply: CommandReply) -> None:
    """Send a command reply, editing the deferred response when there is one."""
    if not interaction.response.is_done():
        await interaction.response.send_message(reply.content, ephemeral=reply.ephemeral)
    elif reply.ephemeral:
        await interaction.followup.send(reply.content, ephemeral=True)
    else:
        await interaction.edit_original_response(content=reply.content)


def get_voice_channel(member: discord.Member) -> discord.VoiceChannel | discord.StageChannel | None:
    if member.voice is None:
        return None
    return member.voice.channel


async def get_command_context(interaction: discord.Interaction) -> CommandContext | None:
    """Describe where the invoking member is. Returns None with a notice outside a guild."""
    if not interaction.guild:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None

    user = interaction.user
    channel = get_voice_channel(user) if isinstance(user, discord.Member) else None
    if channel is None:
        return CommandContext(guild_id=interaction.guild.id)

    return CommandContext(
        guild_id=interaction.guild.id,
        voice_channel_id=channel.id,
        voice_channel_name=channel.name,
    )
