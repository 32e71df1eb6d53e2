"""Guard functions for Discord cogs."""

from musync.infrastructure.discord.guards.voice_guards import (
    get_command_context,
    get_voice_channel,
    send_ephemeral,
    send_reply,
)

__all__ = [
    "get_command_context",
    "get_voice_channel",
    "send_ephemeral",
    "send_reply",
]
