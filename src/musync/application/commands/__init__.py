"""
Application Commands

Platform-neutral handlers for the music slash commands. Each command
produces exactly one ``CommandReply`` for the invoking user.
"""

from musync.application.commands.music_commands import (
    CommandContext,
    CommandReply,
    CommandStatus,
    MusicCommandHandler,
    PlayCommand,
)

__all__ = [
    "CommandContext",
    "CommandReply",
    "CommandStatus",
    "MusicCommandHandler",
    "PlayCommand",
]
