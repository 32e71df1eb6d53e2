"""Discord cogs - command handlers."""

from musync.infrastructure.discord.cogs.music_cog import MusicCog

__all__ = [
    "MusicCog",
]
