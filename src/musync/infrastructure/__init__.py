"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Discord (bot, cogs, voice gateway)
- Audio (yt-dlp resolver, FFmpeg sources)
"""

from musync.infrastructure.discord.adapters.voice_adapter import DiscordVoiceGateway
from musync.infrastructure.discord.bot import create_bot

__all__ = [
    "create_bot",
    "DiscordVoiceGateway",
]
