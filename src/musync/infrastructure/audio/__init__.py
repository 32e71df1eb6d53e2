"""Audio infrastructure - yt-dlp resolver and FFmpeg sources."""

from musync.infrastructure.audio.ffmpeg_source import FFmpegConfig, FFmpegSourceFactory
from musync.infrastructure.audio.ytdlp_resolver import (
    YtDlpEntry,
    YtDlpResolver,
    YtDlpSearchResult,
)

__all__ = [
    "FFmpegConfig",
    "FFmpegSourceFactory",
    "YtDlpEntry",
    "YtDlpResolver",
    "YtDlpSearchResult",
]
