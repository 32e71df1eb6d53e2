"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from collections.abc import Sequence
from functools import cache
from typing import TYPE_CHECKING, Final

from ..domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ..domain.music.entities import Song

DISCORD_MESSAGE_LIMIT: Final[int] = 2000
TITLE_MAX_LENGTH: Final[int] = 90


@cache
def truncate(text: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def format_queue(songs: Sequence[Song], limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    """Render a 1-indexed FIFO listing that fits in one Discord message.

    Lines that would overflow *limit* are replaced by a trailing
    "… and N more" marker.
    """
    lines = [DiscordUIMessages.QUEUE_HEADER]
    used = len(lines[0])

    for index, song in enumerate(songs):
        line = DiscordUIMessages.QUEUE_LINE.format(position=index + 1, title=truncate(song.title))
        remaining = len(songs) - index
        reserve = 0 if remaining == 1 else len(f"\n… and {remaining - 1} more")
        if used + 1 + len(line) + reserve > limit:
            lines.append(f"… and {remaining} more")
            break
        lines.append(line)
        used += 1 + len(line)

    return "\n".join(lines)
