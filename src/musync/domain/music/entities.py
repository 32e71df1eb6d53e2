"""Core domain entities for the music bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from musync.domain.shared.types import HttpUrlStr, SongTitleStr


class Song(BaseModel):
    """Immutable value object identifying a playable unit by its canonical URL.

    The canonical URL is stable; the direct stream address it resolves to
    expires and is looked up again before every play attempt.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    title: SongTitleStr
    url: HttpUrlStr

    def __str__(self) -> str:
        return self.title
