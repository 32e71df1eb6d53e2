"""Port interface for resolving songs and stream addresses."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from musync.domain.shared.types import HttpUrlStr, NonEmptyStr

if TYPE_CHECKING:
    from ...domain.music.entities import Song


class AudioResolver(ABC):
    """Interface for turning queries into songs and songs into stream addresses."""

    @abstractmethod
    async def search(self, query: NonEmptyStr) -> "Song":
        """Resolve free text or a URL to a single song.

        Raises:
            ResolutionError: If nothing usable was found.
        """
        ...

    @abstractmethod
    async def resolve_stream(self, url: HttpUrlStr) -> str:
        """Resolve a song's canonical URL to a short-lived direct stream address.

        Raises:
            StreamResolutionError: If no stream address could be obtained.
        """
        ...

    @abstractmethod
    def is_url(self, query: NonEmptyStr) -> bool:
        ...
