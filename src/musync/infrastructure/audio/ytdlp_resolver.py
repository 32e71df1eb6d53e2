"""AudioResolver implementation that shells out to the yt-dlp program."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Callable, Sequence
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from musync.application.interfaces.audio_resolver import AudioResolver
from musync.config.settings import ResolverSettings
from musync.domain.music.entities import Song
from musync.domain.shared.exceptions import DomainError, ResolutionError, StreamResolutionError
from musync.domain.shared.messages import ErrorMessages, LogTemplates
from musync.domain.shared.types import HttpUrlStr, NonEmptyStr

logger = logging.getLogger(__name__)

STDERR_TRUNCATE: Final[int] = 300
TITLE_MAX_LENGTH: Final[int] = 500


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class YtDlpEntry(BaseModel):
    """The two fields of a yt-dlp info dict a song needs.

    Extra fields from yt-dlp are silently ignored. Before-validators turn
    garbage from the external program into None instead of failing.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: NonEmptyStr | None = None
    webpage_url: HttpUrlStr | None = None
    original_url: HttpUrlStr | None = None

    @field_validator("title", "webpage_url", "original_url", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @field_validator("webpage_url", "original_url", mode="before")
    @classmethod
    def _drop_non_http(cls, v: Any) -> str | None:
        if isinstance(v, str) and not v.startswith(("http://", "https://")):
            return None
        return v

    def to_song(self) -> Song | None:
        url = self.webpage_url or self.original_url
        if not self.title or not url:
            return None
        return Song(title=self.title[:TITLE_MAX_LENGTH], url=url)


class YtDlpSearchResult(YtDlpEntry):
    """A single-video info dict, or a search playlist wrapping one."""

    entries: list[YtDlpEntry | None] = Field(default_factory=list)

    @field_validator("entries", mode="before")
    @classmethod
    def _coerce_entries(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [e for e in v if isinstance(e, dict)]

    def first_song(self) -> Song | None:
        """The first usable entry of a search result, or the video itself."""
        for entry in self.entries:
            if entry is not None and (song := entry.to_song()) is not None:
                return song
        return self.to_song()


URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]


class YtDlpResolver(AudioResolver):
    """Runs the yt-dlp executable once per call.

    Arguments go to the child as an argv list, never through a shell, and user
    text always follows a ``--`` separator. Each call is bounded by the
    configured timeout; the child is killed if the call times out or the
    awaiting task is cancelled. Nothing is cached: stream addresses expire.
    """

    def __init__(self, settings: ResolverSettings | None = None) -> None:
        self._settings = settings or ResolverSettings()

    @property
    def timeout(self) -> float:
        return self._settings.timeout_seconds

    def search_argv(self, query: str) -> list[str]:
        return [
            self._settings.executable,
            "--default-search",
            self._settings.default_search,
            "--no-playlist",
            "--dump-single-json",
            "--",
            query,
        ]

    def stream_argv(self, url: str) -> list[str]:
        return [
            self._settings.executable,
            "-f",
            self._settings.audio_format,
            "-g",
            "--",
            url,
        ]

    async def _run(
        self, argv: Sequence[str], error_factory: Callable[[str], DomainError]
    ) -> str:
        """Run *argv* and return its decoded stdout.

        Any failure is raised as ``error_factory(message)``.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise error_factory(
                ErrorMessages.RESOLVER_NOT_FOUND.format(executable=argv[0])
            ) from e
        except OSError as e:
            raise error_factory(str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except TimeoutError as e:
            logger.warning(LogTemplates.RESOLVER_TIMEOUT, self.timeout, proc.pid)
            await _kill(proc)
            raise error_factory(ErrorMessages.RESOLVER_TIMEOUT.format(timeout=self.timeout)) from e
        except asyncio.CancelledError:
            logger.debug(LogTemplates.RESOLVER_CANCELLED, proc.pid)
            await _kill(proc)
            raise

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()[:STDERR_TRUNCATE]
            raise error_factory(
                ErrorMessages.RESOLVER_EXIT_CODE.format(code=proc.returncode, stderr=detail)
            )

        return stdout.decode("utf-8", errors="replace")

    async def search(self, query: str) -> Song:
        logger.debug(LogTemplates.RESOLVER_SEARCHING, query)

        def fail(message: str) -> ResolutionError:
            return ResolutionError(query, message)

        try:
            output = await self._run(self.search_argv(query), fail)
            try:
                data = json.loads(output)
            except json.JSONDecodeError as e:
                raise fail(ErrorMessages.RESOLVER_INVALID_JSON) from e
            if not isinstance(data, dict):
                raise fail(ErrorMessages.RESOLVER_INVALID_JSON)

            try:
                song = YtDlpSearchResult.model_validate(data).first_song()
            except ValidationError as e:
                raise fail(ErrorMessages.RESOLVER_NO_RESULT) from e
            if song is None:
                raise fail(ErrorMessages.RESOLVER_NO_RESULT)
        except ResolutionError as e:
            logger.warning(LogTemplates.RESOLVER_SEARCH_FAILED, query, e)
            raise

        logger.info(LogTemplates.RESOLVER_SEARCH_RESOLVED, query, song.title, song.url)
        return song

    async def resolve_stream(self, url: str) -> str:
        def fail(message: str) -> StreamResolutionError:
            return StreamResolutionError(url, message)

        try:
            output = await self._run(self.stream_argv(url), fail)
            stream_url = next(
                (line.strip() for line in output.splitlines() if line.strip()), None
            )
            if stream_url is None:
                raise fail(ErrorMessages.RESOLVER_EMPTY_STREAM)
        except StreamResolutionError as e:
            logger.warning(LogTemplates.RESOLVER_STREAM_FAILED, url, e)
            raise

        return stream_url

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()
