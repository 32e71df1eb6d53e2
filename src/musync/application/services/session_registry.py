"""Session Registry - maps guild IDs to their playback sessions."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from ...domain.music.value_objects import TeardownReason
from ...domain.shared.messages import LogTemplates
from .guild_session import GuildSession

if TYPE_CHECKING:
    from ..interfaces.voice_adapter import VoiceGateway

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns every active ``GuildSession``.

    Created once per process and injected into the command handlers and the
    playback driver. Creation and removal are serialised per guild, so two
    concurrent ``get_or_create`` calls for the same guild observe one session
    and an idle teardown racing an explicit stop destroys the connection once.
    """

    def __init__(self, voice_gateway: VoiceGateway) -> None:
        self._gateway = voice_gateway
        self._sessions: dict[int, GuildSession] = {}
        self._guild_locks: dict[int, asyncio.Lock] = {}
        self._lock_users: dict[int, int] = defaultdict(int)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def guild_ids(self) -> list[int]:
        return list(self._sessions)

    def get(self, guild_id: int) -> GuildSession | None:
        return self._sessions.get(guild_id)

    @contextlib.asynccontextmanager
    async def _guild_lock(self, guild_id: int) -> AsyncIterator[None]:
        """Hold the guild's lock, discarding it once nobody holds or waits on it."""
        lock = self._guild_locks.setdefault(guild_id, asyncio.Lock())
        self._lock_users[guild_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[guild_id] -= 1
            if not self._lock_users[guild_id]:
                del self._lock_users[guild_id]
                del self._guild_locks[guild_id]

    async def get_or_create(self, guild_id: int, voice_channel_id: int) -> GuildSession:
        """Return the guild's session, joining *voice_channel_id* to create one if needed.

        Raises:
            VoiceConnectionError: If the gateway could not join the channel.
        """
        existing = self._sessions.get(guild_id)
        if existing is not None:
            return existing

        async with self._guild_lock(guild_id):
            existing = self._sessions.get(guild_id)
            if existing is not None:
                return existing

            connection = await self._gateway.connect(guild_id, voice_channel_id)
            try:
                player = self._gateway.create_player(guild_id)
                connection.subscribe(player)
            except Exception:
                logger.warning(LogTemplates.SESSION_SUBSCRIBE_FAILED, guild_id)
                await connection.destroy()
                raise

            session = GuildSession(
                guild_id=guild_id,
                voice_channel_id=voice_channel_id,
                connection=connection,
                player=player,
            )
            self._sessions[guild_id] = session
            logger.info(LogTemplates.SESSION_CREATED, guild_id, voice_channel_id)
            return session

    async def remove(
        self,
        guild_id: int,
        *,
        expected: GuildSession | None = None,
        reason: TeardownReason = TeardownReason.STOPPED,
    ) -> bool:
        """Close the guild's session, destroy its connection and drop the entry.

        With *expected*, only that exact session is removed; a newer session
        registered for the same guild is left alone. Returns False if there
        was nothing to remove.
        """
        async with self._guild_lock(guild_id):
            session = self._sessions.get(guild_id)
            if session is None:
                logger.debug(LogTemplates.SESSION_NOT_FOUND, guild_id)
                return False
            if expected is not None and session is not expected:
                logger.debug(LogTemplates.SESSION_SUPERSEDED, guild_id)
                return False

            del self._sessions[guild_id]
            session.close()
            try:
                if not session.connection.is_destroyed:
                    await session.connection.destroy()
            except Exception:
                logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, guild_id)

        logger.info(LogTemplates.SESSION_REMOVED, guild_id, reason.value)
        return True

    async def drain(self) -> int:
        """Remove every session. Used at process shutdown."""
        removed = 0
        for guild_id in list(self._sessions):
            try:
                if await self.remove(guild_id, reason=TeardownReason.SHUTDOWN):
                    removed += 1
            except Exception:
                logger.exception(LogTemplates.SESSION_CLOSE_ERROR, guild_id)
        logger.info(LogTemplates.SESSIONS_DRAINED, removed)
        return removed
