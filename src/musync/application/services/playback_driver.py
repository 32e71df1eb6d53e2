"""Playback Driver - resolves, plays and advances through a guild's queue."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING

from ...config.settings import PlaybackSettings
from ...domain.music.value_objects import PlaybackPhase, TeardownReason
from ...domain.shared.exceptions import PlaybackError, StreamResolutionError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import Song
    from ..interfaces.audio_resolver import AudioResolver
    from .guild_session import GuildSession
    from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class PlaybackDriver:
    """Runs one sequential playback loop per guild session.

    Each pass takes the queue head, resolves a fresh stream address, hands it
    to the session's player and waits for that attempt's single completion
    signal before applying the loop policy. A song whose stream cannot be
    resolved is always dropped, loop or not. When the queue runs dry the
    session goes idle and an inactivity timer is armed; the timer re-checks
    the session when it fires before tearing it down.
    """

    def __init__(
        self,
        *,
        session_registry: SessionRegistry,
        audio_resolver: AudioResolver,
        settings: PlaybackSettings | None = None,
    ) -> None:
        self._registry = session_registry
        self._resolver = audio_resolver
        self._settings = settings or PlaybackSettings()

    @property
    def idle_timeout(self) -> float:
        return self._settings.idle_timeout_seconds

    # ── Control surface ──────────────────────────────────────────────

    def ensure_playing(self, session: GuildSession) -> bool:
        """Start the driver for *session* unless it is already running.

        Returns True if a new driver task was started.
        """
        if session.closed or not session.queue:
            return False
        if session.playing:
            logger.debug(LogTemplates.DRIVER_ALREADY_RUNNING, session.guild_id)
            return False

        session.playing = True
        session.cancel_idle_timer()

        task = asyncio.create_task(
            self._drive(session), name=f"musync-driver-{session.guild_id}"
        )
        task.add_done_callback(functools.partial(self._on_driver_done, session))
        session.attach_driver(task)
        logger.info(LogTemplates.DRIVER_STARTED, session.guild_id)
        return True

    def skip(self, session: GuildSession) -> Song | None:
        """Force the current attempt to complete as if the song had ended."""
        attempt = session.current_attempt
        if attempt is None or attempt.done:
            return None

        if session.phase is PlaybackPhase.PLAYING:
            session.player.stop()
        attempt.complete(None)

        logger.info(LogTemplates.TRACK_SKIPPED, attempt.song.title, session.guild_id)
        return attempt.song

    def pause(self, session: GuildSession) -> bool:
        return session.player.pause()

    def resume(self, session: GuildSession) -> bool:
        return session.player.resume()

    def arm_idle(self, session: GuildSession) -> bool:
        """Start the inactivity timer for a session that has nothing to play.

        Used for sessions that joined voice without a song. Returns False if the
        session is closed or already has work.
        """
        if session.closed or session.playing or session.queue:
            return False
        logger.info(LogTemplates.QUEUE_EMPTY, session.guild_id, self.idle_timeout)
        self._arm_idle_timer(session)
        return True

    async def stop(self, session: GuildSession) -> bool:
        """Clear the queue, stop the sink and tear the session down."""
        return await self._registry.remove(
            session.guild_id, expected=session, reason=TeardownReason.STOPPED
        )

    # ── Driver loop ──────────────────────────────────────────────────

    async def _drive(self, session: GuildSession) -> None:
        while not session.closed:
            song = session.current_song
            if song is None:
                break
            if not await self._play_once(session, song):
                logger.debug(LogTemplates.DRIVER_STOPPED, session.guild_id)
                return

        if not session.closed:
            self._go_idle(session)

    async def _play_once(self, session: GuildSession, song: Song) -> bool:
        """Run one attempt for *song*. Returns False once the session is gone."""
        guild_id = session.guild_id
        session.transition(PlaybackPhase.RESOLVING)
        attempt = session.begin_attempt(song)
        try:
            logger.info(LogTemplates.DRIVER_RESOLVING, song.title, guild_id)
            try:
                stream_url = await self._resolver.resolve_stream(song.url)
            except StreamResolutionError as e:
                if self._is_stale(session):
                    return False
                logger.warning(LogTemplates.DRIVER_STREAM_FAILED, song.title, guild_id, e)
                session.transition(PlaybackPhase.ADVANCING)
                session.drop_head(song)
                return True
            except Exception as e:
                if self._is_stale(session):
                    return False
                logger.exception(LogTemplates.DRIVER_STREAM_FAILED, song.title, guild_id, e)
                session.transition(PlaybackPhase.ADVANCING)
                session.drop_head(song)
                return True

            if self._is_stale(session):
                return False

            if attempt.done:
                logger.info(LogTemplates.DRIVER_SKIPPED_WHILE_RESOLVING, song.title, guild_id)
                session.transition(PlaybackPhase.ADVANCING)
                session.finish_head(song)
                return True

            session.transition(PlaybackPhase.PLAYING)
            try:
                session.player.play(stream_url, attempt.complete)
            except PlaybackError as e:
                logger.warning(LogTemplates.DRIVER_PLAYBACK_REJECTED, song.title, guild_id, e)
                session.transition(PlaybackPhase.ADVANCING)
                session.drop_head(song)
                return True

            logger.info(LogTemplates.TRACK_STARTED, song.title, guild_id)
            error = await attempt.wait()
            if self._is_stale(session):
                return False

            logger.info(LogTemplates.TRACK_FINISHED, song.title, guild_id, error)
            session.transition(PlaybackPhase.ADVANCING)
            if not session.finish_head(song):
                logger.info(LogTemplates.TRACK_LOOPED, song.title, guild_id)
            return True
        finally:
            session.end_attempt(attempt)

    def _is_stale(self, session: GuildSession) -> bool:
        if session.closed or self._registry.get(session.guild_id) is not session:
            logger.debug(LogTemplates.DRIVER_STALE_RESULT, session.guild_id)
            return True
        return False

    def _go_idle(self, session: GuildSession) -> None:
        if session.phase is not PlaybackPhase.IDLE:
            session.transition(PlaybackPhase.IDLE)
        session.playing = False
        logger.info(LogTemplates.QUEUE_EMPTY, session.guild_id, self.idle_timeout)
        self._arm_idle_timer(session)

    def _on_driver_done(self, session: GuildSession, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return

        logger.error(LogTemplates.DRIVER_CRASHED, session.guild_id, exc_info=exc)
        if session.closed:
            return
        session.clear_queue()
        session.reset_phase()
        session.playing = False
        self._arm_idle_timer(session)

    # ── Idle teardown ────────────────────────────────────────────────

    def _arm_idle_timer(self, session: GuildSession) -> None:
        task = asyncio.create_task(
            self._idle_teardown(session), name=f"musync-idle-{session.guild_id}"
        )
        session.attach_idle_timer(task)

    async def _idle_teardown(self, session: GuildSession) -> None:
        await asyncio.sleep(self.idle_timeout)

        if (
            session.closed
            or session.playing
            or session.queue
            or self._registry.get(session.guild_id) is not session
        ):
            logger.debug(LogTemplates.IDLE_TIMER_NOOP, session.guild_id)
            return

        logger.info(LogTemplates.IDLE_TEARDOWN, session.guild_id)
        await self._registry.remove(
            session.guild_id, expected=session, reason=TeardownReason.INACTIVITY
        )
