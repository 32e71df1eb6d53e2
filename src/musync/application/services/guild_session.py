"""Per-guild playback session: queue, flags, and exclusively owned voice handles."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.music.value_objects import PlaybackPhase
from ...domain.shared.exceptions import InvalidOperationError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import Song
    from ..interfaces.voice_adapter import AudioPlayer, VoiceConnection

logger = logging.getLogger(__name__)


class PlayAttempt:
    """One resolve-then-play cycle for the queue head.

    Owns a one-shot future: the first ``complete`` wins, later calls (a late
    sink callback, a second skip) are ignored, and ``invalidate`` makes every
    future call a no-op.
    """

    def __init__(self, song: Song) -> None:
        self.song = song
        self._finished: asyncio.Future[Exception | None] = (
            asyncio.get_running_loop().create_future()
        )

    @property
    def done(self) -> bool:
        return self._finished.done()

    @property
    def invalidated(self) -> bool:
        return self._finished.cancelled()

    def complete(self, error: Exception | None = None) -> None:
        if not self._finished.done():
            self._finished.set_result(error)

    def invalidate(self) -> None:
        if not self._finished.done():
            self._finished.cancel()

    async def wait(self) -> Exception | None:
        return await self._finished


class GuildSession:
    """Playback state for one guild while the bot is in a voice channel.

    The connection and player are handed over at construction and released
    together by ``SessionRegistry.remove``. All queue mutation happens on the
    event loop: command handlers append to the tail, the playback driver
    removes the head only after checking it is still the song it played.
    """

    def __init__(
        self,
        guild_id: int,
        voice_channel_id: int,
        connection: VoiceConnection,
        player: AudioPlayer,
    ) -> None:
        self.guild_id = guild_id
        self.voice_channel_id = voice_channel_id
        self.connection = connection
        self.player = player

        self.queue: list[Song] = []
        self.playing = False
        self.loop = False
        self.phase = PlaybackPhase.IDLE
        self.closed = False

        self.current_attempt: PlayAttempt | None = None
        self._driver_task: asyncio.Task[None] | None = None
        self._idle_task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return (
            f"GuildSession(guild_id={self.guild_id}, phase={self.phase.value}, "
            f"queue={len(self.queue)}, playing={self.playing}, loop={self.loop}, "
            f"closed={self.closed})"
        )

    # ── Queue ────────────────────────────────────────────────────────

    @property
    def current_song(self) -> Song | None:
        """The song at the head of the queue, which is the one being played."""
        return self.queue[0] if self.queue else None

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    def enqueue(self, song: Song) -> int:
        """Append *song* to the tail and return its 1-based position."""
        if self.closed:
            raise InvalidOperationError("enqueue", "closed")
        self.queue.append(song)
        return len(self.queue)

    def drop_head(self, song: Song) -> bool:
        """Remove the head if it is still *song*, regardless of the loop flag."""
        if self.queue and self.queue[0] is song:
            self.queue.pop(0)
            return True
        return False

    def finish_head(self, song: Song) -> bool:
        """Apply the loop policy after *song* completed naturally.

        Returns True if the song was removed from the head.
        """
        if self.loop:
            return False
        return self.drop_head(song)

    def clear_queue(self) -> int:
        cleared = len(self.queue)
        self.queue.clear()
        return cleared

    def toggle_loop(self) -> bool:
        self.loop = not self.loop
        return self.loop

    # ── Phase ────────────────────────────────────────────────────────

    def transition(self, target: PlaybackPhase) -> None:
        if not self.phase.can_transition_to(target):
            raise InvalidOperationError(
                f"transition to {target.value}", self.phase.value
            )
        self.phase = target

    def reset_phase(self) -> None:
        self.phase = PlaybackPhase.IDLE

    # ── Attempts and tasks ───────────────────────────────────────────

    def begin_attempt(self, song: Song) -> PlayAttempt:
        attempt = PlayAttempt(song)
        self.current_attempt = attempt
        return attempt

    def end_attempt(self, attempt: PlayAttempt) -> None:
        if self.current_attempt is attempt:
            self.current_attempt = None

    @property
    def driver_task(self) -> asyncio.Task[None] | None:
        return self._driver_task

    def attach_driver(self, task: asyncio.Task[None]) -> None:
        self._driver_task = task

    def attach_idle_timer(self, task: asyncio.Task[None]) -> None:
        self.cancel_idle_timer()
        self._idle_task = task

    @property
    def idle_timer_armed(self) -> bool:
        return self._idle_task is not None and not self._idle_task.done()

    def cancel_idle_timer(self) -> None:
        task, self._idle_task = self._idle_task, None
        _cancel_unless_current(task)

    def close(self) -> None:
        """Stop everything this session drives. Safe to call more than once.

        Clears the queue, invalidates the in-flight attempt so a late sink
        callback cannot advance anything, cancels the driver and idle timer
        and stops the player. The connection is destroyed by the registry.
        """
        if self.closed:
            return
        self.closed = True
        self.queue.clear()
        self.playing = False
        self.reset_phase()

        if self.current_attempt is not None:
            self.current_attempt.invalidate()
            self.current_attempt = None

        driver, self._driver_task = self._driver_task, None
        _cancel_unless_current(driver)
        self.cancel_idle_timer()

        try:
            self.player.stop()
        except Exception:
            logger.exception(LogTemplates.SESSION_CLOSE_ERROR, self.guild_id)


def _cancel_unless_current(task: asyncio.Task[None] | None) -> None:
    if task is None or task.done():
        return
    if task is asyncio.current_task():
        return
    task.cancel()
