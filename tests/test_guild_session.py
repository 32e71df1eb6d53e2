"""
Unit Tests for GuildSession and PlayAttempt

Tests for:
- FIFO enqueue with 1-based positions
- Identity-checked head removal and the loop policy
- Phase transitions (valid and invalid)
- One-shot attempt completion and invalidation
- Idempotent close()
"""

import asyncio

import pytest

from musync.application.services.guild_session import GuildSession, PlayAttempt
from musync.domain.music.value_objects import PlaybackPhase
from musync.domain.shared.exceptions import InvalidOperationError

from conftest import CHANNEL_ID, GUILD_ID, FakeAudioPlayer, FakeVoiceConnection, make_song


@pytest.fixture
def bare_session():
    return GuildSession(
        guild_id=GUILD_ID,
        voice_channel_id=CHANNEL_ID,
        connection=FakeVoiceConnection(CHANNEL_ID),
        player=FakeAudioPlayer(),
    )


class TestQueue:
    """Tests for queue mutation on GuildSession."""

    def test_new_session_is_idle(self, bare_session):
        assert bare_session.queue == []
        assert bare_session.playing is False
        assert bare_session.loop is False
        assert bare_session.phase is PlaybackPhase.IDLE
        assert bare_session.current_song is None

    def test_enqueue_returns_one_based_position(self, bare_session):
        assert bare_session.enqueue(make_song("A")) == 1
        assert bare_session.enqueue(make_song("B")) == 2
        assert bare_session.queue_length == 2

    def test_head_is_current_song(self, bare_session):
        a, b = make_song("A"), make_song("B")
        bare_session.enqueue(a)
        bare_session.enqueue(b)

        assert bare_session.current_song is a

    def test_enqueue_after_close_raises(self, bare_session):
        bare_session.close()

        with pytest.raises(InvalidOperationError):
            bare_session.enqueue(make_song("A"))

    def test_drop_head_requires_same_object(self, bare_session):
        a = make_song("A")
        bare_session.enqueue(a)

        # Equal by value but a different object must not remove the head.
        assert bare_session.drop_head(make_song("A")) is False
        assert bare_session.queue == [a]

        assert bare_session.drop_head(a) is True
        assert bare_session.queue == []

    def test_drop_head_ignores_loop(self, bare_session):
        a = make_song("A")
        bare_session.enqueue(a)
        bare_session.loop = True

        assert bare_session.drop_head(a) is True
        assert bare_session.queue == []

    def test_finish_head_without_loop_removes(self, bare_session):
        a, b = make_song("A"), make_song("B")
        bare_session.enqueue(a)
        bare_session.enqueue(b)

        assert bare_session.finish_head(a) is True
        assert bare_session.queue == [b]

    def test_finish_head_with_loop_keeps(self, bare_session):
        a = make_song("A")
        bare_session.enqueue(a)
        bare_session.toggle_loop()

        assert bare_session.finish_head(a) is False
        assert bare_session.queue == [a]

    def test_toggle_loop(self, bare_session):
        assert bare_session.toggle_loop() is True
        assert bare_session.toggle_loop() is False

    def test_clear_queue_returns_count(self, bare_session):
        bare_session.enqueue(make_song("A"))
        bare_session.enqueue(make_song("B"))

        assert bare_session.clear_queue() == 2
        assert bare_session.queue == []


class TestPhase:
    """Tests for PlaybackPhase transitions."""

    def test_full_cycle(self, bare_session):
        for phase in (
            PlaybackPhase.RESOLVING,
            PlaybackPhase.PLAYING,
            PlaybackPhase.ADVANCING,
            PlaybackPhase.RESOLVING,
            PlaybackPhase.ADVANCING,
            PlaybackPhase.IDLE,
        ):
            bare_session.transition(phase)
            assert bare_session.phase is phase

    @pytest.mark.parametrize(
        "start,target",
        [
            (PlaybackPhase.IDLE, PlaybackPhase.PLAYING),
            (PlaybackPhase.IDLE, PlaybackPhase.ADVANCING),
            (PlaybackPhase.PLAYING, PlaybackPhase.IDLE),
            (PlaybackPhase.PLAYING, PlaybackPhase.RESOLVING),
        ],
    )
    def test_invalid_transition_raises(self, bare_session, start, target):
        bare_session.phase = start

        with pytest.raises(InvalidOperationError):
            bare_session.transition(target)


class TestPlayAttempt:
    """Tests for the one-shot completion future."""

    async def test_first_completion_wins(self):
        attempt = PlayAttempt(make_song("A"))
        first = RuntimeError("first")

        attempt.complete(first)
        attempt.complete(None)

        assert attempt.done is True
        assert await attempt.wait() is first

    async def test_invalidate_makes_completion_noop(self):
        attempt = PlayAttempt(make_song("A"))

        attempt.invalidate()
        attempt.complete(None)

        assert attempt.invalidated is True
        with pytest.raises(asyncio.CancelledError):
            await attempt.wait()

    async def test_invalidate_after_complete_is_noop(self):
        attempt = PlayAttempt(make_song("A"))

        attempt.complete(None)
        attempt.invalidate()

        assert attempt.invalidated is False
        assert await attempt.wait() is None


class TestClose:
    """Tests for GuildSession.close()."""

    async def test_close_clears_everything(self, bare_session):
        bare_session.enqueue(make_song("A"))
        bare_session.playing = True
        attempt = bare_session.begin_attempt(bare_session.current_song)
        bare_session.phase = PlaybackPhase.PLAYING

        bare_session.close()

        assert bare_session.closed is True
        assert bare_session.queue == []
        assert bare_session.playing is False
        assert bare_session.phase is PlaybackPhase.IDLE
        assert bare_session.current_attempt is None
        assert attempt.invalidated is True
        assert bare_session.player.stop_calls == 1

    async def test_close_is_idempotent(self, bare_session):
        bare_session.close()
        bare_session.close()

        assert bare_session.player.stop_calls == 1

    async def test_close_cancels_idle_timer(self, bare_session):
        timer = asyncio.create_task(asyncio.sleep(10))
        bare_session.attach_idle_timer(timer)
        assert bare_session.idle_timer_armed is True

        bare_session.close()
        await asyncio.sleep(0)

        assert timer.cancelled()
        assert bare_session.idle_timer_armed is False

    async def test_close_survives_player_error(self, bare_session):
        def boom():
            raise RuntimeError("sink gone")

        bare_session.player.stop = boom

        bare_session.close()

        assert bare_session.closed is True

    async def test_attaching_new_idle_timer_cancels_previous(self, bare_session):
        first = asyncio.create_task(asyncio.sleep(10))
        second = asyncio.create_task(asyncio.sleep(10))

        bare_session.attach_idle_timer(first)
        bare_session.attach_idle_timer(second)
        await asyncio.sleep(0)

        assert first.cancelled()
        assert not second.done()
        bare_session.cancel_idle_timer()
