"""
Unit Tests for MusicCommandHandler

Tests for:
- Voice-channel precondition on every command (ephemeral notice, no state change)
- /connect: create session, already connected, join failure
- /play: now playing vs. added to queue, song not found, join failure
- /skip, /stop, /pause, /resume, /queue, /loop replies and preconditions
- /pause and /resume refused when the player cannot honour them
- CommandReply / CommandContext / PlayCommand models
"""

import asyncio
import logging

import pytest
from pydantic import ValidationError

from musync.application.commands.music_commands import (
    CommandContext,
    CommandReply,
    CommandStatus,
    PlayCommand,
)
from musync.domain.shared.messages import DiscordUIMessages

from conftest import CHANNEL_ID, GUILD_ID, settle


@pytest.fixture
def in_voice():
    return CommandContext(
        guild_id=GUILD_ID, voice_channel_id=CHANNEL_ID, voice_channel_name="Lounge"
    )


@pytest.fixture
def not_in_voice():
    return CommandContext(guild_id=GUILD_ID)


@pytest.fixture(autouse=True)
async def _drain(registry):
    yield
    await registry.drain()


async def play(handler, ctx, query):
    return await handler.play(PlayCommand(context=ctx, query=query))


class TestModels:
    """Tests for the command value objects."""

    def test_context_in_voice(self, in_voice, not_in_voice):
        assert in_voice.in_voice is True
        assert not_in_voice.in_voice is False

    def test_play_command_strips_query(self, in_voice):
        command = PlayCommand(context=in_voice, query="  never gonna  ")
        assert command.query == "never gonna"

    def test_play_command_rejects_blank_query(self, in_voice):
        with pytest.raises(ValidationError):
            PlayCommand(context=in_voice, query="   ")

    def test_reply_factories(self):
        assert CommandReply.ok("x").status is CommandStatus.SUCCESS
        assert CommandReply.ok("x").ephemeral is False
        assert CommandReply.notice("x").ephemeral is True
        assert CommandReply.notice("x").is_success is False
        assert CommandReply.info("x").is_success is True
        assert CommandReply.error(CommandStatus.NOT_FOUND, "x").is_success is False


class TestVoicePrecondition:
    """Every command requires the member to be in a voice channel."""

    @pytest.mark.parametrize(
        "command", ["connect", "skip", "stop", "pause", "resume", "show_queue", "toggle_loop"]
    )
    async def test_command_requires_voice(self, handler, registry, not_in_voice, command):
        reply = await getattr(handler, command)(not_in_voice)

        assert reply.ephemeral is True
        assert reply.content == DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE
        assert len(registry) == 0

    async def test_play_requires_voice(self, handler, registry, resolver, not_in_voice):
        resolver.add("A")

        reply = await play(handler, not_in_voice, "A")

        assert reply.ephemeral is True
        assert reply.content == DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE
        assert resolver.search_calls == []
        assert len(registry) == 0


class TestConnect:
    """Tests for /connect."""

    async def test_connect_creates_session(self, handler, registry, in_voice):
        reply = await handler.connect(in_voice)

        assert reply.content == "Connected to Lounge!"
        assert reply.ephemeral is False
        session = registry.get(GUILD_ID)
        assert session is not None
        assert session.playing is False
        assert session.queue == []
        assert session.idle_timer_armed is True

    async def test_connect_when_already_connected(self, handler, gateway, in_voice):
        await handler.connect(in_voice)

        reply = await handler.connect(in_voice)

        assert reply.content == DiscordUIMessages.STATE_ALREADY_CONNECTED
        assert gateway.connect_calls == 1

    async def test_connect_failure(self, handler, registry, gateway, in_voice):
        gateway.fail_connect = True

        reply = await handler.connect(in_voice)

        assert reply.status is CommandStatus.VOICE_ERROR
        assert reply.content == DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE
        assert len(registry) == 0


class TestPlay:
    """Tests for /play."""

    async def test_first_play_reports_now_playing(self, handler, registry, resolver, in_voice):
        song = resolver.add("song A")

        reply = await play(handler, in_voice, "song A")
        await settle()

        assert reply.content == "Now playing: **song A**"
        assert reply.song is song
        session = registry.get(GUILD_ID)
        assert session.queue == [song]
        assert session.player.plays == [f"stream:{song.url}"]

    async def test_second_play_is_queued(self, handler, registry, resolver, in_voice):
        a = resolver.add("song A")
        b = resolver.add("song B")

        await play(handler, in_voice, "song A")
        reply = await play(handler, in_voice, "song B")
        await settle()

        assert reply.content == "Added to queue: **song B**"
        session = registry.get(GUILD_ID)
        assert session.queue == [a, b]
        assert len(session.player.plays) == 1

    @pytest.mark.parametrize(
        ("query", "kind"),
        [("https://www.youtube.com/watch?v=a", "url"), ("never gonna", "search")],
    )
    async def test_query_kind_is_logged(self, handler, in_voice, caplog, query, kind):
        with caplog.at_level(logging.INFO):
            await play(handler, in_voice, query)

        assert f"Received {kind} query: {query}" in caplog.text

    async def test_song_not_found(self, handler, registry, in_voice):
        reply = await play(handler, in_voice, "nothing matches this")

        assert reply.status is CommandStatus.NOT_FOUND
        assert reply.ephemeral is False
        assert reply.content == DiscordUIMessages.ERROR_SONG_NOT_FOUND
        assert len(registry) == 0

    async def test_song_not_found_leaves_existing_queue(self, handler, registry, resolver, in_voice):
        a = resolver.add("song A")
        await play(handler, in_voice, "song A")

        await play(handler, in_voice, "missing")

        assert registry.get(GUILD_ID).queue == [a]

    async def test_join_failure(self, handler, registry, resolver, gateway, in_voice):
        resolver.add("song A")
        gateway.fail_connect = True

        reply = await play(handler, in_voice, "song A")

        assert reply.content == DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE
        assert len(registry) == 0

    async def test_failing_stream_after_now_playing(self, handler, registry, resolver, in_voice):
        song = resolver.add("bad-url")
        resolver.failing.add(song.url)

        reply = await play(handler, in_voice, "bad-url")
        await settle()

        assert reply.content == "Now playing: **bad-url**"
        session = registry.get(GUILD_ID)
        assert session.queue == []
        assert session.playing is False
        assert session.idle_timer_armed is True


class TestPlaybackControls:
    """Tests for /skip, /stop, /pause, /resume."""

    async def test_skip_without_session(self, handler, in_voice):
        reply = await handler.skip(in_voice)

        assert reply.ephemeral is True
        assert reply.content == DiscordUIMessages.STATE_NOTHING_TO_SKIP

    async def test_skip_when_idle(self, handler, in_voice):
        await handler.connect(in_voice)

        reply = await handler.skip(in_voice)

        assert reply.content == DiscordUIMessages.STATE_NOTHING_TO_SKIP
        assert reply.ephemeral is True

    async def test_skip_plays_next(self, handler, registry, resolver, in_voice):
        a = resolver.add("A")
        b = resolver.add("B")
        await play(handler, in_voice, "A")
        await play(handler, in_voice, "B")
        await settle()

        reply = await handler.skip(in_voice)
        await settle()

        assert reply.content == DiscordUIMessages.ACTION_SKIPPED
        assert reply.song is a
        assert registry.get(GUILD_ID).queue == [b]

    async def test_stop_without_session(self, handler, in_voice):
        reply = await handler.stop(in_voice)

        assert reply.content == DiscordUIMessages.STATE_NOTHING_PLAYING
        assert reply.ephemeral is True

    async def test_stop_tears_down(self, handler, registry, resolver, in_voice):
        resolver.add("A")
        await play(handler, in_voice, "A")
        await settle()
        session = registry.get(GUILD_ID)

        reply = await handler.stop(in_voice)

        assert reply.content == DiscordUIMessages.ACTION_STOPPED
        assert registry.get(GUILD_ID) is None
        assert session.connection.destroy_calls == 1

    async def test_pause_and_resume(self, handler, resolver, in_voice):
        resolver.add("A")
        await play(handler, in_voice, "A")
        await settle()

        assert (await handler.pause(in_voice)).content == DiscordUIMessages.ACTION_PAUSED
        assert (await handler.resume(in_voice)).content == DiscordUIMessages.ACTION_RESUMED

    async def test_pause_when_idle(self, handler, in_voice):
        await handler.connect(in_voice)

        reply = await handler.pause(in_voice)

        assert reply.content == DiscordUIMessages.STATE_NOTHING_TO_PAUSE
        assert reply.ephemeral is True

    async def test_resume_when_idle(self, handler, in_voice):
        await handler.connect(in_voice)

        reply = await handler.resume(in_voice)

        assert reply.content == DiscordUIMessages.STATE_NOTHING_TO_RESUME

    async def test_pause_while_resolving_is_refused(self, handler, registry, resolver, in_voice):
        song = resolver.add("A")
        gate = asyncio.Event()
        resolver.gates[song.url] = gate
        await play(handler, in_voice, "A")
        await settle()

        reply = await handler.pause(in_voice)

        assert reply.content == DiscordUIMessages.STATE_NOTHING_TO_PAUSE
        assert reply.ephemeral is True
        gate.set()
        await settle()
        player = registry.get(GUILD_ID).player
        assert player.plays == [f"stream:{song.url}"]
        assert player.is_paused is False

    async def test_resume_while_playing_is_refused(self, handler, resolver, in_voice):
        resolver.add("A")
        await play(handler, in_voice, "A")
        await settle()

        reply = await handler.resume(in_voice)

        assert reply.content == DiscordUIMessages.STATE_NOTHING_TO_RESUME
        assert reply.ephemeral is True

    async def test_double_pause_is_refused(self, handler, resolver, in_voice):
        resolver.add("A")
        await play(handler, in_voice, "A")
        await settle()

        await handler.pause(in_voice)
        reply = await handler.pause(in_voice)

        assert reply.content == DiscordUIMessages.STATE_NOTHING_TO_PAUSE


class TestQueueAndLoop:
    """Tests for /queue and /loop."""

    async def test_queue_lists_songs_in_order(self, handler, resolver, in_voice):
        for title in ("A", "B", "C"):
            resolver.add(title)
            await play(handler, in_voice, title)

        reply = await handler.show_queue(in_voice)

        assert reply.content == "**Current Queue:**\n1. A\n2. B\n3. C"

    async def test_queue_empty(self, handler, in_voice):
        await handler.connect(in_voice)

        reply = await handler.show_queue(in_voice)

        assert reply.content == DiscordUIMessages.STATE_QUEUE_EMPTY
        assert reply.ephemeral is True

    async def test_queue_without_session(self, handler, in_voice):
        reply = await handler.show_queue(in_voice)

        assert reply.content == DiscordUIMessages.STATE_QUEUE_EMPTY

    async def test_loop_toggles(self, handler, registry, in_voice):
        await handler.connect(in_voice)

        first = await handler.toggle_loop(in_voice)
        second = await handler.toggle_loop(in_voice)

        assert first.content == "Looping is now **enabled** for the current song."
        assert second.content == "Looping is now **disabled** for the current song."
        assert registry.get(GUILD_ID).loop is False

    async def test_loop_without_session(self, handler, in_voice):
        reply = await handler.toggle_loop(in_voice)

        assert reply.content == DiscordUIMessages.STATE_NOTHING_TO_LOOP
        assert reply.ephemeral is True
