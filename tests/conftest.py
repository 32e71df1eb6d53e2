import asyncio

import pytest
import pytest_asyncio

from musync.application.interfaces.audio_resolver import AudioResolver
from musync.application.interfaces.voice_adapter import AudioPlayer, VoiceConnection, VoiceGateway
from musync.config.settings import PlaybackSettings
from musync.domain.music.entities import Song
from musync.domain.shared.exceptions import (
    PlaybackError,
    ResolutionError,
    StreamResolutionError,
    VoiceConnectionError,
)

GUILD_ID = 111111111111111111
OTHER_GUILD_ID = 222222222222222222
CHANNEL_ID = 333333333333333333

# ============================================================================
# Fakes
# ============================================================================


async def settle(rounds: int = 20) -> None:
    """Let pending callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_song(title: str) -> Song:
    slug = title.lower().replace(" ", "-")
    return Song(title=title, url=f"https://www.youtube.com/watch?v={slug}")


class FakeAudioResolver(AudioResolver):
    """In-memory resolver.

    ``search`` looks the query up in ``catalog``. ``resolve_stream`` returns
    ``stream:<url>`` unless the URL is in ``failing``; URLs in ``gates`` block
    until their event is set.
    """

    def __init__(self) -> None:
        self.catalog: dict[str, Song] = {}
        self.failing: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.search_calls: list[str] = []
        self.stream_calls: list[str] = []

    def add(self, title: str) -> Song:
        song = make_song(title)
        self.catalog[title] = song
        return song

    async def search(self, query: str) -> Song:
        self.search_calls.append(query)
        song = self.catalog.get(query)
        if song is None:
            raise ResolutionError(query)
        return song

    async def resolve_stream(self, url: str) -> str:
        self.stream_calls.append(url)
        gate = self.gates.get(url)
        if gate is not None:
            await gate.wait()
        if url in self.failing:
            raise StreamResolutionError(url)
        return f"stream:{url}"

    def is_url(self, query: str) -> bool:
        return query.startswith(("http://", "https://"))


class FakeAudioPlayer(AudioPlayer):
    """Audio sink that records every play and finishes only when told to."""

    def __init__(self) -> None:
        self.plays: list[str] = []
        self.stop_calls = 0
        self.reject = False
        self._paused = False
        self._on_finished = None

    @property
    def is_playing(self) -> bool:
        return self._on_finished is not None

    @property
    def is_paused(self) -> bool:
        return self._paused

    def play(self, stream_url, on_finished) -> None:
        if self.reject:
            raise PlaybackError("rejected")
        self.plays.append(stream_url)
        self._on_finished = on_finished
        self._paused = False

    def finish(self, error: Exception | None = None) -> None:
        """Simulate the stream ending, delivered on the loop like the real sink."""
        callback, self._on_finished = self._on_finished, None
        if callback is not None:
            asyncio.get_running_loop().call_soon(callback, error)

    def fire_late(self, callback, error: Exception | None = None) -> None:
        asyncio.get_running_loop().call_soon(callback, error)

    def stop(self) -> None:
        self.stop_calls += 1
        self._paused = False
        self.finish()

    def pause(self) -> bool:
        if self._on_finished is None or self._paused:
            return False
        self._paused = True
        return True

    def resume(self) -> bool:
        if not self._paused:
            return False
        self._paused = False
        return True


class FakeVoiceConnection(VoiceConnection):
    def __init__(self, channel_id: int) -> None:
        self._channel_id = channel_id
        self.destroy_calls = 0
        self.subscribed: list[AudioPlayer] = []
        self.fail_subscribe = False

    @property
    def channel_id(self) -> int:
        return self._channel_id

    @property
    def is_destroyed(self) -> bool:
        return self.destroy_calls > 0

    def subscribe(self, player: AudioPlayer) -> None:
        if self.fail_subscribe:
            raise RuntimeError("subscribe failed")
        self.subscribed.append(player)

    async def destroy(self) -> None:
        self.destroy_calls += 1


class FakeVoiceGateway(VoiceGateway):
    def __init__(self) -> None:
        self.connections: list[FakeVoiceConnection] = []
        self.players: list[FakeAudioPlayer] = []
        self.connect_calls = 0
        self.fail_connect = False
        self.fail_subscribe = False
        self.connect_delay = 0.0

    async def connect(self, guild_id: int, channel_id: int) -> FakeVoiceConnection:
        self.connect_calls += 1
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.fail_connect:
            raise VoiceConnectionError(guild_id, channel_id)
        connection = FakeVoiceConnection(channel_id)
        connection.fail_subscribe = self.fail_subscribe
        self.connections.append(connection)
        return connection

    def create_player(self, guild_id: int) -> FakeAudioPlayer:
        player = FakeAudioPlayer()
        self.players.append(player)
        return player


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def resolver():
    return FakeAudioResolver()


@pytest.fixture
def gateway():
    return FakeVoiceGateway()


@pytest.fixture
def playback_settings():
    """Idle timeout shrunk so teardown tests run in milliseconds."""
    return PlaybackSettings(idle_timeout_seconds=0.05)


@pytest.fixture
def registry(gateway):
    from musync.application.services.session_registry import SessionRegistry

    return SessionRegistry(gateway)


@pytest.fixture
def driver(registry, resolver, playback_settings):
    from musync.application.services.playback_driver import PlaybackDriver

    return PlaybackDriver(
        session_registry=registry,
        audio_resolver=resolver,
        settings=playback_settings,
    )


@pytest.fixture
def handler(registry, driver, resolver):
    from musync.application.commands.music_commands import MusicCommandHandler

    return MusicCommandHandler(
        session_registry=registry,
        playback_driver=driver,
        audio_resolver=resolver,
    )


@pytest_asyncio.fixture
async def session(registry):
    """A registered session for GUILD_ID, torn down after the test."""
    session = await registry.get_or_create(GUILD_ID, CHANNEL_ID)
    yield session
    await registry.drain()
