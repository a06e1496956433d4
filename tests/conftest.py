from __future__ import annotations

import asyncio
import random

import pytest

from room_session_engine.core.engine import EngineConfig, SessionEngine
from room_session_engine.core.errors import MissingPermissionError
from room_session_engine.core.games import GameManager
from room_session_engine.core.playback import PlaybackManager
from room_session_engine.core.registry import RoomSessionRegistry
from room_session_engine.core.types import Track


class StubResponder:
    def __init__(self):
        self.sent: list[tuple[str, object]] = []
        self.edits: list[tuple[int, str]] = []

    async def send(self, room_id, content):
        self.sent.append((room_id, content))
        return len(self.sent) - 1

    async def edit(self, handle, text):
        self.edits.append((handle, text))

    def texts(self, room_id: str) -> list[str]:
        return [content for rid, content in self.sent if rid == room_id and isinstance(content, str)]


class StubConnection:
    def __init__(self, room_id: str, voice_channel_id: str):
        self.room_id = room_id
        self.voice_channel_id = voice_channel_id
        self.played: list[str] = []
        self.volume: float | None = None
        self.released = False


class StubTransport:
    """Records transport calls; ``stop_playback`` emits a finished event like a real player."""

    def __init__(self, *, deny_rooms: set[str] | None = None, fail_play: bool = False):
        self.events = None
        self.connections: list[StubConnection] = []
        self.stops: list[str] = []
        self.deny_rooms = deny_rooms or set()
        self.fail_play = fail_play
        self._pending: list[asyncio.Task] = []

    def bind(self, events):
        self.events = events

    async def join(self, room_id, voice_channel_id):
        if room_id in self.deny_rooms:
            raise MissingPermissionError()
        conn = StubConnection(room_id, voice_channel_id)
        self.connections.append(conn)
        return conn

    async def play_resource(self, handle, source_ref, volume):
        if self.fail_play:
            raise RuntimeError("decoder exploded")
        handle.played.append(source_ref)
        handle.volume = volume

    async def stop_playback(self, handle):
        self.stops.append(handle.room_id)
        if not handle.released:
            self._pending.append(asyncio.create_task(self.events.on_track_finished(handle.room_id)))

    async def set_volume(self, handle, volume):
        handle.volume = volume

    async def release(self, handle):
        handle.released = True

    async def settle(self):
        while self._pending:
            pending, self._pending = self._pending, []
            await asyncio.gather(*pending)


class StubResolver:
    def __init__(self, catalog: dict[str, Track] | None = None, delay: float = 0.0):
        self.catalog = catalog or {}
        self.delay = delay
        self.queries: list[str] = []

    async def resolve(self, query):
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if query in self.catalog:
            return self.catalog[query]
        return Track(title=query, source_ref=f"stub://{query}")


class StubCompletion:
    def __init__(self, answer: str | None = "42 is the answer.", delay: float = 0.0, error: Exception | None = None):
        self.answer = answer
        self.delay = delay
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


class StubJokes:
    def __init__(self, joke: str | None = "I used to be a banker, but I lost interest."):
        self.joke = joke

    async def fetch_joke(self):
        return self.joke


@pytest.fixture()
def registry():
    return RoomSessionRegistry()


@pytest.fixture()
def responder():
    return StubResponder()


@pytest.fixture()
def transport():
    return StubTransport()


@pytest.fixture()
def transport_factory():
    return StubTransport


@pytest.fixture()
def playback(registry, transport, responder):
    return PlaybackManager(registry, transport, responder)


@pytest.fixture()
def games(registry):
    return GameManager(registry, rng=random.Random(7))


@pytest.fixture()
def make_engine(responder, transport):
    def _factory(**kwargs) -> SessionEngine:
        kwargs.setdefault("resolver", StubResolver())
        kwargs.setdefault("completion", StubCompletion())
        kwargs.setdefault("jokes", StubJokes())
        kwargs.setdefault("config", EngineConfig(provider_timeout_seconds=0.2))
        kwargs.setdefault("rng", random.Random(11))
        return SessionEngine(responder, transport, **kwargs)

    return _factory
