from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from room_session_engine.core.errors import MissingPermissionError
from room_session_engine.discord_bot import DiscordAudioTransport, VoiceHandle


class SilentAudio(discord.AudioSource):
    def read(self) -> bytes:
        return b""

    def is_opus(self) -> bool:
        return False


class FakeVoiceClient:
    def __init__(self, channel=None, *, connected: bool = True, playing: bool = False):
        self.channel = channel
        self.connected = connected
        self.playing = playing
        self.after = None
        self.stops = 0
        self.moved_to = None
        self.disconnected = False

    def is_connected(self):
        return self.connected

    def is_playing(self):
        return self.playing

    def is_paused(self):
        return False

    def play(self, source, *, after=None):
        self.after = after
        self.playing = True

    def stop(self):
        self.stops += 1
        self.playing = False

    async def move_to(self, channel):
        self.moved_to = channel
        self.channel = channel

    async def disconnect(self, *, force: bool = False):
        self.disconnected = True
        self.connected = False


class RecordingEvents:
    def __init__(self):
        self.finished: list[str] = []
        self.errors: list[tuple[str, object]] = []

    async def on_track_finished(self, room_id):
        self.finished.append(room_id)

    async def on_transport_error(self, room_id, cause):
        self.errors.append((room_id, cause))


def voice_channel(channel_id: int, *, existing=None, can_speak: bool = True, connect_error=None):
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = channel_id
    channel.guild = SimpleNamespace(id=7, me=object(), voice_client=existing)
    channel.permissions_for.return_value = SimpleNamespace(connect=True, speak=can_speak)
    fresh = FakeVoiceClient(channel)
    channel.connect = AsyncMock(return_value=fresh, side_effect=connect_error)
    return channel, fresh


def transport_for(*channels) -> DiscordAudioTransport:
    by_id = {channel.id: channel for channel in channels}
    return DiscordAudioTransport(SimpleNamespace(get_channel=by_id.get))


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


def test_join_connects_when_guild_has_no_voice_client():
    channel, fresh = voice_channel(42)
    transport = transport_for(channel)

    handle = asyncio.run(transport.join("guild-7", "42"))

    assert handle.voice_client is fresh
    channel.connect.assert_awaited_once()


def test_join_reuses_leftover_voice_client_in_same_channel():
    existing = FakeVoiceClient(playing=True)
    channel, _ = voice_channel(42, existing=existing, connect_error=discord.ClientException("Already connected"))
    existing.channel = channel
    transport = transport_for(channel)

    handle = asyncio.run(transport.join("guild-7", "42"))

    assert handle.voice_client is existing
    assert existing.stops == 1
    assert existing.moved_to is None
    channel.connect.assert_not_awaited()


def test_join_moves_leftover_voice_client_from_another_channel():
    old_channel, _ = voice_channel(41)
    existing = FakeVoiceClient(old_channel)
    channel, _ = voice_channel(42, existing=existing)
    transport = transport_for(channel)

    handle = asyncio.run(transport.join("guild-7", "42"))

    assert handle.voice_client is existing
    assert existing.moved_to is channel
    channel.connect.assert_not_awaited()


def test_join_replaces_disconnected_voice_client():
    existing = FakeVoiceClient(connected=False)
    channel, fresh = voice_channel(42, existing=existing)
    transport = transport_for(channel)

    handle = asyncio.run(transport.join("guild-7", "42"))

    assert existing.disconnected is True
    assert handle.voice_client is fresh


def test_join_maps_only_forbidden_to_missing_permission():
    forbidden = discord.Forbidden(SimpleNamespace(status=403, reason="Forbidden"), "Missing Permissions")
    denied, _ = voice_channel(42, connect_error=forbidden)
    busy, _ = voice_channel(43, connect_error=discord.ClientException("Already connected"))
    mute, _ = voice_channel(44, can_speak=False)
    transport = transport_for(denied, busy, mute)

    with pytest.raises(MissingPermissionError):
        asyncio.run(transport.join("guild-7", "42"))
    with pytest.raises(MissingPermissionError):
        asyncio.run(transport.join("guild-7", "44"))
    with pytest.raises(discord.ClientException) as excinfo:
        asyncio.run(transport.join("guild-7", "43"))
    assert not isinstance(excinfo.value, MissingPermissionError)


def test_after_callback_emits_events_until_handle_is_released(monkeypatch):
    monkeypatch.setattr(discord, "FFmpegPCMAudio", lambda *args, **kwargs: SilentAudio())
    events = RecordingEvents()
    transport = transport_for()
    transport.bind(events)
    voice_client = FakeVoiceClient()
    handle = VoiceHandle(room_id="guild-7", voice_client=voice_client)
    cause = RuntimeError("stream died")

    async def run_test():
        await transport.play_resource(handle, "file:///music/a.ogg", 0.5)
        after = voice_client.after
        after(None)
        await settle()
        after(cause)
        await settle()
        await transport.release(handle)
        after(None)
        after(cause)
        await settle()

    asyncio.run(run_test())

    assert events.finished == ["guild-7"]
    assert events.errors == [("guild-7", cause)]
    assert voice_client.disconnected is True


def test_callback_queued_before_release_is_dropped(monkeypatch):
    monkeypatch.setattr(discord, "FFmpegPCMAudio", lambda *args, **kwargs: SilentAudio())
    events = RecordingEvents()
    transport = transport_for()
    transport.bind(events)
    voice_client = FakeVoiceClient()
    handle = VoiceHandle(room_id="guild-7", voice_client=voice_client)

    async def run_test():
        await transport.play_resource(handle, "file:///music/a.ogg", 0.5)
        voice_client.after(None)
        await transport.release(handle)
        await settle()

    asyncio.run(run_test())
    assert events.finished == []


def test_failing_event_handler_is_logged_not_lost(monkeypatch, caplog):
    monkeypatch.setattr(discord, "FFmpegPCMAudio", lambda *args, **kwargs: SilentAudio())

    class BrokenEvents(RecordingEvents):
        async def on_track_finished(self, room_id):
            raise RuntimeError("advance exploded")

    transport = transport_for()
    transport.bind(BrokenEvents())
    voice_client = FakeVoiceClient()
    handle = VoiceHandle(room_id="guild-7", voice_client=voice_client)

    async def run_test():
        await transport.play_resource(handle, "file:///music/a.ogg", 0.5)
        voice_client.after(None)
        await settle()

    asyncio.run(run_test())
    assert "Playback event handler failed" in caplog.text
