from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import discord

from .core.engine import SessionEngine
from .core.errors import MissingPermissionError, NoVoiceChannelError
from .core.ports import PlaybackEventsPort
from .core.types import Embed, InboundMessage

logger = logging.getLogger(__name__)

FFMPEG_BEFORE_OPTIONS = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
FFMPEG_OPTIONS = "-vn"


def room_id_for(message: discord.Message) -> str:
    guild = message.guild
    if guild is not None:
        return str(guild.id)
    return f"dm:{message.channel.id}"


def to_discord_embed(embed: Embed) -> discord.Embed:
    out = discord.Embed(
        title=embed.title,
        description=embed.description or None,
        color=embed.color,
        url=embed.url,
    )
    for field in embed.fields:
        out.add_field(name=field.name, value=field.value, inline=field.inline)
    if embed.footer:
        out.set_footer(text=embed.footer)
    out.timestamp = discord.utils.utcnow()
    return out


class DiscordResponder:
    """Sends replies to the text channel a room last spoke in."""

    def __init__(self):
        self._channels: dict[str, discord.abc.Messageable] = {}

    def remember_channel(self, room_id: str, channel: discord.abc.Messageable) -> None:
        self._channels[room_id] = channel

    async def send(self, room_id: str, content: str | Embed) -> Optional[discord.Message]:
        channel = self._channels.get(room_id)
        if channel is None:
            logger.warning("No text channel known for room %s", room_id)
            return None
        if isinstance(content, Embed):
            return await channel.send(embed=to_discord_embed(content))
        return await channel.send(content)

    async def edit(self, handle: Any, text: str) -> None:
        if handle is None:
            return
        await handle.edit(content=text)


@dataclass
class VoiceHandle:
    room_id: str
    voice_client: discord.VoiceClient
    source: Optional[discord.PCMVolumeTransformer] = None
    released: bool = False


class DiscordAudioTransport:
    """Voice connections backed by discord.py ``VoiceClient``.

    The player's ``after`` callback runs on the audio thread; it is marshalled
    back onto the event loop and dropped once its handle has been released,
    so a stale completion can never advance a newer session.
    """

    def __init__(self, client: discord.Client, *, ffmpeg_executable: str | None = None):
        self._client = client
        self._ffmpeg_executable = ffmpeg_executable or "ffmpeg"
        self._events: PlaybackEventsPort | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._event_tasks: set[asyncio.Task] = set()

    def bind(self, events: PlaybackEventsPort) -> None:
        self._events = events

    async def join(self, room_id: str, voice_channel_id: str) -> VoiceHandle:
        self._loop = asyncio.get_running_loop()
        channel = self._client.get_channel(int(voice_channel_id))
        if not isinstance(channel, discord.VoiceChannel):
            raise NoVoiceChannelError()
        permissions = channel.permissions_for(channel.guild.me)
        if not (permissions.connect and permissions.speak):
            raise MissingPermissionError()
        try:
            voice_client = await self._connect(channel)
        except discord.Forbidden as exc:
            raise MissingPermissionError() from exc
        logger.info("Voice connected: room=%s channel=%s", room_id, voice_channel_id)
        return VoiceHandle(room_id=room_id, voice_client=voice_client)

    async def _connect(self, channel: discord.VoiceChannel) -> discord.VoiceClient:
        existing = channel.guild.voice_client
        if existing is not None and existing.is_connected():
            if existing.channel is None or existing.channel.id != channel.id:
                logger.info("Moving guild voice client: guild=%s channel=%s", channel.guild.id, channel.id)
                await existing.move_to(channel)
            # Leftover audio belongs to a released handle; its after-callback is dropped.
            if existing.is_playing() or existing.is_paused():
                existing.stop()
            return existing
        if existing is not None:
            await existing.disconnect(force=True)
        return await channel.connect()

    async def play_resource(self, handle: VoiceHandle, source_ref: str, volume: float) -> None:
        self._loop = asyncio.get_running_loop()
        audio = discord.FFmpegPCMAudio(
            source_ref,
            executable=self._ffmpeg_executable,
            before_options=FFMPEG_BEFORE_OPTIONS,
            options=FFMPEG_OPTIONS,
        )
        handle.source = discord.PCMVolumeTransformer(audio, volume=volume)
        handle.voice_client.play(handle.source, after=self._after_callback(handle))

    async def stop_playback(self, handle: VoiceHandle) -> None:
        if handle.voice_client.is_playing() or handle.voice_client.is_paused():
            handle.voice_client.stop()

    async def set_volume(self, handle: VoiceHandle, volume: float) -> None:
        if handle.source is not None:
            handle.source.volume = volume

    async def release(self, handle: VoiceHandle) -> None:
        handle.released = True
        if handle.voice_client.is_playing():
            handle.voice_client.stop()
        await handle.voice_client.disconnect(force=True)
        logger.info("Voice released: room=%s", handle.room_id)

    def _after_callback(self, handle: VoiceHandle) -> Callable[[Optional[Exception]], None]:
        def _after(error: Optional[Exception]) -> None:
            if handle.released or self._loop is None:
                return
            self._loop.call_soon_threadsafe(self._emit, handle, error)

        return _after

    def _emit(self, handle: VoiceHandle, error: Optional[Exception]) -> None:
        if handle.released or self._events is None or self._loop is None:
            return
        if error is not None:
            coro = self._events.on_transport_error(handle.room_id, error)
        else:
            coro = self._events.on_track_finished(handle.room_id)
        task = self._loop.create_task(coro)
        self._event_tasks.add(task)
        task.add_done_callback(self._event_done)

    def _event_done(self, task: asyncio.Task) -> None:
        self._event_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Playback event handler failed", exc_info=exc)


EngineBuilder = Callable[[DiscordResponder, DiscordAudioTransport], SessionEngine]


class SessionBot(discord.Client):
    def __init__(
        self,
        build_engine: EngineBuilder,
        *,
        ffmpeg_executable: str | None = None,
        **kwargs: Any,
    ):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.messages = True
        intents.message_content = True
        intents.voice_states = True
        super().__init__(intents=intents, **kwargs)
        self.responder = DiscordResponder()
        self.transport = DiscordAudioTransport(self, ffmpeg_executable=ffmpeg_executable)
        self.engine = build_engine(self.responder, self.transport)

    async def on_ready(self) -> None:
        logger.info("Logged in as %s; ready to receive commands.", self.user)
        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.watching, name="for your commands!")
        )

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        room_id = room_id_for(message)
        voice_state = getattr(message.author, "voice", None)
        voice_channel = getattr(voice_state, "channel", None)
        self.responder.remember_channel(room_id, message.channel)
        self.engine.dispatch(
            InboundMessage(
                room_id=room_id,
                author_id=str(message.author.id),
                author_name=message.author.display_name,
                text=message.content or "",
                voice_channel_id=str(voice_channel.id) if voice_channel is not None else None,
                author_mention=message.author.mention,
                mentions=tuple(user.mention for user in message.mentions),
            )
        )
