from __future__ import annotations

import logging
from typing import Any

from .errors import (
    MissingPermissionError,
    NoActiveSessionError,
    NoVoiceChannelError,
    SessionError,
    TransportFatalError,
    UsageError,
)
from .ports import AudioTransportPort, ResponderPort
from .registry import RoomSessionRegistry
from .types import AdvanceResult, EnqueueResult, PlaybackSession, PlaybackState, SessionKind, Track

KIND = SessionKind.PLAYBACK


class PlaybackManager:
    """Queue and voice-connection lifecycle for each room's playback session.

    What plays next is decided only in ``advance``: natural track completion
    and ``skip`` both arrive there through the transport's finished event.
    """

    MIN_VOLUME = 0.0
    MAX_VOLUME = 2.0

    def __init__(
        self,
        registry: RoomSessionRegistry,
        transport: AudioTransportPort,
        responder: ResponderPort | None = None,
        *,
        default_volume: float = 0.5,
        logger: logging.Logger | None = None,
    ):
        self._registry = registry
        self._transport = transport
        self._responder = responder
        self._default_volume = default_volume
        self._logger = logger or logging.getLogger(__name__)
        transport.bind(self)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def enqueue(
        self,
        room_id: str,
        track: Track,
        voice_channel_id: str | None,
    ) -> EnqueueResult:
        async with self._registry.lock(room_id, KIND):
            session = self._registry.get(room_id, KIND)
            if session is not None:
                session.queue.append(track)
                return EnqueueResult(track=track, position=len(session.queue), started=False)

            if not voice_channel_id:
                raise NoVoiceChannelError()

            session, _ = self._registry.create_if_absent(
                room_id,
                KIND,
                lambda: PlaybackSession(
                    room_id=room_id,
                    voice_channel_id=str(voice_channel_id),
                    volume=self._default_volume,
                ),
            )
            try:
                session.connection = await self._transport.join(room_id, str(voice_channel_id))
            except (MissingPermissionError, NoVoiceChannelError):
                self._registry.remove(room_id, KIND)
                raise
            except Exception as exc:
                self._registry.remove(room_id, KIND)
                self._logger.warning("Voice join failed: room=%s error=%s", room_id, exc)
                raise MissingPermissionError() from exc

            session.queue.append(track)
            await self._start_head(session)
            return EnqueueResult(track=track, position=1, started=True)

    async def advance(self, room_id: str) -> AdvanceResult:
        async with self._registry.lock(room_id, KIND):
            session = self._require(room_id)
            finished = session.queue.popleft() if session.queue else None
            if not session.queue:
                session.state = PlaybackState.DRAINING
                await self._teardown(session)
                await self._notify(room_id, "Finished playing all songs in the queue. Leaving voice channel.")
                return AdvanceResult(finished=finished)
            session.state = PlaybackState.IDLE
            await self._start_head(session)
            return AdvanceResult(finished=finished, next_track=session.queue[0])

    async def skip(self, room_id: str) -> Track:
        async with self._registry.lock(room_id, KIND):
            session = self._registry.get(room_id, KIND)
            if session is None or session.state is not PlaybackState.PLAYING:
                raise NoActiveSessionError(room_id, KIND, "There is no song currently playing to skip.")
            current = session.queue[0]
            await self._transport.stop_playback(session.connection)
            return current

    async def stop(self, room_id: str) -> int:
        async with self._registry.lock(room_id, KIND):
            session = self._registry.get(room_id, KIND)
            if session is None:
                raise NoActiveSessionError(room_id, KIND, "There is no song currently playing to stop.")
            cleared = len(session.queue)
            session.queue.clear()
            session.state = PlaybackState.STOPPED
            await self._teardown(session)
            return cleared

    def list_queue(self, room_id: str) -> list[tuple[int, Track]]:
        session = self._registry.get(room_id, KIND)
        if session is None:
            return []
        return list(enumerate(session.queue, start=1))

    def now_playing(self, room_id: str) -> Track | None:
        session = self._registry.get(room_id, KIND)
        if session is None or session.state is not PlaybackState.PLAYING:
            return None
        return session.current

    def state(self, room_id: str) -> PlaybackState | None:
        session = self._registry.get(room_id, KIND)
        return session.state if session is not None else None

    async def set_volume(self, room_id: str, volume: float) -> float:
        if not self.MIN_VOLUME <= volume <= self.MAX_VOLUME:
            raise UsageError("Volume must be between 0 and 200 percent.")
        async with self._registry.lock(room_id, KIND):
            session = self._registry.get(room_id, KIND)
            if session is None:
                raise NoActiveSessionError(room_id, KIND, "There is no song currently playing.")
            session.volume = volume
            if session.connection is not None:
                await self._transport.set_volume(session.connection, volume)
            return volume

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    async def on_track_finished(self, room_id: str) -> None:
        try:
            await self.advance(room_id)
        except NoActiveSessionError:
            self._logger.debug("Track finished for room without playback session: room=%s", room_id)
        except SessionError as exc:
            await self._notify(room_id, exc.notice)

    async def on_transport_error(self, room_id: str, cause: object) -> None:
        async with self._registry.lock(room_id, KIND):
            session = self._registry.get(room_id, KIND)
            if session is None:
                self._logger.warning("Transport error for room without playback session: room=%s", room_id)
                return
            self._logger.warning("Transport error, tearing down playback: room=%s cause=%s", room_id, cause)
            session.queue.clear()
            await self._teardown(session)
        await self._notify(room_id, TransportFatalError(room_id, cause).notice)

    # ------------------------------------------------------------------
    # Internals (caller holds the room lock)
    # ------------------------------------------------------------------

    def _require(self, room_id: str) -> PlaybackSession:
        session = self._registry.get(room_id, KIND)
        if session is None:
            raise NoActiveSessionError(room_id, KIND)
        return session

    async def _start_head(self, session: PlaybackSession) -> None:
        track = session.queue[0]
        try:
            await self._transport.play_resource(session.connection, track.source_ref, session.volume)
        except Exception as exc:
            self._logger.warning(
                "Playback start failed: room=%s track=%r error=%s",
                session.room_id,
                track.title,
                exc,
            )
            session.queue.clear()
            await self._teardown(session)
            raise TransportFatalError(session.room_id, exc) from exc
        session.state = PlaybackState.PLAYING
        await self._notify(session.room_id, f"🎶 Now playing: **{track.title}**")

    async def _teardown(self, session: PlaybackSession) -> None:
        connection: Any = session.connection
        session.connection = None
        self._registry.remove(session.room_id, KIND)
        if connection is None:
            return
        try:
            await self._transport.release(connection)
        except Exception:
            self._logger.debug("Voice release failed: room=%s", session.room_id, exc_info=True)

    async def _notify(self, room_id: str, text: str) -> None:
        if self._responder is None:
            return
        try:
            await self._responder.send(room_id, text)
        except Exception:
            self._logger.debug("Failed to notify room %s", room_id, exc_info=True)
