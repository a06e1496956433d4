from __future__ import annotations

from typing import Any, Protocol

from .types import Embed, Track


class ResponderPort(Protocol):
    async def send(self, room_id: str, content: str | Embed) -> Any:
        ...

    async def edit(self, handle: Any, text: str) -> None:
        ...


class PlaybackEventsPort(Protocol):
    async def on_track_finished(self, room_id: str) -> None:
        ...

    async def on_transport_error(self, room_id: str, cause: object) -> None:
        ...


class AudioTransportPort(Protocol):
    def bind(self, events: PlaybackEventsPort) -> None:
        ...

    async def join(self, room_id: str, voice_channel_id: str) -> Any:
        ...

    async def play_resource(self, handle: Any, source_ref: str, volume: float) -> None:
        ...

    async def stop_playback(self, handle: Any) -> None:
        ...

    async def set_volume(self, handle: Any, volume: float) -> None:
        ...

    async def release(self, handle: Any) -> None:
        ...


class MediaResolverPort(Protocol):
    async def resolve(self, query: str) -> Track | None:
        ...


class TextCompletionPort(Protocol):
    async def complete(self, prompt: str) -> str | None:
        ...


class JokePort(Protocol):
    async def fetch_joke(self) -> str | None:
        ...
