from __future__ import annotations

import asyncio
import random

from room_session_engine.core.engine import SessionEngine
from room_session_engine.core.types import InboundMessage, Track


class PrintResponder:
    async def send(self, room_id, content):
        print(f"[{room_id}] {content}")
        return content

    async def edit(self, handle, text):
        print(f"  (edited) {text}")


class LoggingTransport:
    """Pretends to play audio; a track finishes whenever playback is stopped."""

    def __init__(self):
        self._events = None

    def bind(self, events):
        self._events = events

    async def join(self, room_id, voice_channel_id):
        return {"room_id": room_id, "channel": voice_channel_id}

    async def play_resource(self, handle, source_ref, volume):
        print(f"  <playing {source_ref} at {volume:.0%}>")

    async def stop_playback(self, handle):
        asyncio.ensure_future(self._events.on_track_finished(handle["room_id"]))

    async def set_volume(self, handle, volume):
        pass

    async def release(self, handle):
        print(f"  <left {handle['channel']}>")


class CatalogResolver:
    async def resolve(self, query):
        return Track(title=query.title(), source_ref=f"file:///music/{query.replace(' ', '_')}.ogg")


async def main() -> None:
    engine = SessionEngine(
        PrintResponder(),
        LoggingTransport(),
        resolver=CatalogResolver(),
        rng=random.Random(4),
    )

    def say(text: str, room_id: str = "guild-1") -> None:
        engine.dispatch(
            InboundMessage(
                room_id=room_id,
                author_id="user-1",
                author_name="Player One",
                text=text,
                voice_channel_id="voice-1",
            )
        )

    say("!play morning song")
    say("!play evening song")
    say("!queue")
    say("!startguess", room_id="guild-2")
    say("!guess 50", room_id="guild-2")
    say("!skip")
    await engine.dispatcher.join()
    await asyncio.sleep(0)
    say("!stop")
    await engine.dispatcher.join()


if __name__ == "__main__":
    asyncio.run(main())
