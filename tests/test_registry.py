from __future__ import annotations

import asyncio

from room_session_engine.core.registry import RoomSessionRegistry
from room_session_engine.core.types import NumberGuessSession, SessionKind


def test_create_if_absent_returns_existing_session_without_calling_factory():
    registry = RoomSessionRegistry()
    calls = {"n": 0}

    def factory():
        calls["n"] += 1
        return NumberGuessSession(secret=50, initiator="u1")

    first, created = registry.create_if_absent("room-1", SessionKind.NUMBER_GUESS, factory)
    second, created_again = registry.create_if_absent("room-1", SessionKind.NUMBER_GUESS, factory)

    assert created is True
    assert created_again is False
    assert second is first
    assert calls["n"] == 1


def test_kinds_and_rooms_are_independent():
    registry = RoomSessionRegistry()
    registry.create_if_absent("room-1", SessionKind.NUMBER_GUESS, lambda: NumberGuessSession(10, "u1"))
    registry.create_if_absent("room-2", SessionKind.NUMBER_GUESS, lambda: NumberGuessSession(20, "u2"))

    assert registry.get("room-1", SessionKind.EMOJI_GUESS) is None
    assert registry.get("room-1", SessionKind.NUMBER_GUESS).secret == 10
    assert registry.get("room-2", SessionKind.NUMBER_GUESS).secret == 20
    assert sorted(registry.rooms(SessionKind.NUMBER_GUESS)) == ["room-1", "room-2"]

    assert registry.remove("room-1", SessionKind.NUMBER_GUESS).secret == 10
    assert registry.remove("room-1", SessionKind.NUMBER_GUESS) is None
    assert registry.rooms(SessionKind.NUMBER_GUESS) == ["room-2"]


def test_lock_is_scoped_per_room_and_kind():
    registry = RoomSessionRegistry()
    order: list[str] = []

    async def hold(room_id, kind, label, delay):
        async with registry.lock(room_id, kind):
            order.append(f"{label}-in")
            await asyncio.sleep(delay)
            order.append(f"{label}-out")

    async def run_test():
        await asyncio.gather(
            hold("room-1", SessionKind.PLAYBACK, "slow", 0.05),
            hold("room-1", SessionKind.NUMBER_GUESS, "other-kind", 0.0),
            hold("room-2", SessionKind.PLAYBACK, "other-room", 0.0),
        )

    asyncio.run(asyncio.wait_for(run_test(), timeout=1.0))
    assert order.index("other-kind-out") < order.index("slow-out")
    assert order.index("other-room-out") < order.index("slow-out")


def test_same_room_and_kind_serialize():
    registry = RoomSessionRegistry()
    order: list[str] = []

    async def hold(label, delay):
        async with registry.lock("room-1", SessionKind.PLAYBACK):
            order.append(f"{label}-in")
            await asyncio.sleep(delay)
            order.append(f"{label}-out")

    async def run_test():
        await asyncio.gather(hold("first", 0.02), hold("second", 0.0))

    asyncio.run(run_test())
    assert order == ["first-in", "first-out", "second-in", "second-out"]


def test_idle_lock_entries_are_released():
    registry = RoomSessionRegistry()

    async def run_test():
        async with registry.lock("room-1", SessionKind.PLAYBACK):
            assert registry.locked_keys() == [("room-1", SessionKind.PLAYBACK)]
        for n in range(50):
            async with registry.lock(f"room-{n}", SessionKind.NUMBER_GUESS):
                await asyncio.sleep(0)

    asyncio.run(run_test())
    assert registry.locked_keys() == []


def test_waiters_keep_the_lock_entry_alive():
    registry = RoomSessionRegistry()
    counter = {"n": 0}

    async def bump():
        async with registry.lock("room-1", SessionKind.NUMBER_GUESS):
            seen = counter["n"]
            await asyncio.sleep(0)
            counter["n"] = seen + 1

    async def run_test():
        await asyncio.gather(*(bump() for _ in range(10)))

    asyncio.run(run_test())
    assert counter["n"] == 10
    assert registry.locked_keys() == []


def test_concurrent_read_modify_write_under_lock_loses_no_updates():
    registry = RoomSessionRegistry()
    registry.create_if_absent("room-1", SessionKind.NUMBER_GUESS, lambda: NumberGuessSession(1, "u1"))

    async def bump():
        async with registry.lock("room-1", SessionKind.NUMBER_GUESS):
            game = registry.get("room-1", SessionKind.NUMBER_GUESS)
            seen = game.attempts
            await asyncio.sleep(0)
            game.attempts = seen + 1

    async def run_test():
        await asyncio.gather(*(bump() for _ in range(25)))

    asyncio.run(run_test())
    assert registry.get("room-1", SessionKind.NUMBER_GUESS).attempts == 25
