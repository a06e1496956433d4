from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable

from .types import SessionKind


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class RoomSessionRegistry:
    """Owns every session record, one mapping per session kind.

    Lookups and mutations are plain dict operations; callers that need a
    multi-step read-modify-write hold ``lock(room_id, kind)`` around it. Locks
    are scoped to a single room and kind, so a slow operation in one room
    never holds up another room or another kind in the same room. A lock entry
    lives only while someone holds or waits on it.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._sessions: dict[SessionKind, dict[str, Any]] = {kind: {} for kind in SessionKind}
        self._locks: dict[tuple[str, SessionKind], _LockEntry] = {}
        self._logger = logger or logging.getLogger(__name__)

    def get(self, room_id: str, kind: SessionKind) -> Any | None:
        return self._sessions[kind].get(room_id)

    def create_if_absent(
        self,
        room_id: str,
        kind: SessionKind,
        factory: Callable[[], Any],
    ) -> tuple[Any, bool]:
        existing = self._sessions[kind].get(room_id)
        if existing is not None:
            return existing, False
        session = factory()
        self._sessions[kind][room_id] = session
        self._logger.info("Session created: room=%s kind=%s", room_id, kind.value)
        return session, True

    def remove(self, room_id: str, kind: SessionKind) -> Any | None:
        session = self._sessions[kind].pop(room_id, None)
        if session is not None:
            self._logger.info("Session destroyed: room=%s kind=%s", room_id, kind.value)
        return session

    def rooms(self, kind: SessionKind) -> list[str]:
        return list(self._sessions[kind])

    def locked_keys(self) -> list[tuple[str, SessionKind]]:
        """(room, kind) pairs with a lock currently held or awaited."""
        return list(self._locks)

    @asynccontextmanager
    async def lock(self, room_id: str, kind: SessionKind) -> AsyncIterator[None]:
        key = (room_id, kind)
        entry = self._locks.get(key)
        if entry is None:
            entry = _LockEntry()
            self._locks[key] = entry
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(key) is entry:
                del self._locks[key]
