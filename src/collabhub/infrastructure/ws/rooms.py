"""In-process room registry and fan-out."""
from __future__ import annotations

import logging
from typing import Any, Iterable

from collabhub.infrastructure.ws.protocol import encode
from collabhub.infrastructure.ws.session import ConnectionSession

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Tracks live sessions and the rooms each one is subscribed to."""

    def __init__(self) -> None:
        self._sessions: dict[str, ConnectionSession] = {}
        self._rooms: dict[str, set[str]] = {}

    def register(self, session: ConnectionSession) -> None:
        self._sessions[session.connection_id] = session
        logger.debug("WS registered: %s (total=%d)", session.connection_id, len(self._sessions))

    def unregister(self, session: ConnectionSession) -> bool:
        """Forget a session and all of its rooms. False if it was not registered."""
        if self._sessions.pop(session.connection_id, None) is None:
            return False
        for room in list(session.rooms):
            self._discard(room, session.connection_id)
        session.rooms.clear()
        return True

    def is_registered(self, session: ConnectionSession) -> bool:
        return session.connection_id in self._sessions

    def join(self, session: ConnectionSession, room: str) -> None:
        self._rooms.setdefault(room, set()).add(session.connection_id)
        session.rooms.add(room)
        logger.debug("%s joined %s", session.connection_id, room)

    def leave(self, session: ConnectionSession, room: str) -> bool:
        if room not in session.rooms:
            return False
        session.rooms.discard(room)
        self._discard(room, session.connection_id)
        logger.debug("%s left %s", session.connection_id, room)
        return True

    def _discard(self, room: str, connection_id: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]

    def members(self, room: str) -> list[ConnectionSession]:
        return [self._sessions[cid] for cid in self._rooms.get(room, ()) if cid in self._sessions]

    def sessions(self) -> list[ConnectionSession]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    async def emit(
        self,
        room: str,
        event: str,
        data: dict[str, Any],
        *,
        exclude: ConnectionSession | None = None,
    ) -> int:
        """Send an event to every session in a room. Returns deliveries made."""
        return await self.emit_to_rooms([room], event, data, exclude=exclude)

    async def emit_to_rooms(
        self,
        rooms: Iterable[str],
        event: str,
        data: dict[str, Any],
        *,
        exclude: ConnectionSession | None = None,
    ) -> int:
        """Send an event once to each session subscribed to any of ``rooms``."""
        targets: dict[str, ConnectionSession] = {}
        for room in rooms:
            for session in self.members(room):
                targets[session.connection_id] = session
        if exclude is not None:
            targets.pop(exclude.connection_id, None)
        return await self._deliver(list(targets.values()), encode(event, data))

    async def broadcast(self, event: str, data: dict[str, Any]) -> int:
        """Send an event to every live session."""
        return await self._deliver(self.sessions(), encode(event, data))

    async def _deliver(self, targets: list[ConnectionSession], raw: str) -> int:
        delivered = 0
        for session in targets:
            if await session.send_raw(raw):
                delivered += 1
            else:
                # The read loop notices the dead transport and disconnects it.
                logger.debug("Skipped dead session %s", session.connection_id)
        return delivered
