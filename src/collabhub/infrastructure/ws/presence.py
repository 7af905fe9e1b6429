"""In-memory presence table."""
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

logger = logging.getLogger(__name__)


class PresenceTable:
    """Which users hold at least one live connection, and through which ones.

    A user stays online until *every* connection registered for them has been
    removed, so closing an old tab never hides a newer one. Removal only
    succeeds for the exact connection that was registered, which makes a late
    disconnect from a superseded connection harmless.

    Owned by the relay and only touched from the event loop thread.
    """

    def __init__(self) -> None:
        self._connections: dict[UUID, set[str]] = {}

    def mark_online(self, user_id: UUID, connection_id: str) -> bool:
        """Register a connection. Returns True if the user was offline before."""
        conns = self._connections.setdefault(user_id, set())
        first = not conns
        conns.add(connection_id)
        return first

    def mark_offline(self, user_id: UUID, connection_id: str) -> bool:
        """Drop a connection. Returns True if that left the user with none."""
        conns = self._connections.get(user_id)
        if not conns or connection_id not in conns:
            logger.debug("Stale presence removal: user=%s conn=%s", user_id, connection_id)
            return False
        conns.discard(connection_id)
        if conns:
            return False
        del self._connections[user_id]
        return True

    def is_online(self, user_id: UUID) -> bool:
        return user_id in self._connections

    def online_subset_of(self, user_ids: Iterable[UUID]) -> set[UUID]:
        return {uid for uid in user_ids if uid in self._connections}

    def clear(self) -> None:
        self._connections.clear()

    def __len__(self) -> int:
        return len(self._connections)
