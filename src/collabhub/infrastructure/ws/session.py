"""Per-socket connection state."""
from __future__ import annotations

import logging
import uuid
from enum import StrEnum
from typing import Any, Protocol
from uuid import UUID

from collabhub.domain.entities.user import UserIdentity
from collabhub.infrastructure.ws.protocol import encode

logger = logging.getLogger(__name__)


class Socket(Protocol):
    """The slice of ``starlette.websockets.WebSocket`` the relay relies on."""

    async def accept(self) -> None: ...
    async def send_text(self, data: str) -> None: ...
    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class SessionState(StrEnum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class ConnectionSession:
    """One live connection: Connecting → Authenticated → Closed."""

    def __init__(self, socket: Socket, connection_id: str | None = None) -> None:
        self.connection_id = connection_id or uuid.uuid4().hex
        self.socket = socket
        self.state = SessionState.CONNECTING
        self.user: UserIdentity | None = None
        self.rooms: set[str] = set()

    def __repr__(self) -> str:
        return f"<ConnectionSession {self.connection_id} user={self.user_id} {self.state}>"

    @property
    def user_id(self) -> UUID | None:
        return self.user.id if self.user else None

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    async def authenticate(self, user: UserIdentity) -> None:
        if self.state != SessionState.CONNECTING:
            raise RuntimeError(f"Cannot authenticate a session in state {self.state}")
        await self.socket.accept()
        self.user = user
        self.state = SessionState.AUTHENTICATED

    async def send(self, event: str, data: dict[str, Any]) -> bool:
        return await self.send_raw(encode(event, data))

    async def send_raw(self, raw: str) -> bool:
        """Write one frame. A dead socket is reported, not raised."""
        if self.state != SessionState.AUTHENTICATED:
            return False
        try:
            await self.socket.send_text(raw)
        except Exception:
            logger.debug("Send failed on %s", self.connection_id, exc_info=True)
            return False
        return True

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.state == SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        try:
            await self.socket.close(code=code, reason=reason)
        except Exception:
            logger.debug("Close failed on %s", self.connection_id, exc_info=True)

    def mark_closed(self) -> None:
        """Record a transport-driven close; the socket is already gone."""
        self.state = SessionState.CLOSED
