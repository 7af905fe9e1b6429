"""Presence-aware realtime relay."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Coroutine
from uuid import UUID

from pydantic import ValidationError as PayloadValidationError

from collabhub.application.exceptions import AppError, AuthenticationError
from collabhub.application.ports.auth import TokenVerifier
from collabhub.application.ports.clock import Clock, SystemClock
from collabhub.application.uow import UoWFactory
from collabhub.domain.entities.message import Message
from collabhub.domain.entities.user import UserIdentity
from collabhub.domain.value_objects.enums import UserStatus
from collabhub.infrastructure.ws.presence import PresenceTable
from collabhub.infrastructure.ws.protocol import (
    DirectTyping,
    EventNew,
    GroupTyping,
    InboundEvent,
    JoinGroup,
    LeaveGroup,
    Logout,
    MarkRead,
    MessageOut,
    OutboundEvent,
    Ping,
    QueryOnline,
    ResourceNew,
    SendDirectMessage,
    SendGroupMessage,
    SenderOut,
    TaskUpdate,
    UnknownEventError,
    group_room,
    parse_inbound,
    user_room,
)
from collabhub.infrastructure.ws.rooms import RoomRegistry
from collabhub.infrastructure.ws.session import ConnectionSession, Socket
from collabhub.services import auth_service, message_service, presence_service

logger = logging.getLogger(__name__)

CLOSE_AUTH_FAILED = 4001
CLOSE_TOKEN_EXPIRED = 4002
CLOSE_INTERNAL_ERROR = 1011


@dataclass
class _StatusSlot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    pending: int = 0


def message_payload(msg: Message, sender: UserIdentity | None = None) -> dict[str, Any]:
    out = MessageOut.model_validate(msg, from_attributes=True)
    if sender is not None:
        out = out.model_copy(update={"sender": SenderOut.model_validate(sender, from_attributes=True)})
    return out.model_dump(mode="json")


class RealtimeRelay:
    """Authenticates live connections, keeps rooms and presence, routes events.

    Events from one session are handled strictly in arrival order because the
    caller awaits :meth:`dispatch` once per frame. Nothing orders events across
    sessions; persisted ``created_at`` is the only ordering signal.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        uow_factory: UoWFactory,
        *,
        presence: PresenceTable | None = None,
        rooms: RoomRegistry | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._verifier = verifier
        self._uow_factory = uow_factory
        self.presence = presence if presence is not None else PresenceTable()
        self.rooms = rooms if rooms is not None else RoomRegistry()
        self._clock = clock or SystemClock()
        self._background: set[asyncio.Task[None]] = set()
        self._status_slots: dict[UUID, _StatusSlot] = {}

    # -- lifecycle -----------------------------------------------------------

    async def connect(self, socket: Socket, token: str | None) -> ConnectionSession | None:
        """Drive a new connection through authentication and room setup.

        Returns the authenticated session, or None once the socket has been
        closed without any presence or room side effects.
        """
        session = ConnectionSession(socket)
        try:
            async with self._uow_factory() as uow:
                user = await auth_service.authenticate(token, self._verifier, uow)
                memberships = await uow.memberships.list_for_user(user.id)
        except AuthenticationError as exc:
            logger.info("WS handshake rejected: %s", exc.reason)
            code = CLOSE_TOKEN_EXPIRED if exc.expired else CLOSE_AUTH_FAILED
            await session.close(code=code, reason=exc.detail)
            return None
        except Exception:
            logger.exception("WS handshake failed")
            await session.close(code=CLOSE_INTERNAL_ERROR, reason="Authentication error")
            return None

        try:
            await session.authenticate(user)
        except Exception:
            logger.info("WS peer left during handshake: %s", session.connection_id, exc_info=True)
            session.mark_closed()
            return None

        self.rooms.register(session)
        self.presence.mark_online(user.id, session.connection_id)
        self.rooms.join(session, user_room(user.id))
        for membership in memberships:
            self.rooms.join(session, group_room(membership.group_id))

        self._spawn(self._persist_status(user.id, UserStatus.ONLINE, self._clock.now()))
        logger.info("User authenticated: %s (%s) on %s", user.name, user.id, session.connection_id)

        await self.rooms.broadcast(
            OutboundEvent.USER_ONLINE,
            {"user_id": user.id, "status": UserStatus.ONLINE},
        )
        return session

    def disconnect(self, session: ConnectionSession) -> None:
        """Authenticated → Closed after the transport went away.

        Room and presence state is released immediately; the status write and
        the offline broadcast finish in the background, in that order.
        """
        session.mark_closed()
        if not self.rooms.unregister(session):
            return
        user_id = session.user_id
        assert user_id is not None
        logger.info("Session closed: %s (user %s)", session.connection_id, user_id)
        if self.presence.mark_offline(user_id, session.connection_id):
            self._spawn(self._announce_offline(user_id))

    async def shutdown(self) -> None:
        await self.drain()
        self.presence.clear()
        logger.info("Realtime relay stopped")

    async def drain(self) -> None:
        """Wait for outstanding background status writes and broadcasts."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _persist_status(self, user_id: UUID, status: UserStatus, last_seen: datetime) -> None:
        """Write a user's status, one write per user at a time.

        A write whose status no longer matches the presence table by the time
        its turn comes is skipped, so the last write always agrees with it.
        """
        slot = self._status_slots.setdefault(user_id, _StatusSlot())
        slot.pending += 1
        try:
            async with slot.lock:
                if (status == UserStatus.ONLINE) != self.presence.is_online(user_id):
                    logger.debug("Skipped stale status=%s for user %s", status, user_id)
                    return
                async with self._uow_factory() as uow:
                    await presence_service.update_status(user_id, status, last_seen, uow)
        except Exception:
            logger.warning("Error updating status=%s for user %s", status, user_id, exc_info=True)
        finally:
            slot.pending -= 1
            if not slot.pending:
                del self._status_slots[user_id]

    async def _announce_offline(self, user_id: UUID) -> None:
        last_seen = self._clock.now()
        await self._persist_status(user_id, UserStatus.OFFLINE, last_seen)
        if self.presence.is_online(user_id):
            # Reconnected while the status write was in flight.
            return
        await self.rooms.broadcast(
            OutboundEvent.USER_OFFLINE,
            {"user_id": user_id, "status": UserStatus.OFFLINE, "last_seen": last_seen},
        )

    # -- inbound -------------------------------------------------------------

    async def dispatch(self, session: ConnectionSession, raw: str) -> bool:
        """Handle one inbound frame. Returns False once the session should end.

        Failures are reported to the sending session only; nothing raised by a
        handler escapes to the caller.
        """
        if not session.is_authenticated:
            return False

        try:
            event = parse_inbound(raw)
        except UnknownEventError as exc:
            await session.send(OutboundEvent.ERROR, {"code": "unknown_type", "type": exc.event_type})
            return True
        except PayloadValidationError:
            await session.send(OutboundEvent.ERROR, {"code": "invalid_payload"})
            return True

        is_send = isinstance(event, (SendGroupMessage, SendDirectMessage))
        try:
            return await self._route(session, event)
        except AppError as exc:
            await self._report(session, is_send, exc.code, exc.detail)
        except Exception:
            logger.exception("Error handling %s for user %s", event.type, session.user_id)
            detail = "Error sending message" if is_send else "Internal error"
            await self._report(session, is_send, "internal_error", detail)
        return True

    async def _report(self, session: ConnectionSession, is_send: bool, code: str, detail: str) -> None:
        if is_send:
            await session.send(OutboundEvent.MESSAGE_ERROR, {"message": detail, "code": code})
        else:
            await session.send(OutboundEvent.ERROR, {"code": code, "message": detail})

    async def _route(self, session: ConnectionSession, event: InboundEvent) -> bool:
        user = session.user
        assert user is not None

        if isinstance(event, JoinGroup):
            await self._join_group(session, event.data.group_id)

        elif isinstance(event, LeaveGroup):
            self.rooms.leave(session, group_room(event.data.group_id))

        elif isinstance(event, GroupTyping):
            await self.rooms.emit(
                group_room(event.data.group_id),
                OutboundEvent.TYPING_USER,
                {"group_id": event.data.group_id, "user_id": user.id, "typing": event.typing},
                exclude=session,
            )

        elif isinstance(event, DirectTyping):
            await self.rooms.emit(
                user_room(event.data.receiver_id),
                OutboundEvent.DM_TYPING,
                {"user_id": user.id, "typing": event.typing},
            )

        elif isinstance(event, SendGroupMessage):
            data = event.data
            async with self._uow_factory() as uow:
                msg = await message_service.send_group_message(
                    user.id, data.group_id, data.content, data.attachment_url, data.channel_type, uow,
                )
            await self.publish_group_message(msg, user)

        elif isinstance(event, SendDirectMessage):
            data = event.data
            async with self._uow_factory() as uow:
                msg = await message_service.send_direct_message(
                    user.id, data.receiver_id, data.content, data.attachment_url, uow,
                )
            await self.publish_direct_message(msg, user)

        elif isinstance(event, MarkRead):
            await self.rooms.emit(
                user_room(event.data.conversation_id),
                OutboundEvent.MESSAGE_READ,
                {"message_id": event.data.message_id, "read_by": user.id},
                exclude=session,
            )

        elif isinstance(event, QueryOnline):
            online = await self.online_members(event.data.group_id)
            await session.send(
                OutboundEvent.GROUP_ONLINE_LIST,
                {"group_id": event.data.group_id, "online_users": online},
            )

        elif isinstance(event, TaskUpdate):
            await self.rooms.emit(
                group_room(event.data.group_id), OutboundEvent.TASK_UPDATED, event.data.task, exclude=session,
            )

        elif isinstance(event, ResourceNew):
            await self.rooms.emit(
                group_room(event.data.group_id), OutboundEvent.RESOURCE_ADDED, event.data.resource, exclude=session,
            )

        elif isinstance(event, EventNew):
            await self.rooms.emit(
                group_room(event.data.group_id), OutboundEvent.EVENT_ADDED, event.data.event, exclude=session,
            )

        elif isinstance(event, Ping):
            await session.send(OutboundEvent.PONG, {})

        elif isinstance(event, Logout):
            logger.info("User %s logged out on %s", user.id, session.connection_id)
            await session.close(reason="Logged out")
            return False

        return True

    async def _join_group(self, session: ConnectionSession, group_id: UUID) -> None:
        assert session.user_id is not None
        async with self._uow_factory() as uow:
            membership = await uow.memberships.get(session.user_id, group_id)
        if membership is None:
            await session.send(
                OutboundEvent.ERROR,
                {"code": "forbidden", "message": "Not a member of this group", "group_id": group_id},
            )
            return
        # The session may have closed while the lookup was in flight.
        if self.rooms.is_registered(session):
            self.rooms.join(session, group_room(group_id))

    # -- outbound ------------------------------------------------------------

    async def online_members(self, group_id: UUID) -> list[UUID]:
        async with self._uow_factory() as uow:
            member_ids = await uow.memberships.list_member_ids(group_id)
        online = self.presence.online_subset_of(member_ids)
        return [uid for uid in member_ids if uid in online]

    async def publish_group_message(self, msg: Message, sender: UserIdentity | None = None) -> int:
        """Fan a persisted group/announcement message out to its whole room, sender included."""
        assert msg.group_id is not None
        return await self.rooms.emit(
            group_room(msg.group_id), OutboundEvent.GROUP_MESSAGE, message_payload(msg, sender),
        )

    async def publish_direct_message(self, msg: Message, sender: UserIdentity | None = None) -> int:
        """Deliver a persisted DM to the receiver and echo it to the sender's other devices."""
        assert msg.receiver_id is not None
        return await self.rooms.emit_to_rooms(
            [user_room(msg.receiver_id), user_room(msg.sender_id)],
            OutboundEvent.DM_MESSAGE,
            message_payload(msg, sender),
        )
