"""Shared test fixtures."""
from __future__ import annotations

import json
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator
from uuid import UUID

import jwt
import pytest

from collabhub.application.dto.message import ConversationSummary, MessagePage
from collabhub.application.exceptions import PersistenceError
from collabhub.config import settings
from collabhub.domain.entities.membership import GroupMembership
from collabhub.domain.entities.message import Message
from collabhub.domain.entities.user import UserIdentity
from collabhub.domain.value_objects.enums import ChannelType, GroupRole, UserStatus
from collabhub.infrastructure.auth.hs256_verifier import HS256Verifier
from collabhub.infrastructure.ws.relay import RealtimeRelay
from collabhub.infrastructure.ws.session import ConnectionSession


def make_user(name: str = "Alice", *, user_id: UUID | None = None) -> UserIdentity:
    return UserIdentity(
        id=user_id or uuid.uuid4(),
        name=name,
        email=f"{name.lower()}@example.com",
        avatar_url="",
        status=UserStatus.OFFLINE,
        last_seen=None,
    )


def make_membership(user: UserIdentity, group_id: UUID, role: GroupRole = GroupRole.MEMBER) -> GroupMembership:
    return GroupMembership(
        user_id=user.id,
        group_id=group_id,
        role=role,
        joined_at=datetime.now(timezone.utc),
    )


def make_message(
    *,
    sender_id: UUID,
    group_id: UUID | None = None,
    receiver_id: UUID | None = None,
    content: str = "hello",
    channel_type: ChannelType | None = None,
    created_at: datetime | None = None,
    read: bool = False,
) -> Message:
    if channel_type is None:
        channel_type = ChannelType.DM if receiver_id else ChannelType.GROUP
    return Message(
        id=uuid.uuid4(),
        sender_id=sender_id,
        group_id=group_id,
        receiver_id=receiver_id,
        content=content,
        attachment_url=None,
        channel_type=channel_type,
        created_at=created_at or datetime.now(timezone.utc),
        read=read,
    )


def make_token(user_id: UUID, *, expired: bool = False, secret: str | None = None) -> str:
    exp = datetime.now(timezone.utc) + (timedelta(minutes=-5) if expired else timedelta(hours=1))
    return jwt.encode(
        {"sub": str(user_id), "exp": exp},
        secret or settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def frame(event_type: str, **data: Any) -> str:
    return json.dumps({"type": event_type, "data": {k: str(v) if isinstance(v, UUID) else v for k, v in data.items()}})


# -- fake persistence -------------------------------------------------------


@dataclass
class FakeUserReader:
    _users: dict[UUID, UserIdentity] = field(default_factory=dict)
    fail: bool = False

    def add(self, *users: UserIdentity) -> None:
        for user in users:
            self._users[user.id] = user

    async def get_by_id(self, user_id: UUID) -> UserIdentity | None:
        if self.fail:
            raise PersistenceError("Storage unavailable")
        return self._users.get(user_id)


@dataclass
class FakeUserWriter:
    _reader: FakeUserReader
    _updates: list[tuple[UUID, UserStatus, datetime]] = field(default_factory=list)
    fail: bool = False

    async def set_status(self, user_id: UUID, status: UserStatus, last_seen: datetime) -> None:
        if self.fail:
            raise PersistenceError("Storage unavailable")
        self._updates.append((user_id, status, last_seen))
        user = self._reader._users.get(user_id)
        if user is not None:
            self._reader._users[user_id] = replace(user, status=status, last_seen=last_seen)


@dataclass
class FakeMembershipReader:
    _memberships: list[GroupMembership] = field(default_factory=list)

    def add(self, *memberships: GroupMembership) -> None:
        self._memberships.extend(memberships)

    async def get(self, user_id: UUID, group_id: UUID) -> GroupMembership | None:
        for m in self._memberships:
            if m.user_id == user_id and m.group_id == group_id:
                return m
        return None

    async def list_for_user(self, user_id: UUID) -> list[GroupMembership]:
        return [m for m in self._memberships if m.user_id == user_id]

    async def list_member_ids(self, group_id: UUID) -> list[UUID]:
        return [m.user_id for m in self._memberships if m.group_id == group_id]


def _page(messages: list[Message], limit: int) -> MessagePage:
    ordered = sorted(messages, key=lambda m: m.created_at)
    return MessagePage(items=ordered[-limit:], next_cursor=None)


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)
    _users: FakeUserReader | None = None

    async def list_group_messages(
        self, group_id: UUID, *, channel_types: Any, cursor: str | None = None, limit: int = 50,
    ) -> MessagePage:
        return _page(
            [m for m in self._messages if m.group_id == group_id and m.channel_type in channel_types],
            limit,
        )

    async def list_direct_messages(
        self, user_id: UUID, peer_id: UUID, *, cursor: str | None = None, limit: int = 50,
    ) -> MessagePage:
        pair = {user_id, peer_id}
        return _page(
            [m for m in self._messages if m.is_direct and {m.sender_id, m.receiver_id} == pair],
            limit,
        )

    async def list_conversations(self, user_id: UUID) -> list[ConversationSummary]:
        latest: dict[UUID, Message] = {}
        for m in sorted(self._messages, key=lambda m: m.created_at):
            if not m.is_direct or user_id not in (m.sender_id, m.receiver_id):
                continue
            peer = m.receiver_id if m.sender_id == user_id else m.sender_id
            assert peer is not None
            latest[peer] = m
        users = self._users._users if self._users else {}
        return [
            ConversationSummary(user=users[peer], last_message=msg)
            for peer, msg in sorted(latest.items(), key=lambda kv: kv[1].created_at, reverse=True)
            if peer in users
        ]

    async def count_unread(self, user_id: UUID) -> int:
        return sum(1 for m in self._messages if m.is_direct and m.receiver_id == user_id and not m.read)


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    fail: bool = False

    async def create(self, message: Message) -> Message:
        if self.fail:
            raise PersistenceError("Storage unavailable")
        self._reader._messages.append(message)
        return message

    async def mark_direct_read(self, sender_id: UUID, receiver_id: UUID) -> int:
        touched = 0
        for i, m in enumerate(self._reader._messages):
            if m.is_direct and m.sender_id == sender_id and m.receiver_id == receiver_id and not m.read:
                self._reader._messages[i] = replace(m, read=True)
                touched += 1
        return touched


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    users: FakeUserReader = field(default_factory=FakeUserReader)
    users_w: FakeUserWriter | None = None
    memberships: FakeMembershipReader = field(default_factory=FakeMembershipReader)
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    _committed: bool = False

    def __post_init__(self) -> None:
        if self.users_w is None:
            self.users_w = FakeUserWriter(self.users)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)
        self.messages._users = self.users

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        pass


def uow_factory(uow: FakeUoW):
    @asynccontextmanager
    async def _open() -> AsyncIterator[FakeUoW]:
        yield uow

    return _open


# -- fake transport ---------------------------------------------------------


class FakeSocket:
    """Records what the relay writes; mimics the starlette WebSocket calls it uses."""

    def __init__(self, *, fail_send: bool = False) -> None:
        self.accepted = False
        self.closed = False
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.fail_send = fail_send
        self.sent: list[dict[str, Any]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.fail_send:
            raise RuntimeError("socket is gone")
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed = True
        self.close_code = code
        self.close_reason = reason

    def events(self, event_type: str) -> list[dict[str, Any]]:
        return [f["data"] for f in self.sent if f["type"] == event_type]

    def types(self) -> list[str]:
        return [f["type"] for f in self.sent]

    def clear(self) -> None:
        self.sent.clear()


async def connect_as(relay: RealtimeRelay, user: UserIdentity) -> tuple[ConnectionSession, FakeSocket]:
    sock = FakeSocket()
    session = await relay.connect(sock, make_token(user.id))
    assert session is not None
    return session, sock


# -- fixtures ---------------------------------------------------------------


@pytest.fixture
def group_id() -> UUID:
    return uuid.uuid4()


@pytest.fixture
def alice() -> UserIdentity:
    return make_user("Alice")


@pytest.fixture
def bob() -> UserIdentity:
    return make_user("Bob")


@pytest.fixture
def carol() -> UserIdentity:
    return make_user("Carol")


@pytest.fixture
def uow(alice, bob, carol, group_id) -> FakeUoW:
    """Alice is a MEMBER and Bob the OWNER of the group; Carol is an outsider."""
    uow = FakeUoW()
    uow.users.add(alice, bob, carol)
    uow.memberships.add(
        make_membership(alice, group_id, GroupRole.MEMBER),
        make_membership(bob, group_id, GroupRole.OWNER),
    )
    return uow


@pytest.fixture
def relay(uow) -> RealtimeRelay:
    return RealtimeRelay(HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM), uow_factory(uow))
