from __future__ import annotations

from typing import Collection, Protocol
from uuid import UUID

from collabhub.application.dto.message import ConversationSummary, MessagePage
from collabhub.domain.entities.message import Message
from collabhub.domain.value_objects.enums import ChannelType


class MessageReader(Protocol):
    async def list_group_messages(
        self,
        group_id: UUID,
        *,
        channel_types: Collection[ChannelType],
        cursor: str | None = None,
        limit: int = 50,
    ) -> MessagePage: ...

    async def list_direct_messages(
        self,
        user_id: UUID,
        peer_id: UUID,
        *,
        cursor: str | None = None,
        limit: int = 50,
    ) -> MessagePage: ...

    async def list_conversations(self, user_id: UUID) -> list[ConversationSummary]: ...

    async def count_unread(self, user_id: UUID) -> int: ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message:
        """Insert message; the stored row (with server timestamp) is returned."""
        ...

    async def mark_direct_read(self, sender_id: UUID, receiver_id: UUID) -> int:
        """Flag unread DMs from sender to receiver as read. Returns rows touched."""
        ...
