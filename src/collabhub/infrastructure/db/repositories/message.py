from __future__ import annotations

from typing import Collection
from uuid import UUID

from sqlalchemy import Select, and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.application.dto.message import ConversationSummary, MessagePage
from collabhub.domain.entities.message import Message
from collabhub.domain.value_objects.enums import ChannelType
from collabhub.infrastructure.db.mappers import message as mapper
from collabhub.infrastructure.db.mappers import user as user_mapper
from collabhub.infrastructure.db.models.message import MessageModel
from collabhub.infrastructure.db.models.user import UserModel
from collabhub.infrastructure.db.repositories._cursor import decode_cursor, encode_cursor


def _dm_between(user_id: UUID, peer_id: UUID):
    return and_(
        MessageModel.channel_type == ChannelType.DM.value,
        or_(
            and_(MessageModel.sender_id == user_id, MessageModel.receiver_id == peer_id),
            and_(MessageModel.sender_id == peer_id, MessageModel.receiver_id == user_id),
        ),
    )


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _fetch_page(
        self,
        stmt: Select[tuple[MessageModel]],
        cursor: str | None,
        limit: int,
    ) -> MessagePage:
        stmt = stmt.order_by(
            MessageModel.created_at.desc(), MessageModel.id.desc(),
        ).limit(limit)
        if cursor:
            ts, mid = decode_cursor(cursor)
            stmt = stmt.where(
                (MessageModel.created_at < ts)
                | ((MessageModel.created_at == ts) & (MessageModel.id < mid))
            )
        result = await self._session.execute(stmt)
        newest_first = [mapper.model_to_entity(m) for m in result.scalars().all()]

        next_cursor = None
        if len(newest_first) == limit:
            oldest = newest_first[-1]
            next_cursor = encode_cursor(oldest.created_at, oldest.id)
        return MessagePage(items=newest_first[::-1], next_cursor=next_cursor)

    async def list_group_messages(
        self,
        group_id: UUID,
        *,
        channel_types: Collection[ChannelType],
        cursor: str | None = None,
        limit: int = 50,
    ) -> MessagePage:
        stmt = select(MessageModel).where(
            MessageModel.group_id == group_id,
            MessageModel.channel_type.in_([c.value for c in channel_types]),
        )
        return await self._fetch_page(stmt, cursor, limit)

    async def list_direct_messages(
        self,
        user_id: UUID,
        peer_id: UUID,
        *,
        cursor: str | None = None,
        limit: int = 50,
    ) -> MessagePage:
        stmt = select(MessageModel).where(_dm_between(user_id, peer_id))
        return await self._fetch_page(stmt, cursor, limit)

    async def list_conversations(self, user_id: UUID) -> list[ConversationSummary]:
        counterpart = case(
            (MessageModel.sender_id == user_id, MessageModel.receiver_id),
            else_=MessageModel.sender_id,
        )
        ranked = (
            select(
                MessageModel.id.label("message_id"),
                counterpart.label("counterpart_id"),
                func.row_number()
                .over(partition_by=counterpart, order_by=MessageModel.created_at.desc())
                .label("rn"),
            )
            .where(
                MessageModel.channel_type == ChannelType.DM.value,
                or_(MessageModel.sender_id == user_id, MessageModel.receiver_id == user_id),
            )
            .subquery()
        )
        stmt = (
            select(MessageModel, UserModel)
            .join(ranked, ranked.c.message_id == MessageModel.id)
            .join(UserModel, UserModel.id == ranked.c.counterpart_id)
            .where(ranked.c.rn == 1)
            .order_by(MessageModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [
            ConversationSummary(
                user=user_mapper.model_to_entity(user),
                last_message=mapper.model_to_entity(msg),
            )
            for msg, user in result.all()
        ]

    async def count_unread(self, user_id: UUID) -> int:
        stmt = select(func.count(MessageModel.id)).where(
            MessageModel.receiver_id == user_id,
            MessageModel.channel_type == ChannelType.DM.value,
            MessageModel.read.is_(False),
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def mark_direct_read(self, sender_id: UUID, receiver_id: UUID) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.sender_id == sender_id,
                MessageModel.receiver_id == receiver_id,
                MessageModel.channel_type == ChannelType.DM.value,
                MessageModel.read.is_(False),
            )
            .values(read=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
