from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.domain.entities.membership import GroupMembership
from collabhub.infrastructure.db.mappers import membership as mapper
from collabhub.infrastructure.db.models.membership import GroupMemberModel


class MembershipReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: UUID, group_id: UUID) -> GroupMembership | None:
        stmt = (
            select(GroupMemberModel)
            .where(
                GroupMemberModel.user_id == user_id,
                GroupMemberModel.group_id == group_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(self, user_id: UUID) -> list[GroupMembership]:
        stmt = select(GroupMemberModel).where(GroupMemberModel.user_id == user_id)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_member_ids(self, group_id: UUID) -> list[UUID]:
        stmt = select(GroupMemberModel.user_id).where(GroupMemberModel.group_id == group_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
