from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.domain.entities.user import UserIdentity
from collabhub.domain.value_objects.enums import UserStatus
from collabhub.infrastructure.db.mappers import user as mapper
from collabhub.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> UserIdentity | None:
        result = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(result) if result else None


class UserWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def set_status(
        self,
        user_id: UUID,
        status: UserStatus,
        last_seen: datetime,
    ) -> None:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(status=status.value, last_seen=last_seen)
        )
        await self._session.execute(stmt)
