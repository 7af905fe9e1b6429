from __future__ import annotations

from contextlib import asynccontextmanager
from types import TracebackType
from typing import AsyncIterator, Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.application.exceptions import PersistenceError
from collabhub.infrastructure.db.repositories.membership import MembershipReaderRepo
from collabhub.infrastructure.db.repositories.message import (
    MessageReaderRepo,
    MessageWriterRepo,
)
from collabhub.infrastructure.db.repositories.user import UserReaderRepo, UserWriterRepo
from collabhub.infrastructure.db.session import AsyncSessionLocal


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.users = UserReaderRepo(session)
        self.users_w = UserWriterRepo(session)
        self.memberships = MembershipReaderRepo(session)
        self.messages = MessageReaderRepo(session)
        self.messages_w = MessageWriterRepo(session)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()


@asynccontextmanager
async def open_uow() -> AsyncIterator[SqlAlchemyUoW]:
    """Yield a UoW on a fresh session; driver failures surface as PersistenceError."""
    try:
        async with AsyncSessionLocal() as session:
            async with SqlAlchemyUoW(session) as uow:
                yield uow
    except (SQLAlchemyError, OSError) as exc:
        raise PersistenceError("Storage unavailable") from exc
