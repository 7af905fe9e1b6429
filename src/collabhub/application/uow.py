from __future__ import annotations

from typing import AsyncContextManager, Callable, Protocol

from collabhub.application.repositories.membership import MembershipReader
from collabhub.application.repositories.message import MessageReader, MessageWriter
from collabhub.application.repositories.user import UserReader, UserWriter


class UnitOfWork(Protocol):
    users: UserReader
    users_w: UserWriter
    memberships: MembershipReader
    messages: MessageReader
    messages_w: MessageWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


UoWFactory = Callable[[], AsyncContextManager[UnitOfWork]]
