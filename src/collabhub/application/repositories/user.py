from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from collabhub.domain.entities.user import UserIdentity
from collabhub.domain.value_objects.enums import UserStatus


class UserReader(Protocol):
    async def get_by_id(self, user_id: UUID) -> UserIdentity | None: ...


class UserWriter(Protocol):
    async def set_status(
        self,
        user_id: UUID,
        status: UserStatus,
        last_seen: datetime,
    ) -> None: ...
