from __future__ import annotations

from typing import Protocol
from uuid import UUID

from collabhub.domain.entities.membership import GroupMembership


class MembershipReader(Protocol):
    async def get(self, user_id: UUID, group_id: UUID) -> GroupMembership | None: ...

    async def list_for_user(self, user_id: UUID) -> list[GroupMembership]: ...

    async def list_member_ids(self, group_id: UUID) -> list[UUID]: ...
