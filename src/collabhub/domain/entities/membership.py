from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from collabhub.domain.value_objects.enums import ANNOUNCER_ROLES, GroupRole


@dataclass(frozen=True, slots=True)
class GroupMembership:
    user_id: UUID
    group_id: UUID
    role: GroupRole
    joined_at: datetime

    @property
    def can_announce(self) -> bool:
        return self.role in ANNOUNCER_ROLES
