from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from collabhub.domain.value_objects.enums import UserStatus


@dataclass(frozen=True, slots=True)
class UserIdentity:
    id: UUID
    name: str
    email: str
    avatar_url: str
    status: UserStatus
    last_seen: datetime | None
