from __future__ import annotations

from collabhub.domain.entities.user import UserIdentity
from collabhub.domain.value_objects.enums import UserStatus
from collabhub.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> UserIdentity:
    return UserIdentity(
        id=model.id,
        name=model.name,
        email=model.email,
        avatar_url=model.avatar_url or "",
        status=UserStatus(model.status),
        last_seen=model.last_seen,
    )
