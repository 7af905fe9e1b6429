from __future__ import annotations

from collabhub.domain.entities.membership import GroupMembership
from collabhub.domain.value_objects.enums import GroupRole
from collabhub.infrastructure.db.models.membership import GroupMemberModel


def model_to_entity(model: GroupMemberModel) -> GroupMembership:
    return GroupMembership(
        user_id=model.user_id,
        group_id=model.group_id,
        role=GroupRole(model.role),
        joined_at=model.joined_at,
    )
