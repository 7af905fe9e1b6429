from __future__ import annotations

from uuid import UUID

from collabhub.application.exceptions import AuthorizationError
from collabhub.application.repositories.membership import MembershipReader
from collabhub.domain.entities.membership import GroupMembership
from collabhub.domain.value_objects.enums import ChannelType


async def assert_group_member(
    user_id: UUID,
    group_id: UUID,
    memberships: MembershipReader,
) -> GroupMembership:
    """Raise if the user holds no membership in the group."""
    membership = await memberships.get(user_id, group_id)
    if membership is None:
        raise AuthorizationError("Access denied")
    return membership


def assert_can_post(membership: GroupMembership, channel_type: ChannelType) -> None:
    if channel_type == ChannelType.ANNOUNCEMENT and not membership.can_announce:
        raise AuthorizationError("Only admins can post announcements")
