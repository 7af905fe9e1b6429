from __future__ import annotations

import uuid
from datetime import datetime, timezone

from collabhub.application.dto.message import ConversationSummary, MessagePage
from collabhub.application.exceptions import NotFoundError, ValidationError
from collabhub.application.policies.permissions import assert_can_post, assert_group_member
from collabhub.application.uow import UnitOfWork
from collabhub.domain.entities.message import CONTENT_MAX_LENGTH, Message
from collabhub.domain.value_objects.enums import ChannelType

GROUP_CHANNELS = (ChannelType.GROUP, ChannelType.ANNOUNCEMENT)


def _check_content(content: str) -> None:
    if not content or not content.strip():
        raise ValidationError("Message content is required")
    if len(content) > CONTENT_MAX_LENGTH:
        raise ValidationError(f"Message cannot exceed {CONTENT_MAX_LENGTH} characters")


async def send_group_message(
    sender_id: uuid.UUID,
    group_id: uuid.UUID,
    content: str,
    attachment_url: str | None,
    channel_type: ChannelType,
    uow: UnitOfWork,
) -> Message:
    """Persist a message in a group's general or announcement stream."""
    _check_content(content)
    if channel_type not in GROUP_CHANNELS:
        raise ValidationError(f"Channel {channel_type} is not a group channel")

    membership = await assert_group_member(sender_id, group_id, uow.memberships)
    assert_can_post(membership, channel_type)

    msg = Message(
        id=uuid.uuid4(),
        sender_id=sender_id,
        group_id=group_id,
        receiver_id=None,
        content=content,
        attachment_url=attachment_url,
        channel_type=channel_type,
        created_at=datetime.now(timezone.utc),
    )
    msg = await uow.messages_w.create(msg)
    await uow.commit()
    return msg


async def send_direct_message(
    sender_id: uuid.UUID,
    receiver_id: uuid.UUID,
    content: str,
    attachment_url: str | None,
    uow: UnitOfWork,
) -> Message:
    _check_content(content)
    receiver = await uow.users.get_by_id(receiver_id)
    if receiver is None:
        raise NotFoundError("Receiver not found")

    msg = Message(
        id=uuid.uuid4(),
        sender_id=sender_id,
        group_id=None,
        receiver_id=receiver_id,
        content=content,
        attachment_url=attachment_url,
        channel_type=ChannelType.DM,
        created_at=datetime.now(timezone.utc),
    )
    msg = await uow.messages_w.create(msg)
    await uow.commit()
    return msg


async def list_group_messages(
    user_id: uuid.UUID,
    group_id: uuid.UUID,
    channel_type: ChannelType | None,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> MessagePage:
    await assert_group_member(user_id, group_id, uow.memberships)
    if channel_type is None:
        channel_types: tuple[ChannelType, ...] = GROUP_CHANNELS
    elif channel_type in GROUP_CHANNELS:
        channel_types = (channel_type,)
    else:
        raise ValidationError(f"Channel {channel_type} is not a group channel")
    return await uow.messages.list_group_messages(
        group_id, channel_types=channel_types, cursor=cursor, limit=limit,
    )


async def list_direct_messages(
    user_id: uuid.UUID,
    peer_id: uuid.UUID,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> MessagePage:
    """Return one page of the DM history and mark the peer's messages as read."""
    page = await uow.messages.list_direct_messages(
        user_id, peer_id, cursor=cursor, limit=limit,
    )
    touched = await uow.messages_w.mark_direct_read(peer_id, user_id)
    if touched:
        await uow.commit()
    return page


async def list_conversations(
    user_id: uuid.UUID,
    uow: UnitOfWork,
) -> list[ConversationSummary]:
    return await uow.messages.list_conversations(user_id)


async def count_unread(user_id: uuid.UUID, uow: UnitOfWork) -> int:
    return await uow.messages.count_unread(user_id)
