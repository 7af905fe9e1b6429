from __future__ import annotations

from collabhub.domain.entities.message import Message
from collabhub.domain.value_objects.enums import ChannelType
from collabhub.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        sender_id=model.sender_id,
        group_id=model.group_id,
        receiver_id=model.receiver_id,
        content=model.content,
        attachment_url=model.attachment_url,
        channel_type=ChannelType(model.channel_type),
        created_at=model.created_at,
        read=model.read,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        sender_id=entity.sender_id,
        group_id=entity.group_id,
        receiver_id=entity.receiver_id,
        content=entity.content,
        attachment_url=entity.attachment_url,
        channel_type=entity.channel_type.value,
        read=entity.read,
        created_at=entity.created_at,
    )
