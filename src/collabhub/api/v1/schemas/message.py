from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from collabhub.domain.entities.message import CONTENT_MAX_LENGTH
from collabhub.domain.value_objects.enums import ChannelType, UserStatus


class SendGroupMessageRequest(BaseModel):
    group_id: UUID
    content: str = Field(min_length=1, max_length=CONTENT_MAX_LENGTH)
    attachment_url: str | None = None
    channel_type: ChannelType = ChannelType.GROUP


class SendDirectMessageRequest(BaseModel):
    receiver_id: UUID
    content: str = Field(min_length=1, max_length=CONTENT_MAX_LENGTH)
    attachment_url: str | None = None


class MessageResponse(BaseModel):
    id: UUID
    sender_id: UUID
    group_id: UUID | None
    receiver_id: UUID | None
    content: str
    attachment_url: str | None
    channel_type: ChannelType
    created_at: datetime
    read: bool

    model_config = {"from_attributes": True}


class UserSummaryResponse(BaseModel):
    id: UUID
    name: str
    email: str
    avatar_url: str
    status: UserStatus
    last_seen: datetime | None

    model_config = {"from_attributes": True}


class ConversationResponse(BaseModel):
    user: UserSummaryResponse
    last_message: MessageResponse

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    count: int
