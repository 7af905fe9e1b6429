"""WebSocket frame models.

Every frame is an envelope ``{"type": <event name>, "data": {...}}``. Inbound
frames are parsed into one closed union keyed on ``type``; anything outside it
is rejected at the boundary.
"""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from collabhub.domain.entities.message import CONTENT_MAX_LENGTH
from collabhub.domain.value_objects.enums import ChannelType


def user_room(user_id: UUID) -> str:
    return f"user:{user_id}"


def group_room(group_id: UUID) -> str:
    return f"group:{group_id}"


class OutboundEvent(StrEnum):
    USER_ONLINE = "user:online"
    USER_OFFLINE = "user:offline"
    GROUP_MESSAGE = "group_message"
    DM_MESSAGE = "dm_message"
    TYPING_USER = "typing:user"
    DM_TYPING = "dm:typing"
    MESSAGE_READ = "message:read"
    MESSAGE_ERROR = "message:error"
    GROUP_ONLINE_LIST = "group:online:list"
    TASK_UPDATED = "task:updated"
    RESOURCE_ADDED = "resource:added"
    EVENT_ADDED = "event:added"
    ERROR = "error"
    PONG = "pong"


class WsInbound(BaseModel):
    """Client → Server."""

    type: str
    data: Any = None


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str
    data: dict[str, Any] = {}


# -- inbound payloads -------------------------------------------------------


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class GroupRef(_Payload):
    group_id: UUID


class ReceiverRef(_Payload):
    receiver_id: UUID


class GroupMessageData(_Payload):
    group_id: UUID
    content: str = Field(min_length=1, max_length=CONTENT_MAX_LENGTH)
    attachment_url: str | None = None
    channel_type: ChannelType = ChannelType.GROUP


class DirectMessageData(_Payload):
    receiver_id: UUID
    content: str = Field(min_length=1, max_length=CONTENT_MAX_LENGTH)
    attachment_url: str | None = None


class ReadReceiptData(_Payload):
    message_id: UUID
    conversation_id: UUID


class TaskUpdateData(_Payload):
    group_id: UUID
    task: dict[str, Any]


class ResourceNewData(_Payload):
    group_id: UUID
    resource: dict[str, Any]


class EventNewData(_Payload):
    group_id: UUID
    event: dict[str, Any]


# -- inbound events ---------------------------------------------------------


class JoinGroup(BaseModel):
    type: Literal["group:join"]
    data: GroupRef


class LeaveGroup(BaseModel):
    type: Literal["group:leave"]
    data: GroupRef


class GroupTyping(BaseModel):
    type: Literal["typing:start", "typing:stop"]
    data: GroupRef

    @property
    def typing(self) -> bool:
        return self.type == "typing:start"


class DirectTyping(BaseModel):
    type: Literal["dm:typing:start", "dm:typing:stop"]
    data: ReceiverRef

    @property
    def typing(self) -> bool:
        return self.type == "dm:typing:start"


class SendGroupMessage(BaseModel):
    type: Literal["send_group_message"]
    data: GroupMessageData


class SendDirectMessage(BaseModel):
    type: Literal["send_dm"]
    data: DirectMessageData


class MarkRead(BaseModel):
    type: Literal["message:read"]
    data: ReadReceiptData


class QueryOnline(BaseModel):
    type: Literal["group:online"]
    data: GroupRef


class TaskUpdate(BaseModel):
    type: Literal["task:update"]
    data: TaskUpdateData


class ResourceNew(BaseModel):
    type: Literal["resource:new"]
    data: ResourceNewData


class EventNew(BaseModel):
    type: Literal["event:new"]
    data: EventNewData


class Ping(BaseModel):
    type: Literal["ping"]
    data: Any = None


class Logout(BaseModel):
    type: Literal["logout"]
    data: Any = None


InboundEvent = Annotated[
    Union[
        JoinGroup,
        LeaveGroup,
        GroupTyping,
        DirectTyping,
        SendGroupMessage,
        SendDirectMessage,
        MarkRead,
        QueryOnline,
        TaskUpdate,
        ResourceNew,
        EventNew,
        Ping,
        Logout,
    ],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)

INBOUND_TYPES = frozenset({
    "group:join", "group:leave",
    "typing:start", "typing:stop",
    "dm:typing:start", "dm:typing:stop",
    "send_group_message", "send_dm",
    "message:read", "group:online",
    "task:update", "resource:new", "event:new",
    "ping", "logout",
})


class UnknownEventError(ValueError):
    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(f"Unknown event type: {event_type}")


def parse_inbound(raw: str) -> InboundEvent:
    """Parse one client frame.

    Raises ``UnknownEventError`` for a well-formed envelope naming an event
    outside the protocol, ``pydantic.ValidationError`` for anything malformed.
    """
    envelope = WsInbound.model_validate_json(raw)
    if envelope.type not in INBOUND_TYPES:
        raise UnknownEventError(envelope.type)
    return _inbound_adapter.validate_python(envelope.model_dump())


# -- outbound payloads ------------------------------------------------------


class SenderOut(BaseModel):
    id: UUID
    name: str
    avatar_url: str = ""

    model_config = {"from_attributes": True}


class MessageOut(BaseModel):
    id: UUID
    sender_id: UUID
    group_id: UUID | None
    receiver_id: UUID | None
    content: str
    attachment_url: str | None
    channel_type: ChannelType
    created_at: datetime
    read: bool
    sender: SenderOut | None = None

    model_config = {"from_attributes": True}


def encode(event: str, data: dict[str, Any]) -> str:
    return WsOutbound(type=event, data=data).model_dump_json()
