from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from collabhub.api.deps import CurrentUser, RelayDep, UoWDep
from collabhub.api.v1.schemas.common import PaginatedResponse
from collabhub.api.v1.schemas.message import (
    ConversationResponse,
    MessageResponse,
    SendDirectMessageRequest,
    SendGroupMessageRequest,
    UnreadCountResponse,
)
from collabhub.config import settings
from collabhub.domain.value_objects.enums import ChannelType
from collabhub.services import message_service

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.post("/group", response_model=MessageResponse, status_code=201)
async def send_group_message(
    body: SendGroupMessageRequest,
    user: CurrentUser,
    uow: UoWDep,
    relay: RelayDep,
) -> MessageResponse:
    msg = await message_service.send_group_message(
        user.id, body.group_id, body.content, body.attachment_url, body.channel_type, uow,
    )
    await relay.publish_group_message(msg, user)
    return MessageResponse.model_validate(msg, from_attributes=True)


@router.get("/group/{group_id}", response_model=PaginatedResponse[MessageResponse])
async def list_group_messages(
    group_id: UUID,
    user: CurrentUser,
    uow: UoWDep,
    channel_type: ChannelType | None = Query(None),
    cursor: str | None = Query(None),
    limit: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=settings.PAGE_SIZE_MAX),
) -> PaginatedResponse[MessageResponse]:
    page = await message_service.list_group_messages(
        user.id, group_id, channel_type, cursor, limit, uow,
    )
    return PaginatedResponse[MessageResponse](
        items=[MessageResponse.model_validate(m, from_attributes=True) for m in page.items],
        next_cursor=page.next_cursor,
    )


@router.post("/dm", response_model=MessageResponse, status_code=201)
async def send_direct_message(
    body: SendDirectMessageRequest,
    user: CurrentUser,
    uow: UoWDep,
    relay: RelayDep,
) -> MessageResponse:
    msg = await message_service.send_direct_message(
        user.id, body.receiver_id, body.content, body.attachment_url, uow,
    )
    await relay.publish_direct_message(msg, user)
    return MessageResponse.model_validate(msg, from_attributes=True)


@router.get("/dm/{user_id}", response_model=PaginatedResponse[MessageResponse])
async def list_direct_messages(
    user_id: UUID,
    user: CurrentUser,
    uow: UoWDep,
    cursor: str | None = Query(None),
    limit: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=settings.PAGE_SIZE_MAX),
) -> PaginatedResponse[MessageResponse]:
    page = await message_service.list_direct_messages(user.id, user_id, cursor, limit, uow)
    return PaginatedResponse[MessageResponse](
        items=[MessageResponse.model_validate(m, from_attributes=True) for m in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations(
    user: CurrentUser,
    uow: UoWDep,
) -> list[ConversationResponse]:
    conversations = await message_service.list_conversations(user.id, uow)
    return [ConversationResponse.model_validate(c, from_attributes=True) for c in conversations]


@router.get("/unread", response_model=UnreadCountResponse)
async def unread_count(user: CurrentUser, uow: UoWDep) -> UnreadCountResponse:
    count = await message_service.count_unread(user.id, uow)
    return UnreadCountResponse(count=count)
