from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from collabhub.domain.value_objects.enums import ChannelType

CONTENT_MAX_LENGTH = 5000


@dataclass(frozen=True, slots=True)
class Message:
    """A chat message.

    Group and announcement messages carry ``group_id``; direct messages carry
    ``receiver_id``. Never both.
    """

    id: UUID
    sender_id: UUID
    group_id: UUID | None
    receiver_id: UUID | None
    content: str
    attachment_url: str | None
    channel_type: ChannelType
    created_at: datetime
    read: bool = False

    @property
    def is_direct(self) -> bool:
        return self.channel_type == ChannelType.DM
