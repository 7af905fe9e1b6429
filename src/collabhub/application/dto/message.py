from __future__ import annotations

from dataclasses import dataclass

from collabhub.domain.entities.message import Message
from collabhub.domain.entities.user import UserIdentity


@dataclass(frozen=True, slots=True)
class MessagePage:
    """Oldest-first slice of a message history."""

    items: list[Message]
    next_cursor: str | None = None


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    """Latest direct message exchanged with one counterpart."""

    user: UserIdentity
    last_message: Message
