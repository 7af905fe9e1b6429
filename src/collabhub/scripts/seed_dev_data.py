"""Create tables and seed a development group with three members.

Prints an HS256 access token per seeded user so a client can connect to
``/ws/realtime?token=...`` straight away.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from collabhub.config import settings
from collabhub.domain.entities.message import Message
from collabhub.domain.value_objects.enums import ChannelType, GroupRole
from collabhub.infrastructure.db.base import Base
from collabhub.infrastructure.db.models import GroupMemberModel, UserModel
from collabhub.infrastructure.db.session import AsyncSessionLocal, engine
from collabhub.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

USERS = [
    ("Ada Owner", "ada@example.com", GroupRole.OWNER),
    ("Ben Admin", "ben@example.com", GroupRole.ADMIN),
    ("Cy Member", "cy@example.com", GroupRole.MEMBER),
]


def _token(user_id: uuid.UUID) -> str:
    exp = datetime.now(timezone.utc) + timedelta(days=7)
    return jwt.encode({"sub": str(user_id), "exp": exp}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    group_id = uuid.uuid4()
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        now = datetime.now(timezone.utc)

        user_ids: list[uuid.UUID] = []
        for name, email, role in USERS:
            user = UserModel(id=uuid.uuid4(), name=name, email=email)
            session.add(user)
            await session.flush()
            session.add(GroupMemberModel(user_id=user.id, group_id=group_id, role=role.value))
            user_ids.append(user.id)

        owner_id = user_ids[0]
        await uow.messages_w.create(
            Message(
                id=uuid.uuid4(),
                sender_id=owner_id,
                group_id=group_id,
                receiver_id=None,
                content="Welcome to the team!",
                attachment_url=None,
                channel_type=ChannelType.ANNOUNCEMENT,
                created_at=now,
            )
        )
        await uow.commit()

    logger.info("Seeded group %s", group_id)
    for (name, _email, role), user_id in zip(USERS, user_ids):
        logger.info("%s (%s) id=%s token=%s", name, role, user_id, _token(user_id))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
