from __future__ import annotations

import uuid
from datetime import datetime

from collabhub.application.uow import UnitOfWork
from collabhub.domain.value_objects.enums import UserStatus


async def update_status(
    user_id: uuid.UUID,
    status: UserStatus,
    last_seen: datetime,
    uow: UnitOfWork,
) -> None:
    await uow.users_w.set_status(user_id, status, last_seen)
    await uow.commit()
