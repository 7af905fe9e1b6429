from __future__ import annotations

from enum import StrEnum


class UserStatus(StrEnum):
    ONLINE = "online"
    AWAY = "away"
    BUSY = "busy"
    OFFLINE = "offline"


class GroupRole(StrEnum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    MEMBER = "MEMBER"


class ChannelType(StrEnum):
    GROUP = "GROUP"
    ANNOUNCEMENT = "ANNOUNCEMENT"
    DM = "DM"


ANNOUNCER_ROLES = frozenset({GroupRole.OWNER, GroupRole.ADMIN})
