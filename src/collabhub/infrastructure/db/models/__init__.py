"""Import all models so Base.metadata sees every table."""
from collabhub.infrastructure.db.models.membership import GroupMemberModel
from collabhub.infrastructure.db.models.message import MessageModel
from collabhub.infrastructure.db.models.user import UserModel

__all__ = [
    "GroupMemberModel",
    "MessageModel",
    "UserModel",
]
