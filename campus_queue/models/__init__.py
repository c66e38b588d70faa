from .account import Account
from .auth_log import AuthLog
from .base import Base
from .enums import (
    ACTIVE_ENTRY_STATUSES,
    AuthAction,
    AuthActorType,
    ChangeAction,
    EntryStatus,
    QueueStatus,
    UserRole,
)
from .queue import Queue
from .queue_entry import QueueEntry
from .staff import Staff
from .user import User

__all__ = [
    "Account",
    "AuthLog",
    "Base",
    "Queue",
    "QueueEntry",
    "Staff",
    "User",
    "ACTIVE_ENTRY_STATUSES",
    "AuthAction",
    "AuthActorType",
    "ChangeAction",
    "EntryStatus",
    "QueueStatus",
    "UserRole",
]
