from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"


class QueueStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class EntryStatus(str, Enum):
    WAITING = "waiting"
    CALLED = "called"
    SKIPPED = "skipped"
    COMPLETED = "completed"


ACTIVE_ENTRY_STATUSES = (EntryStatus.WAITING, EntryStatus.CALLED)


class AuthActorType(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class AuthAction(str, Enum):
    SIGNUP = "SIGNUP"
    LOGIN = "LOGIN"
    FAILED_LOGIN = "FAILED_LOGIN"
    ACCESS_DENIED = "ACCESS_DENIED"
    STAFF_ACCESS = "STAFF_ACCESS"
    FAILED_STAFF_ACCESS = "FAILED_STAFF_ACCESS"


class ChangeAction(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
