from .auth_service import AuthService
from .queue_service import EntryStatusView, QueueService
from .staff_service import StaffService

__all__ = [
    "AuthService",
    "EntryStatusView",
    "QueueService",
    "StaffService",
]
