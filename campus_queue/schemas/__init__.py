from .auth import (
    AdminAuthResponse,
    AdminLoginRequest,
    AdminProfile,
    AdminRead,
    AdminSignupRequest,
    AnonymousProfile,
    MeResponse,
    RefreshRequest,
    StaffAccessRequest,
    StaffAuthResponse,
    StaffProfile,
)
from .common import Pagination, SystemHealth, TokenResponse
from .queue import (
    EntryStatusResponse,
    JoinQueueRequest,
    QueueDashboardResponse,
    QueueEntryRead,
    QueueRead,
    QueueStatusUpdate,
    SweepResponse,
)
from .staff import (
    PublicOverview,
    StaffAdminRead,
    StaffCreateRequest,
    StaffDirectoryItem,
    StaffListResponse,
    StaffRead,
    StaffUpdateRequest,
)

__all__ = [
    "AdminAuthResponse",
    "AdminLoginRequest",
    "AdminProfile",
    "AdminRead",
    "AdminSignupRequest",
    "AnonymousProfile",
    "EntryStatusResponse",
    "JoinQueueRequest",
    "MeResponse",
    "Pagination",
    "PublicOverview",
    "QueueDashboardResponse",
    "QueueEntryRead",
    "QueueRead",
    "QueueStatusUpdate",
    "RefreshRequest",
    "StaffAccessRequest",
    "StaffAdminRead",
    "StaffAuthResponse",
    "StaffCreateRequest",
    "StaffDirectoryItem",
    "StaffListResponse",
    "StaffProfile",
    "StaffRead",
    "StaffUpdateRequest",
    "SweepResponse",
    "SystemHealth",
    "TokenResponse",
]
