import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from campus_queue.models import QueueStatus

from .common import Pagination


class StaffCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    department: str = Field(..., min_length=1, max_length=150)


class StaffUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    department: Optional[str] = Field(default=None, min_length=1, max_length=150)

    @model_validator(mode="before")
    @classmethod
    def check_at_least_one(cls, values):
        data = values or {}
        if not any(field in data for field in ("name", "email", "department")):
            raise ValueError("At least one field must be provided for update")
        return values


class StaffRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    department: str
    created_at: datetime


class StaffAdminRead(StaffRead):
    """Staff as admins see it, access code included."""

    unique_id: str


class StaffListResponse(BaseModel):
    pagination: Pagination
    items: list[StaffAdminRead]


class StaffDirectoryItem(BaseModel):
    id: uuid.UUID
    name: str
    department: str
    queue_id: Optional[uuid.UUID] = None
    queue_status: Optional[QueueStatus] = None


class PublicOverview(BaseModel):
    staff_count: int
    open_queues: int
    students_waiting: int
