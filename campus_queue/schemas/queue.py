import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from campus_queue.models import EntryStatus, QueueStatus


class JoinQueueRequest(BaseModel):
    staff_id: uuid.UUID
    student_name: str = Field(..., min_length=1, max_length=150)
    reason: str = Field(..., min_length=1, max_length=2000)


class QueueEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    queue_id: uuid.UUID
    student_name: str
    reason: str
    queue_number: int
    status: EntryStatus
    called_at: Optional[datetime] = None
    created_at: datetime


class EntryStatusResponse(BaseModel):
    entry: QueueEntryRead
    position: Optional[int] = None
    estimated_wait_minutes: Optional[int] = None
    response_deadline: Optional[datetime] = None


class QueueRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    staff_id: uuid.UUID
    status: QueueStatus
    created_at: datetime


class QueueDashboardResponse(BaseModel):
    queue: QueueRead
    entries: list[QueueEntryRead]
    waiting_count: int
    called_count: int


class QueueStatusUpdate(BaseModel):
    status: QueueStatus


class SweepResponse(BaseModel):
    removed: int
